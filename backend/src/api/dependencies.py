"""
FastAPI dependencies wiring stores and services to the request session.
"""

from typing import Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import AVAILABILITY_CACHE_ENABLED
from core.database import get_db
from repositories import AppointmentRepository, AvailabilityRuleRepository, ServiceRepository
from services.availability_cache import AvailabilityCache, get_redis_client
from services.availability_service import AvailabilityCalculationEngine
from services.booking_conflict_service import BookingConflictService
from services.booking_service import BookingService
from services.cache_warming_service import CacheWarmingService, get_cache_warming_service


def get_availability_cache() -> Optional[AvailabilityCache]:
    if not AVAILABILITY_CACHE_ENABLED:
        return None
    return AvailabilityCache(get_redis_client())


def get_availability_engine(
    db: AsyncSession = Depends(get_db),
    cache: Optional[AvailabilityCache] = Depends(get_availability_cache),
) -> AvailabilityCalculationEngine:
    return AvailabilityCalculationEngine(
        AvailabilityRuleRepository(db),
        AppointmentRepository(db),
        ServiceRepository(db),
        cache=cache,
    )


def get_booking_conflict_service(db: AsyncSession = Depends(get_db)) -> BookingConflictService:
    return BookingConflictService(
        AvailabilityRuleRepository(db),
        AppointmentRepository(db),
        ServiceRepository(db),
    )


def get_booking_service(
    db: AsyncSession = Depends(get_db),
    conflict_service: BookingConflictService = Depends(get_booking_conflict_service),
    cache: Optional[AvailabilityCache] = Depends(get_availability_cache),
) -> BookingService:
    return BookingService(
        conflict_service,
        AppointmentRepository(db),
        ServiceRepository(db),
        cache=cache,
    )


def get_warming_service() -> CacheWarmingService:
    return get_cache_warming_service()
