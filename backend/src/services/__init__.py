"""
Services package for shared business logic.

This package contains service classes that encapsulate the availability,
conflict-detection, booking and cache-warming logic shared across endpoints.
"""

from .availability_service import AvailabilityCalculationEngine, SlotPlanner
from .booking_conflict_service import BookingConflictService
from .booking_service import BookingService
from .cache_warming_service import CacheWarmingService

__all__ = [
    "AvailabilityCalculationEngine",
    "SlotPlanner",
    "BookingConflictService",
    "BookingService",
    "CacheWarmingService",
]
