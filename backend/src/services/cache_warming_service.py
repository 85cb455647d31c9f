"""
Cache warming for availability.

Pre-computes availability for businesses so the first customer request hits
a warm cache. Warming is advisory: per-business failures are collected and
reported, never raised, and booking correctness never depends on it.
"""

import asyncio
import logging
import time
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import (
    CACHE_WARMING_ACTIVITY_HOURS,
    CACHE_WARMING_BATCH_DELAY_SECONDS,
    CACHE_WARMING_BATCH_SIZE,
    CACHE_WARMING_INTERVAL_HOURS,
)
from core.constants import MSG_WARMING_IN_PROGRESS
from core.database import get_db_context
from repositories import AppointmentRepository, AvailabilityRuleRepository, BusinessRepository, ServiceRepository
from services.availability_cache import AvailabilityCache, get_redis_client
from services.availability_service import AvailabilityCalculationEngine
from utils.datetime_utils import business_now, format_date, utc_now

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


@dataclass
class WarmingResult:
    success: bool
    businesses_warmed: int = 0
    errors: List[str] = field(default_factory=list)
    duration_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "businesses_warmed": self.businesses_warmed,
            "errors": list(self.errors),
            "duration_ms": round(self.duration_ms, 1),
        }


class CacheWarmingService:
    """
    Warms the availability cache in small concurrent batches.

    Only one pass runs at a time; a pass started while another is running
    returns immediately with an error.
    """

    def __init__(
        self,
        cache: AvailabilityCache,
        session_factory: SessionFactory = get_db_context,
        batch_size: int = CACHE_WARMING_BATCH_SIZE,
        batch_delay_seconds: float = CACHE_WARMING_BATCH_DELAY_SECONDS,
        interval_hours: int = CACHE_WARMING_INTERVAL_HOURS,
    ):
        self.cache = cache
        self.session_factory = session_factory
        self.batch_size = max(batch_size, 1)
        self.batch_delay_seconds = batch_delay_seconds
        self.interval = timedelta(hours=interval_hours)
        self.is_warming = False
        self.last_warming_time: Optional[datetime] = None

    async def warm_business_cache(self, business_id: str) -> int:
        """
        Warm every active service of one business in its own session.

        Returns:
            Number of services warmed
        """
        async with self.session_factory() as db:
            engine = AvailabilityCalculationEngine(
                AvailabilityRuleRepository(db),
                AppointmentRepository(db),
                ServiceRepository(db),
                cache=self.cache,
            )
            return await engine.warm_up_cache(business_id)

    async def _load_active_business_ids(self) -> List[str]:
        async with self.session_factory() as db:
            return await BusinessRepository(db).get_active_business_ids()

    async def _load_recently_active_business_ids(self, since_date: str) -> List[str]:
        async with self.session_factory() as db:
            return await BusinessRepository(db).get_recently_active_business_ids(since_date)

    async def warm_all_businesses(self) -> WarmingResult:
        """Warm every active business."""
        return await self._run_pass("all businesses", self._load_active_business_ids)

    async def warm_active_businesses(self, hours_back: int = CACHE_WARMING_ACTIVITY_HOURS) -> WarmingResult:
        """Warm businesses with an appointment dated on or after now minus hours_back."""
        since_date = format_date((business_now() - timedelta(hours=hours_back)).date())

        async def load() -> List[str]:
            return await self._load_recently_active_business_ids(since_date)

        return await self._run_pass(f"businesses active since {since_date}", load)

    async def _run_pass(self, label: str, load_business_ids: Callable[[], Any]) -> WarmingResult:
        if self.is_warming:
            logger.warning(f"Skipping cache warming for {label}: previous pass still running")
            return WarmingResult(success=False, errors=[MSG_WARMING_IN_PROGRESS])

        self.is_warming = True
        started = time.time()
        result = WarmingResult(success=False)
        try:
            logger.info(f"Starting cache warming for {label}")
            try:
                business_ids: List[str] = await load_business_ids()
            except Exception as e:
                logger.exception(f"Cache warming failed to load businesses: {e}")
                result.errors.append(f"Cache warming failed: {e}")
                return result

            logger.info(f"Found {len(business_ids)} businesses to warm")
            await self._warm_in_batches(business_ids, result)

            self.last_warming_time = utc_now()
            result.success = not result.errors
            logger.info(
                f"Cache warming completed. Warmed {result.businesses_warmed} businesses "
                f"with {len(result.errors)} errors"
            )
            return result
        finally:
            result.duration_ms = (time.time() - started) * 1000
            self.is_warming = False

    async def _warm_in_batches(self, business_ids: List[str], result: WarmingResult) -> None:
        for index in range(0, len(business_ids), self.batch_size):
            batch = business_ids[index:index + self.batch_size]
            outcomes = await asyncio.gather(
                *(self.warm_business_cache(business_id) for business_id in batch),
                return_exceptions=True,
            )
            for business_id, outcome in zip(batch, outcomes):
                if isinstance(outcome, BaseException):
                    error_msg = f"Failed to warm cache for business {business_id}: {outcome}"
                    logger.error(error_msg)
                    result.errors.append(error_msg)
                else:
                    result.businesses_warmed += 1
                    logger.debug(f"Cache warmed for business {business_id}")

            # Small delay between batches to bound load
            if index + self.batch_size < len(business_ids):
                await asyncio.sleep(self.batch_delay_seconds)

    def should_warm_cache(self) -> bool:
        if self.last_warming_time is None:
            return True
        return utc_now() - self.last_warming_time > self.interval

    def get_status(self) -> Dict[str, Any]:
        next_warming = self.last_warming_time + self.interval if self.last_warming_time else None
        return {
            "is_warming": self.is_warming,
            "last_warming_time": self.last_warming_time.isoformat() if self.last_warming_time else None,
            "next_warming_time": next_warming.isoformat() if next_warming else None,
        }


# Global singleton instance
_cache_warming_service: Optional[CacheWarmingService] = None


def get_cache_warming_service() -> CacheWarmingService:
    global _cache_warming_service
    if _cache_warming_service is None:
        _cache_warming_service = CacheWarmingService(AvailabilityCache(get_redis_client()))
    return _cache_warming_service
