"""
Scheduler for periodic availability cache warming.

Runs every CACHE_WARMING_INTERVAL_HOURS to warm businesses with recent
appointment activity. Each business is warmed in a fresh database session.
"""

import logging
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler  # type: ignore
from apscheduler.triggers.interval import IntervalTrigger  # type: ignore

from core.config import CACHE_WARMING_ACTIVITY_HOURS, CACHE_WARMING_INTERVAL_HOURS
from core.constants import CACHE_WARMING_MAX_INSTANCES, CACHE_WARMING_MISFIRE_GRACE_SECONDS
from services.cache_warming_service import CacheWarmingService, get_cache_warming_service
from utils.datetime_utils import get_business_tz

logger = logging.getLogger(__name__)

# Global singleton instance
_cache_warming_scheduler: Optional['CacheWarmingScheduler'] = None


class CacheWarmingScheduler:
    """Wraps an AsyncIOScheduler running the cache warming job."""

    def __init__(self, warming_service: Optional[CacheWarmingService] = None):
        self.warming_service = warming_service or get_cache_warming_service()
        self.scheduler = AsyncIOScheduler(timezone=get_business_tz())
        self._is_started = False

    async def start_scheduler(self) -> None:
        """
        Start the background scheduler.

        This should be called during application startup.
        """
        if self._is_started:
            logger.warning("Cache warming scheduler is already started")
            return

        self.scheduler.add_job(  # type: ignore
            self._run_warming,
            IntervalTrigger(hours=CACHE_WARMING_INTERVAL_HOURS),
            id="availability_cache_warming",
            name="Availability cache warming",
            replace_existing=True,
            max_instances=CACHE_WARMING_MAX_INSTANCES,
            misfire_grace_time=CACHE_WARMING_MISFIRE_GRACE_SECONDS,
        )

        self.scheduler.start()
        self._is_started = True
        logger.info(f"Cache warming scheduler started (runs every {CACHE_WARMING_INTERVAL_HOURS} hours)")

    async def stop_scheduler(self) -> None:
        """
        Stop the background scheduler.

        This should be called during application shutdown.
        """
        if self._is_started:
            self.scheduler.shutdown(wait=False)
            self._is_started = False
            logger.info("Cache warming scheduler stopped")

    async def _run_warming(self) -> None:
        logger.info("Starting scheduled cache warming...")
        try:
            result = await self.warming_service.warm_active_businesses(CACHE_WARMING_ACTIVITY_HOURS)
            logger.info(f"Scheduled cache warming finished: {result.to_dict()}")
        except Exception as e:
            logger.exception(f"Error during scheduled cache warming: {e}")
            # Don't re-raise - allow scheduler to continue


def get_cache_warming_scheduler() -> CacheWarmingScheduler:
    """Get the global cache warming scheduler instance."""
    global _cache_warming_scheduler
    if _cache_warming_scheduler is None:
        _cache_warming_scheduler = CacheWarmingScheduler()
    return _cache_warming_scheduler


async def start_cache_warming_scheduler() -> None:
    scheduler = get_cache_warming_scheduler()
    await scheduler.start_scheduler()


async def stop_cache_warming_scheduler() -> None:
    global _cache_warming_scheduler
    if _cache_warming_scheduler:
        await _cache_warming_scheduler.stop_scheduler()
