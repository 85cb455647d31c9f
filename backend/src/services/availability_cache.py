"""
Redis cache for computed availability days.

Key format: availability:{business_id}:{service_id}:{date}
Value: JSON of one AvailabilitySlot, stored with a short TTL.

The cache is advisory. Read and write failures are logged and treated as a
miss; the conflict check and the insert path never consult it.
"""

import json
import logging
from typing import Dict, List, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from core.config import AVAILABILITY_CACHE_TTL_SECONDS, REDIS_URL
from core.constants import AVAILABILITY_CACHE_KEY_PREFIX
from shared_types.availability import AvailabilitySlot

logger = logging.getLogger(__name__)

# Redis connection pool
_redis_pool: Optional[redis.ConnectionPool] = None


def get_redis_pool() -> redis.ConnectionPool:
    """Get or create the Redis connection pool."""
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = redis.ConnectionPool.from_url(
            REDIS_URL,
            retry_on_timeout=True,
            decode_responses=True,
        )
    return _redis_pool


def get_redis_client() -> redis.Redis:
    """Get a Redis client from the shared pool."""
    return redis.Redis(connection_pool=get_redis_pool())


class AvailabilityCache:
    """Per-day availability cache keyed by business, service and date."""

    def __init__(self, client: redis.Redis, ttl_seconds: int = AVAILABILITY_CACHE_TTL_SECONDS):
        self.client = client
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def key(business_id: str, service_id: str, date: str) -> str:
        return f"{AVAILABILITY_CACHE_KEY_PREFIX}:{business_id}:{service_id}:{date}"

    @staticmethod
    def business_pattern(business_id: str) -> str:
        return f"{AVAILABILITY_CACHE_KEY_PREFIX}:{business_id}:*"

    async def get_days(self, business_id: str, service_id: str, dates: List[str]) -> Dict[str, AvailabilitySlot]:
        """
        Fetch cached days in one round trip.

        Returns:
            Mapping of date to cached AvailabilitySlot; missing or unreadable
            entries are left out
        """
        if not dates:
            return {}

        keys = [self.key(business_id, service_id, date) for date in dates]
        try:
            values = await self.client.mget(keys)
        except RedisError as e:
            logger.warning(f"Availability cache read failed for business {business_id}: {e}")
            return {}

        cached: Dict[str, AvailabilitySlot] = {}
        for date, raw in zip(dates, values):
            if raw is None:
                continue
            try:
                cached[date] = AvailabilitySlot.from_dict(json.loads(raw))
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(f"Discarding malformed cache entry {self.key(business_id, service_id, date)}: {e}")
        return cached

    async def set_days(self, business_id: str, service_id: str, days: List[AvailabilitySlot]) -> None:
        """Store computed days via a pipeline, each with the configured TTL."""
        if not days:
            return

        try:
            async with self.client.pipeline(transaction=False) as pipe:
                for day in days:
                    pipe.set(
                        self.key(business_id, service_id, day.date),
                        json.dumps(day.to_dict()),
                        ex=self.ttl_seconds,
                    )
                await pipe.execute()
        except RedisError as e:
            logger.warning(f"Availability cache write failed for business {business_id}: {e}")

    async def invalidate_business(self, business_id: str) -> int:
        """
        Delete every cached day for a business.

        Returns:
            Number of keys deleted (0 if Redis is unreachable)
        """
        try:
            keys = [key async for key in self.client.scan_iter(match=self.business_pattern(business_id), count=500)]
            if not keys:
                return 0
            deleted = await self.client.delete(*keys)
        except RedisError as e:
            logger.warning(f"Availability cache invalidation failed for business {business_id}: {e}")
            return 0

        logger.debug(f"Invalidated {deleted} availability cache entries for business {business_id}")
        return int(deleted)
