"""
Admin endpoints for availability cache warming.
"""

import logging

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_warming_service
from api.responses import WarmingResultResponse, WarmingStatusResponse
from core.config import CACHE_WARMING_ACTIVITY_HOURS
from services.cache_warming_service import CacheWarmingService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/cache/warm", response_model=WarmingResultResponse)
async def warm_cache(
    scope: str = Query("active", pattern="^(active|all)$"),
    hours_back: int = Query(CACHE_WARMING_ACTIVITY_HOURS, ge=1),
    warming_service: CacheWarmingService = Depends(get_warming_service),
) -> WarmingResultResponse:
    """Run a warming pass now; returns the pass result, including when one is already running."""
    if scope == "all":
        result = await warming_service.warm_all_businesses()
    else:
        result = await warming_service.warm_active_businesses(hours_back)
    return WarmingResultResponse.model_validate(result.to_dict())


@router.get("/cache/status", response_model=WarmingStatusResponse)
async def cache_status(
    warming_service: CacheWarmingService = Depends(get_warming_service),
) -> WarmingStatusResponse:
    return WarmingStatusResponse.model_validate({
        **warming_service.get_status(),
        "should_warm": warming_service.should_warm_cache(),
    })
