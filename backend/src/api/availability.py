"""
Availability API endpoints.
"""

import logging

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_availability_engine, get_booking_conflict_service
from api.responses import AvailabilityResponse, ConflictCheckRequest, ConflictCheckResponse
from core.config import MAX_AVAILABILITY_DAYS
from services.availability_service import AvailabilityCalculationEngine
from services.booking_conflict_service import BookingConflictService
from shared_types.availability import BookingValidationInput

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/businesses/{business_id}/availability", response_model=AvailabilityResponse)
async def get_availability(
    business_id: str,
    service_id: str = Query(...),
    start_date: str = Query(..., description="YYYY-MM-DD"),
    days: int = Query(7, ge=1, le=MAX_AVAILABILITY_DAYS),
    engine: AvailabilityCalculationEngine = Depends(get_availability_engine),
) -> AvailabilityResponse:
    """Day-by-day slots for a service, each tagged available or not."""
    result = await engine.compute_availability(business_id, service_id, start_date, days)
    return AvailabilityResponse.model_validate({
        "business_id": business_id,
        "service_id": service_id,
        "days": [day.to_dict() for day in result],
    })


@router.post("/availability/check", response_model=ConflictCheckResponse)
async def check_availability(
    request: ConflictCheckRequest,
    conflict_service: BookingConflictService = Depends(get_booking_conflict_service),
) -> ConflictCheckResponse:
    """
    Check whether a booking would be accepted.

    Rejections are a normal 200 response listing every conflict.
    """
    result = await conflict_service.validate_booking_request(
        BookingValidationInput(
            business_id=request.business_id,
            service_id=request.service_id,
            appointment_date=request.appointment_date,
            start_time=request.start_time,
            exclude_appointment_id=request.exclude_appointment_id,
        )
    )
    return ConflictCheckResponse.model_validate(result.to_dict())
