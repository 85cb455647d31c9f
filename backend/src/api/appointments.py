"""
Appointment API endpoints.
"""

import logging

from fastapi import APIRouter, Depends, status

from api.dependencies import get_booking_service
from api.responses import AppointmentCreateRequest, AppointmentRescheduleRequest, AppointmentResponse
from services.booking_service import BookingService, CreateAppointmentInput

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    request: AppointmentCreateRequest,
    booking_service: BookingService = Depends(get_booking_service),
) -> AppointmentResponse:
    """
    Create a pending appointment.

    Answers 409 with the conflicts and a suggested slot when the time is
    unavailable, including when another booking took it concurrently.
    """
    appointment = await booking_service.create_appointment(
        CreateAppointmentInput(**request.model_dump())
    )
    return AppointmentResponse.model_validate(appointment.to_dict())


@router.get("/lookup/{confirmation_number}", response_model=AppointmentResponse)
async def lookup_appointment(
    confirmation_number: str,
    booking_service: BookingService = Depends(get_booking_service),
) -> AppointmentResponse:
    appointment = await booking_service.get_by_confirmation_number(confirmation_number)
    return AppointmentResponse.model_validate(appointment.to_dict())


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: str,
    booking_service: BookingService = Depends(get_booking_service),
) -> AppointmentResponse:
    appointment = await booking_service.cancel_appointment(appointment_id)
    return AppointmentResponse.model_validate(appointment.to_dict())


@router.post("/{appointment_id}/confirm", response_model=AppointmentResponse)
async def confirm_appointment(
    appointment_id: str,
    booking_service: BookingService = Depends(get_booking_service),
) -> AppointmentResponse:
    appointment = await booking_service.confirm_appointment(appointment_id)
    return AppointmentResponse.model_validate(appointment.to_dict())


@router.post("/{appointment_id}/complete", response_model=AppointmentResponse)
async def complete_appointment(
    appointment_id: str,
    booking_service: BookingService = Depends(get_booking_service),
) -> AppointmentResponse:
    appointment = await booking_service.complete_appointment(appointment_id)
    return AppointmentResponse.model_validate(appointment.to_dict())


@router.post("/{appointment_id}/reschedule", response_model=AppointmentResponse)
async def reschedule_appointment(
    appointment_id: str,
    request: AppointmentRescheduleRequest,
    booking_service: BookingService = Depends(get_booking_service),
) -> AppointmentResponse:
    """
    Move an appointment to a new date and time.

    Answers 409 with the conflicts and a suggested slot when the new time is
    unavailable; the appointment's own current time never counts as a conflict.
    """
    appointment = await booking_service.reschedule_appointment(
        appointment_id,
        request.appointment_date,
        request.start_time,
        reason=request.reason,
    )
    return AppointmentResponse.model_validate(appointment.to_dict())
