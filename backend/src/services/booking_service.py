"""
Appointment creation, rescheduling and status transitions.

Creation and rescheduling re-validate the request with BookingConflictService,
then commit through the store's atomic insert or move. The availability cache
for the business is invalidated after every successful mutation.
"""

import logging
import re
import secrets
import string
import uuid
from dataclasses import dataclass, replace
from typing import Optional

from core.constants import (
    ACTIVE_APPOINTMENT_STATUSES,
    APPOINTMENT_STATUS_CANCELLED,
    APPOINTMENT_STATUS_COMPLETED,
    APPOINTMENT_STATUS_CONFIRMED,
    APPOINTMENT_STATUS_PENDING,
    APPOINTMENT_STATUS_TRANSITIONS,
    CONFIRMATION_NUMBER_ATTEMPTS,
    CONFIRMATION_NUMBER_LENGTH,
    MSG_RESCHEDULE_INACTIVE,
    MSG_RESCHEDULE_PAST,
    MSG_SERVICE_NOT_FOUND,
)
from core.exceptions import (
    AppointmentNotFoundError,
    BookingConflictError,
    BookingValidationError,
    DuplicateConfirmationNumberError,
    ServiceNotFoundError,
)
from repositories.interfaces import AppointmentStore, ServiceStore
from services.availability_cache import AvailabilityCache
from services.booking_conflict_service import BookingConflictService
from shared_types.availability import AppointmentRecord, BookingValidationInput, ConflictCheckResult
from utils.availability_validation import minutes_to_time_string, time_string_to_minutes
from utils.datetime_utils import combine_date_time

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
CONFIRMATION_ALPHABET = string.ascii_uppercase + string.digits


def generate_confirmation_number(length: int = CONFIRMATION_NUMBER_LENGTH) -> str:
    """Random uppercase alphanumeric code shown to the customer."""
    return "".join(secrets.choice(CONFIRMATION_ALPHABET) for _ in range(length))


@dataclass
class CreateAppointmentInput:
    business_id: str
    service_id: str
    appointment_date: str
    start_time: str
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    notes: Optional[str] = None


class BookingService:
    """Creates appointments and moves them through their statuses."""

    def __init__(
        self,
        conflict_service: BookingConflictService,
        appointment_store: AppointmentStore,
        service_store: ServiceStore,
        cache: Optional[AvailabilityCache] = None,
    ):
        self.conflict_service = conflict_service
        self.appointment_store = appointment_store
        self.service_store = service_store
        self.cache = cache

    @staticmethod
    def _validate_customer(data: CreateAppointmentInput) -> None:
        if not data.customer_name or not data.customer_name.strip():
            raise BookingValidationError("Customer name is required", field="customer_name")
        if not data.customer_email or not EMAIL_PATTERN.match(data.customer_email.strip()):
            raise BookingValidationError("A valid customer email is required", field="customer_email")

    async def create_appointment(self, data: CreateAppointmentInput) -> AppointmentRecord:
        """
        Create a pending appointment.

        The conflict check runs first for user-facing messages; the insert
        itself is what guarantees no overlap. A failed insert is not retried.

        Raises:
            BookingValidationError: If customer details are missing or malformed
            BookingConflictError: If the request is rejected or the slot was
                taken concurrently
            ServiceNotFoundError: If the service disappeared between check and insert
        """
        self._validate_customer(data)

        result = await self.conflict_service.validate_booking_request(
            BookingValidationInput(
                business_id=data.business_id,
                service_id=data.service_id,
                appointment_date=data.appointment_date,
                start_time=data.start_time,
            )
        )
        if not result.is_available:
            self._raise_rejection(result, data.service_id)

        service = await self.service_store.get_active_service(data.business_id, data.service_id)
        if service is None:
            raise ServiceNotFoundError(data.service_id)

        end_time = minutes_to_time_string(time_string_to_minutes(data.start_time) + service.duration)
        appointment = AppointmentRecord(
            id=str(uuid.uuid4()),
            business_id=data.business_id,
            service_id=service.id,
            appointment_date=data.appointment_date,
            start_time=data.start_time,
            end_time=end_time,
            status=APPOINTMENT_STATUS_PENDING,
            customer_name=data.customer_name.strip(),
            customer_email=data.customer_email.strip().lower(),
            customer_phone=data.customer_phone,
            notes=data.notes,
            confirmation_number=generate_confirmation_number(),
            service_price=service.price,
        )

        for attempt in range(1, CONFIRMATION_NUMBER_ATTEMPTS + 1):
            try:
                created = await self.appointment_store.insert_if_no_overlap(appointment)
                break
            except DuplicateConfirmationNumberError:
                if attempt == CONFIRMATION_NUMBER_ATTEMPTS:
                    raise
                logger.warning(
                    f"Confirmation number collision on attempt {attempt} for business {data.business_id}, regenerating"
                )
                appointment = replace(appointment, confirmation_number=generate_confirmation_number())

        await self._invalidate(data.business_id)
        logger.info(
            f"Created appointment {created.id} ({created.confirmation_number}) for business "
            f"{created.business_id} on {created.appointment_date} {created.start_time}-{created.end_time}"
        )
        return created

    async def reschedule_appointment(
        self,
        appointment_id: str,
        appointment_date: str,
        start_time: str,
        reason: Optional[str] = None,
    ) -> AppointmentRecord:
        """
        Move a pending or confirmed appointment to a new date and time.

        The conflict check ignores the appointment itself, so it may move into
        a window overlapping its own current time. A reason, when given, is
        appended to the notes.

        Raises:
            AppointmentNotFoundError: If the appointment does not exist
            BookingValidationError: If the appointment is not active or has
                already started
            BookingConflictError: If the new time is rejected or was taken
                concurrently
        """
        appointment = await self.appointment_store.get_by_id(appointment_id)
        if appointment is None:
            raise AppointmentNotFoundError(appointment_id)
        if appointment.status not in ACTIVE_APPOINTMENT_STATUSES:
            raise BookingValidationError(MSG_RESCHEDULE_INACTIVE, field="status")

        now = self.conflict_service.clock()
        if combine_date_time(appointment.appointment_date, appointment.start_time, now.tzinfo) <= now:
            raise BookingValidationError(MSG_RESCHEDULE_PAST, field="appointment_date")

        result = await self.conflict_service.validate_booking_request(
            BookingValidationInput(
                business_id=appointment.business_id,
                service_id=appointment.service_id,
                appointment_date=appointment_date,
                start_time=start_time,
                exclude_appointment_id=appointment_id,
            )
        )
        if not result.is_available:
            self._raise_rejection(result, appointment.service_id)

        service = await self.service_store.get_active_service(appointment.business_id, appointment.service_id)
        if service is None:
            raise ServiceNotFoundError(appointment.service_id)

        end_time = minutes_to_time_string(time_string_to_minutes(start_time) + service.duration)
        notes = None
        if reason and reason.strip():
            notes = f"{appointment.notes or ''}\n\nReschedule reason: {reason.strip()}".strip()

        updated = await self.appointment_store.reschedule(appointment_id, appointment_date, start_time, end_time, notes)
        await self._invalidate(updated.business_id)
        logger.info(
            f"Rescheduled appointment {appointment_id} from {appointment.appointment_date} "
            f"{appointment.start_time} to {updated.appointment_date} {updated.start_time}-{updated.end_time}"
        )
        return updated

    @staticmethod
    def _raise_rejection(result: ConflictCheckResult, service_id: str) -> None:
        if result.conflicts == [MSG_SERVICE_NOT_FOUND]:
            raise ServiceNotFoundError(service_id)
        raise BookingConflictError(
            result.conflicts[0],
            conflicts=result.conflicts,
            next_available_slot=result.next_available_slot.to_dict() if result.next_available_slot else None,
        )

    async def _transition(self, appointment_id: str, new_status: str) -> AppointmentRecord:
        appointment = await self.appointment_store.get_by_id(appointment_id)
        if appointment is None:
            raise AppointmentNotFoundError(appointment_id)

        if appointment.status == new_status and new_status == APPOINTMENT_STATUS_CANCELLED:
            # Cancelling twice is a no-op
            return appointment

        if new_status not in APPOINTMENT_STATUS_TRANSITIONS.get(appointment.status, set()):
            raise BookingValidationError(
                f"Cannot change appointment from {appointment.status} to {new_status}",
                field="status",
            )

        updated = await self.appointment_store.update_status(appointment_id, new_status)
        await self._invalidate(updated.business_id)
        return updated

    async def cancel_appointment(self, appointment_id: str) -> AppointmentRecord:
        return await self._transition(appointment_id, APPOINTMENT_STATUS_CANCELLED)

    async def confirm_appointment(self, appointment_id: str) -> AppointmentRecord:
        return await self._transition(appointment_id, APPOINTMENT_STATUS_CONFIRMED)

    async def complete_appointment(self, appointment_id: str) -> AppointmentRecord:
        return await self._transition(appointment_id, APPOINTMENT_STATUS_COMPLETED)

    async def get_by_confirmation_number(self, confirmation_number: str) -> AppointmentRecord:
        appointment = await self.appointment_store.get_by_confirmation_number(confirmation_number)
        if appointment is None:
            raise AppointmentNotFoundError(confirmation_number)
        return appointment

    async def _invalidate(self, business_id: str) -> None:
        if self.cache is not None:
            await self.cache.invalidate_business(business_id)
