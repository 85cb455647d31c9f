"""
SQLAlchemy store for appointments.

Inserting or rescheduling an appointment also writes one AppointmentSlotClaim
per minute it covers, in the same transaction. The unique constraint on claims
turns a concurrent overlapping insert into an IntegrityError, which is
reported as a booking conflict. Nothing here retries.
"""

import logging
from datetime import time
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.constants import (
    ACTIVE_APPOINTMENT_STATUSES,
    APPOINTMENT_STATUS_CANCELLED,
    MINUTES_PER_DAY,
    MSG_APPOINTMENT_OVERLAP,
    MSG_RESCHEDULE_INACTIVE,
    MSG_SLOT_TAKEN,
)
from core.exceptions import (
    AppointmentNotFoundError,
    BookingConflictError,
    BookingValidationError,
    DuplicateConfirmationNumberError,
    InfrastructureError,
)
from models import Appointment, AppointmentSlotClaim
from shared_types.availability import AppointmentRecord
from utils.availability_validation import time_string_to_minutes
from utils.datetime_utils import format_date, format_time, parse_date_string, utc_now

logger = logging.getLogger(__name__)


def _to_record(row: Appointment) -> AppointmentRecord:
    return AppointmentRecord(
        id=row.id,
        business_id=row.business_id,
        service_id=row.service_id,
        appointment_date=format_date(row.appointment_date),
        start_time=format_time(row.start_time),
        end_time=format_time(row.end_time),
        status=row.status,
        customer_name=row.customer_name,
        customer_email=row.customer_email,
        customer_phone=row.customer_phone,
        notes=row.notes,
        confirmation_number=row.confirmation_number,
        service_price=row.service_price,
    )


def _validate_range(start_time: str, end_time: str) -> range:
    start_minutes = time_string_to_minutes(start_time)
    end_minutes = time_string_to_minutes(end_time)
    if end_minutes <= start_minutes or end_minutes > MINUTES_PER_DAY:
        raise BookingValidationError("Appointment must end after it starts on the same day", field="end_time")
    return range(start_minutes, end_minutes)


def _is_confirmation_number_violation(error: IntegrityError) -> bool:
    # SQLite names the column, Postgres names the constraint; both contain it
    return "confirmation_number" in str(error.orig)


class AppointmentRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_active_appointments(
        self,
        business_id: str,
        date: str,
        exclude_appointment_id: Optional[str] = None,
    ) -> List[AppointmentRecord]:
        stmt = select(Appointment).where(
            Appointment.business_id == business_id,
            Appointment.appointment_date == parse_date_string(date),
            Appointment.status.in_(ACTIVE_APPOINTMENT_STATUSES),
        )
        if exclude_appointment_id:
            stmt = stmt.where(Appointment.id != exclude_appointment_id)
        stmt = stmt.order_by(Appointment.start_time)

        try:
            rows = (await self.db.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            logger.exception(f"Failed to load appointments for business {business_id} on {date}: {e}")
            raise InfrastructureError("Failed to load appointments") from e
        return [_to_record(row) for row in rows]

    async def find_overlapping(
        self,
        business_id: str,
        date: str,
        start_time: str,
        end_time: str,
        exclude_appointment_id: Optional[str] = None,
    ) -> List[AppointmentRecord]:
        """Active appointments where existing.start < end and existing.end > start."""
        stmt = select(Appointment).where(
            Appointment.business_id == business_id,
            Appointment.appointment_date == parse_date_string(date),
            Appointment.status.in_(ACTIVE_APPOINTMENT_STATUSES),
            Appointment.start_time < time.fromisoformat(end_time),
            Appointment.end_time > time.fromisoformat(start_time),
        )
        if exclude_appointment_id:
            stmt = stmt.where(Appointment.id != exclude_appointment_id)

        try:
            rows = (await self.db.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            logger.exception(
                f"Failed to query overlapping appointments for business {business_id} "
                f"on {date} {start_time}-{end_time}: {e}"
            )
            raise InfrastructureError("Failed to load appointments") from e
        return [_to_record(row) for row in rows]

    async def insert_if_no_overlap(self, appointment: AppointmentRecord) -> AppointmentRecord:
        """
        Insert an appointment and its slot claims in one transaction.

        Raises:
            BookingValidationError: If the time range is empty or crosses midnight
            BookingConflictError: If an active appointment already overlaps, or a
                concurrent insert claimed any of the same minutes first
            DuplicateConfirmationNumberError: If the confirmation number is taken
            InfrastructureError: On any other database failure
        """
        minutes = _validate_range(appointment.start_time, appointment.end_time)

        try:
            overlapping = await self.find_overlapping(
                appointment.business_id,
                appointment.appointment_date,
                appointment.start_time,
                appointment.end_time,
            )
            if overlapping:
                await self.db.rollback()
                logger.info(
                    f"Rejected insert for business {appointment.business_id} on "
                    f"{appointment.appointment_date} {appointment.start_time}: overlaps {overlapping[0].id}"
                )
                raise BookingConflictError(MSG_APPOINTMENT_OVERLAP)

            appointment_date = parse_date_string(appointment.appointment_date)
            row = Appointment(
                id=appointment.id,
                business_id=appointment.business_id,
                service_id=appointment.service_id,
                service_price=appointment.service_price,
                appointment_date=appointment_date,
                start_time=time.fromisoformat(appointment.start_time),
                end_time=time.fromisoformat(appointment.end_time),
                status=appointment.status,
                customer_name=appointment.customer_name,
                customer_email=appointment.customer_email,
                customer_phone=appointment.customer_phone,
                notes=appointment.notes,
                confirmation_number=appointment.confirmation_number,
            )
            row.slot_claims = [
                AppointmentSlotClaim(
                    business_id=appointment.business_id,
                    appointment_date=appointment_date,
                    minute=minute,
                )
                for minute in minutes
            ]
            self.db.add(row)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if _is_confirmation_number_violation(e):
                logger.warning(f"Confirmation number {appointment.confirmation_number} already exists")
                raise DuplicateConfirmationNumberError(appointment.confirmation_number) from e
            logger.warning(
                f"Appointment booking conflict for business {appointment.business_id} on "
                f"{appointment.appointment_date} {appointment.start_time}: {e}"
            )
            raise BookingConflictError(MSG_SLOT_TAKEN) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception(f"Failed to insert appointment for business {appointment.business_id}: {e}")
            raise InfrastructureError("Failed to create appointment") from e

        logger.info(f"Inserted appointment {row.id} for business {row.business_id} on {appointment.appointment_date}")
        return _to_record(row)

    async def get_by_id(self, appointment_id: str) -> Optional[AppointmentRecord]:
        try:
            row = await self.db.get(Appointment, appointment_id)
        except SQLAlchemyError as e:
            logger.exception(f"Failed to load appointment {appointment_id}: {e}")
            raise InfrastructureError("Failed to load appointment") from e
        return _to_record(row) if row else None

    async def get_by_confirmation_number(self, confirmation_number: str) -> Optional[AppointmentRecord]:
        stmt = select(Appointment).where(Appointment.confirmation_number == confirmation_number.upper())
        try:
            row = (await self.db.execute(stmt)).scalars().first()
        except SQLAlchemyError as e:
            logger.exception(f"Failed to look up confirmation number {confirmation_number}: {e}")
            raise InfrastructureError("Failed to load appointment") from e
        return _to_record(row) if row else None

    async def update_status(self, appointment_id: str, status: str) -> AppointmentRecord:
        """
        Set an appointment's status.

        Leaving the active statuses (cancelled or completed) releases the
        slot claims in the same transaction so the time becomes bookable again.
        """
        try:
            stmt = select(Appointment).where(Appointment.id == appointment_id).with_for_update()
            row = (await self.db.execute(stmt)).scalars().first()
            if row is None:
                raise AppointmentNotFoundError(appointment_id)

            row.status = status
            if status == APPOINTMENT_STATUS_CANCELLED:
                row.cancelled_at = utc_now()
            if status not in ACTIVE_APPOINTMENT_STATUSES:
                await self._release_claims(appointment_id)
            await self.db.commit()
        except AppointmentNotFoundError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception(f"Failed to update appointment {appointment_id} to {status}: {e}")
            raise InfrastructureError("Failed to update appointment") from e

        logger.info(f"Appointment {appointment_id} status set to {status}")
        return _to_record(row)

    async def reschedule(
        self,
        appointment_id: str,
        appointment_date: str,
        start_time: str,
        end_time: str,
        notes: Optional[str] = None,
    ) -> AppointmentRecord:
        """
        Move an active appointment to a new date and time in one transaction.

        The old claims are deleted before the new ones are written, so the new
        range may overlap the appointment's own previous time.

        Raises:
            AppointmentNotFoundError: If the appointment does not exist
            BookingValidationError: If the appointment is not pending or
                confirmed, or the new range is empty or crosses midnight
            BookingConflictError: If another active appointment overlaps the
                new range, or claimed any of its minutes concurrently
            InfrastructureError: On any other database failure
        """
        minutes = _validate_range(start_time, end_time)

        try:
            stmt = select(Appointment).where(Appointment.id == appointment_id).with_for_update()
            row = (await self.db.execute(stmt)).scalars().first()
            if row is None:
                raise AppointmentNotFoundError(appointment_id)
            if row.status not in ACTIVE_APPOINTMENT_STATUSES:
                raise BookingValidationError(MSG_RESCHEDULE_INACTIVE, field="status")

            overlapping = await self.find_overlapping(
                row.business_id, appointment_date, start_time, end_time, exclude_appointment_id=appointment_id
            )
            if overlapping:
                logger.info(
                    f"Rejected reschedule of {appointment_id} to {appointment_date} {start_time}: "
                    f"overlaps {overlapping[0].id}"
                )
                raise BookingConflictError(MSG_APPOINTMENT_OVERLAP)

            await self._release_claims(appointment_id)

            new_date = parse_date_string(appointment_date)
            row.appointment_date = new_date
            row.start_time = time.fromisoformat(start_time)
            row.end_time = time.fromisoformat(end_time)
            if notes is not None:
                row.notes = notes
            self.db.add_all([
                AppointmentSlotClaim(
                    business_id=row.business_id,
                    appointment_date=new_date,
                    minute=minute,
                    appointment_id=appointment_id,
                )
                for minute in minutes
            ])
            await self.db.commit()
        except (AppointmentNotFoundError, BookingValidationError, BookingConflictError, InfrastructureError):
            await self.db.rollback()
            raise
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Reschedule conflict for appointment {appointment_id} on {appointment_date} {start_time}: {e}")
            raise BookingConflictError(MSG_SLOT_TAKEN) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception(f"Failed to reschedule appointment {appointment_id}: {e}")
            raise InfrastructureError("Failed to reschedule appointment") from e

        logger.info(f"Appointment {appointment_id} moved to {appointment_date} {start_time}-{end_time}")
        return _to_record(row)

    async def _release_claims(self, appointment_id: str) -> None:
        await self.db.execute(
            delete(AppointmentSlotClaim).where(AppointmentSlotClaim.appointment_id == appointment_id)
        )
