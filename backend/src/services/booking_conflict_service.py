"""
Booking conflict detection.

Decides whether a proposed appointment can be created and, if not, lists
every reason and suggests the next free slot. This service only reads: the
check is advisory, and the guarantee against double-booking is enforced by
AppointmentStore.insert_if_no_overlap.
"""

import logging
import time
from datetime import datetime
from typing import Callable, List, Optional

from core.config import NEXT_SLOT_SEARCH_DAYS, SLOT_STEP_MINUTES
from core.constants import (
    MSG_APPOINTMENT_OVERLAP,
    MSG_BUSINESS_ID_REQUIRED,
    MSG_CLOSED_ON_DATE,
    MSG_CLOSED_ON_WEEKDAY,
    MSG_INVALID_DATE,
    MSG_INVALID_DATE_FORMAT,
    MSG_INVALID_TIME_FORMAT,
    MSG_OUTSIDE_BUSINESS_HOURS,
    MSG_OUTSIDE_SPECIAL_HOURS,
    MSG_PAST_BOOKING,
    MSG_SERVICE_ID_REQUIRED,
    MSG_SERVICE_NOT_FOUND,
)
from core.exceptions import InfrastructureError
from repositories.interfaces import AppointmentStore, AvailabilityRuleStore, ServiceStore
from services.availability_service import AvailabilityCalculationEngine, SlotPlanner
from shared_types.availability import (
    WINDOW_SOURCE_EXCEPTION,
    BookingValidationInput,
    ConflictCheckResult,
    NextAvailableSlot,
    ServiceInfo,
)
from utils.availability_validation import (
    get_day_of_week_from_date,
    is_valid_date_format,
    is_valid_time_format,
    minutes_to_time_string,
    time_string_to_minutes,
)
from utils.datetime_utils import business_now, combine_date_time

logger = logging.getLogger(__name__)


class BookingConflictService:
    """
    Validates booking requests against services, business hours and existing
    appointments.

    Checks run in a fixed order and conflicts accumulate in that order:
    structural validation, service lookup, past date, business hours,
    appointment overlap. Structural failures and an unknown service end the
    check early; the rest never do.
    """

    def __init__(
        self,
        rule_store: AvailabilityRuleStore,
        appointment_store: AppointmentStore,
        service_store: ServiceStore,
        slot_step_minutes: int = SLOT_STEP_MINUTES,
        clock: Callable[[], datetime] = business_now,
    ):
        self.appointment_store = appointment_store
        self.service_store = service_store
        self.clock = clock
        # Uncached engine: conflict checks always read the stores
        self.engine = AvailabilityCalculationEngine(
            rule_store,
            appointment_store,
            service_store,
            cache=None,
            slot_step_minutes=slot_step_minutes,
        )

    async def validate_booking_request(self, request: BookingValidationInput) -> ConflictCheckResult:
        """
        Validate a proposed booking.

        Returns:
            ConflictCheckResult; ``is_available`` is True only when no check
            produced a conflict

        Raises:
            InfrastructureError: If a store fails; logged with request context
        """
        started = time.time()
        context = (
            f"business={request.business_id} service={request.service_id} "
            f"date={request.appointment_date} time={request.start_time}"
        )
        try:
            result = await self._run_checks(request)
        except Exception as e:
            elapsed_ms = (time.time() - started) * 1000
            logger.exception(f"Booking validation failed after {elapsed_ms:.1f}ms ({context}): {e}")
            raise

        elapsed_ms = (time.time() - started) * 1000
        if result.is_available:
            logger.info(f"Booking validation accepted in {elapsed_ms:.1f}ms ({context})")
        else:
            logger.info(
                f"Booking validation rejected in {elapsed_ms:.1f}ms ({context}): "
                f"{len(result.conflicts)} conflicts, suggestion={'yes' if result.next_available_slot else 'no'}"
            )
        return result

    @staticmethod
    def _structural_conflicts(request: BookingValidationInput) -> List[str]:
        conflicts: List[str] = []
        if not request.business_id or not request.business_id.strip():
            conflicts.append(MSG_BUSINESS_ID_REQUIRED)
        if not request.service_id or not request.service_id.strip():
            conflicts.append(MSG_SERVICE_ID_REQUIRED)
        if not is_valid_date_format(request.appointment_date):
            conflicts.append(MSG_INVALID_DATE_FORMAT)
        if not is_valid_time_format(request.start_time):
            conflicts.append(MSG_INVALID_TIME_FORMAT)
        return conflicts

    async def _run_checks(self, request: BookingValidationInput) -> ConflictCheckResult:
        # Malformed input never reaches a store
        conflicts = self._structural_conflicts(request)
        if conflicts:
            logger.warning(f"Booking request failed validation: {conflicts}")
            return ConflictCheckResult(is_available=False, conflicts=conflicts)

        service = await self.service_store.get_active_service(request.business_id, request.service_id)
        if service is None:
            logger.warning(f"Service {request.service_id} not found or inactive for business {request.business_id}")
            return ConflictCheckResult(is_available=False, conflicts=[MSG_SERVICE_NOT_FOUND])

        start_minutes = time_string_to_minutes(request.start_time)
        end_minutes = start_minutes + service.duration
        now = self.clock()

        if combine_date_time(request.appointment_date, request.start_time, now.tzinfo) <= now:
            conflicts.append(MSG_PAST_BOOKING)

        conflicts.extend(await self._business_hours_conflicts(request, start_minutes, end_minutes))

        appointments = await self.appointment_store.get_active_appointments(
            request.business_id,
            request.appointment_date,
            request.exclude_appointment_id,
        )
        if SlotPlanner.has_slot_conflicts(SlotPlanner.appointment_intervals(appointments), start_minutes, end_minutes):
            conflicts.append(MSG_APPOINTMENT_OVERLAP)

        if not conflicts:
            return ConflictCheckResult(is_available=True)

        suggestion = await self._suggest_next_slot(request, service, now)
        return ConflictCheckResult(is_available=False, conflicts=conflicts, next_available_slot=suggestion)

    async def _business_hours_conflicts(
        self,
        request: BookingValidationInput,
        start_minutes: int,
        end_minutes: int,
    ) -> List[str]:
        if get_day_of_week_from_date(request.appointment_date) == -1:
            return [MSG_INVALID_DATE]

        window = await self.engine.get_day_window(request.business_id, request.appointment_date)
        from_exception = window.source == WINDOW_SOURCE_EXCEPTION

        if not window.is_open:
            return [MSG_CLOSED_ON_DATE if from_exception else MSG_CLOSED_ON_WEEKDAY]

        if start_minutes < window.start_minutes or end_minutes > window.end_minutes:
            if from_exception:
                return [MSG_OUTSIDE_SPECIAL_HOURS]
            return [
                MSG_OUTSIDE_BUSINESS_HOURS.format(
                    start=minutes_to_time_string(window.start_minutes),
                    end=minutes_to_time_string(window.end_minutes),
                )
            ]
        return []

    async def _suggest_next_slot(
        self,
        request: BookingValidationInput,
        service: ServiceInfo,
        now: datetime,
    ) -> Optional[NextAvailableSlot]:
        try:
            return await self.engine.find_next_available_slot(
                request.business_id,
                service.duration,
                request.appointment_date,
                horizon_days=NEXT_SLOT_SEARCH_DAYS,
                not_before=now,
                exclude_appointment_id=request.exclude_appointment_id,
            )
        except InfrastructureError as e:
            # Suggestion is best-effort; the rejection itself stands
            logger.exception(
                f"Next available slot search failed for business {request.business_id}, "
                f"service {request.service_id} from {request.appointment_date}: {e}"
            )
            return None

    async def is_time_slot_available(
        self,
        business_id: str,
        service_id: str,
        appointment_date: str,
        start_time: str,
        exclude_appointment_id: Optional[str] = None,
    ) -> bool:
        result = await self.validate_booking_request(
            BookingValidationInput(
                business_id=business_id,
                service_id=service_id,
                appointment_date=appointment_date,
                start_time=start_time,
                exclude_appointment_id=exclude_appointment_id,
            )
        )
        return result.is_available

    async def get_conflicts(
        self,
        business_id: str,
        service_id: str,
        appointment_date: str,
        start_time: str,
        exclude_appointment_id: Optional[str] = None,
    ) -> List[str]:
        result = await self.validate_booking_request(
            BookingValidationInput(
                business_id=business_id,
                service_id=service_id,
                appointment_date=appointment_date,
                start_time=start_time,
                exclude_appointment_id=exclude_appointment_id,
            )
        )
        return result.conflicts
