"""
Availability calculation for businesses and their services.

SlotPlanner holds the pure, per-day logic: resolving the open window from a
weekly rule and a date exception, sweeping candidate slots, and testing them
against existing appointments. Both the day-by-day availability listing and
the next-available-slot search go through it.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from core.config import CACHE_WARMING_DAYS, MAX_AVAILABILITY_DAYS, NEXT_SLOT_SEARCH_DAYS, SLOT_STEP_MINUTES
from core.constants import (
    MSG_BUSINESS_ID_REQUIRED,
    MSG_INVALID_DATE_FORMAT,
    MSG_SERVICE_ID_REQUIRED,
)
from core.exceptions import BookingValidationError, ServiceNotFoundError
from repositories.interfaces import AppointmentStore, AvailabilityRuleStore, ServiceStore
from services.availability_cache import AvailabilityCache
from shared_types.availability import (
    WINDOW_SOURCE_EXCEPTION,
    WINDOW_SOURCE_WEEKLY,
    AppointmentRecord,
    AvailabilitySlot,
    DateException,
    DayWindow,
    NextAvailableSlot,
    TimeSlot,
    WeeklyRule,
)
from utils.availability_validation import (
    add_days_to_date_string,
    get_day_of_week_from_date,
    is_valid_date_format,
    minutes_to_time_string,
    time_string_to_minutes,
)
from utils.datetime_utils import business_now, format_date

logger = logging.getLogger(__name__)


class SlotPlanner:
    """
    Pure slot planning for a single date.

    No store access: callers pass in the rule, exception and appointments
    already loaded for that date.
    """

    @staticmethod
    def resolve_day_window(
        weekly_rule: Optional[WeeklyRule],
        exception: Optional[DateException],
    ) -> DayWindow:
        """
        Resolve the open window for a date.

        A date exception wins over the weekly rule: closed exceptions close the
        day, exceptions with hours replace the weekly window, and open
        exceptions without hours defer to the weekly rule. Without a usable
        weekly rule the day is closed.
        """
        if exception is not None:
            if not exception.is_available:
                return DayWindow(is_open=False, source=WINDOW_SOURCE_EXCEPTION)
            if exception.has_special_hours:
                return DayWindow(
                    is_open=True,
                    source=WINDOW_SOURCE_EXCEPTION,
                    start_minutes=time_string_to_minutes(exception.start_time or ""),
                    end_minutes=time_string_to_minutes(exception.end_time or ""),
                )

        if weekly_rule is None or not weekly_rule.is_available:
            return DayWindow(is_open=False, source=WINDOW_SOURCE_WEEKLY)

        return DayWindow(
            is_open=True,
            source=WINDOW_SOURCE_WEEKLY,
            start_minutes=time_string_to_minutes(weekly_rule.start_time),
            end_minutes=time_string_to_minutes(weekly_rule.end_time),
        )

    @staticmethod
    def generate_candidate_slots(
        window: DayWindow,
        duration_minutes: int,
        step_size_minutes: int = SLOT_STEP_MINUTES,
    ) -> List[Tuple[int, int]]:
        """
        Generate candidate slots inside an open window.

        Starts step through the window from its opening time; each slot is
        ``duration_minutes`` long and candidates ending after closing time
        are dropped.

        Returns:
            List of (start_minutes, end_minutes) tuples
        """
        if not window.is_open or duration_minutes <= 0:
            return []

        step = max(step_size_minutes, 1)
        candidates: List[Tuple[int, int]] = []
        current = window.start_minutes
        while current + duration_minutes <= window.end_minutes:
            candidates.append((current, current + duration_minutes))
            current += step
        return candidates

    @staticmethod
    def check_time_overlap(start1: int, end1: int, start2: int, end2: int) -> bool:
        """Check if two half-open intervals overlap."""
        return start1 < end2 and start2 < end1

    @staticmethod
    def appointment_intervals(appointments: List[AppointmentRecord]) -> List[Tuple[int, int]]:
        return [
            (time_string_to_minutes(appointment.start_time), time_string_to_minutes(appointment.end_time))
            for appointment in appointments
        ]

    @staticmethod
    def has_slot_conflicts(intervals: List[Tuple[int, int]], start_minutes: int, end_minutes: int) -> bool:
        """Check a slot against pre-computed appointment intervals."""
        for existing_start, existing_end in intervals:
            if SlotPlanner.check_time_overlap(start_minutes, end_minutes, existing_start, existing_end):
                return True
        return False

    @staticmethod
    def plan_day_slots(
        date: str,
        window: DayWindow,
        duration_minutes: int,
        appointments: List[AppointmentRecord],
        step_size_minutes: int = SLOT_STEP_MINUTES,
    ) -> List[TimeSlot]:
        """Every candidate slot of the day, tagged available or not."""
        intervals = SlotPlanner.appointment_intervals(appointments)
        return [
            TimeSlot(
                date=date,
                start_time=minutes_to_time_string(start),
                end_time=minutes_to_time_string(end),
                available=not SlotPlanner.has_slot_conflicts(intervals, start, end),
            )
            for start, end in SlotPlanner.generate_candidate_slots(window, duration_minutes, step_size_minutes)
        ]

    @staticmethod
    def find_first_free_slot(
        date: str,
        window: DayWindow,
        duration_minutes: int,
        appointments: List[AppointmentRecord],
        step_size_minutes: int = SLOT_STEP_MINUTES,
        earliest_start_minutes: int = 0,
    ) -> Optional[NextAvailableSlot]:
        """First free slot of the day starting at or after earliest_start_minutes."""
        intervals = SlotPlanner.appointment_intervals(appointments)
        for start, end in SlotPlanner.generate_candidate_slots(window, duration_minutes, step_size_minutes):
            if start < earliest_start_minutes:
                continue
            if not SlotPlanner.has_slot_conflicts(intervals, start, end):
                return NextAvailableSlot(
                    date=date,
                    start_time=minutes_to_time_string(start),
                    end_time=minutes_to_time_string(end),
                )
        return None


class AvailabilityCalculationEngine:
    """
    Computes bookable slots for a business's service over a date range.

    Reads rules, exceptions and appointments through the store interfaces.
    When a cache is supplied, computed days are read from and written to it.
    """

    def __init__(
        self,
        rule_store: AvailabilityRuleStore,
        appointment_store: AppointmentStore,
        service_store: ServiceStore,
        cache: Optional[AvailabilityCache] = None,
        slot_step_minutes: int = SLOT_STEP_MINUTES,
    ):
        self.rule_store = rule_store
        self.appointment_store = appointment_store
        self.service_store = service_store
        self.cache = cache
        self.slot_step_minutes = slot_step_minutes

    @staticmethod
    def _validate_request(business_id: str, service_id: str, start_date: str, days: int) -> None:
        if not business_id or not business_id.strip():
            raise BookingValidationError(MSG_BUSINESS_ID_REQUIRED, field="business_id")
        if not service_id or not service_id.strip():
            raise BookingValidationError(MSG_SERVICE_ID_REQUIRED, field="service_id")
        if not is_valid_date_format(start_date):
            raise BookingValidationError(MSG_INVALID_DATE_FORMAT, field="start_date")
        if days < 1 or days > MAX_AVAILABILITY_DAYS:
            raise BookingValidationError(
                f"Number of days must be between 1 and {MAX_AVAILABILITY_DAYS}", field="days"
            )

    async def compute_availability(
        self,
        business_id: str,
        service_id: str,
        start_date: str,
        days: int,
    ) -> List[AvailabilitySlot]:
        """
        Produce the day-by-day slot list for a service.

        Raises:
            BookingValidationError: If the ids, start date or day count are invalid
            ServiceNotFoundError: If the service is unknown, inactive or belongs
                to another business
        """
        self._validate_request(business_id, service_id, start_date, days)

        service = await self.service_store.get_active_service(business_id, service_id)
        if service is None:
            raise ServiceNotFoundError(service_id)

        dates = [add_days_to_date_string(start_date, offset) or start_date for offset in range(days)]

        cached: Dict[str, AvailabilitySlot] = {}
        if self.cache is not None:
            cached = await self.cache.get_days(business_id, service_id, dates)

        missing = [date for date in dates if date not in cached]
        computed: Dict[str, AvailabilitySlot] = {}
        if missing:
            computed = await self._compute_days(business_id, service.duration, missing)
            if self.cache is not None:
                await self.cache.set_days(business_id, service_id, list(computed.values()))

        logger.debug(
            f"Availability for business {business_id}, service {service_id} from {start_date} "
            f"({days} days): {len(cached)} cached, {len(computed)} computed"
        )
        return [cached[date] if date in cached else computed[date] for date in dates]

    async def _compute_days(self, business_id: str, duration_minutes: int, dates: List[str]) -> Dict[str, AvailabilitySlot]:
        rules = {rule.day_of_week: rule for rule in await self.rule_store.get_weekly_rules(business_id)}
        exceptions = {
            exception.date: exception
            for exception in await self.rule_store.get_exceptions_in_range(business_id, min(dates), max(dates))
        }

        result: Dict[str, AvailabilitySlot] = {}
        for date in dates:
            day_of_week = get_day_of_week_from_date(date)
            window = SlotPlanner.resolve_day_window(rules.get(day_of_week), exceptions.get(date))
            slots: List[TimeSlot] = []
            if window.is_open:
                appointments = await self.appointment_store.get_active_appointments(business_id, date)
                slots = SlotPlanner.plan_day_slots(
                    date, window, duration_minutes, appointments, self.slot_step_minutes
                )
            result[date] = AvailabilitySlot(date=date, day_of_week=day_of_week, slots=slots)
        return result

    async def get_day_window(self, business_id: str, date: str) -> DayWindow:
        """Resolve the open window for one date from the stores."""
        day_of_week = get_day_of_week_from_date(date)
        exception = await self.rule_store.get_exception(business_id, date)
        weekly_rule = None
        if exception is None or not exception.has_special_hours:
            weekly_rule = await self.rule_store.get_weekly_rule(business_id, day_of_week)
        return SlotPlanner.resolve_day_window(weekly_rule, exception)

    async def find_next_available_slot(
        self,
        business_id: str,
        duration_minutes: int,
        from_date: str,
        horizon_days: int = NEXT_SLOT_SEARCH_DAYS,
        not_before: Optional[datetime] = None,
        exclude_appointment_id: Optional[str] = None,
    ) -> Optional[NextAvailableSlot]:
        """
        Scan forward day by day for the first free slot.

        The scan covers ``horizon_days`` days from ``from_date``, or from the
        date of ``not_before`` when that is later. On that date only slots
        starting after ``not_before`` count.

        Returns:
            The first free slot, or None when the horizon is exhausted
        """
        start_date = from_date
        today: Optional[str] = None
        now_minutes = -1
        if not_before is not None:
            today = format_date(not_before.date())
            now_minutes = not_before.hour * 60 + not_before.minute
            if start_date < today:
                start_date = today

        end_date = add_days_to_date_string(start_date, horizon_days - 1) or start_date
        rules = {rule.day_of_week: rule for rule in await self.rule_store.get_weekly_rules(business_id)}
        exceptions = {
            exception.date: exception
            for exception in await self.rule_store.get_exceptions_in_range(business_id, start_date, end_date)
        }

        for offset in range(horizon_days):
            date = add_days_to_date_string(start_date, offset)
            if date is None:
                return None
            window = SlotPlanner.resolve_day_window(rules.get(get_day_of_week_from_date(date)), exceptions.get(date))
            if not window.is_open:
                continue

            appointments = await self.appointment_store.get_active_appointments(
                business_id, date, exclude_appointment_id
            )
            slot = SlotPlanner.find_first_free_slot(
                date,
                window,
                duration_minutes,
                appointments,
                self.slot_step_minutes,
                earliest_start_minutes=now_minutes + 1 if date == today else 0,
            )
            if slot is not None:
                return slot

        return None

    async def get_next_available_slot(
        self,
        business_id: str,
        service_id: str,
        start_date: str,
        horizon_days: int = NEXT_SLOT_SEARCH_DAYS,
    ) -> Optional[NextAvailableSlot]:
        """Next free slot for a service, never earlier than now."""
        self._validate_request(business_id, service_id, start_date, 1)

        service = await self.service_store.get_active_service(business_id, service_id)
        if service is None:
            raise ServiceNotFoundError(service_id)

        return await self.find_next_available_slot(
            business_id,
            service.duration,
            start_date,
            horizon_days=horizon_days,
            not_before=business_now(),
        )

    async def warm_up_cache(self, business_id: str, days: int = CACHE_WARMING_DAYS) -> int:
        """
        Recompute and store availability for every active service of a business.

        Days are computed from today regardless of what is cached.

        Returns:
            Number of services warmed
        """
        if self.cache is None:
            logger.debug(f"No availability cache configured, skipping warm-up for business {business_id}")
            return 0

        services = await self.service_store.get_active_services(business_id)
        start_date = format_date(business_now().date())
        dates = [add_days_to_date_string(start_date, offset) or start_date for offset in range(days)]

        for service in services:
            computed = await self._compute_days(business_id, service.duration, dates)
            await self.cache.set_days(business_id, service.id, [computed[date] for date in dates])

        logger.info(f"Warmed availability cache for business {business_id}: {len(services)} services, {days} days")
        return len(services)
