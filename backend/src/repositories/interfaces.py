"""
Store interfaces consumed by the availability engine and booking services.

The engine and conflict service depend only on these protocols. The
SQLAlchemy repositories in this package implement them for production; unit
tests substitute in-memory fakes.
"""

from typing import List, Optional, Protocol

from shared_types.availability import (
    AppointmentRecord,
    DateException,
    ServiceInfo,
    WeeklyRule,
)


class AvailabilityRuleStore(Protocol):
    async def get_weekly_rule(self, business_id: str, day_of_week: int) -> Optional[WeeklyRule]:
        ...

    async def get_weekly_rules(self, business_id: str) -> List[WeeklyRule]:
        ...

    async def get_exception(self, business_id: str, date: str) -> Optional[DateException]:
        ...

    async def get_exceptions_in_range(self, business_id: str, start_date: str, end_date: str) -> List[DateException]:
        ...


class AppointmentStore(Protocol):
    async def get_active_appointments(
        self,
        business_id: str,
        date: str,
        exclude_appointment_id: Optional[str] = None,
    ) -> List[AppointmentRecord]:
        """Pending and confirmed appointments for a business on one date."""
        ...

    async def find_overlapping(
        self,
        business_id: str,
        date: str,
        start_time: str,
        end_time: str,
        exclude_appointment_id: Optional[str] = None,
    ) -> List[AppointmentRecord]:
        ...

    async def insert_if_no_overlap(self, appointment: AppointmentRecord) -> AppointmentRecord:
        """
        Atomically insert an appointment unless it overlaps an active one.

        Raises:
            BookingConflictError: If an overlapping active appointment exists
                or was committed concurrently
        """
        ...

    async def get_by_id(self, appointment_id: str) -> Optional[AppointmentRecord]:
        ...

    async def get_by_confirmation_number(self, confirmation_number: str) -> Optional[AppointmentRecord]:
        ...

    async def update_status(self, appointment_id: str, status: str) -> AppointmentRecord:
        ...

    async def reschedule(
        self,
        appointment_id: str,
        appointment_date: str,
        start_time: str,
        end_time: str,
        notes: Optional[str] = None,
    ) -> AppointmentRecord:
        """
        Atomically move an active appointment, ignoring its own old time when
        checking for overlap.

        Raises:
            BookingConflictError: If another active appointment overlaps the
                new time or was committed concurrently
        """
        ...


class ServiceStore(Protocol):
    async def get_active_service(self, business_id: str, service_id: str) -> Optional[ServiceInfo]:
        """The service if it exists, belongs to the business and is active."""
        ...

    async def get_active_services(self, business_id: str) -> List[ServiceInfo]:
        ...


class BusinessStore(Protocol):
    async def get_active_business_ids(self) -> List[str]:
        ...

    async def get_recently_active_business_ids(self, since_date: str) -> List[str]:
        """Active businesses with an appointment dated on or after since_date."""
        ...
