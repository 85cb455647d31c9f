"""
Shared types for availability and booking functionality.

This module contains the data classes exchanged between the stores, the
availability engine and the booking conflict service. Dates are
"YYYY-MM-DD" strings and times are "HH:MM" strings throughout.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class WeeklyRule:
    """Recurring open window for one weekday (0=Sunday)."""
    business_id: str
    day_of_week: int
    start_time: str
    end_time: str
    is_available: bool = True


@dataclass
class DateException:
    """
    Date-specific override of the weekly schedule.

    When ``is_available`` is True and both times are set, they replace the
    weekly window for that date. Without times the weekly window applies.
    """
    business_id: str
    date: str
    is_available: bool = False
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = None

    @property
    def has_special_hours(self) -> bool:
        return self.is_available and bool(self.start_time) and bool(self.end_time)


@dataclass
class ServiceInfo:
    id: str
    business_id: str
    name: str
    duration: int  # minutes
    price: int = 0  # cents
    is_active: bool = True


@dataclass
class AppointmentRecord:
    """Appointment as seen by the booking core."""
    id: str
    business_id: str
    service_id: str
    appointment_date: str
    start_time: str
    end_time: str
    status: str
    customer_name: str = ""
    customer_email: str = ""
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    confirmation_number: str = ""
    service_price: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "business_id": self.business_id,
            "service_id": self.service_id,
            "appointment_date": self.appointment_date,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "status": self.status,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "customer_phone": self.customer_phone,
            "notes": self.notes,
            "confirmation_number": self.confirmation_number,
            "service_price": self.service_price,
        }


WINDOW_SOURCE_EXCEPTION = "exception"
WINDOW_SOURCE_WEEKLY = "weekly"


@dataclass
class DayWindow:
    """
    Resolved open window for one date, in minutes of day.

    ``source`` records whether a date exception or the weekly rule decided
    the window, so callers can explain a closed or out-of-hours result.
    """
    is_open: bool
    source: str
    start_minutes: int = 0
    end_minutes: int = 0


@dataclass
class TimeSlot:
    """A single candidate slot on a date."""
    date: str
    start_time: str
    end_time: str
    available: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "available": self.available,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimeSlot":
        return cls(
            date=str(data["date"]),
            start_time=str(data["start_time"]),
            end_time=str(data["end_time"]),
            available=bool(data["available"]),
        )


@dataclass
class AvailabilitySlot:
    """All candidate slots for one date."""
    date: str
    day_of_week: int
    slots: List[TimeSlot] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "day_of_week": self.day_of_week,
            "slots": [slot.to_dict() for slot in self.slots],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AvailabilitySlot":
        """Create AvailabilitySlot from a cached dictionary."""
        day_of_week = data.get("day_of_week")
        if not isinstance(day_of_week, int):
            raise ValueError(f"day_of_week must be int, got {type(day_of_week)}")
        return cls(
            date=str(data["date"]),
            day_of_week=day_of_week,
            slots=[TimeSlot.from_dict(slot) for slot in data.get("slots", [])],
        )


@dataclass
class NextAvailableSlot:
    date: str
    start_time: str
    end_time: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "date": self.date,
            "start_time": self.start_time,
            "end_time": self.end_time,
        }


@dataclass
class BookingValidationInput:
    business_id: str
    service_id: str
    appointment_date: str
    start_time: str
    exclude_appointment_id: Optional[str] = None


@dataclass
class ConflictCheckResult:
    """
    Outcome of a booking validation.

    ``conflicts`` lists every reason the booking fails, in the order the
    checks ran. ``next_available_slot`` is only ever set on a rejection.
    """
    is_available: bool
    conflicts: List[str] = field(default_factory=list)
    next_available_slot: Optional[NextAvailableSlot] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "is_available": self.is_available,
            "conflicts": list(self.conflicts),
        }
        if self.next_available_slot is not None:
            result["suggestions"] = {"next_available_slot": self.next_available_slot.to_dict()}
        return result
