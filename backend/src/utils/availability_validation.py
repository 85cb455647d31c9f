"""
Pure helpers for validating and converting availability dates and times.

Dates are "YYYY-MM-DD" strings and times are 24-hour "HH:MM" strings.
Days of week follow 0=Sunday through 6=Saturday.
"""

import re
from datetime import date, datetime, timedelta
from typing import List, Optional

from core.exceptions import BookingValidationError

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def is_valid_time_format(value: Optional[str]) -> bool:
    """Check for a strict 24-hour HH:MM time."""
    if not value:
        return False
    return TIME_PATTERN.match(value) is not None


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value or DATE_PATTERN.match(value) is None:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        # Matches the pattern but is not a real calendar date, e.g. 2024-02-30
        return None


def is_valid_date_format(value: Optional[str]) -> bool:
    """Check for a strict YYYY-MM-DD string naming a real calendar date."""
    return _parse_date(value) is not None


def is_valid_day_of_week(day_of_week: int) -> bool:
    return isinstance(day_of_week, int) and 0 <= day_of_week <= 6


def time_string_to_minutes(value: str) -> int:
    """
    Convert "HH:MM" to minutes since midnight.

    Raises:
        BookingValidationError: If the value is not a valid HH:MM time
    """
    if not is_valid_time_format(value):
        raise BookingValidationError(f"Invalid time format: {value!r}", field="time")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time_string(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def get_day_of_week_from_date(value: str) -> int:
    """
    Get the day of week for a date string.

    Returns:
        0 (Sunday) through 6 (Saturday), or -1 if the date is unparseable.
        Callers must treat -1 as a validation failure.
    """
    parsed = _parse_date(value)
    if parsed is None:
        return -1
    # isoweekday: Monday=1..Sunday=7
    return parsed.isoweekday() % 7


def add_days_to_date_string(value: str, days: int) -> Optional[str]:
    """Add days to a date string. Returns None if the date is invalid."""
    parsed = _parse_date(value)
    if parsed is None:
        return None
    return (parsed + timedelta(days=days)).strftime("%Y-%m-%d")


def generate_date_range(start_date: str, end_date: str) -> List[str]:
    """Inclusive list of dates between two date strings; empty if invalid or reversed."""
    start = _parse_date(start_date)
    end = _parse_date(end_date)
    if start is None or end is None or start > end:
        return []
    return [
        (start + timedelta(days=offset)).strftime("%Y-%m-%d")
        for offset in range((end - start).days + 1)
    ]


def is_end_time_after_start_time(start_time: str, end_time: str) -> bool:
    if not is_valid_time_format(start_time) or not is_valid_time_format(end_time):
        return False
    return start_time < end_time


def is_time_overlapping(start1: str, end1: str, start2: str, end2: str) -> bool:
    """
    Check whether two half-open time ranges overlap.

    Malformed input never overlaps.
    """
    if not all(is_valid_time_format(t) for t in (start1, end1, start2, end2)):
        return False
    return start1 < end2 and start2 < end1


def calculate_duration_in_minutes(start_time: str, end_time: str) -> int:
    """Minutes between two times, or -1 if invalid or not increasing."""
    if not is_end_time_after_start_time(start_time, end_time):
        return -1
    return time_string_to_minutes(end_time) - time_string_to_minutes(start_time)
