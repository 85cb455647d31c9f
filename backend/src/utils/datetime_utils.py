"""
Datetime utilities for consistent timezone handling across the application.

Timestamps are stored in UTC. Business logic that depends on "now", such as
rejecting bookings in the past, uses the configured business timezone.
"""

import logging
from datetime import date, datetime, time, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from core.config import BUSINESS_TIMEZONE

logger = logging.getLogger(__name__)


def get_business_tz(tz_name: Optional[str] = None) -> ZoneInfo:
    """
    Resolve an IANA timezone name, falling back to UTC when unknown.

    Args:
        tz_name: Timezone name, defaults to BUSINESS_TIMEZONE

    Returns:
        ZoneInfo for the timezone
    """
    name = tz_name or BUSINESS_TIMEZONE
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        logger.warning(f"Unknown timezone '{name}', falling back to UTC")
        return ZoneInfo("UTC")


def utc_now() -> datetime:
    """Get current timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def business_now(tz_name: Optional[str] = None) -> datetime:
    """
    Get current datetime in the business timezone.

    Returns:
        Timezone-aware datetime
    """
    return datetime.now(get_business_tz(tz_name))


def business_today(tz_name: Optional[str] = None) -> date:
    """Get today's date in the business timezone."""
    return business_now(tz_name).date()


def combine_date_time(date_str: str, time_str: str, tz: Optional[tzinfo] = None) -> datetime:
    """
    Build an aware datetime from "YYYY-MM-DD" and "HH:MM" strings.

    Args:
        tz: Timezone to attach, defaults to the business timezone

    Raises:
        ValueError: If either string cannot be parsed
    """
    day = parse_date_string(date_str)
    clock = time.fromisoformat(time_str)
    return datetime.combine(day, clock, tzinfo=tz or get_business_tz())


def parse_date_string(date_str: str) -> date:
    """
    Parse a strict YYYY-MM-DD date string.

    Raises:
        ValueError: If date string cannot be parsed
    """
    if not date_str or not date_str.strip():
        raise ValueError("Date string cannot be empty")
    return datetime.strptime(date_str.strip(), "%Y-%m-%d").date()


def format_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def format_time(value: time) -> str:
    """Format a time as "HH:MM", dropping seconds."""
    return value.strftime("%H:%M")
