"""
Shared type definitions for the booking backend.

This module contains dataclasses and types that are used across multiple services.
"""

from shared_types.availability import (
    AppointmentRecord,
    AvailabilitySlot,
    BookingValidationInput,
    ConflictCheckResult,
    DateException,
    DayWindow,
    NextAvailableSlot,
    ServiceInfo,
    TimeSlot,
    WeeklyRule,
)

__all__ = [
    "AppointmentRecord",
    "AvailabilitySlot",
    "BookingValidationInput",
    "ConflictCheckResult",
    "DateException",
    "DayWindow",
    "NextAvailableSlot",
    "ServiceInfo",
    "TimeSlot",
    "WeeklyRule",
]
