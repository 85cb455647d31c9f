"""
Error taxonomy for booking operations.

Every error carries a machine-readable ``code``, the HTTP ``status_code`` the
API layer should answer with, and a ``user_message`` suitable for display.
Conflict-check outcomes are normally returned as structured results; these
exceptions are raised by store and booking-service boundaries.
"""

from typing import Any, Dict, List, Optional


class BookingError(Exception):
    """Base exception for booking operations."""

    def __init__(
        self,
        message: str,
        code: str = "BOOKING_ERROR",
        status_code: int = 400,
        user_message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.user_message = user_message or message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "code": self.code,
            "detail": self.user_message,
        }
        if self.details:
            payload.update(self.details)
        return payload


class BookingValidationError(BookingError):
    """Exception raised when input fails structural validation."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        details = {"field": field} if field else None
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            status_code=400,
            user_message=f"Please check your input: {message}",
            details=details,
        )


class NotFoundError(BookingError):
    """Base exception for entities that do not exist or are inactive."""

    def __init__(self, message: str, code: str, user_message: str):
        super().__init__(message, code=code, status_code=404, user_message=user_message)


class ServiceNotFoundError(NotFoundError):
    def __init__(self, service_id: str):
        self.service_id = service_id
        super().__init__(
            f"Service with ID {service_id} not found",
            code="SERVICE_NOT_FOUND",
            user_message="The requested service is not available. Please select a different service.",
        )


class BusinessNotFoundError(NotFoundError):
    def __init__(self, business_id: str):
        self.business_id = business_id
        super().__init__(
            f"Business with ID {business_id} not found",
            code="BUSINESS_NOT_FOUND",
            user_message="The requested business could not be found.",
        )


class AppointmentNotFoundError(NotFoundError):
    def __init__(self, appointment_id: str):
        self.appointment_id = appointment_id
        super().__init__(
            f"Appointment with ID {appointment_id} not found",
            code="APPOINTMENT_NOT_FOUND",
            user_message="The requested appointment could not be found.",
        )


class BookingConflictError(BookingError):
    """
    Exception raised when a booking cannot be committed.

    Carries the accumulated conflict messages and, when one was found,
    the next available slot as a plain dict.
    """

    def __init__(
        self,
        message: str,
        conflicts: Optional[List[str]] = None,
        next_available_slot: Optional[Dict[str, str]] = None,
    ):
        self.conflicts = conflicts or [message]
        self.next_available_slot = next_available_slot
        details: Dict[str, Any] = {"conflicts": self.conflicts}
        if next_available_slot:
            details["suggestions"] = {"next_available_slot": next_available_slot}
        super().__init__(
            message,
            code="BOOKING_CONFLICT",
            status_code=409,
            user_message="This time slot is no longer available. Please choose a different time.",
            details=details,
        )


class InfrastructureError(BookingError):
    """Exception raised when a store or cache fails; the original error is chained."""

    def __init__(self, message: str):
        super().__init__(
            message,
            code="DATABASE_ERROR",
            status_code=500,
            user_message="A system error occurred. Please try again later.",
        )


class DuplicateConfirmationNumberError(InfrastructureError):
    """Exception raised when a generated confirmation number is already taken."""

    def __init__(self, confirmation_number: str):
        self.confirmation_number = confirmation_number
        super().__init__(f"Confirmation number {confirmation_number} already exists")
