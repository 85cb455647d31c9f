# Package initialization
# Import all models to ensure relationships are properly established
from .business import Business
from .service import Service
from .weekly_availability import WeeklyAvailability
from .availability_exception import AvailabilityException
from .appointment import Appointment
from .appointment_slot_claim import AppointmentSlotClaim

__all__ = [
    "Business",
    "Service",
    "WeeklyAvailability",
    "AvailabilityException",
    "Appointment",
    "AppointmentSlotClaim",
]
