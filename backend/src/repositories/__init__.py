# Package initialization
from .interfaces import AppointmentStore, AvailabilityRuleStore, BusinessStore, ServiceStore
from .appointment_repository import AppointmentRepository
from .business_repository import BusinessRepository
from .rule_repository import AvailabilityRuleRepository
from .service_repository import ServiceRepository

__all__ = [
    "AppointmentStore",
    "AvailabilityRuleStore",
    "BusinessStore",
    "ServiceStore",
    "AppointmentRepository",
    "BusinessRepository",
    "AvailabilityRuleRepository",
    "ServiceRepository",
]
