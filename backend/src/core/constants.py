"""Application constants and configuration values."""

from core.config import FRONTEND_URL

# Confirmation numbers
CONFIRMATION_NUMBER_LENGTH = 8
CONFIRMATION_NUMBER_ATTEMPTS = 3

# Database connection settings
DB_POOL_RECYCLE_SECONDS = 300  # 5 minutes

# CORS origins for development and production
_CORS_ORIGINS_RAW = [
    "http://localhost:5173",
    FRONTEND_URL,
]

# Filter out None values and empty strings to avoid CORS errors
CORS_ORIGINS = [origin for origin in _CORS_ORIGINS_RAW if origin and origin.strip()]

# Appointment statuses
APPOINTMENT_STATUS_PENDING = "pending"
APPOINTMENT_STATUS_CONFIRMED = "confirmed"
APPOINTMENT_STATUS_CANCELLED = "cancelled"
APPOINTMENT_STATUS_COMPLETED = "completed"

# Only these statuses occupy the calendar
ACTIVE_APPOINTMENT_STATUSES = (
    APPOINTMENT_STATUS_PENDING,
    APPOINTMENT_STATUS_CONFIRMED,
)

# Allowed status transitions (from -> set of to)
APPOINTMENT_STATUS_TRANSITIONS = {
    APPOINTMENT_STATUS_PENDING: {
        APPOINTMENT_STATUS_CONFIRMED,
        APPOINTMENT_STATUS_CANCELLED,
        APPOINTMENT_STATUS_COMPLETED,
    },
    APPOINTMENT_STATUS_CONFIRMED: {
        APPOINTMENT_STATUS_CANCELLED,
        APPOINTMENT_STATUS_COMPLETED,
    },
    APPOINTMENT_STATUS_CANCELLED: set(),
    APPOINTMENT_STATUS_COMPLETED: set(),
}

MINUTES_PER_DAY = 24 * 60

# Availability cache key prefix: availability:{business_id}:{service_id}:{date}
AVAILABILITY_CACHE_KEY_PREFIX = "availability"

# Cache warming scheduler settings
CACHE_WARMING_MAX_INSTANCES = 1  # Prevent overlapping scheduler runs
CACHE_WARMING_MISFIRE_GRACE_SECONDS = 600

# Conflict messages returned to callers
MSG_BUSINESS_ID_REQUIRED = "Business ID is required"
MSG_SERVICE_ID_REQUIRED = "Service ID is required"
MSG_INVALID_DATE_FORMAT = "Invalid appointment date format"
MSG_INVALID_TIME_FORMAT = "Invalid start time format"
MSG_SERVICE_NOT_FOUND = "Service not found or inactive"
MSG_PAST_BOOKING = "Cannot book appointments in the past"
MSG_INVALID_DATE = "Invalid appointment date"
MSG_CLOSED_ON_DATE = "Business is closed on this date"
MSG_OUTSIDE_SPECIAL_HOURS = "Requested time is outside of business's special hours"
MSG_CLOSED_ON_WEEKDAY = "Business is not available on this day of the week"
MSG_OUTSIDE_BUSINESS_HOURS = "Business hours are {start} to {end} on this day"
MSG_APPOINTMENT_OVERLAP = "This time slot conflicts with existing appointments"
MSG_SLOT_TAKEN = "This time slot is no longer available"
MSG_RESCHEDULE_INACTIVE = "Only pending or confirmed appointments can be rescheduled"
MSG_RESCHEDULE_PAST = "Cannot reschedule an appointment that has already started"
MSG_WARMING_IN_PROGRESS = "Cache warming already in progress"
