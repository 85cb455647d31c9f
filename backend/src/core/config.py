"""
Application configuration using python-dotenv.

This module loads environment variables from .env file into os.environ
for use throughout the application.
"""

import os
import pathlib
from dotenv import load_dotenv


# Determine if we're running in a test environment
# Don't load .env file during testing to ensure predictable test behavior
is_testing = os.getenv("PYTEST_VERSION") is not None

# Load .env file into os.environ (only outside of testing)
if not is_testing:
    possible_paths = [
        pathlib.Path(__file__).parent.parent.parent / ".env",  # backend/.env (when run from backend/src)
        pathlib.Path(__file__).parent.parent.parent.parent / ".env",  # .env at repository root
        pathlib.Path.cwd() / ".env",
    ]

    for env_path in possible_paths:
        if env_path.exists():
            load_dotenv(env_path)
            break


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def get_database_url() -> str:
    """
    Get the database URL from environment, converted to an async driver.

    Plain ``postgresql://`` and ``sqlite:///`` URLs are rewritten to use
    asyncpg and aiosqlite respectively.
    """
    url = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./booking.db")
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


DATABASE_URL = get_database_url()
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# IANA timezone name used for "now" when rejecting bookings in the past
BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "UTC")

# Slot generation
SLOT_STEP_MINUTES = int(os.getenv("SLOT_STEP_MINUTES", "30"))
NEXT_SLOT_SEARCH_DAYS = int(os.getenv("NEXT_SLOT_SEARCH_DAYS", "30"))
MAX_AVAILABILITY_DAYS = int(os.getenv("MAX_AVAILABILITY_DAYS", "90"))

# Availability cache
AVAILABILITY_CACHE_ENABLED = _get_bool("AVAILABILITY_CACHE_ENABLED", True)
AVAILABILITY_CACHE_TTL_SECONDS = int(os.getenv("AVAILABILITY_CACHE_TTL_SECONDS", "300"))

# Cache warming
CACHE_WARMING_ENABLED = _get_bool("CACHE_WARMING_ENABLED", True)
CACHE_WARMING_INTERVAL_HOURS = int(os.getenv("CACHE_WARMING_INTERVAL_HOURS", "4"))
CACHE_WARMING_BATCH_SIZE = int(os.getenv("CACHE_WARMING_BATCH_SIZE", "3"))
CACHE_WARMING_BATCH_DELAY_SECONDS = float(os.getenv("CACHE_WARMING_BATCH_DELAY_SECONDS", "0.1"))
CACHE_WARMING_DAYS = int(os.getenv("CACHE_WARMING_DAYS", "14"))
CACHE_WARMING_ACTIVITY_HOURS = int(os.getenv("CACHE_WARMING_ACTIVITY_HOURS", "48"))
