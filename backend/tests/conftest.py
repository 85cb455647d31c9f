"""
Test configuration and shared fixtures for the booking backend test suite.

Unit tests use the in-memory stores from tests/fakes.py. Integration tests
get a fresh SQLite database file per test through aiosqlite.
"""

from datetime import datetime, time, timezone, date
from typing import Optional

import fakeredis
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from core.database import Base
from models import AvailabilityException, Business, Service, WeeklyAvailability
from services.availability_cache import AvailabilityCache
from tests.fakes import InMemoryAppointmentStore, InMemoryRuleStore, InMemoryServiceStore

# Import all models to ensure they're registered with SQLAlchemy
import models  # noqa: F401

BUSINESS_ID = "biz-1"
SERVICE_ID = "svc-1"

# 2030-01-07 is a Monday; the fixed clock sits on the Sunday before
MONDAY = "2030-01-07"
TUESDAY = "2030-01-08"
SATURDAY_BEFORE = "2030-01-05"
FIXED_NOW = datetime(2030, 1, 6, 12, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


# ===== Unit test fixtures =====

@pytest.fixture
def rule_store() -> InMemoryRuleStore:
    """Rule store with the business open Monday 09:00-17:00 only."""
    store = InMemoryRuleStore()
    store.add_weekly_rule(BUSINESS_ID, 1, "09:00", "17:00")
    return store


@pytest.fixture
def service_store() -> InMemoryServiceStore:
    """Service store with one active 45-minute service."""
    store = InMemoryServiceStore()
    store.add_service(SERVICE_ID, BUSINESS_ID, duration=45)
    return store


@pytest.fixture
def appointment_store() -> InMemoryAppointmentStore:
    return InMemoryAppointmentStore()


@pytest.fixture
def redis_client():
    # Fresh server per test so cached days never leak between tests
    return fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def availability_cache(redis_client) -> AvailabilityCache:
    return AvailabilityCache(redis_client, ttl_seconds=300)


# ===== Integration test fixtures =====

@pytest.fixture
async def db_engine(tmp_path):
    """
    Create a file-backed SQLite engine for one test.

    A file (not :memory:) lets concurrent sessions see each other's commits.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'booking_test.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


async def create_business_with_schedule(
    session: AsyncSession,
    business_id: str = BUSINESS_ID,
    service_id: str = SERVICE_ID,
    duration: int = 45,
    is_active: bool = True,
    service_active: bool = True,
) -> Business:
    """
    Create a business open Monday 09:00-17:00 with one service.

    Returns:
        The created Business
    """
    business = Business(id=business_id, name=f"Business {business_id}", is_active=is_active)
    session.add(business)
    session.add(Service(
        id=service_id,
        business_id=business_id,
        name="Haircut",
        duration=duration,
        price=5000,
        is_active=service_active,
    ))
    session.add(WeeklyAvailability(
        business_id=business_id,
        day_of_week=1,
        start_time=time(9, 0),
        end_time=time(17, 0),
        is_available=True,
    ))
    await session.commit()
    return business


async def create_exception(
    session: AsyncSession,
    exception_date: date,
    business_id: str = BUSINESS_ID,
    is_available: bool = False,
    start_time: Optional[time] = None,
    end_time: Optional[time] = None,
) -> AvailabilityException:
    exception = AvailabilityException(
        business_id=business_id,
        date=exception_date,
        is_available=is_available,
        start_time=start_time,
        end_time=end_time,
        reason="Holiday" if not is_available else "Special hours",
    )
    session.add(exception)
    await session.commit()
    return exception
