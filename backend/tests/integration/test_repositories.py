"""
Integration tests for the SQLAlchemy repositories against SQLite.
"""

import pytest
from datetime import date, time
from sqlalchemy import func, select

from core.constants import MSG_APPOINTMENT_OVERLAP
from core.exceptions import (
    AppointmentNotFoundError,
    BookingConflictError,
    BookingValidationError,
    DuplicateConfirmationNumberError,
)
from models import Appointment, AppointmentSlotClaim, Business, WeeklyAvailability
from repositories import AppointmentRepository, AvailabilityRuleRepository, BusinessRepository, ServiceRepository
from shared_types.availability import AppointmentRecord
from tests.conftest import BUSINESS_ID, MONDAY, SERVICE_ID, create_business_with_schedule, create_exception

pytestmark = pytest.mark.integration


def _record(appointment_id: str, start: str, end: str, confirmation: str, business_id: str = BUSINESS_ID,
            date_str: str = MONDAY) -> AppointmentRecord:
    return AppointmentRecord(
        id=appointment_id,
        business_id=business_id,
        service_id=SERVICE_ID,
        appointment_date=date_str,
        start_time=start,
        end_time=end,
        status="pending",
        customer_name="Jane Doe",
        customer_email="jane@example.com",
        confirmation_number=confirmation,
        service_price=5000,
    )


async def _claim_count(session, appointment_id: str) -> int:
    stmt = select(func.count()).select_from(AppointmentSlotClaim).where(
        AppointmentSlotClaim.appointment_id == appointment_id
    )
    return (await session.execute(stmt)).scalar_one()


class TestAvailabilityRuleRepository:
    """Test weekly rule and exception reads."""

    @pytest.mark.asyncio
    async def test_weekly_rule_round_trip(self, db_session):
        await create_business_with_schedule(db_session)
        repo = AvailabilityRuleRepository(db_session)

        rule = await repo.get_weekly_rule(BUSINESS_ID, 1)

        assert rule is not None
        assert (rule.start_time, rule.end_time) == ("09:00", "17:00")
        assert rule.is_available is True
        assert await repo.get_weekly_rule(BUSINESS_ID, 2) is None

    @pytest.mark.asyncio
    async def test_weekly_rules_ordered_by_day(self, db_session):
        await create_business_with_schedule(db_session)
        db_session.add(WeeklyAvailability(
            business_id=BUSINESS_ID, day_of_week=0, start_time=time(10, 0), end_time=time(14, 0)
        ))
        await db_session.commit()

        rules = await AvailabilityRuleRepository(db_session).get_weekly_rules(BUSINESS_ID)

        assert [rule.day_of_week for rule in rules] == [0, 1]

    @pytest.mark.asyncio
    async def test_exceptions(self, db_session):
        await create_business_with_schedule(db_session)
        await create_exception(db_session, date(2030, 1, 7))
        await create_exception(
            db_session, date(2030, 1, 9), is_available=True, start_time=time(10, 0), end_time=time(12, 0)
        )
        await create_exception(db_session, date(2030, 2, 1))
        repo = AvailabilityRuleRepository(db_session)

        closed = await repo.get_exception(BUSINESS_ID, MONDAY)
        in_range = await repo.get_exceptions_in_range(BUSINESS_ID, "2030-01-01", "2030-01-31")

        assert closed.is_available is False
        assert closed.has_special_hours is False
        assert [exception.date for exception in in_range] == ["2030-01-07", "2030-01-09"]
        assert in_range[1].start_time == "10:00"
        assert in_range[1].has_special_hours is True
        assert await repo.get_exception(BUSINESS_ID, "2030-01-08") is None


class TestServiceRepository:
    @pytest.mark.asyncio
    async def test_active_service_lookup(self, db_session):
        await create_business_with_schedule(db_session)
        repo = ServiceRepository(db_session)

        service = await repo.get_active_service(BUSINESS_ID, SERVICE_ID)

        assert service.duration == 45
        assert service.price == 5000
        assert await repo.get_active_service("other-biz", SERVICE_ID) is None
        assert [s.id for s in await repo.get_active_services(BUSINESS_ID)] == [SERVICE_ID]

    @pytest.mark.asyncio
    async def test_inactive_service_hidden(self, db_session):
        await create_business_with_schedule(db_session, service_active=False)
        repo = ServiceRepository(db_session)

        assert await repo.get_active_service(BUSINESS_ID, SERVICE_ID) is None
        assert await repo.get_active_services(BUSINESS_ID) == []


class TestAppointmentRepository:
    """Test appointment inserts, queries and status updates."""

    @pytest.mark.asyncio
    async def test_insert_creates_one_claim_per_minute(self, db_session):
        await create_business_with_schedule(db_session)
        repo = AppointmentRepository(db_session)

        created = await repo.insert_if_no_overlap(_record("a1", "10:00", "10:45", "ABCD1234"))

        assert created.start_time == "10:00"
        assert created.end_time == "10:45"
        assert await _claim_count(db_session, "a1") == 45

    @pytest.mark.asyncio
    async def test_overlapping_insert_rejected(self, db_session):
        await create_business_with_schedule(db_session)
        repo = AppointmentRepository(db_session)
        await repo.insert_if_no_overlap(_record("a1", "10:00", "10:45", "ABCD1234"))

        with pytest.raises(BookingConflictError) as exc_info:
            await repo.insert_if_no_overlap(_record("a2", "10:30", "11:15", "ABCD5678"))

        assert exc_info.value.message == MSG_APPOINTMENT_OVERLAP
        assert await repo.get_by_id("a2") is None

    @pytest.mark.asyncio
    async def test_adjacent_inserts_allowed(self, db_session):
        await create_business_with_schedule(db_session)
        repo = AppointmentRepository(db_session)

        await repo.insert_if_no_overlap(_record("a1", "10:00", "10:45", "ABCD1234"))
        await repo.insert_if_no_overlap(_record("a2", "10:45", "11:30", "ABCD5678"))

        appointments = await repo.get_active_appointments(BUSINESS_ID, MONDAY)
        assert [a.id for a in appointments] == ["a1", "a2"]

    @pytest.mark.asyncio
    async def test_same_time_for_another_business_allowed(self, db_session):
        await create_business_with_schedule(db_session)
        await create_business_with_schedule(db_session, business_id="biz-2", service_id="svc-2")
        repo = AppointmentRepository(db_session)

        await repo.insert_if_no_overlap(_record("a1", "10:00", "10:45", "ABCD1234"))
        await repo.insert_if_no_overlap(_record("a2", "10:00", "10:45", "ABCD5678", business_id="biz-2"))

        assert len(await repo.get_active_appointments("biz-2", MONDAY)) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("start,end", [("10:00", "10:00"), ("11:00", "10:00")])
    async def test_empty_range_rejected(self, db_session, start, end):
        await create_business_with_schedule(db_session)

        with pytest.raises(BookingValidationError):
            await AppointmentRepository(db_session).insert_if_no_overlap(_record("a1", start, end, "ABCD1234"))

    @pytest.mark.asyncio
    async def test_find_overlapping(self, db_session):
        await create_business_with_schedule(db_session)
        repo = AppointmentRepository(db_session)
        await repo.insert_if_no_overlap(_record("a1", "10:00", "11:00", "ABCD1234"))

        assert [a.id for a in await repo.find_overlapping(BUSINESS_ID, MONDAY, "10:30", "11:30")] == ["a1"]
        assert await repo.find_overlapping(BUSINESS_ID, MONDAY, "11:00", "11:30") == []
        assert await repo.find_overlapping(BUSINESS_ID, MONDAY, "10:30", "11:30", exclude_appointment_id="a1") == []

    @pytest.mark.asyncio
    async def test_lookup_by_confirmation_number(self, db_session):
        await create_business_with_schedule(db_session)
        repo = AppointmentRepository(db_session)
        await repo.insert_if_no_overlap(_record("a1", "10:00", "10:45", "ABCD1234"))

        found = await repo.get_by_confirmation_number("abcd1234")

        assert found.id == "a1"
        assert await repo.get_by_confirmation_number("ZZZZ9999") is None

    @pytest.mark.asyncio
    async def test_cancel_releases_claims(self, session_factory):
        async with session_factory() as session:
            await create_business_with_schedule(session)
            await AppointmentRepository(session).insert_if_no_overlap(_record("a1", "10:00", "10:45", "ABCD1234"))

        async with session_factory() as session:
            cancelled = await AppointmentRepository(session).update_status("a1", "cancelled")

        async with session_factory() as session:
            row = await session.get(Appointment, "a1")
            assert cancelled.status == "cancelled"
            assert row.cancelled_at is not None
            assert await _claim_count(session, "a1") == 0
            assert await AppointmentRepository(session).get_active_appointments(BUSINESS_ID, MONDAY) == []

        async with session_factory() as session:
            rebooked = await AppointmentRepository(session).insert_if_no_overlap(
                _record("a2", "10:00", "10:45", "ABCD5678")
            )
            assert rebooked.id == "a2"

    @pytest.mark.asyncio
    async def test_confirm_keeps_claims(self, session_factory):
        async with session_factory() as session:
            await create_business_with_schedule(session)
            await AppointmentRepository(session).insert_if_no_overlap(_record("a1", "10:00", "10:45", "ABCD1234"))

        async with session_factory() as session:
            confirmed = await AppointmentRepository(session).update_status("a1", "confirmed")
            assert confirmed.status == "confirmed"
            assert await _claim_count(session, "a1") == 45

    @pytest.mark.asyncio
    async def test_complete_releases_claims(self, session_factory):
        async with session_factory() as session:
            await create_business_with_schedule(session)
            await AppointmentRepository(session).insert_if_no_overlap(_record("a1", "10:00", "10:45", "ABCD1234"))

        async with session_factory() as session:
            completed = await AppointmentRepository(session).update_status("a1", "completed")

        async with session_factory() as session:
            row = await session.get(Appointment, "a1")
            assert completed.status == "completed"
            assert row.cancelled_at is None
            assert await _claim_count(session, "a1") == 0

    @pytest.mark.asyncio
    async def test_duplicate_confirmation_number(self, db_session):
        await create_business_with_schedule(db_session)
        repo = AppointmentRepository(db_session)
        await repo.insert_if_no_overlap(_record("a1", "10:00", "10:45", "ABCD1234"))

        with pytest.raises(DuplicateConfirmationNumberError) as exc_info:
            await repo.insert_if_no_overlap(_record("a2", "13:00", "13:45", "ABCD1234"))

        assert exc_info.value.confirmation_number == "ABCD1234"
        assert await repo.get_by_id("a2") is None
        assert await _claim_count(db_session, "a2") == 0

    @pytest.mark.asyncio
    async def test_reschedule_moves_claims(self, session_factory):
        async with session_factory() as session:
            await create_business_with_schedule(session)
            await AppointmentRepository(session).insert_if_no_overlap(_record("a1", "10:00", "10:45", "ABCD1234"))

        async with session_factory() as session:
            moved = await AppointmentRepository(session).reschedule(
                "a1", "2030-01-14", "10:15", "11:00", notes="Moved by phone"
            )

        async with session_factory() as session:
            repo = AppointmentRepository(session)
            assert (moved.appointment_date, moved.start_time, moved.end_time) == ("2030-01-14", "10:15", "11:00")
            assert moved.notes == "Moved by phone"
            assert await _claim_count(session, "a1") == 45
            assert await repo.get_active_appointments(BUSINESS_ID, MONDAY) == []
            assert [a.id for a in await repo.get_active_appointments(BUSINESS_ID, "2030-01-14")] == ["a1"]

        async with session_factory() as session:
            rebooked = await AppointmentRepository(session).insert_if_no_overlap(
                _record("a2", "10:00", "10:45", "ABCD5678")
            )
            assert rebooked.id == "a2"

    @pytest.mark.asyncio
    async def test_reschedule_rejects_overlap(self, session_factory):
        async with session_factory() as session:
            await create_business_with_schedule(session)
            repo = AppointmentRepository(session)
            await repo.insert_if_no_overlap(_record("a1", "10:00", "10:45", "ABCD1234"))
            await repo.insert_if_no_overlap(_record("a2", "11:00", "11:45", "ABCD5678"))

        async with session_factory() as session:
            with pytest.raises(BookingConflictError) as exc_info:
                await AppointmentRepository(session).reschedule("a1", MONDAY, "10:30", "11:15")

        assert exc_info.value.message == MSG_APPOINTMENT_OVERLAP
        async with session_factory() as session:
            assert await _claim_count(session, "a1") == 45
            assert (await AppointmentRepository(session).get_by_id("a1")).start_time == "10:00"

    @pytest.mark.asyncio
    async def test_reschedule_inactive_appointment(self, session_factory):
        async with session_factory() as session:
            await create_business_with_schedule(session)
            await AppointmentRepository(session).insert_if_no_overlap(_record("a1", "10:00", "10:45", "ABCD1234"))

        async with session_factory() as session:
            await AppointmentRepository(session).update_status("a1", "cancelled")

        async with session_factory() as session:
            with pytest.raises(BookingValidationError):
                await AppointmentRepository(session).reschedule("a1", MONDAY, "11:00", "11:45")
            assert await _claim_count(session, "a1") == 0

    @pytest.mark.asyncio
    async def test_reschedule_missing_appointment(self, db_session):
        with pytest.raises(AppointmentNotFoundError):
            await AppointmentRepository(db_session).reschedule("missing", MONDAY, "11:00", "11:45")

    @pytest.mark.asyncio
    async def test_update_missing_appointment(self, db_session):
        with pytest.raises(AppointmentNotFoundError):
            await AppointmentRepository(db_session).update_status("missing", "cancelled")


class TestBusinessRepository:
    @pytest.mark.asyncio
    async def test_active_business_ids(self, db_session):
        await create_business_with_schedule(db_session)
        await create_business_with_schedule(db_session, business_id="biz-off", service_id="svc-off", is_active=False)

        assert await BusinessRepository(db_session).get_active_business_ids() == [BUSINESS_ID]

    @pytest.mark.asyncio
    async def test_recently_active_business_ids(self, db_session):
        await create_business_with_schedule(db_session)
        await create_business_with_schedule(db_session, business_id="biz-2", service_id="svc-2")
        db_session.add(Business(id="biz-3", name="Idle", is_active=True))
        await db_session.commit()
        repo = AppointmentRepository(db_session)
        await repo.insert_if_no_overlap(_record("a1", "10:00", "10:45", "ABCD1234"))
        await repo.insert_if_no_overlap(_record("a2", "11:00", "11:45", "ABCD5678"))
        await repo.insert_if_no_overlap(_record("a3", "10:00", "10:45", "EFGH1234", business_id="biz-2",
                                                date_str="2029-12-01"))

        recent = await BusinessRepository(db_session).get_recently_active_business_ids("2030-01-01")

        assert recent == [BUSINESS_ID]
