"""
Integration tests for the HTTP API.

Requests go through the ASGI app with the database dependency pointed at the
per-test SQLite file and the availability cache disabled.
"""

import pytest
from unittest.mock import AsyncMock, Mock
from httpx import ASGITransport, AsyncClient

from api.dependencies import get_availability_cache, get_warming_service
from core.constants import MSG_APPOINTMENT_OVERLAP, MSG_CLOSED_ON_WEEKDAY, MSG_SERVICE_NOT_FOUND
from core.database import get_db
from main import app
from services.cache_warming_service import WarmingResult
from tests.conftest import BUSINESS_ID, MONDAY, SERVICE_ID, TUESDAY, create_business_with_schedule

pytestmark = pytest.mark.integration

# Far enough ahead that "now" never reaches it
FUTURE_MONDAY = "2099-01-05"
FUTURE_TUESDAY = "2099-01-06"


@pytest.fixture
async def client(session_factory):
    async with session_factory() as session:
        await create_business_with_schedule(session)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_availability_cache] = lambda: None
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


def _booking_payload(start="10:00", date=FUTURE_MONDAY, **overrides):
    payload = {
        "business_id": BUSINESS_ID,
        "service_id": SERVICE_ID,
        "appointment_date": date,
        "start_time": start,
        "customer_name": "Jane Doe",
        "customer_email": "jane@example.com",
    }
    payload.update(overrides)
    return payload


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestAvailabilityEndpoints:
    """Test availability listing and conflict checks."""

    @pytest.mark.asyncio
    async def test_get_availability(self, client):
        response = await client.get(
            f"/api/businesses/{BUSINESS_ID}/availability",
            params={"service_id": SERVICE_ID, "start_date": MONDAY, "days": 2},
        )

        assert response.status_code == 200
        data = response.json()
        assert [day["date"] for day in data["days"]] == [MONDAY, TUESDAY]
        assert data["days"][0]["day_of_week"] == 1
        assert len(data["days"][0]["slots"]) == 15
        assert data["days"][1]["slots"] == []

    @pytest.mark.asyncio
    async def test_get_availability_unknown_service(self, client):
        response = await client.get(
            f"/api/businesses/{BUSINESS_ID}/availability",
            params={"service_id": "missing", "start_date": MONDAY},
        )

        assert response.status_code == 404
        assert response.json()["code"] == "SERVICE_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_get_availability_bad_date(self, client):
        response = await client.get(
            f"/api/businesses/{BUSINESS_ID}/availability",
            params={"service_id": SERVICE_ID, "start_date": "2030-02-30"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_get_availability_days_out_of_range(self, client):
        response = await client.get(
            f"/api/businesses/{BUSINESS_ID}/availability",
            params={"service_id": SERVICE_ID, "start_date": MONDAY, "days": 0},
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_check_available_slot(self, client):
        response = await client.post("/api/availability/check", json={
            "business_id": BUSINESS_ID,
            "service_id": SERVICE_ID,
            "appointment_date": FUTURE_MONDAY,
            "start_time": "10:00",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["is_available"] is True
        assert data["conflicts"] == []
        assert data["suggestions"] is None

    @pytest.mark.asyncio
    async def test_check_closed_day_returns_suggestion(self, client):
        response = await client.post("/api/availability/check", json={
            "business_id": BUSINESS_ID,
            "service_id": SERVICE_ID,
            "appointment_date": FUTURE_TUESDAY,
            "start_time": "10:00",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["is_available"] is False
        assert data["conflicts"] == [MSG_CLOSED_ON_WEEKDAY]
        assert data["suggestions"]["next_available_slot"] == {
            "date": "2099-01-12",
            "start_time": "09:00",
            "end_time": "09:45",
        }

    @pytest.mark.asyncio
    async def test_check_unknown_service(self, client):
        response = await client.post("/api/availability/check", json={
            "business_id": BUSINESS_ID,
            "service_id": "missing",
            "appointment_date": FUTURE_MONDAY,
            "start_time": "10:00",
        })

        assert response.status_code == 200
        assert response.json()["conflicts"] == [MSG_SERVICE_NOT_FOUND]


class TestAppointmentEndpoints:
    """Test booking and status changes over HTTP."""

    @pytest.mark.asyncio
    async def test_create_appointment(self, client):
        response = await client.post("/api/appointments", json=_booking_payload())

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["end_time"] == "10:45"
        assert data["service_price"] == 5000
        assert len(data["confirmation_number"]) == 8

    @pytest.mark.asyncio
    async def test_create_conflict_returns_409_with_suggestion(self, client):
        first = await client.post("/api/appointments", json=_booking_payload(start="09:00"))
        assert first.status_code == 201

        response = await client.post("/api/appointments", json=_booking_payload(start="09:30"))

        assert response.status_code == 409
        data = response.json()
        assert data["code"] == "BOOKING_CONFLICT"
        assert data["conflicts"] == [MSG_APPOINTMENT_OVERLAP]
        assert data["suggestions"]["next_available_slot"]["start_time"] == "10:00"

    @pytest.mark.asyncio
    async def test_create_invalid_customer(self, client):
        response = await client.post("/api/appointments", json=_booking_payload(customer_email="nope"))

        assert response.status_code == 400
        assert response.json()["field"] == "customer_email"

    @pytest.mark.asyncio
    async def test_lifecycle(self, client):
        created = (await client.post("/api/appointments", json=_booking_payload())).json()

        lookup = await client.get(f"/api/appointments/lookup/{created['confirmation_number'].lower()}")
        confirmed = await client.post(f"/api/appointments/{created['id']}/confirm")
        completed = await client.post(f"/api/appointments/{created['id']}/complete")
        cancel_after_complete = await client.post(f"/api/appointments/{created['id']}/cancel")

        assert lookup.status_code == 200
        assert lookup.json()["id"] == created["id"]
        assert confirmed.json()["status"] == "confirmed"
        assert completed.json()["status"] == "completed"
        assert cancel_after_complete.status_code == 400

    @pytest.mark.asyncio
    async def test_cancel_frees_slot(self, client):
        created = (await client.post("/api/appointments", json=_booking_payload())).json()

        cancelled = await client.post(f"/api/appointments/{created['id']}/cancel")
        again = await client.post(f"/api/appointments/{created['id']}/cancel")
        rebooked = await client.post("/api/appointments", json=_booking_payload(customer_name="John Roe"))

        assert cancelled.json()["status"] == "cancelled"
        assert again.status_code == 200
        assert rebooked.status_code == 201

    @pytest.mark.asyncio
    async def test_reschedule(self, client):
        created = (await client.post("/api/appointments", json=_booking_payload(start="10:00"))).json()

        response = await client.post(f"/api/appointments/{created['id']}/reschedule", json={
            "appointment_date": FUTURE_MONDAY,
            "start_time": "10:30",
            "reason": "Running late",
        })

        assert response.status_code == 200
        data = response.json()
        assert (data["start_time"], data["end_time"]) == ("10:30", "11:15")
        assert data["confirmation_number"] == created["confirmation_number"]
        assert data["notes"] == "Reschedule reason: Running late"

    @pytest.mark.asyncio
    async def test_reschedule_conflict_returns_409(self, client):
        created = (await client.post("/api/appointments", json=_booking_payload(start="10:00"))).json()

        response = await client.post(f"/api/appointments/{created['id']}/reschedule", json={
            "appointment_date": FUTURE_TUESDAY,
            "start_time": "10:00",
        })

        assert response.status_code == 409
        data = response.json()
        assert data["conflicts"] == [MSG_CLOSED_ON_WEEKDAY]
        assert data["suggestions"]["next_available_slot"]["date"] == "2099-01-12"

    @pytest.mark.asyncio
    async def test_reschedule_cancelled_appointment(self, client):
        created = (await client.post("/api/appointments", json=_booking_payload())).json()
        await client.post(f"/api/appointments/{created['id']}/cancel")

        response = await client.post(f"/api/appointments/{created['id']}/reschedule", json={
            "appointment_date": FUTURE_MONDAY,
            "start_time": "14:00",
        })

        assert response.status_code == 400
        assert response.json()["field"] == "status"

    @pytest.mark.asyncio
    async def test_unknown_appointment(self, client):
        response = await client.post("/api/appointments/missing/cancel")

        assert response.status_code == 404
        assert response.json()["code"] == "APPOINTMENT_NOT_FOUND"


class TestAdminEndpoints:
    @pytest.fixture
    def warming_service(self):
        service = Mock()
        service.warm_all_businesses = AsyncMock(return_value=WarmingResult(success=True, businesses_warmed=3))
        service.warm_active_businesses = AsyncMock(return_value=WarmingResult(success=True, businesses_warmed=1))
        service.get_status = Mock(return_value={
            "is_warming": False,
            "last_warming_time": None,
            "next_warming_time": None,
        })
        service.should_warm_cache = Mock(return_value=True)
        app.dependency_overrides[get_warming_service] = lambda: service
        return service

    @pytest.mark.asyncio
    async def test_warm_active_by_default(self, client, warming_service):
        response = await client.post("/api/admin/cache/warm", params={"hours_back": 24})

        assert response.status_code == 200
        assert response.json()["businesses_warmed"] == 1
        warming_service.warm_active_businesses.assert_awaited_once_with(24)

    @pytest.mark.asyncio
    async def test_warm_all(self, client, warming_service):
        response = await client.post("/api/admin/cache/warm", params={"scope": "all"})

        assert response.json()["businesses_warmed"] == 3
        warming_service.warm_all_businesses.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_invalid_scope(self, client, warming_service):
        response = await client.post("/api/admin/cache/warm", params={"scope": "some"})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_status(self, client, warming_service):
        response = await client.get("/api/admin/cache/status")

        assert response.status_code == 200
        assert response.json() == {
            "is_warming": False,
            "last_warming_time": None,
            "next_warming_time": None,
            "should_warm": True,
        }
