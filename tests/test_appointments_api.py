"""Tests for the HTTP endpoints."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from httpx import AsyncClient

DAY = datetime(2026, 3, 4, tzinfo=UTC)


def at(hour: float) -> str:
    return (DAY + timedelta(hours=hour)).isoformat()


def booking(patient, doctor, start: float, end: float) -> dict:
    return {
        "patient_id": str(patient.id),
        "doctor_id": str(doctor.id),
        "start_at": at(start),
        "end_at": at(end),
        "reason": "Follow-up",
    }


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    """Test health check endpoint."""
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient) -> None:
    response = await client.get("/api/v1/ping", headers={"X-Request-ID": "req-42"})
    assert response.headers["X-Request-ID"] == "req-42"


@pytest.mark.asyncio
async def test_create_appointment(client: AsyncClient, alice, dr_house, sender) -> None:
    """Test booking an appointment."""
    response = await client.post("/api/v1/appointments/", json=booking(alice, dr_house, 9, 10))

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "scheduled"
    assert data["patient_id"] == str(alice.id)
    assert datetime.fromisoformat(data["start_at"]) == DAY + timedelta(hours=9)
    assert data["cancelled_at"] is None
    assert len(sender.sent) == 2


@pytest.mark.asyncio
async def test_double_booking_returns_conflict(client: AsyncClient, alice, bob, dr_house) -> None:
    await client.post("/api/v1/appointments/", json=booking(alice, dr_house, 9, 10))

    response = await client.post("/api/v1/appointments/", json=booking(bob, dr_house, 9.5, 10.5))

    assert response.status_code == 409
    assert response.json()["code"] == "doctor_unavailable"


@pytest.mark.asyncio
async def test_daily_limit_returns_conflict(client: AsyncClient, alice, make_doctor) -> None:
    first = await make_doctor("Dr. First")
    second = await make_doctor("Dr. Second")
    await client.post("/api/v1/appointments/", json=booking(alice, first, 9, 10))

    response = await client.post("/api/v1/appointments/", json=booking(alice, second, 14, 15))

    assert response.status_code == 409
    assert response.json()["code"] == "daily_limit_exceeded"


@pytest.mark.asyncio
async def test_invalid_interval(client: AsyncClient, alice, dr_house) -> None:
    response = await client.post("/api/v1/appointments/", json=booking(alice, dr_house, 10, 9))

    assert response.status_code == 422
    assert response.json()["code"] == "invalid_interval"


@pytest.mark.asyncio
async def test_past_booking(client: AsyncClient, alice, dr_house, clock) -> None:
    data = booking(alice, dr_house, 9, 10)
    data["start_at"] = (clock.now - timedelta(hours=1)).isoformat()
    data["end_at"] = clock.now.isoformat()

    response = await client.post("/api/v1/appointments/", json=data)

    assert response.status_code == 422
    assert response.json()["code"] == "past_booking"


@pytest.mark.asyncio
async def test_naive_timestamps_are_rejected(client: AsyncClient, alice, dr_house) -> None:
    data = booking(alice, dr_house, 9, 10)
    data["start_at"] = "2026-03-04T09:00:00"

    response = await client.post("/api/v1/appointments/", json=data)

    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"


@pytest.mark.asyncio
@pytest.mark.parametrize("listing", ["range", "doctor"])
async def test_naive_range_params_are_rejected(client: AsyncClient, dr_house, listing) -> None:
    url = {
        "range": "/api/v1/appointments/",
        "doctor": f"/api/v1/doctors/{dr_house.id}/appointments",
    }[listing]

    response = await client.get(
        url, params={"start": "2026-03-03T00:00:00", "end": "2026-03-04T00:00:00"}
    )

    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "validation_error"
    assert {tuple(error["loc"]) for error in body["details"]} == {
        ("query", "start"),
        ("query", "end"),
    }


@pytest.mark.asyncio
async def test_unknown_patient(client: AsyncClient, dr_house) -> None:
    data = {
        "patient_id": str(uuid4()),
        "doctor_id": str(dr_house.id),
        "start_at": at(9),
        "end_at": at(10),
    }

    response = await client.post("/api/v1/appointments/", json=data)

    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


@pytest.mark.asyncio
async def test_get_appointment(client: AsyncClient, alice, dr_house) -> None:
    created = await client.post("/api/v1/appointments/", json=booking(alice, dr_house, 9, 10))
    appointment_id = created.json()["id"]

    response = await client.get(f"/api/v1/appointments/{appointment_id}")
    assert response.status_code == 200
    assert response.json()["id"] == appointment_id

    missing = await client.get(f"/api/v1/appointments/{uuid4()}")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_cancel_appointment(client: AsyncClient, alice, dr_house) -> None:
    created = await client.post("/api/v1/appointments/", json=booking(alice, dr_house, 9, 10))
    appointment_id = created.json()["id"]

    response = await client.post(f"/api/v1/appointments/{appointment_id}/cancel")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "cancelled"
    assert data["cancelled_at"] is not None

    again = await client.post(f"/api/v1/appointments/{appointment_id}/cancel")
    assert again.status_code == 409
    assert again.json()["code"] == "already_cancelled"


@pytest.mark.asyncio
async def test_cancel_inside_notice_window(
    client: AsyncClient, alice, dr_house, clock, make_appointment
) -> None:
    soon = await make_appointment(alice, dr_house, clock.now + timedelta(hours=3))

    response = await client.patch(
        f"/api/v1/appointments/{soon.id}/status", json={"status": "cancelled"}
    )

    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "notice_too_short"
    assert "24 hours" in body["message"]


@pytest.mark.asyncio
async def test_update_status(client: AsyncClient, alice, dr_house) -> None:
    created = await client.post("/api/v1/appointments/", json=booking(alice, dr_house, 9, 10))
    appointment_id = created.json()["id"]

    confirmed = await client.patch(
        f"/api/v1/appointments/{appointment_id}/status", json={"status": "confirmed"}
    )
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "confirmed"

    no_show = await client.patch(
        f"/api/v1/appointments/{appointment_id}/status", json={"status": "no_show"}
    )
    assert no_show.status_code == 409
    assert no_show.json()["code"] == "invalid_transition"

    unknown = await client.patch(
        f"/api/v1/appointments/{appointment_id}/status", json={"status": "postponed"}
    )
    assert unknown.status_code == 422


@pytest.mark.asyncio
async def test_schedules_and_history(client: AsyncClient, alice, bob, dr_house) -> None:
    late = await client.post("/api/v1/appointments/", json=booking(alice, dr_house, 15, 16))
    early = await client.post("/api/v1/appointments/", json=booking(bob, dr_house, 9, 10))

    schedule = await client.get(
        f"/api/v1/doctors/{dr_house.id}/appointments",
        params={"start": at(0), "end": at(24)},
    )
    assert schedule.status_code == 200
    assert [a["id"] for a in schedule.json()] == [early.json()["id"], late.json()["id"]]

    history = await client.get(f"/api/v1/patients/{alice.id}/appointments")
    assert [a["id"] for a in history.json()] == [late.json()["id"]]

    in_range = await client.get("/api/v1/appointments/", params={"start": at(12), "end": at(24)})
    assert [a["id"] for a in in_range.json()] == [late.json()["id"]]

    unknown = await client.get(f"/api/v1/patients/{uuid4()}/appointments")
    assert unknown.status_code == 404


@pytest.mark.asyncio
async def test_run_sweep_on_demand(
    client: AsyncClient, alice, dr_house, clock, make_appointment
) -> None:
    await make_appointment(
        alice, dr_house, clock.now - timedelta(hours=4), clock.now - timedelta(hours=3)
    )

    response = await client.post("/api/v1/admin/sweeps/no-shows")

    assert response.status_code == 200
    assert response.json() == {
        "sweep": "no-shows",
        "selected": 1,
        "succeeded": 1,
        "skipped": 0,
        "failed": 0,
    }

    unknown = await client.post("/api/v1/admin/sweeps/archive")
    assert unknown.status_code == 422
