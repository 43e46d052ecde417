"""Tests for doctor double-booking detection."""

from datetime import UTC, datetime, timedelta

import pytest

from clinic_scheduling.schemas.appointments import AppointmentStatus
from clinic_scheduling.services.conflict_detector import ConflictDetector

# Two days after the test clock's "now"
DAY = datetime(2026, 3, 4, tzinfo=UTC)


def at(hour: float):
    return DAY + timedelta(hours=hour)


# (existing interval, requested interval, expected conflict)
INTERVAL_CASES = [
    ((9, 10), (9, 10), True),
    ((9, 10), (9.5, 10.5), True),
    ((9, 10), (8.5, 9.5), True),
    ((9, 11), (9.5, 10), True),
    ((9.5, 10), (9, 11), True),
    ((9, 10), (10, 11), False),
    ((10, 11), (9, 10), False),
    ((9, 10), (11, 12), False),
]


@pytest.mark.asyncio
@pytest.mark.parametrize("existing,requested,expected", INTERVAL_CASES)
async def test_overlap_is_symmetric(
    store, make_doctor, alice, make_appointment, existing, requested, expected
) -> None:
    """A conflict is flagged iff A.start < B.end and B.start < A.end, in both directions."""
    detector = ConflictDetector(store)

    doctor_a = await make_doctor()
    await make_appointment(alice, doctor_a, at(existing[0]), at(existing[1]))
    assert await detector.has_conflict(doctor_a.id, at(requested[0]), at(requested[1])) is expected

    doctor_b = await make_doctor()
    await make_appointment(alice, doctor_b, at(requested[0]), at(requested[1]))
    assert await detector.has_conflict(doctor_b.id, at(existing[0]), at(existing[1])) is expected


@pytest.mark.asyncio
async def test_back_to_back_intervals_do_not_conflict(store, dr_house, alice, make_appointment):
    """An appointment ending exactly at the requested start is not a conflict."""
    await make_appointment(alice, dr_house, at(9), at(10))
    await make_appointment(alice, dr_house, at(11), at(12))

    detector = ConflictDetector(store)
    assert await detector.find_conflicts(dr_house.id, at(10), at(11)) == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,expected",
    [
        (AppointmentStatus.SCHEDULED, True),
        (AppointmentStatus.CONFIRMED, True),
        (AppointmentStatus.COMPLETED, True),
        (AppointmentStatus.CANCELLED, False),
        (AppointmentStatus.NO_SHOW, False),
    ],
)
async def test_inactive_appointments_free_the_slot(
    store, dr_house, alice, make_appointment, status, expected
) -> None:
    """Cancelled and no-show appointments do not occupy the doctor's time."""
    await make_appointment(alice, dr_house, at(9), at(10), status=status)

    detector = ConflictDetector(store)
    assert await detector.has_conflict(dr_house.id, at(9), at(10)) is expected


@pytest.mark.asyncio
async def test_other_doctors_do_not_conflict(store, make_doctor, alice, make_appointment):
    """Bookings of one doctor never block another doctor."""
    busy = await make_doctor("Dr. Busy")
    free = await make_doctor("Dr. Free")
    await make_appointment(alice, busy, at(9), at(10))

    detector = ConflictDetector(store)
    assert await detector.has_conflict(free.id, at(9), at(10)) is False


@pytest.mark.asyncio
async def test_conflicts_are_ordered_by_start(store, dr_house, alice, bob, make_appointment):
    second = await make_appointment(bob, dr_house, at(10), at(11))
    first = await make_appointment(alice, dr_house, at(9), at(10))

    detector = ConflictDetector(store)
    conflicts = await detector.find_conflicts(dr_house.id, at(8), at(12))

    assert [c.id for c in conflicts] == [first.id, second.id]
