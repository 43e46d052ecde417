"""Tests for the periodic sweep trigger."""

import asyncio
from datetime import UTC, datetime, time
from zoneinfo import ZoneInfo

import pytest

from clinic_scheduling.workers.periodic import PeriodicTask, SweepScheduler, seconds_until


@pytest.mark.parametrize(
    "now,expected",
    [
        (datetime(2026, 3, 2, 8, 0, tzinfo=UTC), 3600),
        (datetime(2026, 3, 2, 9, 0, tzinfo=UTC), 24 * 3600),
        (datetime(2026, 3, 2, 10, 30, tzinfo=UTC), 22.5 * 3600),
    ],
)
def test_seconds_until(now, expected) -> None:
    assert seconds_until(time(9, 0), now, ZoneInfo("UTC")) == expected


def test_seconds_until_uses_local_time() -> None:
    # 13:00 UTC is 08:00 in New York before daylight saving starts
    now = datetime(2026, 3, 2, 13, 0, tzinfo=UTC)
    assert seconds_until(time(9, 0), now, ZoneInfo("America/New_York")) == 3600


@pytest.mark.asyncio
async def test_periodic_task_repeats() -> None:
    calls = 0

    async def tick() -> None:
        nonlocal calls
        calls += 1

    task = PeriodicTask("tick", interval=0.01, func=tick, first_delay=0)
    task.start()
    await asyncio.sleep(0.1)
    await task.stop()

    assert calls >= 2
    assert task.runs == calls
    assert not task.running


@pytest.mark.asyncio
async def test_periodic_task_survives_failures() -> None:
    async def explode() -> None:
        raise RuntimeError("sweep crashed")

    task = PeriodicTask("explode", interval=0.01, func=explode, first_delay=0)
    task.start()
    await asyncio.sleep(0.1)

    assert task.running
    assert task.runs >= 2
    await task.stop()


@pytest.mark.asyncio
async def test_periodic_task_waits_for_first_delay() -> None:
    calls = 0

    async def tick() -> None:
        nonlocal calls
        calls += 1

    task = PeriodicTask("slow", interval=60, func=tick)
    task.start()
    await asyncio.sleep(0.05)
    await task.stop()

    assert calls == 0


@pytest.mark.asyncio
async def test_stop_is_idempotent() -> None:
    async def tick() -> None:
        pass

    task = PeriodicTask("idle", interval=60, func=tick)
    await task.stop()
    task.start()
    task.start()
    await task.stop()
    await task.stop()

    assert not task.running


@pytest.mark.asyncio
async def test_sweep_scheduler_owns_one_task_per_sweep(sweeps, clock) -> None:
    scheduler = SweepScheduler(
        sweeps,
        reminder_time=time(9, 0),
        tz=ZoneInfo("UTC"),
        no_show_interval=3600,
        cleanup_interval=7 * 24 * 3600,
        clock=clock,
    )

    assert [t.name for t in scheduler.tasks] == ["reminders", "no-shows", "cleanup"]
    reminders, no_shows, cleanup = scheduler.tasks
    # The test clock reads 08:00 UTC
    assert reminders.first_delay == 3600
    assert reminders.interval == 24 * 3600
    assert no_shows.interval == 3600
    assert cleanup.interval == 7 * 24 * 3600

    scheduler.start()
    assert all(t.running for t in scheduler.tasks)
    await scheduler.stop()
    assert not any(t.running for t in scheduler.tasks)
