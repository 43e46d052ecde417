"""Timer-driven trigger for the appointment sweeps."""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, time, timedelta
from typing import Any
from zoneinfo import ZoneInfo

import structlog

from clinic_scheduling.core.clock import Clock, utc_now
from clinic_scheduling.schemas.sweeps import SweepName
from clinic_scheduling.services.sweep_service import SweepService

logger = structlog.get_logger(__name__)

DAY_SECONDS = 24 * 3600


def seconds_until(time_of_day: time, now: datetime, tz: ZoneInfo) -> float:
    """Seconds from ``now`` until the next ``time_of_day`` in ``tz``."""
    local_now = now.astimezone(tz)
    target = datetime.combine(local_now.date(), time_of_day, tzinfo=tz)
    if target <= local_now:
        target = datetime.combine(local_now.date() + timedelta(days=1), time_of_day, tzinfo=tz)
    return (target - local_now).total_seconds()


class PeriodicTask:
    """Runs an async callable every ``interval`` seconds until stopped.

    Exceptions raised by the callable are logged and the loop carries on.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        func: Callable[[], Awaitable[Any]],
        first_delay: float | None = None,
    ):
        self.name = name
        self.interval = interval
        self.func = func
        self.first_delay = interval if first_delay is None else first_delay
        self.runs = 0
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> None:
        """Invoke the callable, logging instead of raising on failure."""
        self.runs += 1
        try:
            await self.func()
        except Exception as e:
            logger.error("periodic_task_failed", task=self.name, error=str(e), exc_info=True)

    async def _loop(self) -> None:
        delay = self.first_delay
        while True:
            await asyncio.sleep(delay)
            await self.run_once()
            delay = self.interval

    def start(self) -> None:
        if self.running:
            return
        logger.info(
            "periodic_task_started",
            task=self.name,
            interval=self.interval,
            first_delay=self.first_delay,
        )
        self._task = asyncio.create_task(self._loop(), name=f"periodic:{self.name}")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("periodic_task_stopped", task=self.name)


class SweepScheduler:
    """Owns the periodic tasks for the reminder, no-show and cleanup sweeps."""

    def __init__(
        self,
        sweeps: SweepService,
        *,
        reminder_time: time,
        tz: ZoneInfo,
        no_show_interval: float,
        cleanup_interval: float,
        clock: Clock = utc_now,
    ):
        self.tasks = [
            PeriodicTask(
                SweepName.REMINDERS.value,
                DAY_SECONDS,
                sweeps.run_reminder_sweep,
                first_delay=seconds_until(reminder_time, clock(), tz),
            ),
            PeriodicTask(SweepName.NO_SHOWS.value, no_show_interval, sweeps.run_no_show_sweep),
            PeriodicTask(SweepName.CLEANUP.value, cleanup_interval, sweeps.run_cleanup_sweep),
        ]

    def start(self) -> None:
        for task in self.tasks:
            task.start()

    async def stop(self) -> None:
        await asyncio.gather(*(task.stop() for task in self.tasks))
