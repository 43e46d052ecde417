"""Sweep result schemas."""

from enum import Enum

from pydantic import BaseModel


class SweepName(str, Enum):
    """Periodic sweeps that can be triggered on demand."""

    REMINDERS = "reminders"
    NO_SHOWS = "no-shows"
    CLEANUP = "cleanup"


class SweepResult(BaseModel):
    """Outcome of one sweep pass."""

    sweep: SweepName
    selected: int = 0
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
