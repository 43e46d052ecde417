#!/usr/bin/env python3
"""
Run appointment sweeps once, outside the API process.

Usage:
    python scripts/run_sweeps.py reminders
    python scripts/run_sweeps.py no-shows cleanup
    python scripts/run_sweeps.py all
"""

import argparse
import asyncio
import sys

import dotenv

dotenv.load_dotenv()

from clinic_scheduling.config import settings  # noqa: E402
from clinic_scheduling.core.firebase import initialize_firebase  # noqa: E402
from clinic_scheduling.database import AsyncSessionLocal, engine  # noqa: E402
from clinic_scheduling.dependencies import (  # noqa: E402
    get_booking_locks,
    get_clock,
    get_lifecycle,
    get_notification_sender,
    get_store,
)
from clinic_scheduling.middleware.logging import configure_logging  # noqa: E402
from clinic_scheduling.schemas.sweeps import SweepName  # noqa: E402
from clinic_scheduling.services.sweep_service import SweepService  # noqa: E402


async def run(names: list[SweepName]) -> int:
    """Run the given sweeps in order. Returns the number of failed items."""
    initialize_firebase(settings.firebase_credentials_path, settings.firebase_config_json)
    config = settings.scheduling
    clock = get_clock()
    sweeps = SweepService(
        store=get_store(AsyncSessionLocal),
        lifecycle=get_lifecycle(config, clock),
        sender=get_notification_sender(AsyncSessionLocal),
        config=config,
        clock=clock,
        locks=get_booking_locks(),
    )

    failed = 0
    try:
        for name in names:
            result = await sweeps.run(name)
            print(
                f"{result.sweep.value}: selected={result.selected} succeeded={result.succeeded} "
                f"skipped={result.skipped} failed={result.failed}"
            )
            failed += result.failed
    finally:
        await engine.dispose()
    return failed


def main() -> int:
    parser = argparse.ArgumentParser(description="Run appointment sweeps once")
    parser.add_argument(
        "sweeps",
        nargs="+",
        choices=[s.value for s in SweepName] + ["all"],
        help="Sweeps to run",
    )
    args = parser.parse_args()

    configure_logging()
    if "all" in args.sweeps:
        names = list(SweepName)
    else:
        names = [SweepName(value) for value in args.sweeps]

    failed = asyncio.run(run(names))
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
