"""Script to initialize the database without Alembic (local development only).

On PostgreSQL the doctor overlap exclusion constraint is added as well, so a
database created here rejects double bookings from any process. Other
backends only get the tables.
"""

import asyncio

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from clinic_scheduling.database import engine
from clinic_scheduling.models import combined_metadata
from clinic_scheduling.models.appointments import DOCTOR_NO_OVERLAP_DDL
from clinic_scheduling.repositories.appointment_store import DOCTOR_OVERLAP_CONSTRAINT


async def create_schema(conn: AsyncConnection) -> None:
    """Create all tables, plus the PostgreSQL-only overlap constraint."""
    await conn.run_sync(combined_metadata().create_all)
    if conn.dialect.name != "postgresql":
        return
    exists = await conn.scalar(
        text("SELECT 1 FROM pg_constraint WHERE conname = :name"),
        {"name": DOCTOR_OVERLAP_CONSTRAINT},
    )
    if not exists:
        for statement in DOCTOR_NO_OVERLAP_DDL:
            await conn.execute(text(statement))


async def init_db() -> None:
    """Initialize the database by creating all tables."""
    async with engine.begin() as conn:
        await create_schema(conn)

    await engine.dispose()
    print("✓ Database initialized successfully!")


if __name__ == "__main__":
    asyncio.run(init_db())
