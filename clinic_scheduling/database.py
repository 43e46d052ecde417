"""Async engine and session factory shared by the store, the push sender and the sweeps."""

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from clinic_scheduling.config import settings

logger = structlog.get_logger(__name__)

# asyncpg driver for a plain postgresql:// URL
DATABASE_URL = settings.database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

engine: AsyncEngine = create_async_engine(
    DATABASE_URL,
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
    pool_recycle=3600,
    connect_args={"server_settings": {"application_name": settings.app_name}},
)

# Stores open one short-lived session per call, so objects must stay usable after commit
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Dependency returning the session factory used by stores and senders."""
    return AsyncSessionLocal


async def check_database_connection() -> bool:
    """Return True if a trivial query succeeds."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("database_check_failed", error=str(e))
        return False
    return True
