"""Apply or create Alembic migrations for the scheduling schema."""

import sys
from pathlib import Path

import structlog

from alembic import command
from alembic.config import Config
from clinic_scheduling.middleware.logging import configure_logging

ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"

logger = structlog.get_logger(__name__)


def _config() -> Config:
    alembic_cfg = Config(str(ALEMBIC_INI))
    alembic_cfg.set_main_option("script_location", str(ALEMBIC_INI.parent / "alembic"))
    return alembic_cfg


def upgrade(revision: str = "head") -> None:
    """Upgrade the database to ``revision``."""
    try:
        command.upgrade(_config(), revision)
    except Exception as e:
        logger.error("migration_failed", revision=revision, error=str(e))
        sys.exit(1)
    logger.info("migration_completed", revision=revision)


def create_migration(message: str) -> None:
    """Autogenerate a new revision against the table metadata."""
    try:
        command.revision(_config(), message=message, autogenerate=True)
    except Exception as e:
        logger.error("migration_creation_failed", message=message, error=str(e))
        sys.exit(1)
    logger.info("migration_created", message=message)


if __name__ == "__main__":
    configure_logging()
    if len(sys.argv) > 1:
        if sys.argv[1] == "create" and len(sys.argv) > 2:
            create_migration(" ".join(sys.argv[2:]))
        else:
            print("Usage: python scripts/migrate.py [create <message>]")
    else:
        upgrade()
