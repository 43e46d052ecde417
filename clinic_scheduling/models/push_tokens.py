"""Push tokens model definition using SQLAlchemy Core."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    MetaData,
    String,
    Table,
    Text,
    Uuid,
    text,
)

from clinic_scheduling.models.types import UTCDateTime

metadata = MetaData()

push_tokens = Table(
    "push_tokens",
    metadata,
    Column("id", Uuid, primary_key=True),
    # Patient or doctor id the device belongs to
    Column("owner_id", Uuid, nullable=False, index=True),
    Column("fcm_token", Text, nullable=False),
    Column("platform", String(10), nullable=False),
    Column("is_active", Boolean, nullable=False, server_default=text("true"), index=True),
    Column("last_used_at", UTCDateTime, nullable=True),
    Column("created_at", UTCDateTime, nullable=True),
    CheckConstraint(
        "platform IN ('android', 'ios', 'web')",
        name="push_tokens_platform_check",
    ),
)
