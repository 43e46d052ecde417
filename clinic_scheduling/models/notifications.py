"""Notification history for appointment events."""

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Index,
    MetaData,
    String,
    Table,
    Text,
    Uuid,
)

from clinic_scheduling.models.types import UTCDateTime

metadata = MetaData()

notifications = Table(
    "notifications",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("recipient_id", Uuid, nullable=False),
    Column("appointment_id", Uuid, nullable=True),
    Column("title", Text, nullable=False),
    Column("body", Text, nullable=False),
    Column("notification_type", String(50), nullable=False),
    Column("data", JSON, nullable=True),
    Column("status", String(20), nullable=False, server_default="pending"),
    Column("sent_at", UTCDateTime, nullable=True),
    Column("failure_reason", Text, nullable=True),
    Column("created_at", UTCDateTime, nullable=False),
    CheckConstraint(
        "notification_type IN ('appointment_created', 'appointment_cancelled', "
        "'appointment_status_changed', 'appointment_reminder')",
        name="notifications_type_check",
    ),
    CheckConstraint(
        "status IN ('pending', 'sent', 'failed')",
        name="notifications_status_check",
    ),
    Index("idx_notifications_recipient_id", "recipient_id"),
    Index("idx_notifications_appointment_id", "appointment_id"),
)
