"""Notification schemas."""

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    """Kinds of appointment notifications."""

    APPOINTMENT_CREATED = "appointment_created"
    APPOINTMENT_CANCELLED = "appointment_cancelled"
    APPOINTMENT_STATUS_CHANGED = "appointment_status_changed"
    APPOINTMENT_REMINDER = "appointment_reminder"


class Notification(BaseModel):
    """A message addressed to one patient or doctor."""

    recipient_id: UUID
    recipient_email: str | None = None
    notification_type: NotificationType
    title: str
    body: str
    appointment_id: UUID | None = None
    data: dict[str, str] = Field(default_factory=dict)
