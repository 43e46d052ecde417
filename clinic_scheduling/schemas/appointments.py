"""Appointment schemas for request/response validation."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


class Appointment(BaseModel):
    """Appointment record as stored and passed through the scheduling core."""

    id: UUID
    patient_id: UUID
    doctor_id: UUID
    start_at: datetime
    end_at: datetime
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    reason: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
    cancelled_at: datetime | None = None
    reminder_sent_at: datetime | None = None

    model_config = {"from_attributes": True, "frozen": True}

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Return True if ``[start, end)`` intersects this appointment's interval."""
        return self.start_at < end and self.end_at > start


class AppointmentCreate(BaseModel):
    """Schema for creating a new appointment."""

    patient_id: UUID
    doctor_id: UUID
    start_at: datetime
    end_at: datetime
    reason: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=1000)

    @field_validator("start_at", "end_at")
    @classmethod
    def validate_timezone(cls, v: datetime) -> datetime:
        """Require timezone-aware timestamps."""
        if v.tzinfo is None or v.utcoffset() is None:
            raise ValueError("Timestamp must include a timezone offset")
        return v


class AppointmentStatusUpdate(BaseModel):
    """Schema for updating appointment status."""

    status: AppointmentStatus


class AppointmentResponse(Appointment):
    """Schema for appointment response."""

    model_config = {"from_attributes": True}
