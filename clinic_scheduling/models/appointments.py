"""Appointments table model using SQLAlchemy Core."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Index,
    MetaData,
    Table,
    Text,
    Uuid,
)

from clinic_scheduling.models.types import UTCDateTime

# Metadata for all tables
metadata = MetaData()

# Appointments table
appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True),
    # Ownership / references
    Column("patient_id", Uuid, nullable=False),
    Column("doctor_id", Uuid, nullable=False),
    # Appointment details
    Column("start_at", UTCDateTime, nullable=False),
    Column("end_at", UTCDateTime, nullable=False),
    Column("reason", Text, nullable=True),
    Column("notes", Text, nullable=True),
    # Status management
    Column("status", Text, nullable=False, server_default="scheduled"),
    # Audit fields
    Column("created_at", UTCDateTime, nullable=False),
    Column("updated_at", UTCDateTime, nullable=False),
    Column("cancelled_at", UTCDateTime, nullable=True),
    Column("reminder_sent_at", UTCDateTime, nullable=True),
    # Constraints
    CheckConstraint(
        "status IN ('scheduled', 'confirmed', 'cancelled', 'completed', 'no_show')",
        name="appointments_status_check",
    ),
    CheckConstraint("end_at > start_at", name="appointments_interval_check"),
    CheckConstraint(
        "(status = 'cancelled') = (cancelled_at IS NOT NULL)",
        name="appointments_cancelled_at_check",
    ),
    Index("ix_appointments_doctor_start", "doctor_id", "start_at"),
    Index("ix_appointments_patient_start", "patient_id", "start_at"),
    Index("ix_appointments_status_start", "status", "start_at"),
    Index("ix_appointments_status_end", "status", "end_at"),
)

# PostgreSQL-only statements that keep a doctor's active appointments from
# overlapping across processes. Migration 001 applies the same constraint.
DOCTOR_NO_OVERLAP_DDL = (
    "CREATE EXTENSION IF NOT EXISTS btree_gist",
    """
    ALTER TABLE appointments
    ADD CONSTRAINT appointments_doctor_no_overlap
    EXCLUDE USING gist (
        doctor_id WITH =,
        tstzrange(start_at, end_at, '[)') WITH &&
    )
    WHERE (status NOT IN ('cancelled', 'no_show'))
    """,
)
