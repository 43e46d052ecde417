"""Doctor model definition using SQLAlchemy Core."""

from sqlalchemy import Column, MetaData, String, Table, Text, Time, Uuid

from clinic_scheduling.models.types import UTCDateTime

metadata = MetaData()

doctors = Table(
    "doctors",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("full_name", Text, nullable=False),
    Column("email", String(255), nullable=True),
    Column("specialty", String(200), nullable=False, index=True),
    # Working hours
    Column("available_from", Time, nullable=True),
    Column("available_to", Time, nullable=True),
    # Metadata
    Column("created_at", UTCDateTime, nullable=True),
    Column("updated_at", UTCDateTime, nullable=True),
)
