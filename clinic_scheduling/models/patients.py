"""Patient model definition using SQLAlchemy Core."""

from sqlalchemy import Column, MetaData, String, Table, Text, Uuid

from clinic_scheduling.models.types import UTCDateTime

metadata = MetaData()

patients = Table(
    "patients",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("full_name", Text, nullable=False),
    # Contact email, used for reminder routing
    Column("email", String(255), nullable=True),
    Column("phone", String(20), nullable=True),
    # Metadata
    Column("created_at", UTCDateTime, nullable=True),
    Column("updated_at", UTCDateTime, nullable=True),
)
