"""Database models."""

from sqlalchemy import MetaData

from clinic_scheduling.models.appointments import appointments
from clinic_scheduling.models.doctors import doctors
from clinic_scheduling.models.notifications import notifications
from clinic_scheduling.models.patients import patients
from clinic_scheduling.models.push_tokens import push_tokens

__all__ = [
    "appointments",
    "combined_metadata",
    "doctors",
    "notifications",
    "patients",
    "push_tokens",
]


def combined_metadata() -> MetaData:
    """Collect every table into one MetaData (each model module owns its own)."""
    metadata = MetaData()
    for table in (doctors, patients, appointments, push_tokens, notifications):
        table.to_metadata(metadata)
    return metadata
