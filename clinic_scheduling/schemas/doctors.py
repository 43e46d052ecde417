"""Doctor read model."""

from datetime import time
from uuid import UUID

from pydantic import BaseModel


class Doctor(BaseModel):
    """Doctor as seen by the scheduling core (read-only)."""

    id: UUID
    full_name: str
    email: str | None = None
    specialty: str
    available_from: time | None = None
    available_to: time | None = None

    model_config = {"from_attributes": True}
