"""Patient read model."""

from uuid import UUID

from pydantic import BaseModel


class Patient(BaseModel):
    """Patient as seen by the scheduling core (read-only)."""

    id: UUID
    full_name: str
    email: str | None = None
    phone: str | None = None

    model_config = {"from_attributes": True}

    @property
    def has_contact_email(self) -> bool:
        return bool(self.email and self.email.strip())
