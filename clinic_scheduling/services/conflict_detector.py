"""Doctor double-booking detection."""

from datetime import datetime
from uuid import UUID

from clinic_scheduling.repositories.appointment_store import AppointmentStore
from clinic_scheduling.schemas.appointments import Appointment, AppointmentStatus

# Statuses that no longer occupy the doctor's time
INACTIVE_STATUSES = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW})


class ConflictDetector:
    """Answers whether a doctor is already booked during a half-open interval."""

    def __init__(self, store: AppointmentStore):
        self.store = store

    async def find_conflicts(
        self,
        doctor_id: UUID,
        start: datetime,
        end: datetime,
    ) -> list[Appointment]:
        """
        Return the doctor's active appointments overlapping ``[start, end)``.

        Overlap is strict: an appointment ending exactly at ``start`` (or
        starting exactly at ``end``) is not a conflict.

        Args:
            doctor_id: Doctor to check
            start: Requested start
            end: Requested end

        Returns:
            Conflicting appointments ordered by start time
        """
        candidates = await self.store.find_appointments_for_doctor_between(doctor_id, start, end)
        return [
            appointment
            for appointment in candidates
            if appointment.status not in INACTIVE_STATUSES and appointment.overlaps(start, end)
        ]

    async def has_conflict(self, doctor_id: UUID, start: datetime, end: datetime) -> bool:
        """Return True if any active appointment of the doctor overlaps ``[start, end)``."""
        return bool(await self.find_conflicts(doctor_id, start, end))
