"""Persistence boundary for appointments, patients and doctors."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import and_, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clinic_scheduling.core.exceptions import DoctorUnavailableError, InvalidTransitionError
from clinic_scheduling.models.appointments import appointments
from clinic_scheduling.models.doctors import doctors
from clinic_scheduling.models.patients import patients
from clinic_scheduling.schemas.appointments import Appointment, AppointmentStatus
from clinic_scheduling.schemas.doctors import Doctor
from clinic_scheduling.schemas.patients import Patient

logger = structlog.get_logger(__name__)

# Name of the PostgreSQL exclusion constraint created by migration 001
DOCTOR_OVERLAP_CONSTRAINT = "appointments_doctor_no_overlap"


class AppointmentStore(ABC):
    """Query and save operations the scheduling core relies on."""

    @abstractmethod
    async def find_appointment_by_id(self, appointment_id: UUID) -> Appointment | None:
        """Return the appointment or None."""

    @abstractmethod
    async def find_appointments_for_doctor_between(
        self, doctor_id: UUID, start: datetime, end: datetime
    ) -> list[Appointment]:
        """Return the doctor's appointments overlapping ``[start, end)``, by start time."""

    @abstractmethod
    async def find_appointments_for_patient(self, patient_id: UUID) -> list[Appointment]:
        """Return all of the patient's appointments, by start time."""

    @abstractmethod
    async def find_appointments_between(self, start: datetime, end: datetime) -> list[Appointment]:
        """Return appointments of all doctors starting in ``[start, end)``, by start time."""

    @abstractmethod
    async def find_appointments_by_status_and_start_between(
        self, status: AppointmentStatus, start: datetime, end: datetime
    ) -> list[Appointment]:
        """Return appointments in ``status`` starting in ``[start, end)``."""

    @abstractmethod
    async def find_appointments_by_status_and_end_before(
        self, status: AppointmentStatus, cutoff: datetime
    ) -> list[Appointment]:
        """Return appointments in ``status`` ending strictly before ``cutoff``."""

    @abstractmethod
    async def find_appointments_by_status_and_start_before(
        self, status: AppointmentStatus, cutoff: datetime
    ) -> list[Appointment]:
        """Return appointments in ``status`` starting strictly before ``cutoff``."""

    @abstractmethod
    async def save(
        self, appointment: Appointment, expected_status: AppointmentStatus | None = None
    ) -> Appointment:
        """Insert or update the appointment and return the stored version.

        When ``expected_status`` is given, an update only applies while the
        stored row is still in that status; otherwise InvalidTransitionError
        is raised and nothing is written.
        """

    @abstractmethod
    async def find_patient_by_id(self, patient_id: UUID) -> Patient | None:
        """Return the patient or None."""

    @abstractmethod
    async def find_doctor_by_id(self, doctor_id: UUID) -> Doctor | None:
        """Return the doctor or None."""


def _to_values(appointment: Appointment) -> dict[str, Any]:
    values = appointment.model_dump()
    values["status"] = appointment.status.value
    return values


class SqlAppointmentStore(AppointmentStore):
    """AppointmentStore backed by SQLAlchemy Core.

    Every call runs in its own session and transaction, so one store can be
    shared by concurrent requests and sweeps.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """Initialize store with a session factory."""
        self.session_factory = session_factory

    async def _fetch_appointments(self, *conditions: Any) -> list[Appointment]:
        stmt = (
            select(appointments)
            .where(and_(*conditions))
            .order_by(appointments.c.start_at, appointments.c.id)
        )
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            rows = result.fetchall()
        return [Appointment.model_validate(dict(row._mapping)) for row in rows]

    async def find_appointment_by_id(self, appointment_id: UUID) -> Appointment | None:
        rows = await self._fetch_appointments(appointments.c.id == appointment_id)
        return rows[0] if rows else None

    async def find_appointments_for_doctor_between(
        self, doctor_id: UUID, start: datetime, end: datetime
    ) -> list[Appointment]:
        return await self._fetch_appointments(
            appointments.c.doctor_id == doctor_id,
            appointments.c.start_at < end,
            appointments.c.end_at > start,
        )

    async def find_appointments_for_patient(self, patient_id: UUID) -> list[Appointment]:
        return await self._fetch_appointments(appointments.c.patient_id == patient_id)

    async def find_appointments_between(self, start: datetime, end: datetime) -> list[Appointment]:
        return await self._fetch_appointments(
            appointments.c.start_at >= start,
            appointments.c.start_at < end,
        )

    async def find_appointments_by_status_and_start_between(
        self, status: AppointmentStatus, start: datetime, end: datetime
    ) -> list[Appointment]:
        return await self._fetch_appointments(
            appointments.c.status == status.value,
            appointments.c.start_at >= start,
            appointments.c.start_at < end,
        )

    async def find_appointments_by_status_and_end_before(
        self, status: AppointmentStatus, cutoff: datetime
    ) -> list[Appointment]:
        return await self._fetch_appointments(
            appointments.c.status == status.value,
            appointments.c.end_at < cutoff,
        )

    async def find_appointments_by_status_and_start_before(
        self, status: AppointmentStatus, cutoff: datetime
    ) -> list[Appointment]:
        return await self._fetch_appointments(
            appointments.c.status == status.value,
            appointments.c.start_at < cutoff,
        )

    async def save(
        self, appointment: Appointment, expected_status: AppointmentStatus | None = None
    ) -> Appointment:
        values = _to_values(appointment)
        try:
            async with self.session_factory() as session, session.begin():
                existing = await session.scalar(
                    select(appointments.c.id).where(appointments.c.id == appointment.id)
                )
                if existing is None:
                    await session.execute(insert(appointments).values(**values))
                else:
                    values.pop("id")
                    values.pop("created_at")
                    conditions = [appointments.c.id == appointment.id]
                    if expected_status is not None:
                        conditions.append(appointments.c.status == expected_status.value)
                    result = await session.execute(
                        update(appointments).where(*conditions).values(**values)
                    )
                    if result.rowcount == 0:
                        logger.warning(
                            "appointment_changed_concurrently",
                            appointment_id=str(appointment.id),
                            expected_status=expected_status.value if expected_status else None,
                        )
                        raise InvalidTransitionError(
                            "Appointment was changed by another request; reload and retry"
                        )
        except IntegrityError as e:
            if DOCTOR_OVERLAP_CONSTRAINT in str(e.orig):
                logger.warning(
                    "appointment_overlap_rejected_by_database",
                    appointment_id=str(appointment.id),
                    doctor_id=str(appointment.doctor_id),
                )
                raise DoctorUnavailableError() from e
            raise

        stored = await self.find_appointment_by_id(appointment.id)
        if stored is None:
            raise RuntimeError(f"Appointment {appointment.id} vanished after save")
        return stored

    async def find_patient_by_id(self, patient_id: UUID) -> Patient | None:
        async with self.session_factory() as session:
            result = await session.execute(select(patients).where(patients.c.id == patient_id))
            row = result.first()
        return Patient.model_validate(dict(row._mapping)) if row else None

    async def find_doctor_by_id(self, doctor_id: UUID) -> Doctor | None:
        async with self.session_factory() as session:
            result = await session.execute(select(doctors).where(doctors.c.id == doctor_id))
            row = result.first()
        return Doctor.model_validate(dict(row._mapping)) if row else None
