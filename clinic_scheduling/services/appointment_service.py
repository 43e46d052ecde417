"""Appointment service for business logic."""

from datetime import datetime
from uuid import UUID, uuid4

import structlog

from clinic_scheduling.core.clock import Clock, utc_now
from clinic_scheduling.core.exceptions import NotFoundException
from clinic_scheduling.core.locks import KeyedLock
from clinic_scheduling.repositories.appointment_store import AppointmentStore
from clinic_scheduling.schemas.appointments import (
    Appointment,
    AppointmentCreate,
    AppointmentStatus,
)
from clinic_scheduling.schemas.doctors import Doctor
from clinic_scheduling.schemas.patients import Patient
from clinic_scheduling.services.booking_policy import BookingPolicy
from clinic_scheduling.services.lifecycle import AppointmentLifecycle, TransitionOrigin
from clinic_scheduling.services.notification_service import NotificationDispatcher

logger = structlog.get_logger(__name__)


class AppointmentService:
    """Service for booking appointments and driving their status."""

    def __init__(
        self,
        store: AppointmentStore,
        booking_policy: BookingPolicy,
        lifecycle: AppointmentLifecycle,
        dispatcher: NotificationDispatcher,
        locks: KeyedLock,
        clock: Clock = utc_now,
    ):
        """Initialize service with its collaborators."""
        self.store = store
        self.booking_policy = booking_policy
        self.lifecycle = lifecycle
        self.dispatcher = dispatcher
        self.locks = locks
        self.clock = clock

    async def _get_patient(self, patient_id: UUID) -> Patient:
        patient = await self.store.find_patient_by_id(patient_id)
        if not patient:
            raise NotFoundException("Patient not found")
        return patient

    async def _get_doctor(self, doctor_id: UUID) -> Doctor:
        doctor = await self.store.find_doctor_by_id(doctor_id)
        if not doctor:
            raise NotFoundException("Doctor not found")
        return doctor

    async def get(self, appointment_id: UUID) -> Appointment:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: If appointment not found
        """
        appointment = await self.store.find_appointment_by_id(appointment_id)
        if not appointment:
            raise NotFoundException(f"Appointment not found with id: {appointment_id}")
        return appointment

    async def create(self, data: AppointmentCreate) -> Appointment:
        """
        Create a new appointment.

        The booking checks and the insert run while holding the locks of both
        the doctor and the patient, so concurrent requests cannot double-book
        the doctor or exceed the patient's daily cap.

        Args:
            data: Appointment creation data

        Returns:
            Created appointment

        Raises:
            NotFoundException: If the patient or doctor does not exist
            SchedulingError: If a booking rule rejects the request
        """
        patient = await self._get_patient(data.patient_id)
        doctor = await self._get_doctor(data.doctor_id)

        async with self.locks.acquire(("doctor", doctor.id), ("patient", patient.id)):
            try:
                await self.booking_policy.validate(patient, doctor, data.start_at, data.end_at)
            except Exception as e:
                logger.info(
                    "booking_rejected",
                    patient_id=str(patient.id),
                    doctor_id=str(doctor.id),
                    reason=getattr(e, "code", type(e).__name__),
                )
                raise

            now = self.clock()
            appointment = await self.store.save(
                Appointment(
                    id=uuid4(),
                    patient_id=patient.id,
                    doctor_id=doctor.id,
                    start_at=data.start_at,
                    end_at=data.end_at,
                    status=AppointmentStatus.SCHEDULED,
                    reason=data.reason,
                    notes=data.notes,
                    created_at=now,
                    updated_at=now,
                )
            )

        logger.info(
            "appointment_created",
            appointment_id=str(appointment.id),
            patient_id=str(patient.id),
            doctor_id=str(doctor.id),
            start_at=appointment.start_at.isoformat(),
        )

        await self.dispatcher.notify_created(appointment, patient, doctor)
        return appointment

    async def _change_status(self, appointment_id: UUID, target: AppointmentStatus) -> Appointment:
        async with self.locks.acquire(("appointment", appointment_id)):
            current = await self.get(appointment_id)
            updated = self.lifecycle.transition(current, target, TransitionOrigin.USER)
            saved = await self.store.save(updated, expected_status=current.status)

        logger.info(
            "appointment_status_changed",
            appointment_id=str(saved.id),
            from_status=current.status.value,
            to_status=saved.status.value,
        )

        patient = await self.store.find_patient_by_id(saved.patient_id)
        doctor = await self.store.find_doctor_by_id(saved.doctor_id)
        if target == AppointmentStatus.CANCELLED:
            await self.dispatcher.notify_cancelled(saved, patient, doctor)
        else:
            await self.dispatcher.notify_status_changed(saved, patient, doctor, current.status)
        return saved

    async def cancel(self, appointment_id: UUID) -> Appointment:
        """
        Cancel an appointment.

        Raises:
            NotFoundException: If appointment not found
            AlreadyCancelledError: If it is already cancelled
            NoticeTooShortError: If the minimum notice period has passed
            InvalidTransitionError: If it is completed or marked as no-show
        """
        return await self._change_status(appointment_id, AppointmentStatus.CANCELLED)

    async def update_status(
        self, appointment_id: UUID, new_status: AppointmentStatus
    ) -> Appointment:
        """
        Move an appointment to ``new_status``.

        Cancelling through this path applies the same notice rule as ``cancel``.

        Raises:
            NotFoundException: If appointment not found
            InvalidTransitionError: If the lifecycle forbids the move
        """
        return await self._change_status(appointment_id, new_status)

    async def list_for_doctor(
        self, doctor_id: UUID, start: datetime, end: datetime
    ) -> list[Appointment]:
        """List a doctor's appointments overlapping ``[start, end)``, ascending by start."""
        await self._get_doctor(doctor_id)
        return await self.store.find_appointments_for_doctor_between(doctor_id, start, end)

    async def list_for_patient(self, patient_id: UUID) -> list[Appointment]:
        """List all of a patient's appointments regardless of status."""
        await self._get_patient(patient_id)
        return await self.store.find_appointments_for_patient(patient_id)

    async def list_in_range(self, start: datetime, end: datetime) -> list[Appointment]:
        """List appointments of all doctors starting in ``[start, end)``, ascending by start."""
        return await self.store.find_appointments_between(start, end)
