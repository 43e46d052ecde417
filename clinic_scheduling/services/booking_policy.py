"""Rules gating the creation of an appointment."""

from datetime import datetime, timedelta

import structlog

from clinic_scheduling.config import SchedulingConfig
from clinic_scheduling.core.clock import Clock, utc_now
from clinic_scheduling.core.exceptions import (
    DailyLimitExceededError,
    DoctorUnavailableError,
    InvalidIntervalError,
    PastBookingError,
)
from clinic_scheduling.repositories.appointment_store import AppointmentStore
from clinic_scheduling.schemas.appointments import AppointmentStatus
from clinic_scheduling.schemas.doctors import Doctor
from clinic_scheduling.schemas.patients import Patient
from clinic_scheduling.services.conflict_detector import ConflictDetector

logger = structlog.get_logger(__name__)


class BookingPolicy:
    """Validates a booking request against the current store state.

    Checks run in a fixed order and the first failure wins: interval
    ordering, past start, doctor overlap, patient daily cap.
    """

    def __init__(
        self,
        store: AppointmentStore,
        config: SchedulingConfig,
        clock: Clock = utc_now,
        detector: ConflictDetector | None = None,
    ):
        self.store = store
        self.config = config
        self.clock = clock
        self.detector = detector or ConflictDetector(store)

    def day_bounds(self, moment: datetime) -> tuple[datetime, datetime]:
        """Return the ``[start, end)`` of the clinic calendar day containing ``moment``."""
        local = moment.astimezone(self.config.tz)
        day_start = local.replace(hour=0, minute=0, second=0, microsecond=0)
        next_day = (day_start + timedelta(days=1)).date()
        day_end = datetime.combine(next_day, day_start.timetz())
        return day_start, day_end

    async def count_patient_appointments_on_day(self, patient: Patient, moment: datetime) -> int:
        """Count the patient's non-cancelled appointments starting on the same day as ``moment``."""
        day_start, day_end = self.day_bounds(moment)
        existing = await self.store.find_appointments_for_patient(patient.id)
        return sum(
            1
            for appointment in existing
            if appointment.status != AppointmentStatus.CANCELLED
            and day_start <= appointment.start_at < day_end
        )

    async def validate(
        self,
        patient: Patient,
        doctor: Doctor,
        start: datetime,
        end: datetime,
    ) -> None:
        """
        Validate a booking request.

        Args:
            patient: Patient requesting the appointment
            doctor: Doctor being booked
            start: Requested start (timezone aware)
            end: Requested end (timezone aware)

        Raises:
            InvalidIntervalError: If ``end`` is not after ``start``
            PastBookingError: If ``start`` is not in the future
            DoctorUnavailableError: If the doctor is already booked
            DailyLimitExceededError: If the patient's daily cap is reached
        """
        if not start < end:
            raise InvalidIntervalError()

        if start <= self.clock():
            raise PastBookingError()

        conflicts = await self.detector.find_conflicts(doctor.id, start, end)
        if conflicts:
            logger.info(
                "booking_rejected_doctor_unavailable",
                doctor_id=str(doctor.id),
                conflicting_ids=[str(c.id) for c in conflicts],
            )
            raise DoctorUnavailableError()

        booked = await self.count_patient_appointments_on_day(patient, start)
        if booked >= self.config.max_appointments_per_patient_per_day:
            logger.info(
                "booking_rejected_daily_limit",
                patient_id=str(patient.id),
                booked=booked,
                limit=self.config.max_appointments_per_patient_per_day,
            )
            raise DailyLimitExceededError()
