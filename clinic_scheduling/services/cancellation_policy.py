"""Minimum-notice rule for cancellations."""

import structlog

from clinic_scheduling.config import SchedulingConfig
from clinic_scheduling.core.clock import Clock, utc_now
from clinic_scheduling.core.exceptions import AlreadyCancelledError, NoticeTooShortError
from clinic_scheduling.schemas.appointments import Appointment, AppointmentStatus

logger = structlog.get_logger(__name__)


class CancellationPolicy:
    """Decides whether an appointment may still be cancelled."""

    def __init__(self, config: SchedulingConfig, clock: Clock = utc_now):
        self.config = config
        self.clock = clock

    def hours_until_start(self, appointment: Appointment) -> int:
        """Whole hours from now until the appointment starts, truncated toward zero."""
        delta = appointment.start_at - self.clock()
        return int(delta.total_seconds() / 3600)

    def validate(self, appointment: Appointment) -> None:
        """
        Check the cancellation rules.

        Raises:
            AlreadyCancelledError: If the appointment is already cancelled
            NoticeTooShortError: If less than the configured notice remains
        """
        if appointment.status == AppointmentStatus.CANCELLED:
            raise AlreadyCancelledError()

        hours = self.hours_until_start(appointment)
        if hours < self.config.cancellation_notice_hours:
            logger.info(
                "cancellation_rejected",
                appointment_id=str(appointment.id),
                hours_until_start=hours,
                notice_hours=self.config.cancellation_notice_hours,
            )
            raise NoticeTooShortError(self.config.cancellation_notice_hours)
