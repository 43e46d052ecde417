"""Periodic sweeps over the appointment store."""

import calendar
from datetime import datetime, timedelta

import structlog

from clinic_scheduling.config import SchedulingConfig
from clinic_scheduling.core.clock import Clock, utc_now
from clinic_scheduling.core.exceptions import RecipientUnreachableError
from clinic_scheduling.core.locks import KeyedLock
from clinic_scheduling.repositories.appointment_store import AppointmentStore
from clinic_scheduling.schemas.appointments import Appointment, AppointmentStatus
from clinic_scheduling.schemas.sweeps import SweepName, SweepResult
from clinic_scheduling.services.lifecycle import AppointmentLifecycle, TransitionOrigin
from clinic_scheduling.services.notification_service import (
    NotificationDispatcher,
    NotificationSender,
    build_reminder,
)

logger = structlog.get_logger(__name__)


def months_before(moment: datetime, months: int) -> datetime:
    """Return ``moment`` shifted back by calendar months, clamping the day of month."""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class SweepService:
    """Reminder, no-show and cleanup sweeps.

    Each appointment is handled as its own unit of work: a failure is logged
    and counted, and the rest of the batch carries on.
    """

    def __init__(
        self,
        store: AppointmentStore,
        lifecycle: AppointmentLifecycle,
        sender: NotificationSender,
        config: SchedulingConfig,
        clock: Clock = utc_now,
        locks: KeyedLock | None = None,
    ):
        self.store = store
        self.lifecycle = lifecycle
        self.sender = sender
        self.dispatcher = NotificationDispatcher(sender)
        self.config = config
        self.clock = clock
        self.locks = locks or KeyedLock()

    async def run(self, sweep: SweepName) -> SweepResult:
        """Run the named sweep once."""
        runners = {
            SweepName.REMINDERS: self.run_reminder_sweep,
            SweepName.NO_SHOWS: self.run_no_show_sweep,
            SweepName.CLEANUP: self.run_cleanup_sweep,
        }
        return await runners[sweep]()

    async def _send_reminder(self, appointment: Appointment, now: datetime) -> bool:
        async with self.locks.acquire(("appointment", appointment.id)):
            current = await self.store.find_appointment_by_id(appointment.id)
            if (
                current is None
                or current.status != AppointmentStatus.SCHEDULED
                or current.reminder_sent_at is not None
            ):
                return False

            patient = await self.store.find_patient_by_id(current.patient_id)
            if patient is None or not patient.has_contact_email:
                logger.warning(
                    "reminder_skipped_no_contact",
                    appointment_id=str(current.id),
                    patient_id=str(current.patient_id),
                )
                return False

            doctor = await self.store.find_doctor_by_id(current.doctor_id)
            try:
                await self.sender.send(build_reminder(current, patient, doctor))
            except RecipientUnreachableError as e:
                logger.warning(
                    "reminder_skipped_unreachable",
                    appointment_id=str(current.id),
                    patient_id=str(current.patient_id),
                    error=str(e),
                )
                return False
            await self.store.save(
                current.model_copy(update={"reminder_sent_at": now}),
                expected_status=current.status,
            )

        logger.info("reminder_sent", appointment_id=str(current.id))
        return True

    async def run_reminder_sweep(self) -> SweepResult:
        """
        Send reminders for scheduled appointments starting inside the reminder window.

        Appointments already reminded are left out, so re-running the sweep
        does not send duplicates.
        """
        now = self.clock()
        window_start = now + timedelta(hours=self.config.reminder_window_start_hours)
        window_end = now + timedelta(hours=self.config.reminder_window_end_hours)

        upcoming = await self.store.find_appointments_by_status_and_start_between(
            AppointmentStatus.SCHEDULED, window_start, window_end
        )
        pending = [a for a in upcoming if a.reminder_sent_at is None]
        result = SweepResult(sweep=SweepName.REMINDERS, selected=len(pending))
        logger.info("reminder_sweep_started", selected=len(pending))

        for appointment in pending:
            try:
                if await self._send_reminder(appointment, now):
                    result.succeeded += 1
                else:
                    result.skipped += 1
            except Exception as e:
                logger.error(
                    "reminder_failed",
                    appointment_id=str(appointment.id),
                    error=str(e),
                )
                result.failed += 1

        logger.info("sweep_completed", **result.model_dump(mode="json"))
        return result

    async def _mark_no_show(self, appointment: Appointment) -> bool:
        async with self.locks.acquire(("appointment", appointment.id)):
            current = await self.store.find_appointment_by_id(appointment.id)
            if current is None or current.status != AppointmentStatus.SCHEDULED:
                return False
            updated = self.lifecycle.transition(
                current, AppointmentStatus.NO_SHOW, TransitionOrigin.SWEEP
            )
            saved = await self.store.save(updated, expected_status=current.status)

        logger.info("no_show_marked", appointment_id=str(saved.id))
        patient = await self.store.find_patient_by_id(saved.patient_id)
        doctor = await self.store.find_doctor_by_id(saved.doctor_id)
        await self.dispatcher.notify_status_changed(
            saved, patient, doctor, AppointmentStatus.SCHEDULED
        )
        return True

    async def run_no_show_sweep(self) -> SweepResult:
        """Mark scheduled appointments that ended more than the grace period ago as no-shows."""
        cutoff = self.clock() - timedelta(hours=self.config.no_show_grace_hours)
        missed = await self.store.find_appointments_by_status_and_end_before(
            AppointmentStatus.SCHEDULED, cutoff
        )
        result = SweepResult(sweep=SweepName.NO_SHOWS, selected=len(missed))
        if missed:
            logger.info("no_show_sweep_started", selected=len(missed))

        for appointment in missed:
            try:
                if await self._mark_no_show(appointment):
                    result.succeeded += 1
                else:
                    result.skipped += 1
            except Exception as e:
                logger.error(
                    "no_show_marking_failed",
                    appointment_id=str(appointment.id),
                    error=str(e),
                )
                result.failed += 1

        logger.info("sweep_completed", **result.model_dump(mode="json"))
        return result

    async def run_cleanup_sweep(self) -> SweepResult:
        """
        Count cancelled appointments older than the retention period.

        Read-only: archiving or deleting them belongs to a separate archival job.
        """
        cutoff = months_before(self.clock(), self.config.cleanup_retention_months)
        old_cancelled = await self.store.find_appointments_by_status_and_start_before(
            AppointmentStatus.CANCELLED, cutoff
        )
        result = SweepResult(sweep=SweepName.CLEANUP, selected=len(old_cancelled))
        logger.info(
            "old_cancelled_appointments_found",
            count=len(old_cancelled),
            retention_months=self.config.cleanup_retention_months,
            cutoff=cutoff.isoformat(),
        )
        logger.info("sweep_completed", **result.model_dump(mode="json"))
        return result
