"""Notification dispatch for appointment events."""

import asyncio
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from uuid import UUID, uuid4

import structlog
from firebase_admin import messaging
from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clinic_scheduling.core.exceptions import NotificationDispatchError, RecipientUnreachableError
from clinic_scheduling.models.notifications import notifications
from clinic_scheduling.models.push_tokens import push_tokens
from clinic_scheduling.schemas.appointments import Appointment, AppointmentStatus
from clinic_scheduling.schemas.doctors import Doctor
from clinic_scheduling.schemas.notifications import Notification, NotificationType
from clinic_scheduling.schemas.patients import Patient

logger = structlog.get_logger(__name__)


def _format_time(value: datetime) -> str:
    return value.strftime("%b %d, %I:%M %p %Z")


class NotificationSender(ABC):
    """Delivers a single notification. Raises on failure."""

    @abstractmethod
    async def send(self, notification: Notification) -> None:
        """Deliver ``notification`` or raise NotificationDispatchError."""


class LogNotificationSender(NotificationSender):
    """Sender that only writes a structured log line."""

    async def send(self, notification: Notification) -> None:
        logger.info(
            "notification_logged",
            recipient_id=str(notification.recipient_id),
            recipient_email=notification.recipient_email,
            notification_type=notification.notification_type.value,
            title=notification.title,
            appointment_id=str(notification.appointment_id)
            if notification.appointment_id
            else None,
        )


class PushNotificationSender(NotificationSender):
    """Stores notifications and pushes them to the recipient's devices via FCM."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """Initialize sender with a session factory."""
        self.session_factory = session_factory

    @staticmethod
    def send_push_notification(
        tokens: list[str],
        title: str,
        body: str,
        data: dict[str, str] | None = None,
    ) -> tuple[int, int]:
        """
        Send push notification to multiple devices.

        Args:
            tokens: List of FCM tokens
            title: Notification title
            body: Notification body
            data: Optional data payload

        Returns:
            Tuple of (success_count, failure_count)
        """
        message = messaging.MulticastMessage(
            notification=messaging.Notification(
                title=title,
                body=body,
            ),
            data=data or {},
            tokens=tokens,
            apns=messaging.APNSConfig(
                payload=messaging.APNSPayload(
                    aps=messaging.Aps(
                        sound="default",
                        badge=1,
                    ),
                ),
            ),
            android=messaging.AndroidConfig(
                priority="high",
                notification=messaging.AndroidNotification(
                    sound="default",
                    priority="high",
                ),
            ),
        )

        response = messaging.send_each_for_multicast(message)

        logger.info(
            "push_notification_sent",
            title=title,
            success_count=response.success_count,
            failure_count=response.failure_count,
        )

        return response.success_count, response.failure_count

    async def _set_status(
        self,
        session: AsyncSession,
        notification_id: UUID,
        status: str,
        failure_reason: str | None = None,
    ) -> None:
        await session.execute(
            update(notifications)
            .where(notifications.c.id == notification_id)
            .values(
                status=status,
                failure_reason=failure_reason,
                sent_at=datetime.now(UTC) if status == "sent" else None,
            )
        )
        await session.commit()

    async def send(self, notification: Notification) -> None:
        """
        Record the notification and push it to every active device of the recipient.

        Raises:
            RecipientUnreachableError: If the recipient has no active device
            NotificationDispatchError: If FCM rejects the whole batch
        """
        notification_id = uuid4()
        data = {
            "type": notification.notification_type.value,
            **notification.data,
        }
        if notification.appointment_id:
            data["appointment_id"] = str(notification.appointment_id)

        async with self.session_factory() as session:
            await session.execute(
                insert(notifications).values(
                    id=notification_id,
                    recipient_id=notification.recipient_id,
                    appointment_id=notification.appointment_id,
                    title=notification.title,
                    body=notification.body,
                    notification_type=notification.notification_type.value,
                    data=data,
                    status="pending",
                    created_at=datetime.now(UTC),
                )
            )
            await session.commit()

            result = await session.execute(
                select(push_tokens.c.fcm_token).where(
                    push_tokens.c.owner_id == notification.recipient_id,
                    push_tokens.c.is_active == True,  # noqa: E712
                )
            )
            tokens = [row.fcm_token for row in result.fetchall()]

            if not tokens:
                logger.warning(
                    "no_active_tokens_for_recipient",
                    recipient_id=str(notification.recipient_id),
                )
                await self._set_status(
                    session, notification_id, "failed", "No active tokens for recipient"
                )
                raise RecipientUnreachableError("No active tokens for recipient")

            try:
                success_count, _ = await asyncio.to_thread(
                    self.send_push_notification,
                    tokens=tokens,
                    title=notification.title,
                    body=notification.body,
                    data=data,
                )
            except Exception as e:
                await self._set_status(session, notification_id, "failed", str(e))
                raise NotificationDispatchError(f"Push delivery failed: {e}") from e

            if success_count == 0:
                await self._set_status(
                    session, notification_id, "failed", "All devices rejected the message"
                )
                raise NotificationDispatchError("All devices rejected the message")

            await self._set_status(session, notification_id, "sent")


class NotificationDispatcher:
    """Best-effort delivery of appointment notifications.

    Failures are logged and swallowed; they never affect the operation that
    triggered the notification.
    """

    def __init__(self, sender: NotificationSender):
        self.sender = sender

    async def dispatch(self, notification: Notification) -> bool:
        """Send one notification. Returns False if delivery failed."""
        try:
            await self.sender.send(notification)
        except Exception as e:
            logger.warning(
                "notification_dispatch_failed",
                recipient_id=str(notification.recipient_id),
                notification_type=notification.notification_type.value,
                appointment_id=str(notification.appointment_id)
                if notification.appointment_id
                else None,
                error=str(e),
            )
            return False
        return True

    async def dispatch_all(self, batch: list[Notification]) -> int:
        """Send each notification independently. Returns the number delivered."""
        delivered = 0
        for notification in batch:
            if await self.dispatch(notification):
                delivered += 1
        return delivered

    async def notify_created(
        self, appointment: Appointment, patient: Patient, doctor: Doctor
    ) -> int:
        """Tell the patient and the doctor that an appointment was booked."""
        when = _format_time(appointment.start_at)
        return await self.dispatch_all(
            [
                Notification(
                    recipient_id=patient.id,
                    recipient_email=patient.email,
                    notification_type=NotificationType.APPOINTMENT_CREATED,
                    title="Appointment Scheduled",
                    body=f"Your appointment with {doctor.full_name} is scheduled for {when}",
                    appointment_id=appointment.id,
                ),
                Notification(
                    recipient_id=doctor.id,
                    recipient_email=doctor.email,
                    notification_type=NotificationType.APPOINTMENT_CREATED,
                    title="New Appointment",
                    body=f"You have a new appointment with {patient.full_name} on {when}",
                    appointment_id=appointment.id,
                ),
            ]
        )

    async def notify_cancelled(
        self, appointment: Appointment, patient: Patient | None, doctor: Doctor | None
    ) -> int:
        """Tell the patient and the doctor that an appointment was cancelled."""
        when = _format_time(appointment.start_at)
        batch = []
        if patient:
            batch.append(
                Notification(
                    recipient_id=patient.id,
                    recipient_email=patient.email,
                    notification_type=NotificationType.APPOINTMENT_CANCELLED,
                    title="Appointment Cancelled",
                    body=f"Your appointment scheduled for {when} has been cancelled",
                    appointment_id=appointment.id,
                )
            )
        if doctor:
            patient_name = patient.full_name if patient else "a patient"
            batch.append(
                Notification(
                    recipient_id=doctor.id,
                    recipient_email=doctor.email,
                    notification_type=NotificationType.APPOINTMENT_CANCELLED,
                    title="Appointment Cancelled",
                    body=f"Appointment with {patient_name} on {when} has been cancelled",
                    appointment_id=appointment.id,
                )
            )
        return await self.dispatch_all(batch)

    async def notify_status_changed(
        self,
        appointment: Appointment,
        patient: Patient | None,
        doctor: Doctor | None,
        old_status: AppointmentStatus,
    ) -> int:
        """Tell the patient and the doctor about a status change."""
        new_status = appointment.status.value.replace("_", " ")
        data = {"old_status": old_status.value, "new_status": appointment.status.value}
        batch = [
            Notification(
                recipient_id=recipient.id,
                recipient_email=recipient.email,
                notification_type=NotificationType.APPOINTMENT_STATUS_CHANGED,
                title="Appointment Updated",
                body=f"Appointment on {_format_time(appointment.start_at)} is now {new_status}",
                appointment_id=appointment.id,
                data=data,
            )
            for recipient in (patient, doctor)
            if recipient is not None
        ]
        return await self.dispatch_all(batch)


def build_reminder(
    appointment: Appointment, patient: Patient, doctor: Doctor | None
) -> Notification:
    """Reminder addressed to the patient of an upcoming appointment."""
    with_whom = f" with {doctor.full_name}" if doctor else ""
    return Notification(
        recipient_id=patient.id,
        recipient_email=patient.email,
        notification_type=NotificationType.APPOINTMENT_REMINDER,
        title="Appointment Reminder",
        body=f"Reminder: your appointment{with_whom} is on {_format_time(appointment.start_at)}",
        appointment_id=appointment.id,
    )
