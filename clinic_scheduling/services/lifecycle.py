"""Appointment status state machine."""

from enum import Enum

import structlog

from clinic_scheduling.core.clock import Clock, utc_now
from clinic_scheduling.core.exceptions import AlreadyCancelledError, InvalidTransitionError
from clinic_scheduling.schemas.appointments import Appointment, AppointmentStatus
from clinic_scheduling.services.cancellation_policy import CancellationPolicy

logger = structlog.get_logger(__name__)


class TransitionOrigin(str, Enum):
    """Who is driving a status change."""

    USER = "user"
    SWEEP = "sweep"


TERMINAL_STATUSES = frozenset(
    {AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW}
)

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {
            AppointmentStatus.CONFIRMED,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.COMPLETED,
            AppointmentStatus.NO_SHOW,
        }
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED}
    ),
}

# Targets that only the periodic sweeps may set
SWEEP_ONLY_TARGETS = frozenset({AppointmentStatus.NO_SHOW})


class AppointmentLifecycle:
    """Single entry point for every appointment status change.

    Moves into ``cancelled`` always pass through the cancellation policy,
    whichever public operation asked for them.
    """

    def __init__(self, cancellation_policy: CancellationPolicy, clock: Clock = utc_now):
        self.cancellation_policy = cancellation_policy
        self.clock = clock

    def check(
        self,
        appointment: Appointment,
        target: AppointmentStatus,
        origin: TransitionOrigin = TransitionOrigin.USER,
    ) -> None:
        """Raise if ``appointment`` may not move to ``target``."""
        current = appointment.status

        if current == AppointmentStatus.CANCELLED and target == AppointmentStatus.CANCELLED:
            raise AlreadyCancelledError()

        if current in TERMINAL_STATUSES:
            raise InvalidTransitionError(
                f"Appointment is {current.value} and can no longer change status"
            )

        if target not in ALLOWED_TRANSITIONS.get(current, frozenset()):
            raise InvalidTransitionError(
                f"Cannot change appointment status from {current.value} to {target.value}"
            )

        if target in SWEEP_ONLY_TARGETS and origin != TransitionOrigin.SWEEP:
            raise InvalidTransitionError(f"Status {target.value} is set automatically")

        if target == AppointmentStatus.CANCELLED:
            self.cancellation_policy.validate(appointment)

    def transition(
        self,
        appointment: Appointment,
        target: AppointmentStatus,
        origin: TransitionOrigin = TransitionOrigin.USER,
    ) -> Appointment:
        """
        Apply a status change.

        Args:
            appointment: Current appointment state
            target: Requested status
            origin: Whether a caller or a sweep requested the change

        Returns:
            New appointment state with timestamps updated; the input is not modified

        Raises:
            InvalidTransitionError: If the move is not allowed
            AlreadyCancelledError: If cancelling an already-cancelled appointment
            NoticeTooShortError: If cancelling inside the notice window
        """
        self.check(appointment, target, origin)

        now = self.clock()
        changes = {"status": target, "updated_at": now}
        if target == AppointmentStatus.CANCELLED:
            changes["cancelled_at"] = now

        logger.debug(
            "appointment_transition",
            appointment_id=str(appointment.id),
            from_status=appointment.status.value,
            to_status=target.value,
            origin=origin.value,
        )
        return appointment.model_copy(update=changes)
