"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    code = "error"

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    code = "not_found"

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class SchedulingError(AppException):
    """Base class for rejections raised by the scheduling rules.

    Every subclass carries a stable ``code`` so callers can render an
    actionable message without parsing ``message``.
    """

    def __init__(self, message: str, status_code: int = 409):
        super().__init__(message, status_code=status_code)


class InvalidIntervalError(SchedulingError):
    """Requested end time is not after the start time."""

    code = "invalid_interval"

    def __init__(self, message: str = "End time must be after start time"):
        super().__init__(message, status_code=422)


class PastBookingError(SchedulingError):
    """Requested start time is not in the future."""

    code = "past_booking"

    def __init__(self, message: str = "Cannot book appointments in the past"):
        super().__init__(message, status_code=422)


class DoctorUnavailableError(SchedulingError):
    """Doctor already has an overlapping appointment."""

    code = "doctor_unavailable"

    def __init__(self, message: str = "Doctor is not available at the requested time"):
        super().__init__(message, status_code=409)


class DailyLimitExceededError(SchedulingError):
    """Patient already holds the maximum number of appointments for that day."""

    code = "daily_limit_exceeded"

    def __init__(
        self,
        message: str = "Patient has reached the maximum number of appointments for this day",
    ):
        super().__init__(message, status_code=409)


class NoticeTooShortError(SchedulingError):
    """Cancellation requested inside the minimum notice window."""

    code = "notice_too_short"

    def __init__(self, notice_hours: int):
        self.notice_hours = notice_hours
        super().__init__(
            f"Cannot cancel appointment. Minimum notice period is {notice_hours} hours",
            status_code=422,
        )


class InvalidTransitionError(SchedulingError):
    """Requested status change is not allowed by the appointment lifecycle."""

    code = "invalid_transition"

    def __init__(self, message: str = "Invalid appointment status transition"):
        super().__init__(message, status_code=409)


class AlreadyCancelledError(InvalidTransitionError):
    """Appointment is already cancelled."""

    code = "already_cancelled"

    def __init__(self, message: str = "Appointment is already cancelled"):
        super().__init__(message)


class NotificationDispatchError(AppException):
    """A notification could not be delivered.

    Never surfaced to callers of booking, cancellation or status operations.
    """

    code = "notification_dispatch_failed"

    def __init__(self, message: str = "Notification dispatch failed"):
        super().__init__(message, status_code=502)


class RecipientUnreachableError(NotificationDispatchError):
    """Recipient has no channel the notification could be delivered on."""

    code = "recipient_unreachable"

    def __init__(self, message: str = "Recipient has no active delivery channel"):
        super().__init__(message)
