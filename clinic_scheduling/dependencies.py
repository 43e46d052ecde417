"""FastAPI dependencies."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clinic_scheduling.config import SchedulingConfig, settings
from clinic_scheduling.core.clock import Clock, utc_now
from clinic_scheduling.core.firebase import is_firebase_initialized
from clinic_scheduling.core.locks import KeyedLock
from clinic_scheduling.database import get_session_factory
from clinic_scheduling.repositories.appointment_store import (
    AppointmentStore,
    SqlAppointmentStore,
)
from clinic_scheduling.services.appointment_service import AppointmentService
from clinic_scheduling.services.booking_policy import BookingPolicy
from clinic_scheduling.services.cancellation_policy import CancellationPolicy
from clinic_scheduling.services.lifecycle import AppointmentLifecycle
from clinic_scheduling.services.notification_service import (
    LogNotificationSender,
    NotificationDispatcher,
    NotificationSender,
    PushNotificationSender,
)
from clinic_scheduling.services.sweep_service import SweepService


@lru_cache
def get_booking_locks() -> KeyedLock:
    """Process-wide locks shared by every service instance."""
    return KeyedLock()


def get_scheduling_config() -> SchedulingConfig:
    return settings.scheduling


def get_clock() -> Clock:
    return utc_now


def get_store(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> AppointmentStore:
    return SqlAppointmentStore(session_factory)


def get_notification_sender(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> NotificationSender:
    """Push through Firebase when it is configured, otherwise log only."""
    if is_firebase_initialized():
        return PushNotificationSender(session_factory)
    return LogNotificationSender()


def get_lifecycle(
    config: Annotated[SchedulingConfig, Depends(get_scheduling_config)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> AppointmentLifecycle:
    return AppointmentLifecycle(CancellationPolicy(config, clock), clock)


def get_appointment_service(
    store: Annotated[AppointmentStore, Depends(get_store)],
    sender: Annotated[NotificationSender, Depends(get_notification_sender)],
    lifecycle: Annotated[AppointmentLifecycle, Depends(get_lifecycle)],
    locks: Annotated[KeyedLock, Depends(get_booking_locks)],
    config: Annotated[SchedulingConfig, Depends(get_scheduling_config)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> AppointmentService:
    return AppointmentService(
        store=store,
        booking_policy=BookingPolicy(store, config, clock),
        lifecycle=lifecycle,
        dispatcher=NotificationDispatcher(sender),
        locks=locks,
        clock=clock,
    )


def get_sweep_service(
    store: Annotated[AppointmentStore, Depends(get_store)],
    sender: Annotated[NotificationSender, Depends(get_notification_sender)],
    lifecycle: Annotated[AppointmentLifecycle, Depends(get_lifecycle)],
    locks: Annotated[KeyedLock, Depends(get_booking_locks)],
    config: Annotated[SchedulingConfig, Depends(get_scheduling_config)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> SweepService:
    return SweepService(store, lifecycle, sender, config, clock, locks)


# Type aliases for dependency injection
AppointmentServiceDep = Annotated[AppointmentService, Depends(get_appointment_service)]
SweepServiceDep = Annotated[SweepService, Depends(get_sweep_service)]
