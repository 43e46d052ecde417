from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from clinic_scheduling.config import SchedulingConfig
from clinic_scheduling.core.exceptions import NotificationDispatchError
from clinic_scheduling.core.locks import KeyedLock
from clinic_scheduling.database import get_session_factory
from clinic_scheduling.dependencies import (
    get_clock,
    get_notification_sender,
    get_scheduling_config,
)
from clinic_scheduling.main import app
from clinic_scheduling.models import combined_metadata
from clinic_scheduling.models.doctors import doctors
from clinic_scheduling.models.patients import patients
from clinic_scheduling.repositories.appointment_store import SqlAppointmentStore
from clinic_scheduling.schemas.appointments import Appointment, AppointmentStatus
from clinic_scheduling.schemas.doctors import Doctor
from clinic_scheduling.schemas.notifications import Notification
from clinic_scheduling.schemas.patients import Patient
from clinic_scheduling.services.appointment_service import AppointmentService
from clinic_scheduling.services.booking_policy import BookingPolicy
from clinic_scheduling.services.cancellation_policy import CancellationPolicy
from clinic_scheduling.services.lifecycle import AppointmentLifecycle
from clinic_scheduling.services.notification_service import (
    NotificationDispatcher,
    NotificationSender,
)
from clinic_scheduling.services.sweep_service import SweepService

# Monday morning, far enough from midnight that "today" is unambiguous in UTC
NOW = datetime(2026, 3, 2, 8, 0, tzinfo=UTC)


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class RecordingSender(NotificationSender):
    """Sender that keeps every notification in memory.

    Notifications for appointments listed in ``fail_for`` (or all of them when
    ``fail_all`` is set) raise NotificationDispatchError instead.
    """

    def __init__(self) -> None:
        self.sent: list[Notification] = []
        self.fail_all = False
        self.fail_for: set[UUID] = set()

    async def send(self, notification: Notification) -> None:
        if self.fail_all or notification.appointment_id in self.fail_for:
            raise NotificationDispatchError("push gateway unavailable")
        self.sent.append(notification)


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory bound to a throwaway SQLite database."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'scheduling.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(combined_metadata().create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def config() -> SchedulingConfig:
    return SchedulingConfig()


@pytest.fixture
def store(session_factory) -> SqlAppointmentStore:
    return SqlAppointmentStore(session_factory)


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def locks() -> KeyedLock:
    return KeyedLock()


@pytest.fixture
def lifecycle(config, clock) -> AppointmentLifecycle:
    return AppointmentLifecycle(CancellationPolicy(config, clock), clock)


@pytest.fixture
def service(store, config, clock, lifecycle, sender, locks) -> AppointmentService:
    return AppointmentService(
        store=store,
        booking_policy=BookingPolicy(store, config, clock),
        lifecycle=lifecycle,
        dispatcher=NotificationDispatcher(sender),
        locks=locks,
        clock=clock,
    )


@pytest.fixture
def sweeps(store, lifecycle, sender, config, clock, locks) -> SweepService:
    return SweepService(store, lifecycle, sender, config, clock, locks)


@pytest.fixture
def make_doctor(session_factory):
    """Insert a doctor row and return it as a read model."""

    async def _make(full_name: str = "Dr. Ada Lovelace", **overrides) -> Doctor:
        values = {
            "id": uuid4(),
            "full_name": full_name,
            "email": "ada@clinic.test",
            "specialty": "General Practice",
            "created_at": NOW,
            "updated_at": NOW,
            **overrides,
        }
        async with session_factory() as session:
            await session.execute(insert(doctors).values(**values))
            await session.commit()
        return Doctor.model_validate(values)

    return _make


@pytest.fixture
def make_patient(session_factory):
    """Insert a patient row and return it as a read model."""

    async def _make(full_name: str = "Grace Hopper", **overrides) -> Patient:
        values = {
            "id": uuid4(),
            "full_name": full_name,
            "email": "grace@example.test",
            "phone": "+15550100",
            "created_at": NOW,
            "updated_at": NOW,
            **overrides,
        }
        async with session_factory() as session:
            await session.execute(insert(patients).values(**values))
            await session.commit()
        return Patient.model_validate(values)

    return _make


@pytest.fixture
def make_appointment(store):
    """Store an appointment directly, bypassing the booking rules."""

    async def _make(
        patient: Patient,
        doctor: Doctor,
        start: datetime,
        end: datetime | None = None,
        status: AppointmentStatus = AppointmentStatus.SCHEDULED,
        **overrides,
    ) -> Appointment:
        values = {
            "id": uuid4(),
            "patient_id": patient.id,
            "doctor_id": doctor.id,
            "start_at": start,
            "end_at": end or start + timedelta(hours=1),
            "status": status,
            "created_at": NOW - timedelta(days=30),
            "updated_at": NOW - timedelta(days=30),
        }
        if status == AppointmentStatus.CANCELLED:
            values["cancelled_at"] = NOW - timedelta(days=1)
        values.update(overrides)
        return await store.save(Appointment(**values))

    return _make


@pytest_asyncio.fixture
async def dr_house(make_doctor) -> Doctor:
    return await make_doctor("Dr. Gregory House", email="house@clinic.test")


@pytest_asyncio.fixture
async def alice(make_patient) -> Patient:
    return await make_patient("Alice Smith", email="alice@example.test")


@pytest_asyncio.fixture
async def bob(make_patient) -> Patient:
    return await make_patient("Bob Jones", email="bob@example.test")


@pytest_asyncio.fixture
async def client(session_factory, clock, sender) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, wired to the test database, clock and sender."""
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_notification_sender] = lambda: sender
    app.dependency_overrides[get_scheduling_config] = lambda: SchedulingConfig()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
