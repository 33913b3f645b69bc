from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from medilink.core.config import settings as core_settings
from medilink.db.base import Base
from medilink.reminders.dispatcher import PushTransport
from medilink.reminders.exceptions import PushDeliveryError
from medilink.reminders.repository import SqlAppointmentStore, create_appointment
from medilink.reminders.schemas import AppointmentRecord, PushMessage
from medilink.reminders.store import InMemoryAppointmentStore

NOW = datetime(2026, 10, 19, 10, 0, 0, tzinfo=timezone.utc)


class RecordingTransport(PushTransport):
    """Push transport double: records every message, fails for chosen tokens."""

    def __init__(self, failing_tokens=()):
        self.sent: List[PushMessage] = []
        self.failing_tokens = set(failing_tokens)

    def send(self, message: PushMessage) -> str:
        if message.token in self.failing_tokens:
            raise PushDeliveryError("Requested entity was not found.", code="NOT_FOUND")
        self.sent.append(message)
        return f"projects/medilink/messages/{len(self.sent)}"

    @property
    def tokens(self) -> List[str]:
        return [m.token for m in self.sent]


def make_record(
    record_id: str,
    minutes_ahead: float = 60,
    *,
    status: str = "pending",
    notified: bool = False,
    token: Optional[str] = "default",
    doctor: Optional[str] = "Dr. Smith",
    now: datetime = NOW,
) -> AppointmentRecord:
    return AppointmentRecord(
        id=record_id,
        appointment_date=now + timedelta(minutes=minutes_ahead),
        doctor_name=doctor,
        status=status,
        notification_scheduled=notified,
        push_token=f"token-{record_id}" if token == "default" else token,
    )


@pytest.fixture(autouse=True)
def utc_display_timezone(monkeypatch):
    monkeypatch.setattr(core_settings, "DEFAULT_TIMEZONE", "UTC")


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def memory_store() -> InMemoryAppointmentStore:
    return InMemoryAppointmentStore(clock=lambda: NOW)


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'appointments.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def store_with(request, session_factory):
    """Build a store of each backend seeded with the given records."""

    def _build(*records: AppointmentRecord):
        if request.param == "memory":
            return InMemoryAppointmentStore(records, clock=lambda: NOW)
        db = session_factory()
        try:
            for record in records:
                create_appointment(db, record)
        finally:
            db.close()
        return SqlAppointmentStore(session_factory)

    _build.backend = request.param
    return _build


def flags(store, *record_ids: str) -> Dict[str, bool]:
    """Current notification flag of each record, read back through the store."""
    if isinstance(store, InMemoryAppointmentStore):
        return {rid: store.get(rid).notification_scheduled for rid in record_ids}
    from medilink.reminders.repository import get_appointment

    db = store._session_factory()
    try:
        return {rid: bool(get_appointment(db, rid).notification_scheduled) for rid in record_ids}
    finally:
        db.close()
