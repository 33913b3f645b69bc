from datetime import datetime
from typing import Callable, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import func, select, update

from .models import Appointment
from .schemas import AppointmentRecord, AppointmentStatus
from .store import AppointmentStore
from medilink.utils.timezone import to_utc_aware, to_utc_naive


def _db_time(db: Session, dt: datetime) -> datetime:
    # SQLite drops tzinfo on write, so compare against UTC-naive values there
    if db.get_bind().dialect.name == "sqlite":
        return to_utc_naive(dt)
    return to_utc_aware(dt)


def ensure_appointment_table(bind) -> None:
    """Create ``reminder_appointments`` on a database that does not have it yet."""
    Appointment.__table__.create(bind=bind, checkfirst=True)


def to_record(row: Appointment) -> AppointmentRecord:
    return AppointmentRecord(
        id=str(row.id),
        appointment_date=row.appointment_date,
        doctor_name=row.doctor_name,
        status=row.status,
        notification_scheduled=bool(row.notification_scheduled),
        notification_sent_at=row.notification_sent_at,
        push_token=row.fcm_token,
    )


def create_appointment(db: Session, record: AppointmentRecord) -> Appointment:
    appointment = Appointment(
        id=record.id,
        appointment_date=_db_time(db, record.appointment_date),
        doctor_name=record.doctor_name,
        status=record.status,
        notification_scheduled=record.notification_scheduled,
        notification_sent_at=_db_time(db, record.notification_sent_at) if record.notification_sent_at else None,
        fcm_token=record.push_token,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


def get_appointment(db: Session, appointment_id: str) -> Optional[Appointment]:
    return db.get(Appointment, appointment_id)


def get_due_appointments(db: Session, start: datetime, end: datetime) -> List[Appointment]:
    stmt = (
        select(Appointment)
        .where(Appointment.appointment_date >= _db_time(db, start))
        .where(Appointment.appointment_date <= _db_time(db, end))
        .where(Appointment.notification_scheduled == False)  # noqa: E712
        .where(Appointment.status == AppointmentStatus.PENDING.value)
        .order_by(Appointment.appointment_date.asc())
    )
    return list(db.execute(stmt).scalars())


def mark_notified(db: Session, appointment_id: str) -> bool:
    """Conditionally flag an appointment; False when it was already flagged."""
    result = db.execute(
        update(Appointment)
        .where(Appointment.id == appointment_id)
        .where(Appointment.notification_scheduled == False)  # noqa: E712
        .values(notification_scheduled=True, notification_sent_at=func.now(), updated_at=func.now())
    )
    db.commit()
    if result.rowcount:
        return True
    if get_appointment(db, appointment_id) is None:
        raise KeyError(f"Appointment {appointment_id} not found")
    return False


def get_latest_appointment_with_token(db: Session) -> Optional[Appointment]:
    stmt = (
        select(Appointment)
        .where(Appointment.fcm_token.is_not(None))
        .order_by(Appointment.appointment_date.desc())
        .limit(1)
    )
    return db.execute(stmt).scalars().first()


class SqlAppointmentStore(AppointmentStore):
    """AppointmentStore over the ``reminder_appointments`` table, one session per call."""

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        if session_factory is None:
            from medilink.db.session import SessionLocal
            session_factory = SessionLocal
        self._session_factory = session_factory
        db = session_factory()
        try:
            ensure_appointment_table(db.get_bind())
        finally:
            db.close()

    def find_due(self, start: datetime, end: datetime) -> List[AppointmentRecord]:
        db = self._session_factory()
        try:
            return [to_record(row) for row in get_due_appointments(db, start, end)]
        finally:
            db.close()

    def mark_notified(self, record_id: str) -> bool:
        db = self._session_factory()
        try:
            return mark_notified(db, record_id)
        finally:
            db.close()

    def find_probe_candidate(self) -> Optional[AppointmentRecord]:
        db = self._session_factory()
        try:
            row = get_latest_appointment_with_token(db)
            return to_record(row) if row else None
        finally:
            db.close()
