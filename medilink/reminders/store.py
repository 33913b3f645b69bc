"""
Appointment store abstraction.

The scanner and the probe only need three capabilities from the store: select
due appointments, flag one as notified, and pick one appointment that holds a
push token. Backends: Firestore (production), SQL (SQLAlchemy) and in-memory.
"""
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from .config import settings
from .exceptions import FirebaseNotConfiguredError
from .schemas import AppointmentRecord, AppointmentStatus
from medilink.utils.timezone import to_utc_aware, utc_now

logger = logging.getLogger(__name__)


def is_eligible(record: AppointmentRecord, start: datetime, end: datetime) -> bool:
    """Pending, not yet notified, and scheduled inside ``[start, end]``."""
    return (
        record.status == AppointmentStatus.PENDING.value
        and not record.notification_scheduled
        and to_utc_aware(start) <= record.appointment_date <= to_utc_aware(end)
    )


class AppointmentStore(ABC):

    @abstractmethod
    def find_due(self, start: datetime, end: datetime) -> List[AppointmentRecord]:
        """Return eligible appointments scheduled in ``[start, end]``."""

    @abstractmethod
    def mark_notified(self, record_id: str) -> bool:
        """Flag an appointment as notified and stamp ``notificationSentAt``.

        Only applies while the flag is still unset. Returns False when another
        writer already flagged the appointment.
        """

    @abstractmethod
    def find_probe_candidate(self) -> Optional[AppointmentRecord]:
        """Return one appointment with a push token, latest appointment first."""


class InMemoryAppointmentStore(AppointmentStore):
    """Thread-safe dict-backed store for local runs and tests."""

    def __init__(self, records: Iterable[AppointmentRecord] = (), clock: Callable[[], datetime] = utc_now):
        self._records: Dict[str, AppointmentRecord] = {r.id: r for r in records}
        self._clock = clock
        self._lock = threading.Lock()

    def add(self, record: AppointmentRecord) -> None:
        with self._lock:
            self._records[record.id] = record

    def get(self, record_id: str) -> Optional[AppointmentRecord]:
        with self._lock:
            return self._records.get(record_id)

    def find_due(self, start: datetime, end: datetime) -> List[AppointmentRecord]:
        with self._lock:
            return [r.model_copy() for r in self._records.values() if is_eligible(r, start, end)]

    def mark_notified(self, record_id: str) -> bool:
        with self._lock:
            record = self._records.get(record_id)
            if record is None:
                raise KeyError(f"Appointment {record_id} not found")
            if record.notification_scheduled:
                return False
            self._records[record_id] = record.model_copy(
                update={"notification_scheduled": True, "notification_sent_at": self._clock()}
            )
            return True

    def find_probe_candidate(self) -> Optional[AppointmentRecord]:
        with self._lock:
            with_token = [r for r in self._records.values() if r.push_token is not None]
        if not with_token:
            return None
        return max(with_token, key=lambda r: r.appointment_date).model_copy()


class FirestoreAppointmentStore(AppointmentStore):
    """Appointments collection in Cloud Firestore, accessed through firebase_admin."""

    def __init__(self, client=None, collection: Optional[str] = None):
        from firebase_admin import firestore

        self._firestore = firestore
        self._client = client or firestore.client()
        self._collection = self._client.collection(collection or settings.FIRESTORE_COLLECTION)

    @staticmethod
    def _to_record(snapshot) -> AppointmentRecord:
        return AppointmentRecord.model_validate({"id": snapshot.id, **(snapshot.to_dict() or {})})

    def find_due(self, start: datetime, end: datetime) -> List[AppointmentRecord]:
        FieldFilter = self._firestore.FieldFilter
        query = (
            self._collection
            .where(filter=FieldFilter("appointmentDate", ">=", to_utc_aware(start)))
            .where(filter=FieldFilter("appointmentDate", "<=", to_utc_aware(end)))
            .where(filter=FieldFilter("notificationScheduled", "==", False))
            .where(filter=FieldFilter("status", "==", AppointmentStatus.PENDING.value))
        )
        return [self._to_record(doc) for doc in query.stream()]

    def mark_notified(self, record_id: str) -> bool:
        doc_ref = self._collection.document(record_id)
        firestore = self._firestore

        @firestore.transactional
        def _flag(transaction) -> bool:
            snapshot = doc_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise KeyError(f"Appointment {record_id} not found")
            if snapshot.get("notificationScheduled"):
                return False
            transaction.update(doc_ref, {
                "notificationScheduled": True,
                "notificationSentAt": firestore.SERVER_TIMESTAMP,
            })
            return True

        return _flag(self._client.transaction())

    def find_probe_candidate(self) -> Optional[AppointmentRecord]:
        # A != filter must be ordered on its own field first
        query = (
            self._collection
            .where(filter=self._firestore.FieldFilter("fcmToken", "!=", None))
            .order_by("fcmToken")
            .order_by("appointmentDate", direction=self._firestore.Query.DESCENDING)
            .limit(1)
        )
        for doc in query.stream():
            return self._to_record(doc)
        return None


_memory_store: Optional[InMemoryAppointmentStore] = None


def get_appointment_store() -> AppointmentStore:
    """Build the store selected by ``REMINDER_STORE_BACKEND``."""
    backend = settings.STORE_BACKEND
    if backend == "sql":
        from .repository import SqlAppointmentStore
        return SqlAppointmentStore()
    if backend == "memory":
        global _memory_store
        if _memory_store is None:
            logger.warning("Using in-memory appointment store; data is not persisted")
            _memory_store = InMemoryAppointmentStore()
        return _memory_store

    from .firebase import ensure_firebase_app
    if not ensure_firebase_app():
        raise FirebaseNotConfiguredError("Firebase app could not be initialized for Firestore access")
    return FirestoreAppointmentStore()
