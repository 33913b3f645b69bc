"""
Appointment reminder scan.

Every pass looks one hour ahead: appointments scheduled between 55 and 65
minutes from now that are still pending and have not been notified get a push
reminder, and are flagged so later passes skip them. A failed send leaves the
flag unset, so the appointment is retried on the next pass while it is still
inside the window.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from .config import settings
from .dispatcher import PushTransport, build_reminder_message
from .metrics import (
    reminder_scans_total,
    reminder_notifications_sent_total,
    reminder_notifications_failed_total,
    reminder_notifications_skipped_total,
    reminder_notifications_unmarked_total,
)
from .schemas import AppointmentRecord, RecordOutcome, ScanResult
from .store import AppointmentStore
from medilink.utils.timezone import format_short_datetime, get_zoneinfo, to_utc_aware, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReminderWindow:
    start_offset: timedelta
    end_offset: timedelta

    @classmethod
    def from_settings(cls) -> "ReminderWindow":
        return cls(
            start_offset=timedelta(minutes=settings.WINDOW_START_MINUTES),
            end_offset=timedelta(minutes=settings.WINDOW_END_MINUTES),
        )


def compute_window(now: datetime, window: Optional[ReminderWindow] = None) -> Tuple[datetime, datetime]:
    window = window or ReminderWindow.from_settings()
    now = to_utc_aware(now)
    return now + window.start_offset, now + window.end_offset


def notify_appointment(
    store: AppointmentStore,
    transport: PushTransport,
    record: AppointmentRecord,
    tz: Optional[ZoneInfo] = None,
) -> RecordOutcome:
    """Send one reminder and flag the appointment. Never raises."""
    if not record.push_token:
        logger.info("Skipping appointment %s - no FCM token", record.id)
        reminder_notifications_skipped_total.inc()
        return RecordOutcome(appointment_id=record.id, status="skipped")

    try:
        message = build_reminder_message(record, format_short_datetime(record.appointment_date, tz))
        message_id = transport.send(message)
    except Exception as e:
        logger.error("Error sending notification for appointment %s: %s", record.id, e)
        reminder_notifications_failed_total.inc()
        return RecordOutcome(appointment_id=record.id, status="failed", error=str(e))

    logger.info("Notification sent for appointment %s: %s", record.id, message_id)

    try:
        flagged = store.mark_notified(record.id)
    except Exception as e:
        logger.exception("Notification sent for appointment %s but marking it failed", record.id)
        reminder_notifications_unmarked_total.inc()
        return RecordOutcome(appointment_id=record.id, status="unmarked", message_id=message_id, error=str(e))

    if not flagged:
        logger.warning("Appointment %s was already marked as notified by another run", record.id)
        return RecordOutcome(appointment_id=record.id, status="already_handled", message_id=message_id)

    reminder_notifications_sent_total.inc()
    return RecordOutcome(appointment_id=record.id, status="sent", message_id=message_id)


def scan_and_notify(
    store: AppointmentStore,
    transport: PushTransport,
    now: Optional[datetime] = None,
    *,
    window: Optional[ReminderWindow] = None,
    max_workers: Optional[int] = None,
) -> ScanResult:
    """Run one reminder pass and return aggregated counts.

    Store query failures propagate to the caller. Per-appointment send and
    update failures are recorded in the result without aborting the batch.
    """
    now = to_utc_aware(now) if now else utc_now()
    start, end = compute_window(now, window)
    reminder_scans_total.inc()
    logger.info("Checking appointments between %s and %s", start.isoformat(), end.isoformat())

    try:
        due = store.find_due(start, end)
    except Exception:
        logger.exception("Error querying appointments for reminder window")
        raise

    if not due:
        logger.info("No appointments found in reminder window")
        return ScanResult(window_start=start, window_end=end)

    logger.info("Found %d appointment(s) to notify", len(due))

    tz = get_zoneinfo()
    workers = max_workers or settings.SCAN_MAX_WORKERS or len(due)
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="reminder") as executor:
        futures = [executor.submit(notify_appointment, store, transport, record, tz) for record in due]
        outcomes = [future.result() for future in futures]

    result = ScanResult.from_outcomes(start, end, outcomes)
    logger.info(
        "Reminder check complete: %d sent, %d failed, %d skipped, %d unmarked",
        result.successful, result.failed, result.skipped, result.unmarked,
    )
    return result
