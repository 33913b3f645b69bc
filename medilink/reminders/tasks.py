from celery import shared_task
from celery.utils.log import get_task_logger

from .celery_app import celery_app  # noqa: F401  registers the app for shared tasks
from .dispatcher import get_push_transport
from .probe import run_manual_probe
from .scanner import scan_and_notify
from .store import get_appointment_store

logger = get_task_logger(__name__)


@shared_task(name="reminders.send_appointment_reminders")
def send_appointment_reminders_task() -> dict:
    """Scheduled every 5 minutes by beat. Query failures fail the task."""
    logger.info("Running appointment reminder check...")
    result = scan_and_notify(get_appointment_store(), get_push_transport())
    return result.summary()


@shared_task(name="reminders.test_appointment_reminder")
def test_appointment_reminder_task() -> dict:
    """Send one test notification; returns the same body as the HTTP probe."""
    result = run_manual_probe(get_appointment_store(), get_push_transport())
    return result.to_response_body()
