import logging

from .dispatcher import PushTransport, build_test_message
from .metrics import reminder_test_notifications_total
from .schemas import ProbeResult
from .store import AppointmentStore

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "No appointments with FCM tokens found"


def run_manual_probe(store: AppointmentStore, transport: PushTransport) -> ProbeResult:
    """Send a test notification to the latest appointment holding a push token.

    Read-only with respect to the store: the appointment is not flagged.
    """
    logger.info("Manual test trigger called")
    appointment_id = None
    try:
        record = store.find_probe_candidate()
        if record is None:
            logger.info(NOT_FOUND_MESSAGE)
            return ProbeResult(outcome="not_found", error=NOT_FOUND_MESSAGE)

        appointment_id = record.id
        response = transport.send(build_test_message(record))
    except Exception as e:
        logger.exception("Test notification failed")
        return ProbeResult(outcome="failed", appointment_id=appointment_id, error=str(e))

    reminder_test_notifications_total.inc()
    logger.info("Test notification sent for appointment %s: %s", appointment_id, response)
    return ProbeResult(outcome="sent", appointment_id=appointment_id, response=response)
