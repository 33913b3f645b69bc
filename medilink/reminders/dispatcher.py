import logging
from abc import ABC, abstractmethod
from typing import Optional

from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging

from .config import settings
from .exceptions import PushDeliveryError
from .firebase import ensure_firebase_app
from .schemas import AndroidHints, AppointmentRecord, PushMessage
from medilink.utils.timezone import isoformat_utc

logger = logging.getLogger(__name__)

REMINDER_TITLE = "🏥 Upcoming Appointment Reminder"
TEST_TITLE = "🧪 Test Appointment Reminder"
FALLBACK_DOCTOR_NAME = "your doctor"


def build_reminder_message(record: AppointmentRecord, formatted_time: str) -> PushMessage:
    """One-hour reminder for an appointment that carries a push token."""
    doctor = record.doctor_name or FALLBACK_DOCTOR_NAME
    return PushMessage(
        token=record.push_token,
        title=REMINDER_TITLE,
        body=f"You have an appointment with {doctor} in 1 hour ({formatted_time})",
        data={
            "appointmentId": record.id,
            "doctorName": record.doctor_name or "",
            "appointmentDate": isoformat_utc(record.appointment_date),
        },
        android=AndroidHints(
            priority="high",
            channel_id=settings.ANDROID_CHANNEL_ID,
            notification_priority="max",
            sound="default",
        ),
    )


def build_test_message(record: AppointmentRecord) -> PushMessage:
    doctor = record.doctor_name or FALLBACK_DOCTOR_NAME
    return PushMessage(
        token=record.push_token,
        title=TEST_TITLE,
        body=f"Test notification for appointment with {doctor}",
        data={"appointmentId": record.id, "test": "true"},
    )


def to_fcm_message(message: PushMessage) -> messaging.Message:
    android = None
    if message.android is not None:
        android = messaging.AndroidConfig(
            priority=message.android.priority,
            notification=messaging.AndroidNotification(
                channel_id=message.android.channel_id,
                priority=message.android.notification_priority,
                sound=message.android.sound,
            ),
        )
    return messaging.Message(
        token=message.token,
        notification=messaging.Notification(title=message.title, body=message.body),
        data=dict(message.data),
        android=android,
    )


class PushTransport(ABC):

    @abstractmethod
    def send(self, message: PushMessage) -> str:
        """Send one message and return the transport's message id.

        Raises PushDeliveryError when the message is rejected or undeliverable.
        """


class FcmTransport(PushTransport):
    """Firebase Cloud Messaging through firebase_admin."""

    def __init__(self, dry_run: Optional[bool] = None):
        self.dry_run = settings.FCM_DRY_RUN if dry_run is None else dry_run

    def send(self, message: PushMessage) -> str:
        if not ensure_firebase_app():
            raise PushDeliveryError("Firebase app is not initialized")
        try:
            fcm_message = to_fcm_message(message)
            logger.debug("Sending FCM message to token %s...", message.token[:20])
            return messaging.send(fcm_message, dry_run=self.dry_run)
        except firebase_exceptions.FirebaseError as e:
            raise PushDeliveryError(str(e), code=getattr(e, "code", None)) from e
        except ValueError as e:
            # Raised by firebase_admin for malformed messages or tokens
            raise PushDeliveryError(str(e), code="invalid-argument") from e


def get_push_transport() -> PushTransport:
    return FcmTransport()
