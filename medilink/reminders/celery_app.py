from celery import Celery
from kombu import Queue
from .config import settings


celery_app = Celery(
    "reminders",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

celery_app.conf.update(
    task_acks_late=True,
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    worker_prefetch_multiplier=1,
    task_default_queue=settings.CELERY_QUEUE,
    task_queues=(Queue(settings.CELERY_QUEUE, durable=True),),
    include=["medilink.reminders.tasks"],
    timezone="UTC",
)

# Celery Beat schedule for periodic reminder scans
celery_app.conf.beat_schedule = {
    "send-appointment-reminders": {
        "task": "reminders.send_appointment_reminders",
        "schedule": settings.SCAN_INTERVAL_SECONDS,
    },
}
