from prometheus_client import Counter


reminder_scans_total = Counter(
    "reminder_scans_total",
    "Total reminder scan cycles",
)

reminder_notifications_sent_total = Counter(
    "reminder_notifications_sent_total",
    "Total appointment reminders sent and marked",
)

reminder_notifications_failed_total = Counter(
    "reminder_notifications_failed_total",
    "Total appointment reminders the push transport failed to send",
)

reminder_notifications_skipped_total = Counter(
    "reminder_notifications_skipped_total",
    "Total eligible appointments skipped for lack of a push token",
)

reminder_notifications_unmarked_total = Counter(
    "reminder_notifications_unmarked_total",
    "Total reminders sent whose appointment could not be marked as notified",
)

reminder_test_notifications_total = Counter(
    "reminder_test_notifications_total",
    "Total test notifications sent through the manual probe",
)
