"""
Schemas for appointment reminders, push messages and handler results
"""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from medilink.utils.timezone import to_utc_aware


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AppointmentRecord(BaseModel):
    """Snapshot of one appointment document.

    Field aliases follow the document field names written by the booking app,
    so ``AppointmentRecord.model_validate({"id": doc.id, **doc.to_dict()})``
    works on raw store data.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    appointment_date: datetime = Field(alias="appointmentDate")
    doctor_name: Optional[str] = Field(default=None, alias="doctorName")
    status: str = AppointmentStatus.PENDING.value
    notification_scheduled: bool = Field(default=False, alias="notificationScheduled")
    notification_sent_at: Optional[datetime] = Field(default=None, alias="notificationSentAt")
    push_token: Optional[str] = Field(default=None, alias="fcmToken")

    @field_validator("appointment_date", "notification_sent_at")
    @classmethod
    def _normalize_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_utc_aware(v)

    @field_validator("status", mode="before")
    @classmethod
    def _status_value(cls, v):
        if isinstance(v, AppointmentStatus):
            return v.value
        return v


class AndroidHints(BaseModel):
    """Android delivery hints: high priority, sound enabled."""
    priority: Literal["high", "normal"] = "high"
    channel_id: Optional[str] = None
    notification_priority: Optional[str] = None
    sound: Optional[str] = None


class PushMessage(BaseModel):
    token: str
    title: str
    body: str
    data: Dict[str, str] = Field(default_factory=dict)
    android: Optional[AndroidHints] = None


RecordStatus = Literal["sent", "failed", "skipped", "unmarked", "already_handled"]


class RecordOutcome(BaseModel):
    appointment_id: str
    status: RecordStatus
    message_id: Optional[str] = None
    error: Optional[str] = None


class ScanResult(BaseModel):
    """Aggregate result of one reminder scan"""
    window_start: datetime
    window_end: datetime
    matched: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    unmarked: int = 0
    already_handled: int = 0
    outcomes: List[RecordOutcome] = Field(default_factory=list)

    @classmethod
    def from_outcomes(cls, window_start: datetime, window_end: datetime, outcomes: List[RecordOutcome]) -> "ScanResult":
        counts = {"sent": 0, "failed": 0, "skipped": 0, "unmarked": 0, "already_handled": 0}
        for outcome in outcomes:
            counts[outcome.status] += 1
        return cls(
            window_start=window_start,
            window_end=window_end,
            matched=len(outcomes),
            successful=counts["sent"],
            failed=counts["failed"],
            skipped=counts["skipped"],
            unmarked=counts["unmarked"],
            already_handled=counts["already_handled"],
            outcomes=outcomes,
        )

    def summary(self) -> Dict[str, int]:
        return {
            "successful": self.successful,
            "failed": self.failed,
            "skipped": self.skipped,
            "unmarked": self.unmarked,
            "already_handled": self.already_handled,
        }


class ProbeResult(BaseModel):
    """Outcome of a manual test notification"""
    outcome: Literal["sent", "not_found", "failed"]
    appointment_id: Optional[str] = None
    response: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome == "sent"

    def to_response_body(self) -> Dict[str, object]:
        if self.success:
            return {
                "success": True,
                "message": "Test notification sent",
                "appointmentId": self.appointment_id,
                "response": self.response,
            }
        body: Dict[str, object] = {"success": False, "error": self.error}
        if self.appointment_id:
            body["appointmentId"] = self.appointment_id
        return body
