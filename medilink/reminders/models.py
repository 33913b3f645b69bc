from sqlalchemy import Column, String, DateTime, Boolean, Index
import uuid

from medilink.db.base import Base
from medilink.utils.timezone import utc_now


class Appointment(Base):
    """Appointment row for deployments that keep bookings in SQL instead of Firestore"""
    __tablename__ = "reminder_appointments"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    appointment_date = Column(DateTime(timezone=True), nullable=False, index=True)
    doctor_name = Column(String, nullable=True)
    status = Column(String, nullable=False, default="pending")
    notification_scheduled = Column(Boolean, nullable=False, default=False)
    notification_sent_at = Column(DateTime(timezone=True), nullable=True)
    fcm_token = Column(String, nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    __table_args__ = (
        Index("ix_reminder_appointments_due", "status", "notification_scheduled", "appointment_date"),
    )
