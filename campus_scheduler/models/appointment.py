"""Appointment model definitions."""

from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from campus_scheduler.core import timeutil
from campus_scheduler.database import Base

STATUS_SCHEDULED = "scheduled"
STATUS_CANCELLED = "cancelled"
STATUS_COMPLETED = "completed"
STATUSES = (STATUS_SCHEDULED, STATUS_CANCELLED, STATUS_COMPLETED)

MAX_TEXT_LENGTH = 500


class Appointment(Base):
    """A student's claim on an availability slot."""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    professor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    availability_id = Column(Integer, ForeignKey("availability.id", ondelete="SET NULL"), nullable=True)
    date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    status = Column(String, default=STATUS_SCHEDULED, nullable=False)
    notes = Column(String(MAX_TEXT_LENGTH), default="")
    cancelled_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancel_reason = Column(String(MAX_TEXT_LENGTH), nullable=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    student = relationship("User", foreign_keys=[student_id])
    professor = relationship("User", foreign_keys=[professor_id])
    availability = relationship("Availability", foreign_keys=[availability_id])
    cancelled_by = relationship("User", foreign_keys=[cancelled_by_id])

    @property
    def appointment_date_time(self) -> datetime:
        return timeutil.combine_date_and_time(self.date, self.start_time)

    @property
    def is_live(self) -> bool:
        return self.status != STATUS_CANCELLED
