"""Availability model definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from campus_scheduler.core import timeutil
from campus_scheduler.database import Base

DEFAULT_DURATION_MINUTES = 60


class Availability(Base):
    """A bookable window published by a professor."""
    __tablename__ = "availability"
    __table_args__ = (
        UniqueConstraint('professor_id', 'date', 'start_time', 'end_time', name='uq_availability_professor_slot'),
    )

    id = Column(Integer, primary_key=True)
    professor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM
    is_booked = Column(Boolean, default=False, nullable=False)
    booked_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    duration = Column(Integer, default=DEFAULT_DURATION_MINUTES, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    professor = relationship("User", foreign_keys=[professor_id])
    booked_by = relationship("User", foreign_keys=[booked_by_id])

    @property
    def start_date_time(self) -> datetime:
        return timeutil.combine_date_and_time(self.date, self.start_time)

    @property
    def end_date_time(self) -> datetime:
        return timeutil.combine_date_and_time(self.date, self.end_time)
