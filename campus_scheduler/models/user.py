"""User model definitions."""

from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime
from campus_scheduler.database import Base

ROLE_STUDENT = "student"
ROLE_PROFESSOR = "professor"
ROLES = (ROLE_STUDENT, ROLE_PROFESSOR)


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(30), unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False)  # student/professor
    full_name = Column(String(100), nullable=False)
    department = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
