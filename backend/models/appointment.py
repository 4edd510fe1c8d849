"""Appointment model definitions."""

import enum
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Enum, Integer, String
from backend.database import Base


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class Appointment(Base):
    """Represents a booking of an admin's time slot by a student or team."""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    student_id = Column(String, nullable=False)
    team_id = Column(String, nullable=True)
    admin_id = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)
    status = Column(Enum(AppointmentStatus, name="appointment_status"), nullable=False, default=AppointmentStatus.SCHEDULED)
    notes = Column(String, nullable=True)
    meeting_link = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    @property
    def is_solo(self) -> bool:
        return self.team_id is None
