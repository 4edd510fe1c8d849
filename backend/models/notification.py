"""Notification model definitions."""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String
from backend.database import Base


class Notification(Base):
    """A message stored for a user about something that happened to them."""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False)
    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    message = Column(String)
    data = Column(JSON)
    created_at = Column(DateTime, default=datetime.now)
