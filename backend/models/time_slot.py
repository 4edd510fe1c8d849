"""Time slot calendar model definitions."""

from datetime import datetime, time

from sqlalchemy import Boolean, Column, Date, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.core import config
from backend.database import Base


def format_slot_time(value: time | str) -> str:
    """Normalise a slot time to the zero-padded ``HH:MM`` key used inside a day."""
    if isinstance(value, time):
        return value.strftime(config.SLOT_TIME_FORMAT)

    try:
        parsed = datetime.strptime(value.strip(), config.SLOT_TIME_FORMAT)
    except (AttributeError, ValueError) as exc:
        raise ValueError(f'Invalid slot time {value!r}; expected HH:MM.') from exc

    return parsed.strftime(config.SLOT_TIME_FORMAT)


class TimeSlotDay(Base):
    """One admin's slot calendar for a single date."""
    __tablename__ = "time_slot_days"
    __table_args__ = (UniqueConstraint("admin_id", "date", name="uq_time_slot_days_admin_date"),)

    id = Column(Integer, primary_key=True)
    admin_id = Column(String, nullable=False)
    date = Column(Date, nullable=False)

    slots = relationship(
        "TimeSlot",
        back_populates="day",
        cascade="all, delete-orphan",
        order_by="TimeSlot.time",
    )

    def find_slot(self, slot_time: str):
        return next((slot for slot in self.slots if slot.time == slot_time), None)


class TimeSlot(Base):
    """A bookable time of day inside a calendar."""
    __tablename__ = "time_slots"
    __table_args__ = (UniqueConstraint("day_id", "time", name="uq_time_slots_day_time"),)

    id = Column(Integer, primary_key=True)
    day_id = Column(Integer, ForeignKey("time_slot_days.id", ondelete="CASCADE"), nullable=False)
    time = Column(String(5), nullable=False)
    available = Column(Boolean, nullable=False, default=True)
    booked = Column(Boolean, nullable=False, default=False)

    day = relationship("TimeSlotDay", back_populates="slots")

    @property
    def is_bookable(self) -> bool:
        return bool(self.available) and not self.booked
