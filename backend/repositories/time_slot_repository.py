"""Persistence for slot calendars.

Repositories never commit; the calling service owns the transaction.
"""

from datetime import date

from sqlalchemy import delete, update
from sqlalchemy.orm import Session, selectinload

from backend.models.time_slot import TimeSlot, TimeSlotDay


class TimeSlotDayRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_admin_id_and_date(self, admin_id: str, day: date) -> TimeSlotDay | None:
        return (
            self.db.query(TimeSlotDay)
            .options(selectinload(TimeSlotDay.slots))
            .filter(TimeSlotDay.admin_id == admin_id, TimeSlotDay.date == day)
            .first()
        )

    def find_by_admin_id_and_date_between(self, admin_id: str, start: date, end: date) -> list[TimeSlotDay]:
        """Calendars with ``start <= date < end``."""
        return (
            self.db.query(TimeSlotDay)
            .options(selectinload(TimeSlotDay.slots))
            .filter(
                TimeSlotDay.admin_id == admin_id,
                TimeSlotDay.date >= start,
                TimeSlotDay.date < end,
            )
            .order_by(TimeSlotDay.date.asc())
            .all()
        )

    def save(self, day: TimeSlotDay) -> TimeSlotDay:
        self.db.add(day)
        self.db.flush()
        return day

    def try_book_slot(self, day_id: int, slot_time: str) -> bool:
        """Flip one open slot to booked in a single conditional update.

        Returns False when no slot with that time is both available and unbooked,
        which is also what every loser of a concurrent race sees.
        """
        result = self.db.execute(
            update(TimeSlot)
            .where(
                TimeSlot.day_id == day_id,
                TimeSlot.time == slot_time,
                TimeSlot.available.is_(True),
                TimeSlot.booked.is_(False),
            )
            .values(available=False, booked=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def release_slot(self, day_id: int, slot_time: str) -> bool:
        result = self.db.execute(
            update(TimeSlot)
            .where(TimeSlot.day_id == day_id, TimeSlot.time == slot_time)
            .values(available=True, booked=False)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    def update_open_slot(self, slot_id: int, available: bool, booked: bool) -> bool:
        result = self.db.execute(
            update(TimeSlot)
            .where(TimeSlot.id == slot_id, TimeSlot.booked.is_(False))
            .values(available=available, booked=booked)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def delete_open_slots(self, slot_ids: list[int]) -> int:
        """Delete the given slots, skipping any that have been booked since they were read."""
        if not slot_ids:
            return 0
        result = self.db.execute(
            delete(TimeSlot)
            .where(TimeSlot.id.in_(slot_ids), TimeSlot.booked.is_(False))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
