"""Slot calendar state machine.

``TimeSlotDayService`` is the only writer of slot availability. A reservation is a
single conditional UPDATE on the slot row, so two requests racing for the same
slot cannot both succeed even though each of them read the slot as open.
"""

import logging
from datetime import date, time
from typing import Iterable, NamedTuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.core.exceptions import DayNotFoundError, SlotUnavailableError
from backend.models.time_slot import TimeSlot, TimeSlotDay, format_slot_time
from backend.repositories.time_slot_repository import TimeSlotDayRepository

logger = logging.getLogger(__name__)


class SlotDefinition(NamedTuple):
    time: str
    available: bool = True
    booked: bool = False


def dedupe_slots(slots: Iterable) -> list[SlotDefinition]:
    """Normalise submitted slots, keeping the first entry for each time."""
    unique: dict[str, SlotDefinition] = {}
    for slot in slots:
        slot_time = format_slot_time(slot.time)
        if slot_time in unique:
            continue
        unique[slot_time] = SlotDefinition(
            time=slot_time,
            available=bool(slot.available),
            booked=bool(slot.booked),
        )
    return list(unique.values())


def month_bounds(year: int, month: int) -> tuple[date, date]:
    start = date(year, month, 1)
    if month == 12:
        return start, date(year + 1, 1, 1)
    return start, date(year, month + 1, 1)


class TimeSlotDayService:
    def __init__(self, db: Session, days: TimeSlotDayRepository | None = None):
        self.db = db
        self.days = days or TimeSlotDayRepository(db)

    def create_or_update_day(self, admin_id: str, day: date, new_slots: Iterable) -> TimeSlotDay:
        requested = dedupe_slots(new_slots)

        try:
            calendar = self._merge_into_day(admin_id, day, requested)
            self.db.commit()
        except IntegrityError:
            # Another request created this admin's calendar for the date first.
            self.db.rollback()
            calendar = self._merge_into_day(admin_id, day, requested)
            self.db.commit()

        self.db.refresh(calendar)
        return calendar

    def _merge_into_day(self, admin_id: str, day: date, requested: list[SlotDefinition]) -> TimeSlotDay:
        calendar = self.days.find_by_admin_id_and_date(admin_id, day)

        if calendar is None:
            calendar = TimeSlotDay(
                admin_id=admin_id,
                date=day,
                slots=[TimeSlot(time=slot.time, available=slot.available, booked=slot.booked) for slot in requested],
            )
            logger.info('Created slot calendar for admin %s on %s with %d slots', admin_id, day, len(requested))
            return self.days.save(calendar)

        booked_times = {slot.time for slot in calendar.slots if slot.booked}
        open_slots = {slot.time: slot for slot in calendar.slots if not slot.booked}
        requested = [definition for definition in requested if definition.time not in booked_times]
        requested_times = {definition.time for definition in requested}

        # Every write below re-checks booked in its WHERE clause; a slot booked after
        # the read above is left as it is.
        removed = self.days.delete_open_slots(
            [slot.id for slot_time, slot in open_slots.items() if slot_time not in requested_times]
        )
        for definition in requested:
            slot = open_slots.get(definition.time)
            if slot is None:
                self.db.add(
                    TimeSlot(
                        day_id=calendar.id,
                        time=definition.time,
                        available=definition.available,
                        booked=definition.booked,
                    )
                )
            elif not self.days.update_open_slot(slot.id, definition.available, definition.booked):
                logger.info('Left %s on %s for admin %s as is: it changed during the merge', definition.time, day, admin_id)

        self.db.expire(calendar, ['slots'])
        logger.info(
            'Merged slot calendar for admin %s on %s: %d booked kept, %d open removed, %d submitted',
            admin_id,
            day,
            len(booked_times),
            removed,
            len(requested),
        )
        return self.days.save(calendar)

    def mark_slot_as_booked(self, admin_id: str, day: date, slot_time: time | str) -> TimeSlotDay:
        slot_time = format_slot_time(slot_time)
        calendar = self.get_day_by_admin_and_date(admin_id, day)

        slot = calendar.find_slot(slot_time)
        if slot is None:
            logger.warning('Booking rejected: admin %s has no %s slot on %s', admin_id, slot_time, day)
            raise SlotUnavailableError(slot_time, 'Time slot not found.')

        if not slot.is_bookable or not self.days.try_book_slot(calendar.id, slot_time):
            self.db.rollback()
            logger.warning('Booking rejected: %s on %s for admin %s is unavailable', slot_time, day, admin_id)
            raise SlotUnavailableError(slot_time)

        self.db.commit()
        logger.info('Booked %s on %s for admin %s', slot_time, day, admin_id)
        return calendar

    def release_slot(self, admin_id: str, day: date, slot_time: time | str) -> TimeSlotDay:
        slot_time = format_slot_time(slot_time)
        calendar = self.get_day_by_admin_and_date(admin_id, day)

        if self.days.release_slot(calendar.id, slot_time):
            logger.info('Released %s on %s for admin %s', slot_time, day, admin_id)
        else:
            logger.info('Release of %s on %s for admin %s matched no slot', slot_time, day, admin_id)

        self.db.commit()
        return calendar

    def get_day_by_admin_and_date(self, admin_id: str, day: date) -> TimeSlotDay:
        calendar = self.days.find_by_admin_id_and_date(admin_id, day)
        if calendar is None:
            raise DayNotFoundError(admin_id, day)
        return calendar

    def get_slots_by_admin_and_month(self, admin_id: str, year: int, month: int) -> list[TimeSlotDay]:
        start, end = month_bounds(year, month)
        return self.days.find_by_admin_id_and_date_between(admin_id, start, end)
