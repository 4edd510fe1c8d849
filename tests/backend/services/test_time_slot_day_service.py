from datetime import date, time

import pytest

from backend.core.exceptions import DayNotFoundError, SlotUnavailableError
from backend.models.time_slot import TimeSlotDay
from backend.repositories.time_slot_repository import TimeSlotDayRepository
from backend.services.time_slot_day_service import SlotDefinition, TimeSlotDayService, month_bounds

ADMIN_ID = 'adm1'
BOOKING_DATE = date(2025, 11, 1)


def _slot_states(calendar: TimeSlotDay) -> dict[str, tuple[bool, bool]]:
    return {slot.time: (slot.available, slot.booked) for slot in calendar.slots}


def test_create_or_update_day_creates_calendar_with_submitted_slots(db_session) -> None:
    calendar = TimeSlotDayService(db_session).create_or_update_day(
        ADMIN_ID,
        BOOKING_DATE,
        [SlotDefinition('10:00'), SlotDefinition('09:00')],
    )

    assert calendar.id is not None
    assert calendar.admin_id == ADMIN_ID
    assert calendar.date == BOOKING_DATE
    assert [slot.time for slot in calendar.slots] == ['09:00', '10:00']
    assert _slot_states(calendar) == {'09:00': (True, False), '10:00': (True, False)}


def test_create_or_update_day_collapses_duplicate_times(db_session) -> None:
    calendar = TimeSlotDayService(db_session).create_or_update_day(
        ADMIN_ID,
        BOOKING_DATE,
        [SlotDefinition('09:00'), SlotDefinition('9:00', available=False), SlotDefinition('10:00')],
    )

    assert _slot_states(calendar) == {'09:00': (True, False), '10:00': (True, False)}


def test_create_or_update_day_keeps_booked_slot_when_new_list_omits_it(db_session, open_calendar) -> None:
    open_calendar('09:00')
    service = TimeSlotDayService(db_session)
    service.mark_slot_as_booked(ADMIN_ID, BOOKING_DATE, '09:00')

    calendar = service.create_or_update_day(ADMIN_ID, BOOKING_DATE, [SlotDefinition('10:00')])

    assert _slot_states(calendar) == {'09:00': (False, True), '10:00': (True, False)}
    assert db_session.query(TimeSlotDay).count() == 1


def test_create_or_update_day_never_reopens_a_booked_slot(db_session, open_calendar) -> None:
    open_calendar('09:00')
    service = TimeSlotDayService(db_session)
    service.mark_slot_as_booked(ADMIN_ID, BOOKING_DATE, '09:00')

    calendar = service.create_or_update_day(ADMIN_ID, BOOKING_DATE, [SlotDefinition('09:00', available=True)])

    assert _slot_states(calendar) == {'09:00': (False, True)}


def test_create_or_update_day_replaces_open_slots_that_were_not_resubmitted(db_session, open_calendar) -> None:
    open_calendar('09:00', '10:00')

    calendar = TimeSlotDayService(db_session).create_or_update_day(
        ADMIN_ID,
        BOOKING_DATE,
        [SlotDefinition('10:00', available=False), SlotDefinition('11:00')],
    )

    assert _slot_states(calendar) == {'10:00': (False, False), '11:00': (True, False)}


def test_create_or_update_day_merges_when_calendar_appears_concurrently(db_session, open_calendar) -> None:
    open_calendar('09:00')
    TimeSlotDayService(db_session).mark_slot_as_booked(ADMIN_ID, BOOKING_DATE, '09:00')

    class LateRepository(TimeSlotDayRepository):
        """Misses the existing calendar once, like a request that read before it was created."""

        missed = False

        def find_by_admin_id_and_date(self, admin_id, day):
            if not self.missed:
                self.missed = True
                return None
            return super().find_by_admin_id_and_date(admin_id, day)

    service = TimeSlotDayService(db_session, days=LateRepository(db_session))
    calendar = service.create_or_update_day(ADMIN_ID, BOOKING_DATE, [SlotDefinition('10:00')])

    assert _slot_states(calendar) == {'09:00': (False, True), '10:00': (True, False)}
    assert db_session.query(TimeSlotDay).count() == 1


def test_mark_slot_as_booked_books_open_slot_then_rejects_second_booking(db_session, open_calendar) -> None:
    open_calendar('09:00')
    service = TimeSlotDayService(db_session)

    calendar = service.mark_slot_as_booked(ADMIN_ID, BOOKING_DATE, '09:00')

    assert _slot_states(calendar) == {'09:00': (False, True)}

    with pytest.raises(SlotUnavailableError) as exception_info:
        service.mark_slot_as_booked(ADMIN_ID, BOOKING_DATE, '09:00')

    assert str(exception_info.value) == 'Time slot is unavailable.'


def test_mark_slot_as_booked_accepts_time_objects(db_session, open_calendar) -> None:
    open_calendar('14:30')

    calendar = TimeSlotDayService(db_session).mark_slot_as_booked(ADMIN_ID, BOOKING_DATE, time(14, 30))

    assert _slot_states(calendar) == {'14:30': (False, True)}


def test_mark_slot_as_booked_rejects_slot_marked_unavailable(db_session) -> None:
    service = TimeSlotDayService(db_session)
    service.create_or_update_day(ADMIN_ID, BOOKING_DATE, [SlotDefinition('09:00', available=False)])

    with pytest.raises(SlotUnavailableError):
        service.mark_slot_as_booked(ADMIN_ID, BOOKING_DATE, '09:00')

    calendar = service.get_day_by_admin_and_date(ADMIN_ID, BOOKING_DATE)
    assert _slot_states(calendar) == {'09:00': (False, False)}


def test_mark_slot_as_booked_rejects_unknown_time(db_session, open_calendar) -> None:
    open_calendar('09:00')

    with pytest.raises(SlotUnavailableError) as exception_info:
        TimeSlotDayService(db_session).mark_slot_as_booked(ADMIN_ID, BOOKING_DATE, '10:00')

    assert str(exception_info.value) == 'Time slot not found.'
    assert exception_info.value.slot_time == '10:00'


def test_mark_slot_as_booked_requires_calendar(db_session) -> None:
    with pytest.raises(DayNotFoundError):
        TimeSlotDayService(db_session).mark_slot_as_booked(ADMIN_ID, BOOKING_DATE, '09:00')


def test_mark_slot_as_booked_only_touches_matching_admin(db_session, open_calendar) -> None:
    open_calendar('09:00')
    open_calendar('09:00', admin_id='adm2')
    service = TimeSlotDayService(db_session)

    service.mark_slot_as_booked('adm2', BOOKING_DATE, '09:00')

    assert _slot_states(service.get_day_by_admin_and_date(ADMIN_ID, BOOKING_DATE)) == {'09:00': (True, False)}
    assert _slot_states(service.get_day_by_admin_and_date('adm2', BOOKING_DATE)) == {'09:00': (False, True)}


def test_release_slot_reopens_booked_slot(db_session, open_calendar) -> None:
    open_calendar('09:00', '10:00')
    service = TimeSlotDayService(db_session)
    service.mark_slot_as_booked(ADMIN_ID, BOOKING_DATE, '09:00')
    service.mark_slot_as_booked(ADMIN_ID, BOOKING_DATE, '10:00')

    calendar = service.release_slot(ADMIN_ID, BOOKING_DATE, '09:00')

    assert _slot_states(calendar) == {'09:00': (True, False), '10:00': (False, True)}


def test_release_slot_for_unknown_time_is_a_no_op(db_session, open_calendar) -> None:
    open_calendar('09:00')
    service = TimeSlotDayService(db_session)
    service.mark_slot_as_booked(ADMIN_ID, BOOKING_DATE, '09:00')

    calendar = service.release_slot(ADMIN_ID, BOOKING_DATE, '17:00')

    assert _slot_states(calendar) == {'09:00': (False, True)}


def test_release_slot_requires_calendar(db_session) -> None:
    with pytest.raises(DayNotFoundError):
        TimeSlotDayService(db_session).release_slot(ADMIN_ID, BOOKING_DATE, '09:00')


def test_get_day_by_admin_and_date_raises_when_missing(db_session) -> None:
    with pytest.raises(DayNotFoundError) as exception_info:
        TimeSlotDayService(db_session).get_day_by_admin_and_date(ADMIN_ID, BOOKING_DATE)

    assert exception_info.value.status_code == 404
    assert 'adm1' in str(exception_info.value)


def test_get_slots_by_admin_and_month_returns_days_inside_month(db_session, open_calendar) -> None:
    for day in (date(2025, 10, 31), date(2025, 11, 30), date(2025, 11, 1), date(2025, 12, 1)):
        open_calendar('09:00', day=day)
    open_calendar('09:00', admin_id='adm2', day=date(2025, 11, 5))

    service = TimeSlotDayService(db_session)

    november = service.get_slots_by_admin_and_month(ADMIN_ID, 2025, 11)
    december = service.get_slots_by_admin_and_month(ADMIN_ID, 2025, 12)

    assert [calendar.date for calendar in november] == [date(2025, 11, 1), date(2025, 11, 30)]
    assert [calendar.date for calendar in december] == [date(2025, 12, 1)]


def test_month_bounds_rolls_over_year() -> None:
    assert month_bounds(2025, 12) == (date(2025, 12, 1), date(2026, 1, 1))
    assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 3, 1))


def test_get_slots_by_admin_and_month_rejects_invalid_month(db_session) -> None:
    with pytest.raises(ValueError):
        TimeSlotDayService(db_session).get_slots_by_admin_and_month(ADMIN_ID, 2025, 13)
