from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from backend.core.exceptions import DayNotFoundError
from backend.models.time_slot import format_slot_time
from backend.routes.dependencies import ensure_database_ready, get_db, service_errors
from backend.services.time_slot_day_service import TimeSlotDayService

router = APIRouter(tags=['time slots'])


class TimeSlotRequest(BaseModel):
    time: str
    available: bool = True
    booked: bool = False

    @field_validator('time')
    @classmethod
    def validate_time(cls, value: str) -> str:
        return format_slot_time(value)


class TimeSlotResponse(BaseModel):
    time: str
    available: bool
    booked: bool

    class Config:
        from_attributes = True


class TimeSlotDayResponse(BaseModel):
    id: int
    admin_id: str
    date: date
    slots: list[TimeSlotResponse]

    class Config:
        from_attributes = True


class DaySlotsResponse(BaseModel):
    slots: list[TimeSlotResponse]


@router.post('/days', response_model=TimeSlotDayResponse)
def create_day(
    slots: list[TimeSlotRequest],
    admin_id: str = Query(..., min_length=1),
    day: date = Query(..., alias='date'),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with service_errors(db):
        calendar = TimeSlotDayService(db).create_or_update_day(admin_id, day, slots)
        return TimeSlotDayResponse.model_validate(calendar)


@router.get('/days/{day}', response_model=DaySlotsResponse)
def get_day_slots(
    day: date,
    admin_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with service_errors(db):
        try:
            calendar = TimeSlotDayService(db).get_day_by_admin_and_date(admin_id, day)
        except DayNotFoundError:
            return DaySlotsResponse(slots=[])

        return DaySlotsResponse.model_validate({'slots': calendar.slots}, from_attributes=True)


@router.patch('/{day}/{slot_time}/book', response_model=TimeSlotDayResponse)
def book_slot(
    day: date,
    slot_time: str,
    admin_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with service_errors(db):
        calendar = TimeSlotDayService(db).mark_slot_as_booked(admin_id, day, slot_time)
        return TimeSlotDayResponse.model_validate(calendar)


@router.patch('/{day}/{slot_time}/release', response_model=TimeSlotDayResponse)
def release_slot(
    day: date,
    slot_time: str,
    admin_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with service_errors(db):
        calendar = TimeSlotDayService(db).release_slot(admin_id, day, slot_time)
        return TimeSlotDayResponse.model_validate(calendar)


@router.get('/month', response_model=list[TimeSlotDayResponse])
def get_month_slots(
    admin_id: str = Query(..., min_length=1),
    year: int = Query(..., ge=1, le=9999),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with service_errors(db):
        calendars = TimeSlotDayService(db).get_slots_by_admin_and_month(admin_id, year, month)
        return [TimeSlotDayResponse.model_validate(calendar) for calendar in calendars]
