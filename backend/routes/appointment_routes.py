from datetime import date, datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from backend.models.appointment import AppointmentStatus
from backend.models.time_slot import format_slot_time
from backend.routes.dependencies import ensure_database_ready, get_db, service_errors
from backend.services.appointment_service import AppointmentService

router = APIRouter(tags=['appointments'])

MAX_APPOINTMENT_NOTES_LENGTH = 600


class CreateAppointmentRequest(BaseModel):
    student_id: str
    admin_id: str
    team_id: str | None = None
    date: date
    time: str
    notes: str | None = None

    @field_validator('student_id', 'admin_id')
    @classmethod
    def validate_required_id(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Student and admin ids are required.')
        return normalized

    @field_validator('team_id')
    @classmethod
    def validate_team_id(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        return normalized or None

    @field_validator('time')
    @classmethod
    def validate_time(cls, value: str) -> str:
        return format_slot_time(value)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

        return normalized


class AppointmentResponse(BaseModel):
    id: int
    student_id: str
    team_id: str | None = None
    admin_id: str
    date: date
    time: str
    status: AppointmentStatus
    is_solo: bool
    notes: str | None = None
    meeting_link: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(data: CreateAppointmentRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        appointment = AppointmentService(db).create_appointment(
            student_id=data.student_id,
            admin_id=data.admin_id,
            team_id=data.team_id,
            day=data.date,
            slot_time=data.time,
            notes=data.notes,
        )
        return AppointmentResponse.model_validate(appointment)


@router.get('/my', response_model=list[AppointmentResponse])
def list_my_appointments(student_id: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        appointments = AppointmentService(db).get_appointments_by_student(student_id)
        return [AppointmentResponse.model_validate(appointment) for appointment in appointments]


@router.get('/admin', response_model=list[AppointmentResponse])
def list_admin_appointments(admin_id: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        appointments = AppointmentService(db).get_appointments_by_admin(admin_id)
        return [AppointmentResponse.model_validate(appointment) for appointment in appointments]


@router.get('/team/{team_id}', response_model=list[AppointmentResponse])
def list_team_appointments(team_id: str, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        appointments = AppointmentService(db).get_appointments_by_team(team_id)
        return [AppointmentResponse.model_validate(appointment) for appointment in appointments]


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(appointment_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        return AppointmentResponse.model_validate(AppointmentService(db).get_appointment(appointment_id))


@router.patch('/{appointment_id}/cancel', response_model=AppointmentResponse)
def cancel_appointment(appointment_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        return AppointmentResponse.model_validate(AppointmentService(db).cancel_appointment(appointment_id))


@router.patch('/{appointment_id}/complete', response_model=AppointmentResponse)
def complete_appointment(appointment_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        return AppointmentResponse.model_validate(AppointmentService(db).complete_appointment(appointment_id))
