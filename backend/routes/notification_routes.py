from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from backend.routes.dependencies import ensure_database_ready, get_db, service_errors
from backend.services.notification_service import NotificationService

router = APIRouter(tags=['notifications'])


def _require_text(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError('Field must not be blank.')
    return normalized


class CreateNotificationRequest(BaseModel):
    user_id: str
    type: str
    title: str
    message: str | None = None
    data: dict[str, Any] | None = None

    @field_validator('user_id', 'type', 'title')
    @classmethod
    def validate_required(cls, value: str) -> str:
        return _require_text(value)


class AdminMessageRequest(BaseModel):
    admin_id: str
    student_name: str
    message: str

    @field_validator('admin_id', 'student_name', 'message')
    @classmethod
    def validate_required(cls, value: str) -> str:
        return _require_text(value)


class NotificationResponse(BaseModel):
    id: int
    user_id: str
    type: str
    title: str
    message: str | None = None
    data: dict[str, Any] | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


@router.get('', response_model=list[NotificationResponse])
def list_user_notifications(user_id: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        notifications = NotificationService(db).get_user_notifications(user_id)
        return [NotificationResponse.model_validate(notification) for notification in notifications]


@router.post('', response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
def create_notification(data: CreateNotificationRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        notification = NotificationService(db).create_notification(
            data.user_id,
            data.type,
            data.title,
            data.message,
            data.data,
        )
        return NotificationResponse.model_validate(notification)


@router.post('/send-to-admin', response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
def send_message_to_admin(data: AdminMessageRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        notification = NotificationService(db).send_message_to_admin(data.admin_id, data.student_name, data.message)
        return NotificationResponse.model_validate(notification)


@router.delete('/{notification_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(notification_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    with service_errors(db):
        deleted = NotificationService(db).delete_notification(notification_id)

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Notification not found.',
        )
