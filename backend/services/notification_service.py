"""Notification records for users affected by appointment lifecycle events."""

import logging

from sqlalchemy.orm import Session

from backend.core import config
from backend.models.appointment import Appointment
from backend.models.notification import Notification
from backend.repositories.notification_repository import NotificationRepository
from backend.repositories.user_repository import TeamRepository, UserRepository

logger = logging.getLogger(__name__)

DEFAULT_STUDENT_NAME = 'A student'
APPOINTMENT_EVENTS = ('SCHEDULED', 'CANCELLED', 'COMPLETED')


class NotificationService:
    def __init__(
        self,
        db: Session,
        notifications: NotificationRepository | None = None,
        users: UserRepository | None = None,
        teams: TeamRepository | None = None,
    ):
        self.db = db
        self.notifications = notifications or NotificationRepository(db)
        self.users = users or UserRepository(db)
        self.teams = teams or TeamRepository(db)

    def get_user_notifications(self, user_id: str) -> list[Notification]:
        return self.notifications.find_by_user_id_order_by_created_at_desc(user_id)

    def create_notification(
        self,
        user_id: str,
        notification_type: str,
        title: str,
        message: str | None = None,
        data: dict | None = None,
    ) -> Notification:
        notification = self.notifications.save(
            Notification(user_id=user_id, type=notification_type, title=title, message=message, data=data)
        )
        self.db.commit()
        logger.info('Notification created for user %s, type %s', user_id, notification_type)
        return notification

    def delete_notification(self, notification_id: int) -> bool:
        deleted = self.notifications.delete_by_id(notification_id)
        self.db.commit()
        if deleted:
            logger.info('Notification %s deleted', notification_id)
        return deleted

    def send_message_to_admin(self, admin_id: str, student_name: str, message: str) -> Notification:
        return self.create_notification(
            admin_id,
            'student_request',
            f'New request from student {student_name}',
            f'{student_name}: {message}',
        )

    def create_notification_for_appointment(self, appointment: Appointment, event_type: str) -> list[Notification]:
        """Store one notification per affected user and commit them together.

        Team appointments fan out to the admin and the team's members; solo ones
        to the admin and the student.
        """
        if event_type not in APPOINTMENT_EVENTS:
            raise ValueError(f'Unknown appointment event {event_type!r}.')

        formatted_date = appointment.date.strftime(config.NOTIFICATION_DATE_FORMAT)
        formatted_time = appointment.time

        team = self.teams.find_by_id(appointment.team_id) if appointment.team_id else None
        if team is not None:
            data = {'appointment_id': appointment.id, 'team_name': team.name}
            entries = _team_entries(
                appointment,
                event_type,
                formatted_date,
                formatted_time,
                team.name,
                [member.user_id for member in team.members],
            )
        else:
            data = {'appointment_id': appointment.id}
            student = self.users.find_by_id(appointment.student_id)
            student_name = student.name if student is not None and student.name else DEFAULT_STUDENT_NAME
            entries = _individual_entries(appointment, event_type, formatted_date, formatted_time, student_name)

        created = [
            self.notifications.save(
                Notification(user_id=user_id, type=notification_type, title=title, message=message, data=dict(data))
            )
            for user_id, notification_type, title, message in entries
        ]
        self.db.commit()
        logger.info(
            'Created %d %s notifications for appointment %s',
            len(created),
            event_type.lower(),
            appointment.id,
        )
        return created


def _team_entries(appointment, event_type, formatted_date, formatted_time, team_name, member_ids):
    student_id = appointment.student_id
    admin_id = appointment.admin_id

    if event_type == 'SCHEDULED':
        message = f'Team {team_name} scheduled a meeting for {formatted_date} at {formatted_time}'
        entries = [(admin_id, 'team_appointment_scheduled', 'New team meeting', message)]
        entries += [
            (member_id, 'team_appointment_scheduled', 'New team meeting', message)
            for member_id in member_ids
            if member_id != student_id
        ]
        entries.append((
            student_id,
            'appointment_scheduled',
            'Meeting scheduled',
            f'You scheduled a meeting for team {team_name} on {formatted_date} at {formatted_time}',
        ))
        return entries

    if event_type == 'CANCELLED':
        notification_type = 'team_appointment_cancelled'
        title = 'Team meeting cancelled'
        message = f'The team {team_name} meeting scheduled for {formatted_date} at {formatted_time} was cancelled'
    else:
        notification_type = 'team_appointment_completed'
        title = 'Team meeting completed'
        message = f'The team {team_name} meeting on {formatted_date} at {formatted_time} was completed'

    return [(user_id, notification_type, title, message) for user_id in [admin_id, *member_ids]]


def _individual_entries(appointment, event_type, formatted_date, formatted_time, student_name):
    student_id = appointment.student_id
    admin_id = appointment.admin_id

    if event_type == 'SCHEDULED':
        return [
            (
                admin_id,
                'appointment_scheduled',
                'New meeting scheduled',
                f'{student_name} scheduled a meeting for {formatted_date} at {formatted_time}',
            ),
            (
                student_id,
                'appointment_scheduled',
                'New meeting booked',
                f'Your meeting was booked for {formatted_date} at {formatted_time}',
            ),
        ]

    if event_type == 'CANCELLED':
        message = f'The meeting scheduled for {formatted_date} at {formatted_time} was cancelled'
        return [
            (admin_id, 'appointment_cancelled', 'Meeting cancelled', message),
            (student_id, 'appointment_cancelled', 'Meeting cancelled', message),
        ]

    return [
        (
            admin_id,
            'appointment_completed',
            'Meeting completed',
            f'The meeting on {formatted_date} at {formatted_time} was completed',
        ),
        (
            student_id,
            'appointment_completed',
            'Meeting completed',
            f'Your meeting on {formatted_date} at {formatted_time} was completed.',
        ),
    ]
