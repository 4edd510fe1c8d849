"""Appointment lifecycle.

The slot is reserved before the appointment row exists and released again if
the row cannot be saved, so a failed booking never leaves a slot held with no
appointment behind it. Notifications are best effort: a failure is logged and
the lifecycle call still succeeds.
"""

import logging
from datetime import date, time

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core.exceptions import AppointmentNotFoundError, DayNotFoundError, InvalidAppointmentStateError
from backend.models.appointment import Appointment, AppointmentStatus
from backend.models.time_slot import format_slot_time
from backend.repositories.appointment_repository import AppointmentRepository
from backend.services.notification_service import NotificationService
from backend.services.time_slot_day_service import TimeSlotDayService

logger = logging.getLogger(__name__)


class AppointmentService:
    def __init__(
        self,
        db: Session,
        time_slot_day_service: TimeSlotDayService | None = None,
        notification_service: NotificationService | None = None,
        appointments: AppointmentRepository | None = None,
    ):
        self.db = db
        self.time_slots = time_slot_day_service or TimeSlotDayService(db)
        self.notifications = notification_service or NotificationService(db)
        self.appointments = appointments or AppointmentRepository(db)

    def create_appointment(
        self,
        student_id: str,
        admin_id: str,
        team_id: str | None,
        day: date,
        slot_time: time | str,
        notes: str | None = None,
    ) -> Appointment:
        slot_time = format_slot_time(slot_time)
        self.time_slots.mark_slot_as_booked(admin_id, day, slot_time)

        appointment = Appointment(
            student_id=student_id,
            team_id=team_id,
            admin_id=admin_id,
            date=day,
            time=slot_time,
            status=AppointmentStatus.SCHEDULED,
            notes=notes,
        )
        try:
            self.appointments.save(appointment)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(
                'Saving appointment failed, releasing %s on %s for admin %s',
                slot_time,
                day,
                admin_id,
            )
            try:
                self.time_slots.release_slot(admin_id, day, slot_time)
            except SQLAlchemyError:
                self.db.rollback()
                logger.exception(
                    'Could not release %s on %s for admin %s; the slot stays booked with no appointment',
                    slot_time,
                    day,
                    admin_id,
                )
            raise

        logger.info(
            'Appointment %s created: student %s team %s at %s (%s)',
            appointment.id,
            student_id,
            team_id,
            slot_time,
            day,
        )
        self._notify(appointment, AppointmentStatus.SCHEDULED)
        return appointment

    def cancel_appointment(self, appointment_id: int) -> Appointment:
        appointment = self._transition(appointment_id, AppointmentStatus.CANCELLED, 'cancelled')

        # The status change and the release commit together.
        try:
            self.time_slots.release_slot(appointment.admin_id, appointment.date, appointment.time)
        except DayNotFoundError:
            logger.warning(
                'Appointment %s cancelled but admin %s has no calendar on %s to release',
                appointment_id,
                appointment.admin_id,
                appointment.date,
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception('Releasing the slot of appointment %s failed; it stays scheduled', appointment_id)
            raise

        logger.info('Appointment %s cancelled', appointment_id)
        self._notify(appointment, AppointmentStatus.CANCELLED)
        return appointment

    def complete_appointment(self, appointment_id: int) -> Appointment:
        appointment = self._transition(appointment_id, AppointmentStatus.COMPLETED, 'completed')
        self.db.commit()

        logger.info('Appointment %s completed', appointment_id)
        self._notify(appointment, AppointmentStatus.COMPLETED)
        return appointment

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.appointments.find_by_id(appointment_id)
        if appointment is None:
            raise AppointmentNotFoundError(appointment_id)
        return appointment

    def get_appointments_by_admin(self, admin_id: str) -> list[Appointment]:
        return self.appointments.find_by_admin_id(admin_id)

    def get_appointments_by_student(self, student_id: str) -> list[Appointment]:
        return self.appointments.find_by_student_id(student_id)

    def get_appointments_by_team(self, team_id: str) -> list[Appointment]:
        return self.appointments.find_by_team_id(team_id)

    def _transition(self, appointment_id: int, target: AppointmentStatus, action: str) -> Appointment:
        """Leave SCHEDULED for ``target`` without committing; CANCELLED and COMPLETED are terminal."""
        appointment = self.get_appointment(appointment_id)

        if appointment.status == AppointmentStatus.SCHEDULED and self.appointments.transition_status(
            appointment_id,
            AppointmentStatus.SCHEDULED,
            target,
        ):
            return appointment

        # Expires the instance so the status below is the one another request committed.
        self.db.rollback()
        raise InvalidAppointmentStateError(appointment_id, appointment.status.value, action)

    def _notify(self, appointment: Appointment, status: AppointmentStatus) -> None:
        appointment_id = appointment.id
        try:
            self.notifications.create_notification_for_appointment(appointment, status.value)
        except Exception:
            self.db.rollback()
            logger.exception('Failed to create %s notifications for appointment %s', status.value.lower(), appointment_id)
