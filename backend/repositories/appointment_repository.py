from sqlalchemy import update
from sqlalchemy.orm import Session

from backend.models.appointment import Appointment, AppointmentStatus


class AppointmentRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, appointment_id: int) -> Appointment | None:
        return self.db.get(Appointment, appointment_id)

    def find_by_admin_id(self, admin_id: str) -> list[Appointment]:
        return self._ordered(self.db.query(Appointment).filter(Appointment.admin_id == admin_id))

    def find_by_student_id(self, student_id: str) -> list[Appointment]:
        return self._ordered(self.db.query(Appointment).filter(Appointment.student_id == student_id))

    def find_by_team_id(self, team_id: str) -> list[Appointment]:
        return self._ordered(self.db.query(Appointment).filter(Appointment.team_id == team_id))

    def save(self, appointment: Appointment) -> Appointment:
        self.db.add(appointment)
        self.db.flush()
        return appointment

    def transition_status(
        self,
        appointment_id: int,
        current: AppointmentStatus,
        target: AppointmentStatus,
    ) -> bool:
        """Move an appointment to ``target`` only if it is still in ``current``."""
        result = self.db.execute(
            update(Appointment)
            .where(Appointment.id == appointment_id, Appointment.status == current)
            .values(status=target)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def _ordered(query) -> list[Appointment]:
        return query.order_by(Appointment.date.asc(), Appointment.time.asc(), Appointment.id.asc()).all()
