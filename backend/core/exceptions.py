"""Domain errors raised by the scheduling services.

Each error carries the HTTP status the routes translate it to. None of them are
transient: they describe a request that references missing or conflicting state.
"""

from datetime import date


class SchedulingError(Exception):
    status_code = 400


class DayNotFoundError(SchedulingError):
    status_code = 404

    def __init__(self, admin_id: str, day: date):
        self.admin_id = admin_id
        self.day = day
        super().__init__(f'No time slot calendar for admin {admin_id} on {day.isoformat()}.')


class SlotUnavailableError(SchedulingError):
    status_code = 409

    def __init__(self, slot_time: str, reason: str = 'Time slot is unavailable.'):
        self.slot_time = slot_time
        super().__init__(reason)


class AppointmentNotFoundError(SchedulingError):
    status_code = 404

    def __init__(self, appointment_id: int):
        self.appointment_id = appointment_id
        super().__init__(f'Appointment {appointment_id} not found.')


class InvalidAppointmentStateError(SchedulingError):
    status_code = 409

    def __init__(self, appointment_id: int, status: str, action: str):
        self.appointment_id = appointment_id
        self.status = status
        super().__init__(f'Appointment {appointment_id} is {status.lower()} and cannot be {action}.')
