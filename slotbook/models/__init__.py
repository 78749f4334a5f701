from slotbook.models.user import User, UserRow
from slotbook.models.appointment import (
    Appointment,
    AppointmentCreate,
    AppointmentRow,
    AppointmentUpdate,
)

__all__ = [
    "User",
    "UserRow",
    "Appointment",
    "AppointmentCreate",
    "AppointmentRow",
    "AppointmentUpdate",
]
