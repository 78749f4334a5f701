from dataclasses import dataclass, replace
from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from slotbook.models.user import User
from slotbook.scheduling.timezone import ensure_utc

UNIQUE_SLOT_CONSTRAINT = "uq_appointments_user_slot"


class AppointmentRow(SQLModel, table=True):
    """Instants are stored as naive UTC in TIMESTAMP WITHOUT TIME ZONE columns."""

    __tablename__ = "appointments"
    # Cross-process guard against two requests booking the same slot for one user
    __table_args__ = (
        UniqueConstraint("user_id", "start_time", "end_time", name=UNIQUE_SLOT_CONSTRAINT),
    )
    id: int | None = Field(default=None, primary_key=True)
    title: str
    description: str | None = None
    start_time: datetime = Field(index=True)
    end_time: datetime
    user_id: int = Field(foreign_key="users.id", index=True)

    def to_entity(self) -> "Appointment":
        return Appointment(
            id=self.id,
            title=self.title,
            description=self.description,
            start_time=ensure_utc(self.start_time),
            end_time=ensure_utc(self.end_time),
            user_id=self.user_id,
        )


@dataclass(frozen=True)
class Appointment:
    id: int
    title: str
    description: str | None
    start_time: datetime
    end_time: datetime
    user_id: int
    # Owner, attached when the service has it at hand
    user: User | None = None

    def with_user(self, user: User | None) -> "Appointment":
        return replace(self, user=user)


class AppointmentCreate(SQLModel):
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime
    user_id: int


class AppointmentUpdate(SQLModel):
    title: str | None = None
    description: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    user_id: int | None = None

    def touches_schedule(self) -> bool:
        return any(
            getattr(self, name) is not None for name in ("start_time", "end_time", "user_id")
        )
