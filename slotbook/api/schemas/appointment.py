from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from slotbook.models.appointment import Appointment, AppointmentCreate, AppointmentUpdate
from slotbook.scheduling.slots import Slot


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateAppointmentRequest(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    title: str = Field(min_length=1)
    description: str | None = None
    start_time: datetime  # naive values are read as UTC
    end_time: datetime
    user_id: int = Field(gt=0)

    def to_create(self) -> AppointmentCreate:
        return AppointmentCreate(**self.model_dump())


class UpdateAppointmentRequest(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    user_id: int | None = Field(default=None, gt=0)

    def to_update(self) -> AppointmentUpdate:
        return AppointmentUpdate(**self.model_dump(exclude_unset=True))


class UserInfo(_CamelModel):
    id: int
    name: str
    email: str


class AppointmentResponse(_CamelModel):
    id: int
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime
    user_id: int
    user: UserInfo | None = None

    @classmethod
    def from_appointment(cls, a: Appointment) -> "AppointmentResponse":
        user = None
        if a.user is not None:
            user = UserInfo(id=a.user.id, name=a.user.name, email=a.user.email)
        return cls(
            id=a.id,
            title=a.title,
            description=a.description,
            start_time=a.start_time,
            end_time=a.end_time,
            user_id=a.user_id,
            user=user,
        )


class SlotInfo(_CamelModel):
    date: str  # YYYY-MM-DD, local civil date
    time_start: str  # HH:MM
    time_end: str
    available: int  # 1 free, 0 occupied

    @classmethod
    def from_slot(cls, slot: Slot) -> "SlotInfo":
        return cls(**slot.to_dict())
