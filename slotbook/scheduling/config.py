"""Operational scheduling parameters, loaded once from a JSON document."""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, ValidationError, model_validator

from slotbook.core.errors import ConfigurationError


class WorkHours(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    start: StrictInt = Field(ge=0, le=23)
    end: StrictInt = Field(ge=0, le=23)

    @model_validator(mode="after")
    def _start_before_end(self) -> "WorkHours":
        if self.start >= self.end:
            raise ValueError(f"workHours.start ({self.start}) must be before workHours.end ({self.end})")
        return self


class SchedulingConfig(BaseModel):
    """
    Immutable scheduling configuration.

    Document keys follow the JSON file (``workHours``, ``slotDuration``,
    ``maxSlotsPerAppointment``, ``operationalDays``); attributes are snake_case.
    Weekdays use 0=Sunday..6=Saturday.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    work_hours: WorkHours = Field(alias="workHours")
    slot_duration_minutes: StrictInt = Field(alias="slotDuration", gt=0)
    max_slots_per_appointment: StrictInt = Field(alias="maxSlotsPerAppointment", gt=0)
    operational_days: frozenset[StrictInt] = Field(alias="operationalDays")
    # Extension point: when off, a booking must be exactly one slot long
    multi_slot_bookings: StrictBool = Field(default=False, alias="multiSlotBookings")

    @model_validator(mode="after")
    def _check_invariants(self) -> "SchedulingConfig":
        bad_days = sorted(d for d in self.operational_days if d < 0 or d > 6)
        if bad_days:
            raise ValueError(f"operationalDays must be within 0..6, got {bad_days}")
        window = self.work_minutes
        if window % self.slot_duration_minutes != 0:
            raise ValueError(
                f"slotDuration ({self.slot_duration_minutes}) must divide the work window "
                f"of {window} minutes"
            )
        return self

    @property
    def work_minutes(self) -> int:
        return (self.work_hours.end - self.work_hours.start) * 60

    @property
    def max_slots_for_booking(self) -> int:
        return self.max_slots_per_appointment if self.multi_slot_bookings else 1

    @property
    def slots_per_day(self) -> int:
        return self.work_minutes // self.slot_duration_minutes

    def is_operational(self, weekday: int) -> bool:
        return weekday in self.operational_days

    def summary(self) -> str:
        days = ",".join(str(d) for d in sorted(self.operational_days))
        return (
            f"work hours {self.work_hours.start:02d}:00-{self.work_hours.end:02d}:00, "
            f"{self.slot_duration_minutes} min slots ({self.slots_per_day}/day), days [{days}], "
            f"max {self.max_slots_per_appointment} slots/appointment"
            f" (multi-slot {'on' if self.multi_slot_bookings else 'off'})"
        )


def parse_scheduling_config(data: Any) -> SchedulingConfig:
    try:
        return SchedulingConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid scheduling configuration: {e}") from e


def load_scheduling_config(path: str | Path) -> SchedulingConfig:
    """Read and validate the scheduling document. Any problem is a ConfigurationError."""
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read scheduling configuration {path}: {e}") from e
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Scheduling configuration {path} is not valid JSON: {e}") from e
    return parse_scheduling_config(data)
