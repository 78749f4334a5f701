"""
Booking validation.

Checks run in a fixed order and stop at the first failure:

1. range       start < end                               -> InvalidRange
2. alignment   one slot long (up to maxSlotsPerAppointment
               when multi-slot bookings are on), starting
               on a slot boundary                        -> MisalignedSlot
3. hours       inside the local work window of an
               operational day                           -> OutsideWorkingHours
4. conflicts   no overlap with the user's bookings       -> SlotConflict

Nothing is rounded or truncated to make a booking fit.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, time, timedelta

from slotbook.core.errors import (
    BookingRejected,
    InvalidRange,
    MisalignedSlot,
    OutsideWorkingHours,
    SlotConflict,
)
from slotbook.scheduling.config import SchedulingConfig
from slotbook.scheduling.overlap import Interval, find_overlapping
from slotbook.scheduling.slots import weekday_number
from slotbook.scheduling.timezone import TimeZoneNormalizer, ensure_utc


@dataclass(frozen=True)
class BookingDecision:
    error: BookingRejected | None = None

    @property
    def accepted(self) -> bool:
        return self.error is None

    def raise_for_decision(self) -> None:
        if self.error is not None:
            raise self.error


ACCEPTED = BookingDecision()


def _iso(dt: datetime) -> str:
    return dt.isoformat()


def check_range(start: datetime, end: datetime) -> BookingRejected | None:
    if start < end:
        return None
    return InvalidRange(
        "startTime must be before endTime",
        details={"startTime": _iso(start), "endTime": _iso(end)},
    )


def check_alignment(
    start: datetime, end: datetime, config: SchedulingConfig, normalizer: TimeZoneNormalizer
) -> BookingRejected | None:
    duration = config.slot_duration_minutes
    details = {"startTime": _iso(start), "endTime": _iso(end), "slotDurationMinutes": duration}
    span, remainder = divmod(end - start, timedelta(minutes=duration))
    if remainder or span < 1 or span > config.max_slots_for_booking:
        if config.multi_slot_bookings:
            message = (
                f"Appointment must span 1 to {config.max_slots_per_appointment} {duration}-minute slots"
            )
        else:
            message = f"Appointment must last exactly {duration} minutes"
        return MisalignedSlot(message, details=details)
    local = normalizer.to_local(start)
    # Offset from the start of the work day; equals the minute-of-hour rule when duration divides 60
    offset = (local.hour - config.work_hours.start) * 60 + local.minute
    if local.second or local.microsecond or offset % duration:
        return MisalignedSlot(
            f"Appointment times must align with {duration}-minute intervals", details=details
        )
    return None


def check_working_hours(
    start: datetime, end: datetime, config: SchedulingConfig, normalizer: TimeZoneNormalizer
) -> BookingRejected | None:
    local_start = normalizer.to_local(start)
    local_end = normalizer.to_local(end)
    day_open = time(config.work_hours.start)
    day_close = time(config.work_hours.end)
    details = {
        "localStart": local_start.isoformat(),
        "localEnd": local_end.isoformat(),
        "workHours": {"start": config.work_hours.start, "end": config.work_hours.end},
    }
    if not config.is_operational(weekday_number(local_start.date())):
        details["operationalDays"] = sorted(config.operational_days)
        return OutsideWorkingHours(
            f"{local_start.date().isoformat()} is not an operational day", details=details
        )
    inside = (
        local_start.date() == local_end.date()
        and day_open <= local_start.time() < day_close
        and day_open < local_end.time() <= day_close
    )
    if not inside:
        return OutsideWorkingHours(
            f"Appointment must fall within {day_open:%H:%M}-{day_close:%H:%M}", details=details
        )
    return None


def check_conflicts(
    start: datetime, end: datetime, existing: Iterable[Interval]
) -> BookingRejected | None:
    clashes = find_overlapping(start, end, existing)
    if not clashes:
        return None
    return SlotConflict(
        "Appointment slot is already booked",
        details={
            "startTime": _iso(start),
            "endTime": _iso(end),
            "conflictsWith": [getattr(c, "id", None) for c in clashes],
        },
    )


def validate_booking(
    start: datetime,
    end: datetime,
    existing: Iterable[Interval],
    config: SchedulingConfig,
    normalizer: TimeZoneNormalizer,
) -> BookingDecision:
    """Decide whether a proposed [start, end) may be booked alongside ``existing``."""
    start = ensure_utc(start)
    end = ensure_utc(end)
    error = (
        check_range(start, end)
        or check_alignment(start, end, config, normalizer)
        or check_working_hours(start, end, config, normalizer)
        or check_conflicts(start, end, existing)
    )
    if error is None:
        return ACCEPTED
    return BookingDecision(error=error)
