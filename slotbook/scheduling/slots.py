"""
Slot generation.

Slots are computed on demand in local civil time from the scheduling
configuration and are never persisted.
"""

from collections.abc import Iterator
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta

from slotbook.scheduling.config import SchedulingConfig
from slotbook.scheduling.timezone import TimeZoneNormalizer, iter_days


@dataclass(frozen=True, order=True)
class Slot:
    date: date
    start: time
    end: time
    available: bool = True

    @property
    def time_start(self) -> str:
        return self.start.strftime("%H:%M")

    @property
    def time_end(self) -> str:
        return self.end.strftime("%H:%M")

    @property
    def length(self) -> timedelta:
        return datetime.combine(self.date, self.end) - datetime.combine(self.date, self.start)

    def bounds_utc(self, normalizer: TimeZoneNormalizer) -> tuple[datetime, datetime]:
        # End is start + slot length so a slot never stretches or shrinks across a DST change
        start = normalizer.to_utc(self.date, self.start)
        return start, start + self.length

    def with_availability(self, available: bool) -> "Slot":
        return replace(self, available=available)

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "timeStart": self.time_start,
            "timeEnd": self.time_end,
            "available": int(self.available),
        }


def weekday_number(d: date) -> int:
    """0=Sunday..6=Saturday."""
    return d.isoweekday() % 7


def slots_for_day(
    d: date, config: SchedulingConfig, normalizer: TimeZoneNormalizer | None = None
) -> Iterator[Slot]:
    """
    The civil slot grid of one day.

    With a ``normalizer``, slots starting at a wall-clock time the zone
    skips (spring-forward gap) are left out. On a fall-back day the
    repeated hour is listed once.
    """
    if not config.is_operational(weekday_number(d)):
        return
    step = timedelta(minutes=config.slot_duration_minutes)
    current = datetime.combine(d, time(config.work_hours.start))
    day_end = datetime.combine(d, time(config.work_hours.end))
    while current + step <= day_end:
        if normalizer is None or normalizer.exists(d, current.time()):
            yield Slot(date=d, start=current.time(), end=(current + step).time())
        current += step


class SlotGenerator:
    """
    Ordered candidate slots between two civil dates, both inclusive.

    Iteration is lazy and can be repeated; each ``iter()`` starts over.
    A reversed range yields nothing.
    """

    def __init__(
        self,
        config: SchedulingConfig,
        start_date: date,
        end_date: date,
        normalizer: TimeZoneNormalizer | None = None,
    ) -> None:
        self.config = config
        self.start_date = start_date
        self.end_date = end_date
        self.normalizer = normalizer

    def __iter__(self) -> Iterator[Slot]:
        for d in iter_days(self.start_date, self.end_date):
            yield from slots_for_day(d, self.config, self.normalizer)


def generate_slots(
    config: SchedulingConfig,
    start_date: date,
    end_date: date,
    normalizer: TimeZoneNormalizer | None = None,
) -> list[Slot]:
    return list(SlotGenerator(config, start_date, end_date, normalizer))
