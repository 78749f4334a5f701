"""Interval overlap, the one comparison used for both conflicts and availability."""

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from slotbook.scheduling.timezone import ensure_utc


class Interval(Protocol):
    start_time: datetime
    end_time: datetime


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """
    True if [a_start, a_end) and [b_start, b_end) share any instant.

    Half-open: back-to-back intervals do not overlap.
    """
    return a_start < b_end and b_start < a_end


def find_overlapping(start: datetime, end: datetime, intervals: Iterable[Interval]) -> list[Interval]:
    """Intervals clashing with [start, end). Naive datetimes on either side are read as UTC."""
    start, end = ensure_utc(start), ensure_utc(end)
    return [
        i for i in intervals
        if overlaps(start, end, ensure_utc(i.start_time), ensure_utc(i.end_time))
    ]
