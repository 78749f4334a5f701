"""Mark generated slots as free or occupied against existing bookings."""

from collections.abc import Iterable, Iterator, Sequence

from slotbook.scheduling.overlap import Interval, overlaps
from slotbook.scheduling.slots import Slot
from slotbook.scheduling.timezone import TimeZoneNormalizer, ensure_utc


def mark_availability(
    slots: Iterable[Slot],
    bookings: Sequence[Interval],
    normalizer: TimeZoneNormalizer,
) -> Iterator[Slot]:
    """
    Yield each slot, in order, with ``available`` set.

    A slot is occupied if any booking overlaps it; several bookings on the
    same interval still just make it occupied. Slots are compared as UTC
    instants of their local civil bounds.
    """
    intervals = [(ensure_utc(b.start_time), ensure_utc(b.end_time)) for b in bookings]
    for slot in slots:
        slot_start, slot_end = slot.bounds_utc(normalizer)
        occupied = any(overlaps(slot_start, slot_end, b_start, b_end) for b_start, b_end in intervals)
        yield slot.with_availability(not occupied)


def calculate_available_slots(
    slots: Iterable[Slot],
    bookings: Sequence[Interval],
    normalizer: TimeZoneNormalizer,
) -> list[Slot]:
    return list(mark_availability(slots, bookings, normalizer))
