"""Booking validation: order of checks and each rejection reason."""

from datetime import datetime
from types import SimpleNamespace

import pytest

from conftest import make_config, utc
from slotbook.core.errors import (
    InvalidRange,
    MisalignedSlot,
    OutsideWorkingHours,
    SlotConflict,
)
from slotbook.scheduling.timezone import TimeZoneNormalizer
from slotbook.scheduling.validator import validate_booking

UTC_TZ = TimeZoneNormalizer("UTC")


def booking(start, end, id=1):
    return SimpleNamespace(id=id, start_time=start, end_time=end)


def decide(start, end, existing=(), config=None, normalizer=UTC_TZ):
    return validate_booking(start, end, list(existing), config or make_config(), normalizer)


class TestAccept:
    def test_aligned_free_slot_is_accepted(self):
        decision = decide(utc(2026, 10, 19, 9, 0), utc(2026, 10, 19, 9, 30))

        assert decision.accepted
        assert decision.error is None
        decision.raise_for_decision()

    def test_last_slot_ending_at_close_is_accepted(self):
        assert decide(utc(2026, 10, 19, 17, 30), utc(2026, 10, 19, 18, 0)).accepted

    def test_back_to_back_with_existing_is_accepted(self):
        existing = [booking(utc(2026, 10, 19, 10, 0), utc(2026, 10, 19, 10, 30))]
        assert decide(utc(2026, 10, 19, 10, 30), utc(2026, 10, 19, 11, 0), existing).accepted

    def test_naive_datetimes_are_read_as_utc(self):
        assert decide(datetime(2026, 10, 19, 9, 0), datetime(2026, 10, 19, 9, 30)).accepted

    def test_naive_existing_bookings_are_read_as_utc(self):
        existing = [booking(datetime(2026, 10, 19, 10, 0), datetime(2026, 10, 19, 10, 30))]

        assert decide(utc(2026, 10, 19, 10, 30), utc(2026, 10, 19, 11, 0), existing).accepted
        decision = decide(utc(2026, 10, 19, 10, 0), utc(2026, 10, 19, 10, 30), existing)
        assert isinstance(decision.error, SlotConflict)


class TestInvalidRange:
    def test_end_before_start(self):
        decision = decide(utc(2026, 10, 19, 10, 0), utc(2026, 10, 19, 9, 30))
        assert isinstance(decision.error, InvalidRange)

    def test_zero_length(self):
        decision = decide(utc(2026, 10, 19, 10, 0), utc(2026, 10, 19, 10, 0))
        assert isinstance(decision.error, InvalidRange)
        with pytest.raises(InvalidRange):
            decision.raise_for_decision()


class TestMisalignedSlot:
    def test_start_not_on_slot_boundary(self):
        # 30-minute slots: minute 10 is not a multiple of 30
        decision = decide(utc(2026, 10, 19, 9, 10), utc(2026, 10, 19, 9, 40))

        assert isinstance(decision.error, MisalignedSlot)
        assert decision.error.code == "MISALIGNED_SLOT"
        assert decision.error.details["slotDurationMinutes"] == 30

    def test_longer_than_one_slot(self):
        decision = decide(utc(2026, 10, 19, 9, 0), utc(2026, 10, 19, 10, 0))
        assert isinstance(decision.error, MisalignedSlot)

    def test_shorter_than_one_slot(self):
        decision = decide(utc(2026, 10, 19, 9, 0), utc(2026, 10, 19, 9, 15))
        assert isinstance(decision.error, MisalignedSlot)

    def test_seconds_are_not_rounded_away(self):
        decision = decide(utc(2026, 10, 19, 9, 0, 30), utc(2026, 10, 19, 9, 30, 30))
        assert isinstance(decision.error, MisalignedSlot)

    def test_alignment_checked_before_working_hours(self):
        # 17:45-18:15 with 30-minute slots fails alignment first
        decision = decide(utc(2026, 10, 19, 17, 45), utc(2026, 10, 19, 18, 15))
        assert isinstance(decision.error, MisalignedSlot)

    def test_boundaries_follow_work_start_for_long_slots(self):
        config = make_config(workHours={"start": 9, "end": 18}, slotDuration=90)

        assert decide(utc(2026, 10, 19, 10, 30), utc(2026, 10, 19, 12, 0), config=config).accepted
        misaligned = decide(utc(2026, 10, 19, 10, 0), utc(2026, 10, 19, 11, 30), config=config)
        assert isinstance(misaligned.error, MisalignedSlot)


class TestMultiSlotBookings:
    CONFIG = make_config(slotDuration=15, maxSlotsPerAppointment=4, multiSlotBookings=True)

    def test_contiguous_slots_up_to_the_limit(self):
        assert decide(utc(2026, 10, 19, 9, 0), utc(2026, 10, 19, 10, 0), config=self.CONFIG).accepted

    def test_more_than_the_limit_is_misaligned(self):
        decision = decide(utc(2026, 10, 19, 9, 0), utc(2026, 10, 19, 10, 15), config=self.CONFIG)
        assert isinstance(decision.error, MisalignedSlot)

    def test_partial_slot_is_misaligned(self):
        decision = decide(utc(2026, 10, 19, 9, 0), utc(2026, 10, 19, 9, 20), config=self.CONFIG)
        assert isinstance(decision.error, MisalignedSlot)

    def test_crossing_close_is_outside_working_hours(self):
        decision = decide(utc(2026, 10, 19, 17, 45), utc(2026, 10, 19, 18, 15), config=self.CONFIG)

        assert isinstance(decision.error, OutsideWorkingHours)

    def test_conflict_only_for_same_user_bookings(self):
        mine = [booking(utc(2026, 10, 19, 10, 0), utc(2026, 10, 19, 10, 30))]
        proposed = (utc(2026, 10, 19, 10, 15), utc(2026, 10, 19, 10, 45))

        assert isinstance(decide(*proposed, mine, config=self.CONFIG).error, SlotConflict)
        # another user's bookings are not passed in
        assert decide(*proposed, [], config=self.CONFIG).accepted


class TestOutsideWorkingHours:
    def test_before_open(self):
        decision = decide(utc(2026, 10, 19, 8, 30), utc(2026, 10, 19, 9, 0))
        assert isinstance(decision.error, OutsideWorkingHours)

    def test_starting_at_close(self):
        decision = decide(utc(2026, 10, 19, 18, 0), utc(2026, 10, 19, 18, 30))
        assert isinstance(decision.error, OutsideWorkingHours)

    def test_non_operational_day(self):
        # 2026-10-25 is a Sunday
        decision = decide(utc(2026, 10, 25, 10, 0), utc(2026, 10, 25, 10, 30))

        assert isinstance(decision.error, OutsideWorkingHours)
        assert decision.error.details["operationalDays"] == [1, 2, 3, 4, 5]

    def test_hours_are_checked_in_local_time(self):
        new_york = TimeZoneNormalizer("America/New_York")
        # 13:00Z is 09:00 EDT
        assert decide(utc(2026, 10, 19, 13, 0), utc(2026, 10, 19, 13, 30), normalizer=new_york).accepted
        early = decide(utc(2026, 10, 19, 9, 0), utc(2026, 10, 19, 9, 30), normalizer=new_york)
        assert isinstance(early.error, OutsideWorkingHours)

    def test_local_weekday_decides_operational_day(self):
        new_york = TimeZoneNormalizer("America/New_York")
        # Monday 02:00Z is still Sunday evening in New York
        config = make_config(workHours={"start": 0, "end": 23})
        decision = decide(
            utc(2026, 10, 19, 2, 0), utc(2026, 10, 19, 2, 30), config=config, normalizer=new_york
        )
        assert isinstance(decision.error, OutsideWorkingHours)


class TestSlotConflict:
    def test_overlapping_existing_booking(self):
        existing = [booking(utc(2026, 10, 19, 10, 0), utc(2026, 10, 19, 10, 30), id=7)]

        decision = decide(utc(2026, 10, 19, 10, 0), utc(2026, 10, 19, 10, 30), existing)

        assert isinstance(decision.error, SlotConflict)
        assert decision.error.details["conflictsWith"] == [7]
        assert decision.error.status_code == 409

    def test_conflict_checked_last(self):
        existing = [booking(utc(2026, 10, 19, 10, 0), utc(2026, 10, 19, 10, 30))]
        decision = decide(utc(2026, 10, 19, 10, 10), utc(2026, 10, 19, 10, 40), existing)
        assert isinstance(decision.error, MisalignedSlot)
