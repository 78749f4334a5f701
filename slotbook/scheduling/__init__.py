from slotbook.scheduling.availability import calculate_available_slots, mark_availability
from slotbook.scheduling.config import SchedulingConfig, load_scheduling_config, parse_scheduling_config
from slotbook.scheduling.overlap import overlaps
from slotbook.scheduling.slots import Slot, SlotGenerator, generate_slots
from slotbook.scheduling.timezone import TimeZoneNormalizer
from slotbook.scheduling.validator import BookingDecision, validate_booking

__all__ = [
    "BookingDecision",
    "SchedulingConfig",
    "Slot",
    "SlotGenerator",
    "TimeZoneNormalizer",
    "calculate_available_slots",
    "generate_slots",
    "load_scheduling_config",
    "mark_availability",
    "overlaps",
    "parse_scheduling_config",
    "validate_booking",
]
