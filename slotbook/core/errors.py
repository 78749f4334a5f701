"""
Scheduling error taxonomy.

Every error carries a stable machine-readable ``code`` so clients can branch
on it, and an HTTP status used by the exception handler in ``slotbook.main``.
"""

from typing import Any


class SchedulingError(Exception):
    """Base for all errors surfaced to callers of the scheduling service."""

    code = "SCHEDULING_ERROR"
    status_code = 400
    retryable = False

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "retryable": self.retryable,
        }


class InvalidInput(SchedulingError):
    """Malformed or missing request parameters."""

    code = "INVALID_INPUT"
    status_code = 400


class UnknownUser(SchedulingError):
    code = "UNKNOWN_USER"
    status_code = 404


class NotFound(SchedulingError):
    code = "APPOINTMENT_NOT_FOUND"
    status_code = 404


class BookingRejected(SchedulingError):
    """A proposed booking failed one of the booking invariants."""

    code = "BOOKING_REJECTED"
    status_code = 422


class InvalidRange(BookingRejected):
    code = "INVALID_RANGE"


class MisalignedSlot(BookingRejected):
    code = "MISALIGNED_SLOT"


class OutsideWorkingHours(BookingRejected):
    code = "OUTSIDE_WORKING_HOURS"


class SlotConflict(BookingRejected):
    code = "SLOT_CONFLICT"
    status_code = 409


class StorageFailure(SchedulingError):
    """A storage or user-lookup collaborator failed. Safe to retry."""

    code = "STORAGE_FAILURE"
    status_code = 503
    retryable = True


class DuplicateBooking(Exception):
    """Raised by a store when its uniqueness constraint on a user's slot fires."""


class ConfigurationError(Exception):
    """Scheduling configuration is missing or malformed. Fatal at startup."""
