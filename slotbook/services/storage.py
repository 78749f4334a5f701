"""
Collaborator interfaces used by the appointment service.

Implementations may block on I/O and may fail; the service does not retry.
A store signals a uniqueness violation on a user's slot with
``DuplicateBooking`` and any other failure with ``StorageFailure``.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Any, Protocol

from slotbook.models.appointment import Appointment, AppointmentCreate
from slotbook.models.user import User


class UserLookup(Protocol):
    async def get_user(self, user_id: int) -> User | None: ...

    async def get_users(self, user_ids: Iterable[int]) -> dict[int, User]: ...


class AppointmentStore(Protocol):
    async def create(self, data: AppointmentCreate) -> Appointment: ...

    async def get(self, appointment_id: int) -> Appointment | None: ...

    async def list_all(self) -> list[Appointment]: ...

    async def find_by_user_and_range(
        self, user_id: int, start: datetime, end: datetime
    ) -> list[Appointment]:
        """Bookings of ``user_id`` overlapping [start, end), ordered by start."""
        ...

    async def update(self, appointment_id: int, changes: dict[str, Any]) -> Appointment | None: ...

    async def delete(self, appointment_id: int) -> bool: ...
