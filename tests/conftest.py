from collections.abc import Iterable
from dataclasses import replace
from datetime import UTC, date, datetime
from typing import Any

import pytest

from slotbook.core.errors import DuplicateBooking, StorageFailure
from slotbook.models.appointment import Appointment, AppointmentCreate
from slotbook.models.user import User
from slotbook.scheduling.config import SchedulingConfig, parse_scheduling_config
from slotbook.scheduling.overlap import overlaps
from slotbook.scheduling.timezone import TimeZoneNormalizer
from slotbook.services.appointment_service import AppointmentService

# 2026-10-19 is a Monday
MONDAY = date(2026, 10, 19)


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=UTC)


def make_config(**overrides: Any) -> SchedulingConfig:
    doc = {
        "workHours": {"start": 9, "end": 18},
        "slotDuration": 30,
        "maxSlotsPerAppointment": 4,
        "operationalDays": [1, 2, 3, 4, 5],
    }
    doc.update(overrides)
    return parse_scheduling_config(doc)


class FakeUsers:
    def __init__(self, *users: User) -> None:
        self.users = {u.id: u for u in users}
        self.calls = 0

    async def get_user(self, user_id: int) -> User | None:
        self.calls += 1
        return self.users.get(user_id)

    async def get_users(self, user_ids: Iterable[int]) -> dict[int, User]:
        return {i: self.users[i] for i in user_ids if i in self.users}


class FakeStore:
    """In-memory appointment store with the same uniqueness rule as the SQL table."""

    def __init__(self) -> None:
        self.rows: dict[int, Appointment] = {}
        self.next_id = 1
        self.fail_with: Exception | None = None
        self.range_queries: list[tuple[int, datetime, datetime]] = []

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def _assert_unique(self, candidate: Appointment) -> None:
        for row in self.rows.values():
            if row.id == candidate.id:
                continue
            key = (row.user_id, row.start_time, row.end_time)
            if key == (candidate.user_id, candidate.start_time, candidate.end_time):
                raise DuplicateBooking("uq_appointments_user_slot")

    def seed(self, user_id: int, start: datetime, end: datetime, title: str = "seeded") -> Appointment:
        row = Appointment(
            id=self.next_id, title=title, description=None,
            start_time=start, end_time=end, user_id=user_id,
        )
        self.rows[row.id] = row
        self.next_id += 1
        return row

    async def create(self, data: AppointmentCreate) -> Appointment:
        self._check()
        row = Appointment(
            id=self.next_id,
            title=data.title,
            description=data.description,
            start_time=data.start_time,
            end_time=data.end_time,
            user_id=data.user_id,
        )
        self._assert_unique(row)
        self.rows[row.id] = row
        self.next_id += 1
        return row

    async def get(self, appointment_id: int) -> Appointment | None:
        self._check()
        return self.rows.get(appointment_id)

    async def list_all(self) -> list[Appointment]:
        self._check()
        return sorted(self.rows.values(), key=lambda a: (a.start_time, a.id))

    async def find_by_user_and_range(
        self, user_id: int, start: datetime, end: datetime
    ) -> list[Appointment]:
        self._check()
        self.range_queries.append((user_id, start, end))
        return sorted(
            (
                a for a in self.rows.values()
                if a.user_id == user_id and overlaps(a.start_time, a.end_time, start, end)
            ),
            key=lambda a: a.start_time,
        )

    async def update(self, appointment_id: int, changes: dict[str, Any]) -> Appointment | None:
        self._check()
        row = self.rows.get(appointment_id)
        if row is None:
            return None
        updated = replace(row, **changes)
        self._assert_unique(updated)
        self.rows[appointment_id] = updated
        return updated

    async def delete(self, appointment_id: int) -> bool:
        self._check()
        return self.rows.pop(appointment_id, None) is not None


ALICE = User(id=1, name="Alice", email="alice@example.com")
BOB = User(id=2, name="Bob", email="bob@example.com")


@pytest.fixture
def config() -> SchedulingConfig:
    return make_config()


@pytest.fixture
def normalizer() -> TimeZoneNormalizer:
    return TimeZoneNormalizer("UTC")


@pytest.fixture
def users() -> FakeUsers:
    return FakeUsers(ALICE, BOB)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def service(config, normalizer, users, store) -> AppointmentService:
    return AppointmentService(config, normalizer, users, store)


@pytest.fixture
def storage_down() -> StorageFailure:
    return StorageFailure("Storage unavailable while querying appointments")
