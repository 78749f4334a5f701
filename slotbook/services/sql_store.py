import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from slotbook.core.errors import DuplicateBooking, StorageFailure
from slotbook.models.appointment import (
    UNIQUE_SLOT_CONSTRAINT,
    Appointment,
    AppointmentCreate,
    AppointmentRow,
)
from slotbook.models.user import User, UserRow
from slotbook.scheduling.timezone import to_naive_utc

logger = logging.getLogger(__name__)

_TIME_FIELDS = ("start_time", "end_time")


def _storage_failure(action: str, e: SQLAlchemyError) -> StorageFailure:
    logger.exception("Storage failure while %s: %s", action, e)
    return StorageFailure(f"Storage unavailable while {action}", details={"error": type(e).__name__})


class SqlUserLookup:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_user(self, user_id: int) -> User | None:
        try:
            row = await self.session.get(UserRow, user_id)
        except SQLAlchemyError as e:
            raise _storage_failure("looking up user", e) from e
        return row.to_entity() if row else None

    async def get_users(self, user_ids: Iterable[int]) -> dict[int, User]:
        ids = set(user_ids)
        if not ids:
            return {}
        try:
            result = await self.session.execute(select(UserRow).where(UserRow.id.in_(ids)))
        except SQLAlchemyError as e:
            raise _storage_failure("looking up users", e) from e
        return {row.id: row.to_entity() for row in result.scalars().all()}


class SqlAppointmentStore:
    """
    Appointment storage on an async SQLAlchemy session.

    Writes commit immediately so a per-user lock held by the caller covers
    the whole validate-then-write sequence.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _commit(self, action: str) -> None:
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            if UNIQUE_SLOT_CONSTRAINT in str(e.orig):
                raise DuplicateBooking(str(e.orig)) from e
            raise _storage_failure(action, e) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise _storage_failure(action, e) from e

    async def create(self, data: AppointmentCreate) -> Appointment:
        row = AppointmentRow(
            title=data.title,
            description=data.description,
            start_time=to_naive_utc(data.start_time),
            end_time=to_naive_utc(data.end_time),
            user_id=data.user_id,
        )
        self.session.add(row)
        await self._commit("creating appointment")
        try:
            await self.session.refresh(row)
        except SQLAlchemyError as e:
            raise _storage_failure("creating appointment", e) from e
        return row.to_entity()

    async def get(self, appointment_id: int) -> Appointment | None:
        try:
            row = await self.session.get(AppointmentRow, appointment_id)
        except SQLAlchemyError as e:
            raise _storage_failure("loading appointment", e) from e
        return row.to_entity() if row else None

    async def list_all(self) -> list[Appointment]:
        try:
            result = await self.session.execute(
                select(AppointmentRow).order_by(AppointmentRow.start_time, AppointmentRow.id)
            )
        except SQLAlchemyError as e:
            raise _storage_failure("listing appointments", e) from e
        return [row.to_entity() for row in result.scalars().all()]

    async def find_by_user_and_range(
        self, user_id: int, start: datetime, end: datetime
    ) -> list[Appointment]:
        q = (
            select(AppointmentRow)
            .where(
                AppointmentRow.user_id == user_id,
                AppointmentRow.start_time < to_naive_utc(end),
                AppointmentRow.end_time > to_naive_utc(start),
            )
            .order_by(AppointmentRow.start_time)
        )
        try:
            result = await self.session.execute(q)
        except SQLAlchemyError as e:
            raise _storage_failure("querying appointments", e) from e
        return [row.to_entity() for row in result.scalars().all()]

    async def update(self, appointment_id: int, changes: dict[str, Any]) -> Appointment | None:
        try:
            row = await self.session.get(AppointmentRow, appointment_id)
        except SQLAlchemyError as e:
            raise _storage_failure("loading appointment", e) from e
        if row is None:
            return None
        for field, value in changes.items():
            if field in _TIME_FIELDS:
                value = to_naive_utc(value)
            setattr(row, field, value)
        await self._commit("updating appointment")
        try:
            await self.session.refresh(row)
        except SQLAlchemyError as e:
            raise _storage_failure("updating appointment", e) from e
        return row.to_entity()

    async def delete(self, appointment_id: int) -> bool:
        try:
            row = await self.session.get(AppointmentRow, appointment_id)
            if row is None:
                return False
            await self.session.delete(row)
        except SQLAlchemyError as e:
            raise _storage_failure("deleting appointment", e) from e
        await self._commit("deleting appointment")
        return True
