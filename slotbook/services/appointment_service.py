import asyncio
import logging
import weakref
from datetime import date, datetime, timedelta

from slotbook.core.errors import (
    BookingRejected,
    DuplicateBooking,
    InvalidInput,
    NotFound,
    SlotConflict,
    UnknownUser,
)
from slotbook.models.appointment import Appointment, AppointmentCreate, AppointmentUpdate
from slotbook.models.user import User
from slotbook.scheduling.availability import calculate_available_slots
from slotbook.scheduling.config import SchedulingConfig
from slotbook.scheduling.slots import Slot, SlotGenerator
from slotbook.scheduling.timezone import TimeZoneNormalizer, ensure_utc
from slotbook.scheduling.validator import check_range, validate_booking
from slotbook.services.storage import AppointmentStore, UserLookup

logger = logging.getLogger(__name__)

DEFAULT_MAX_QUERY_DAYS = 62


class UserLocks:
    """One asyncio.Lock per user id, dropped once nobody holds a reference."""

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = weakref.WeakValueDictionary()

    def for_user(self, user_id: int) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock


class AppointmentService:
    """
    Sequences booking validation, availability calculation and storage calls.

    This is the only place that talks to the user lookup and appointment
    store. Writes for one user are serialised through ``locks`` so the
    overlap check and the insert cannot interleave within this process; the
    store's uniqueness constraint covers other processes.

    ``revalidate_on_update`` decides whether an update that changes the
    time range or owner runs the full booking validation again. When off,
    only ``start < end`` is enforced.
    """

    def __init__(
        self,
        config: SchedulingConfig,
        normalizer: TimeZoneNormalizer,
        users: UserLookup,
        store: AppointmentStore,
        *,
        locks: UserLocks | None = None,
        revalidate_on_update: bool = False,
        max_query_days: int = DEFAULT_MAX_QUERY_DAYS,
    ) -> None:
        self.config = config
        self.normalizer = normalizer
        self.users = users
        self.store = store
        self.locks = locks or UserLocks()
        self.revalidate_on_update = revalidate_on_update
        self.max_query_days = max_query_days

    async def _require_user(self, user_id: int) -> User:
        user = await self.users.get_user(user_id)
        if user is None:
            raise UnknownUser(f"User {user_id} not found", details={"userId": user_id})
        return user

    async def _bookings_around(
        self, user_id: int, start: datetime, end: datetime, exclude_id: int | None = None
    ) -> list[Appointment]:
        # Whole local days around the proposal; a superset of anything it could overlap
        window_start, _ = self.normalizer.day_bounds_utc(self.normalizer.local_date(start))
        _, window_end = self.normalizer.day_bounds_utc(self.normalizer.local_date(end))
        bookings = await self.store.find_by_user_and_range(user_id, window_start, window_end)
        return [b for b in bookings if b.id != exclude_id]

    async def _validate(
        self, user_id: int, start: datetime, end: datetime, exclude_id: int | None = None
    ) -> None:
        existing: list[Appointment] = []
        if start < end:
            existing = await self._bookings_around(user_id, start, end, exclude_id)
        decision = validate_booking(start, end, existing, self.config, self.normalizer)
        if not decision.accepted:
            logger.info(
                "Booking rejected for user %s (%s - %s): %s",
                user_id, start.isoformat(), end.isoformat(), decision.error.code,
            )
        decision.raise_for_decision()

    async def create_appointment(self, data: AppointmentCreate) -> Appointment:
        user = await self._require_user(data.user_id)
        start, end = ensure_utc(data.start_time), ensure_utc(data.end_time)
        data = data.model_copy(update={"start_time": start, "end_time": end})
        async with self.locks.for_user(user.id):
            await self._validate(user.id, start, end)
            try:
                appointment = await self.store.create(data)
            except DuplicateBooking as e:
                raise _duplicate_conflict(start, end) from e
        logger.info(
            "Appointment %s booked for user %s: %s - %s",
            appointment.id, user.id, start.isoformat(), end.isoformat(),
        )
        return appointment.with_user(user)

    async def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = await self.store.get(appointment_id)
        if appointment is None:
            raise NotFound(
                f"Appointment {appointment_id} not found", details={"appointmentId": appointment_id}
            )
        return appointment.with_user(await self.users.get_user(appointment.user_id))

    async def list_appointments(self) -> list[Appointment]:
        appointments = await self.store.list_all()
        users = await self.users.get_users({a.user_id for a in appointments})
        return [a.with_user(users.get(a.user_id)) for a in appointments]

    async def update_appointment(
        self, appointment_id: int, changes: AppointmentUpdate
    ) -> Appointment:
        current = await self.get_appointment(appointment_id)
        fields = changes.model_dump(exclude_unset=True)
        # Only description may be cleared with null
        for name in ("title", "start_time", "end_time", "user_id"):
            if fields.get(name) is None:
                fields.pop(name, None)
        for name in ("start_time", "end_time"):
            if name in fields:
                fields[name] = ensure_utc(fields[name])

        user = current.user
        if "user_id" in fields:
            user = await self._require_user(fields["user_id"])

        start = fields.get("start_time", current.start_time)
        end = fields.get("end_time", current.end_time)
        owner_id = fields.get("user_id", current.user_id)

        async with self.locks.for_user(owner_id):
            if self.revalidate_on_update and changes.touches_schedule():
                await self._validate(owner_id, start, end, exclude_id=appointment_id)
            else:
                error = check_range(start, end)
                if error is not None:
                    raise error
            try:
                updated = await self.store.update(appointment_id, fields)
            except DuplicateBooking as e:
                raise _duplicate_conflict(start, end) from e
        if updated is None:
            raise NotFound(
                f"Appointment {appointment_id} not found", details={"appointmentId": appointment_id}
            )
        logger.info("Appointment %s updated: %s", appointment_id, sorted(fields))
        return updated.with_user(user)

    async def delete_appointment(self, appointment_id: int) -> None:
        if not await self.store.delete(appointment_id):
            raise NotFound(
                f"Appointment {appointment_id} not found", details={"appointmentId": appointment_id}
            )
        logger.info("Appointment %s deleted", appointment_id)

    async def get_available_slots(
        self, user_id: int, start_date: date, end_date: date
    ) -> list[Slot]:
        if start_date > end_date:
            raise InvalidInput(
                "startDate must not be after endDate",
                details={"startDate": start_date.isoformat(), "endDate": end_date.isoformat()},
            )
        days = (end_date - start_date).days + 1
        if days > self.max_query_days:
            raise InvalidInput(
                f"Date range spans {days} days; at most {self.max_query_days} allowed",
                details={"startDate": start_date.isoformat(), "endDate": end_date.isoformat()},
            )
        await self._require_user(user_id)
        window_start, window_end = self.normalizer.range_bounds_utc(start_date, end_date)
        # 23:59:59.999 is inclusive; widen by 1ms for the half-open store query
        bookings = await self.store.find_by_user_and_range(
            user_id, window_start, window_end + timedelta(milliseconds=1)
        )
        slots = SlotGenerator(self.config, start_date, end_date, self.normalizer)
        return calculate_available_slots(slots, bookings, self.normalizer)


def _duplicate_conflict(start: datetime, end: datetime) -> BookingRejected:
    return SlotConflict(
        "Appointment slot is already booked",
        details={"startTime": start.isoformat(), "endTime": end.isoformat()},
    )
