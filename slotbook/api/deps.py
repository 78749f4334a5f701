from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from slotbook.core.config import settings
from slotbook.core.db import get_session
from slotbook.scheduling.config import SchedulingConfig
from slotbook.scheduling.timezone import TimeZoneNormalizer
from slotbook.services.appointment_service import AppointmentService, UserLocks
from slotbook.services.sql_store import SqlAppointmentStore, SqlUserLookup


def get_scheduling_config(request: Request) -> SchedulingConfig:
    """Scheduling document loaded once at startup (see slotbook.main.lifespan)."""
    return request.app.state.scheduling_config


def get_normalizer(request: Request) -> TimeZoneNormalizer:
    return request.app.state.normalizer


def get_user_locks(request: Request) -> UserLocks:
    return request.app.state.user_locks


def get_appointment_service(
    session: AsyncSession = Depends(get_session),
    config: SchedulingConfig = Depends(get_scheduling_config),
    normalizer: TimeZoneNormalizer = Depends(get_normalizer),
    locks: UserLocks = Depends(get_user_locks),
) -> AppointmentService:
    return AppointmentService(
        config,
        normalizer,
        SqlUserLookup(session),
        SqlAppointmentStore(session),
        locks=locks,
        revalidate_on_update=settings.revalidate_on_update,
        max_query_days=settings.max_query_days,
    )
