from fastapi import APIRouter, Depends, Query, status

from slotbook.api.deps import get_appointment_service
from slotbook.api.schemas.appointment import (
    AppointmentResponse,
    CreateAppointmentRequest,
    SlotInfo,
    UpdateAppointmentRequest,
)
from slotbook.core.errors import InvalidInput
from slotbook.scheduling.timezone import parse_civil_date
from slotbook.services.appointment_service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["appointments"])


def _parse_user_id(raw: str) -> int:
    try:
        user_id = int(raw)
    except ValueError:
        user_id = 0
    if user_id <= 0:
        raise InvalidInput("Invalid userId parameter", details={"field": "userId", "value": raw})
    return user_id


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    body: CreateAppointmentRequest,
    service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentResponse:
    appointment = await service.create_appointment(body.to_create())
    return AppointmentResponse.from_appointment(appointment)


@router.get("/slots", response_model=list[SlotInfo])
async def get_available_slots(
    user_id: str = Query(..., alias="userId"),
    start_date: str = Query(..., alias="startDate"),
    end_date: str = Query(..., alias="endDate"),
    service: AppointmentService = Depends(get_appointment_service),
) -> list[SlotInfo]:
    """Slots for each operational day in [startDate, endDate], local civil time, with availability."""
    uid = _parse_user_id(user_id)
    start = parse_civil_date(start_date, "startDate")
    end = parse_civil_date(end_date, "endDate")
    slots = await service.get_available_slots(uid, start, end)
    return [SlotInfo.from_slot(s) for s in slots]


@router.get("", response_model=list[AppointmentResponse])
async def list_appointments(
    service: AppointmentService = Depends(get_appointment_service),
) -> list[AppointmentResponse]:
    appointments = await service.list_appointments()
    return [AppointmentResponse.from_appointment(a) for a in appointments]


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentResponse:
    return AppointmentResponse.from_appointment(await service.get_appointment(appointment_id))


@router.put("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: int,
    body: UpdateAppointmentRequest,
    service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentResponse:
    appointment = await service.update_appointment(appointment_id, body.to_update())
    return AppointmentResponse.from_appointment(appointment)


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment(
    appointment_id: int,
    service: AppointmentService = Depends(get_appointment_service),
) -> None:
    await service.delete_appointment(appointment_id)
