import uuid
from datetime import date
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.clock import Clock, get_clock
from app.core.db import get_session
from app.core.security import require_scopes
from app.modules.schedules.service import ScheduleService
from app.modules.schedules.schemas import (
    WeeklySlotCreate, WeeklySlotOut, WeeklyScheduleReplace, WeeklySlotStatus, WeeklyDayOut,
    OverrideCreate, OverrideOut,
)

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session), clock: Clock = Depends(get_clock)) -> ScheduleService:
    return ScheduleService(session, clock)

# Weekly template
@router.get("/{doctor_id}/schedule", response_model=dict[str, WeeklyDayOut], dependencies=[Depends(require_scopes("schedules:read"))])
async def get_weekly_schedule(doctor_id: uuid.UUID, service: ScheduleService = Depends(svc)):
    return await service.get_weekly_schedule(doctor_id)

@router.post("/{doctor_id}/schedule", response_model=WeeklySlotOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_scopes("schedules:write"))])
async def add_weekly_slot(doctor_id: uuid.UUID, payload: WeeklySlotCreate, service: ScheduleService = Depends(svc)):
    return await service.add_weekly_slot(doctor_id, payload)

@router.put("/{doctor_id}/schedule", response_model=list[WeeklySlotOut], dependencies=[Depends(require_scopes("schedules:write"))])
async def replace_weekly_schedule(doctor_id: uuid.UUID, payload: WeeklyScheduleReplace, service: ScheduleService = Depends(svc)):
    return await service.replace_weekly_schedule(doctor_id, payload.schedules)

@router.patch("/{doctor_id}/schedule/{schedule_id}", response_model=WeeklySlotOut, dependencies=[Depends(require_scopes("schedules:write"))])
async def set_weekly_slot_status(doctor_id: uuid.UUID, schedule_id: uuid.UUID, payload: WeeklySlotStatus, service: ScheduleService = Depends(svc)):
    return await service.set_weekly_slot_active(doctor_id, schedule_id, payload.is_active)

@router.delete("/{doctor_id}/schedule/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_scopes("schedules:write"))])
async def remove_weekly_slot(doctor_id: uuid.UUID, schedule_id: uuid.UUID, service: ScheduleService = Depends(svc)):
    await service.remove_weekly_slot(doctor_id, schedule_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# Overrides
@router.get("/{doctor_id}/overrides", response_model=list[OverrideOut], dependencies=[Depends(require_scopes("schedules:read"))])
async def list_overrides(
    doctor_id: uuid.UUID,
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    service: ScheduleService = Depends(svc),
):
    return await service.list_overrides(doctor_id, start_date, end_date)

@router.post("/{doctor_id}/overrides", response_model=OverrideOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_scopes("schedules:write"))])
async def add_override(doctor_id: uuid.UUID, payload: OverrideCreate, service: ScheduleService = Depends(svc)):
    return await service.add_override(doctor_id, payload)

@router.delete("/{doctor_id}/overrides/{override_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_scopes("schedules:write"))])
async def remove_override(doctor_id: uuid.UUID, override_id: uuid.UUID, service: ScheduleService = Depends(svc)):
    await service.remove_override(doctor_id, override_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
