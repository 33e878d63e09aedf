import uuid
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.clock import Clock, get_clock
from app.core.db import get_session
from app.core.security import require_scopes
from app.modules.availability.service import AvailabilityService, parse_date
from app.modules.availability.schemas import AvailabilityOut, DayAvailabilityOut, AvailableDatesOut

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session), clock: Clock = Depends(get_clock)) -> AvailabilityService:
    return AvailabilityService(session, clock)

# dates and types arrive as raw strings so bad values become InvalidArgumentError (400)

@router.get("/{doctor_id}/availability", response_model=AvailabilityOut, dependencies=[Depends(require_scopes("schedules:read"))])
async def get_availability(
    doctor_id: uuid.UUID,
    date: str = Query(...),
    consultation_type: str = Query(default="in_person", alias="consultationType"),
    service: AvailabilityService = Depends(svc),
):
    on = parse_date(date)
    slots = await service.get_available_slots(doctor_id, on, consultation_type)
    return {"doctor_id": doctor_id, "date": on, "consultation_type": consultation_type, "slots": slots}

@router.get("/{doctor_id}/availability/range", response_model=list[DayAvailabilityOut], dependencies=[Depends(require_scopes("schedules:read"))])
async def get_range_availability(
    doctor_id: uuid.UUID,
    start_date: str = Query(..., alias="startDate"),
    days: int = Query(default=7),
    consultation_type: str = Query(default="in_person", alias="consultationType"),
    service: AvailabilityService = Depends(svc),
):
    return await service.get_range_availability(doctor_id, start_date, days, consultation_type)

@router.get("/{doctor_id}/available-dates", response_model=AvailableDatesOut, dependencies=[Depends(require_scopes("schedules:read"))])
async def get_available_dates(
    doctor_id: uuid.UUID,
    start_date: str = Query(..., alias="startDate"),
    end_date: str = Query(..., alias="endDate"),
    consultation_type: str = Query(default="in_person", alias="consultationType"),
    service: AvailabilityService = Depends(svc),
):
    dates = await service.get_available_dates(doctor_id, start_date, end_date, consultation_type)
    return {"doctor_id": doctor_id, "start_date": parse_date(start_date), "end_date": parse_date(end_date), "dates": dates}
