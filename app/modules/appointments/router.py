import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.clock import Clock, get_clock
from app.core.db import get_session
from app.core.security import require_scopes
from app.modules.appointments.schemas import BookingCreate, AppointmentStatusChange, AppointmentOut
from app.modules.appointments.service import BookingService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session), clock: Clock = Depends(get_clock)) -> BookingService:
    return BookingService(session, clock)

@router.post("/doctors/{doctor_id}/appointments", response_model=AppointmentOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_scopes("appointments:write"))])
async def create_booking(doctor_id: uuid.UUID, payload: BookingCreate, service: BookingService = Depends(svc)):
    return await service.create_booking(doctor_id, payload)

@router.get("/appointments/{appointment_id}", response_model=AppointmentOut, dependencies=[Depends(require_scopes("appointments:read"))])
async def get_appointment(appointment_id: uuid.UUID, service: BookingService = Depends(svc)):
    return await service.get(appointment_id)

@router.post("/appointments/{appointment_id}/status", response_model=AppointmentOut, dependencies=[Depends(require_scopes("appointments:write"))])
async def change_appointment_status(appointment_id: uuid.UUID, payload: AppointmentStatusChange, service: BookingService = Depends(svc)):
    return await service.change_status(appointment_id, payload.status)
