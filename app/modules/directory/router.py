import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import get_session
from app.core.security import require_scopes
from app.modules.directory.schemas import DoctorCreate, DoctorSettingsUpdate, DoctorOut
from app.modules.directory.service import DoctorService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> DoctorService:
    return DoctorService(session)

@router.post("", response_model=DoctorOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_scopes("schedules:write"))])
async def create_doctor(payload: DoctorCreate, service: DoctorService = Depends(svc)):
    return await service.create(payload)

@router.get("/{doctor_id}", response_model=DoctorOut, dependencies=[Depends(require_scopes("schedules:read"))])
async def get_doctor(doctor_id: uuid.UUID, service: DoctorService = Depends(svc)):
    return await service.get(doctor_id)

@router.patch("/{doctor_id}/settings", response_model=DoctorOut, dependencies=[Depends(require_scopes("schedules:write"))])
async def update_doctor_settings(doctor_id: uuid.UUID, payload: DoctorSettingsUpdate, service: DoctorService = Depends(svc)):
    return await service.update_settings(doctor_id, payload)
