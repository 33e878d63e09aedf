import uuid
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from app.modules.directory.models import Doctor

class DoctorRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **data) -> Doctor:
        obj = Doctor(**data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, doctor_id: uuid.UUID, *, for_update: bool = False) -> Doctor | None:
        q = select(Doctor).where(
            Doctor.id == doctor_id,
            Doctor.deleted_at.is_(None),
        )
        if for_update:
            # serialises concurrent schedule edits for one doctor
            q = q.with_for_update()
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def get_active(self, doctor_id: uuid.UUID) -> Doctor | None:
        obj = await self.get(doctor_id)
        if obj is None or not obj.active:
            return None
        return obj

    async def update(self, doctor_id: uuid.UUID, **fields) -> Doctor | None:
        obj = await self.get(doctor_id)
        if not obj:
            return None
        for k, v in fields.items():
            setattr(obj, k, v)
        await self.session.flush()
        return obj
