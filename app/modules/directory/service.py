import uuid
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.errors import NotFoundError
from app.modules.directory.repository import DoctorRepository
from app.modules.directory.schemas import DoctorCreate, DoctorSettingsUpdate
from app.modules.directory.models import Doctor
from app.modules.events.outbox import OutboxService

logger = logging.getLogger(__name__)

class DoctorService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = DoctorRepository(session)

    async def create(self, payload: DoctorCreate) -> Doctor:
        obj = await self.repo.create(**payload.model_dump())
        await self.session.commit()
        logger.info(f"Doctor {obj.id} created")
        return obj

    async def get(self, doctor_id: uuid.UUID) -> Doctor:
        obj = await self.repo.get(doctor_id)
        if not obj:
            raise NotFoundError("Doctor not found")
        return obj

    async def update_settings(self, doctor_id: uuid.UUID, payload: DoctorSettingsUpdate) -> Doctor:
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        obj = await self.repo.update(doctor_id, **changes)
        if not obj:
            raise NotFoundError("Doctor not found")
        await OutboxService(self.session).enqueue(obj.id, "DOCTOR_SETTINGS_UPDATED", "doctor", obj.id, changes)
        await self.session.commit()
        return obj
