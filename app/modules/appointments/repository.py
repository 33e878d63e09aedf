import uuid
from datetime import date, time
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from app.modules.appointments.models import Appointment, RELEASED_STATUSES

class AppointmentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **data) -> Appointment:
        obj = Appointment(**data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, appointment_id: uuid.UUID) -> Appointment | None:
        res = await self.session.execute(select(Appointment).where(
            Appointment.id == appointment_id,
            Appointment.deleted_at.is_(None),
        ))
        return res.scalar_one_or_none()

    async def booked_start_times(self, doctor_id: uuid.UUID, on: date) -> set[time]:
        """Start times held by live bookings. Cancelled and no-show rows do not count."""
        q = select(Appointment.scheduled_start).where(
            Appointment.doctor_id == doctor_id,
            Appointment.scheduled_date == on,
            Appointment.deleted_at.is_(None),
            Appointment.status.not_in(RELEASED_STATUSES),
        )
        res = await self.session.execute(q)
        return set(res.scalars().all())
