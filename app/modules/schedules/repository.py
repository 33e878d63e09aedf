import uuid
from datetime import date, datetime, timezone
from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from app.modules.schedules.models import DoctorSchedule, ScheduleOverride, DAYS_OF_WEEK

def _now() -> datetime:
    return datetime.now(timezone.utc)

class ScheduleRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    # weekly template
    async def create_weekly(self, doctor_id: uuid.UUID, **data) -> DoctorSchedule:
        obj = DoctorSchedule(doctor_id=doctor_id, **data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get_weekly(self, doctor_id: uuid.UUID, schedule_id: uuid.UUID) -> DoctorSchedule | None:
        res = await self.session.execute(select(DoctorSchedule).where(
            DoctorSchedule.id == schedule_id,
            DoctorSchedule.doctor_id == doctor_id,
            DoctorSchedule.deleted_at.is_(None),
        ))
        return res.scalar_one_or_none()

    async def list_weekly(self, doctor_id: uuid.UUID, day_of_week: str | None = None, *, active_only: bool = False) -> Sequence[DoctorSchedule]:
        q = select(DoctorSchedule).where(
            DoctorSchedule.doctor_id == doctor_id,
            DoctorSchedule.deleted_at.is_(None),
        )
        if day_of_week is not None:
            q = q.where(DoctorSchedule.day_of_week == day_of_week)
        if active_only:
            q = q.where(DoctorSchedule.is_active.is_(True))
        res = await self.session.execute(q.order_by(DoctorSchedule.start_time.asc()))
        rows = res.scalars().all()
        if day_of_week is None:
            rows = sorted(rows, key=lambda r: (DAYS_OF_WEEK.index(r.day_of_week), r.start_time))
        return rows

    async def soft_delete_weekly(self, obj: DoctorSchedule) -> None:
        obj.deleted_at = _now(); await self.session.flush()

    async def soft_delete_all_weekly(self, doctor_id: uuid.UUID) -> int:
        res = await self.session.execute(
            update(DoctorSchedule)
            .where(DoctorSchedule.doctor_id == doctor_id, DoctorSchedule.deleted_at.is_(None))
            .values(deleted_at=_now())
        )
        return res.rowcount or 0

    # overrides
    async def create_override(self, doctor_id: uuid.UUID, **data) -> ScheduleOverride:
        obj = ScheduleOverride(doctor_id=doctor_id, **data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get_override(self, doctor_id: uuid.UUID, override_id: uuid.UUID) -> ScheduleOverride | None:
        res = await self.session.execute(select(ScheduleOverride).where(
            ScheduleOverride.id == override_id,
            ScheduleOverride.doctor_id == doctor_id,
            ScheduleOverride.deleted_at.is_(None),
        ))
        return res.scalar_one_or_none()

    async def get_override_for_date(self, doctor_id: uuid.UUID, on: date) -> ScheduleOverride | None:
        res = await self.session.execute(select(ScheduleOverride).where(
            ScheduleOverride.doctor_id == doctor_id,
            ScheduleOverride.override_date == on,
            ScheduleOverride.deleted_at.is_(None),
        ))
        return res.scalar_one_or_none()

    async def list_overrides(self, doctor_id: uuid.UUID, start: date | None = None, end: date | None = None) -> Sequence[ScheduleOverride]:
        q = select(ScheduleOverride).where(
            ScheduleOverride.doctor_id == doctor_id,
            ScheduleOverride.deleted_at.is_(None),
        )
        if start is not None:
            q = q.where(ScheduleOverride.override_date >= start)
        if end is not None:
            q = q.where(ScheduleOverride.override_date <= end)
        res = await self.session.execute(q.order_by(ScheduleOverride.override_date.asc()))
        return res.scalars().all()

    async def soft_delete_override(self, obj: ScheduleOverride) -> None:
        obj.deleted_at = _now(); await self.session.flush()
