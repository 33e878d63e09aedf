import uuid
import logging
from datetime import date, time
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.clock import Clock, get_clock
from app.core.errors import NotFoundError, InvalidArgumentError, PastDateError, ConflictError
from app.modules.availability.slots import overlaps
from app.modules.directory.models import Doctor
from app.modules.directory.repository import DoctorRepository
from app.modules.events.outbox import OutboxService
from app.modules.schedules.models import DoctorSchedule, ScheduleOverride, DAYS_OF_WEEK, OVERRIDE_TYPES
from app.modules.schedules.repository import ScheduleRepository
from app.modules.schedules.schemas import WeeklySlotCreate, WeeklySlotOut, WeeklyDayOut, OverrideCreate

logger = logging.getLogger(__name__)

def _hhmm(t: time | None) -> str | None:
    return t.strftime("%H:%M") if t else None

def validate_weekly_entry(entry: WeeklySlotCreate) -> None:
    if entry.day_of_week not in DAYS_OF_WEEK:
        raise InvalidArgumentError(f"Unknown day of week: {entry.day_of_week}")
    if entry.start_time >= entry.end_time:
        raise InvalidArgumentError("startTime must be before endTime")
    if entry.slot_duration_minutes is not None and entry.slot_duration_minutes <= 0:
        raise InvalidArgumentError("slotDurationMinutes must be a positive number of minutes")
    if (entry.break_start is None) != (entry.break_end is None):
        raise InvalidArgumentError("breakStart and breakEnd must be given together")
    if entry.break_start is not None and not (entry.start_time < entry.break_start < entry.break_end < entry.end_time):
        raise InvalidArgumentError("break must fall strictly inside the working range")

def _first_overlap(start: time, end: time, rows) -> DoctorSchedule | WeeklySlotCreate | None:
    for r in rows:
        if overlaps(start, end, r.start_time, r.end_time):
            return r
    return None

class ScheduleService:
    """Weekly template and per-date override administration for one doctor at a time."""

    def __init__(self, session: AsyncSession, clock: Clock | None = None):
        self.session = session
        self.clock = clock or get_clock()
        self.repo = ScheduleRepository(session)
        self.doctors = DoctorRepository(session)
        self.outbox = OutboxService(session)

    async def _require_doctor(self, doctor_id: uuid.UUID, *, lock: bool = False) -> Doctor:
        doctor = await self.doctors.get(doctor_id, for_update=lock)
        if not doctor:
            raise NotFoundError("Doctor not found")
        return doctor

    # ---- Weekly template ----

    async def get_weekly_schedule(self, doctor_id: uuid.UUID) -> dict[str, WeeklyDayOut]:
        doctor = await self._require_doctor(doctor_id)
        rows = await self.repo.list_weekly(doctor_id)
        week: dict[str, WeeklyDayOut] = {d: WeeklyDayOut(day_name=d.capitalize(), schedules=[]) for d in DAYS_OF_WEEK}
        for r in rows:
            out = WeeklySlotOut.model_validate(r)
            out.effective_slot_duration_minutes = r.slot_duration_minutes or doctor.slot_duration_minutes
            week[r.day_of_week].schedules.append(out)
        return week

    async def add_weekly_slot(self, doctor_id: uuid.UUID, entry: WeeklySlotCreate) -> DoctorSchedule:
        # the doctor row lock makes overlap check + insert atomic against concurrent edits
        await self._require_doctor(doctor_id, lock=True)
        validate_weekly_entry(entry)
        existing = await self.repo.list_weekly(doctor_id, entry.day_of_week)
        clash = _first_overlap(entry.start_time, entry.end_time, existing)
        if clash is not None:
            raise ConflictError(
                f"{entry.day_of_week.capitalize()} {_hhmm(entry.start_time)}-{_hhmm(entry.end_time)} overlaps "
                f"existing range {_hhmm(clash.start_time)}-{_hhmm(clash.end_time)}"
            )
        obj = await self.repo.create_weekly(doctor_id, **entry.model_dump())
        await self.outbox.enqueue(doctor_id, "SCHEDULE_CREATED", "doctor_schedule", obj.id, {
            "day_of_week": obj.day_of_week,
            "start_time": _hhmm(obj.start_time), "end_time": _hhmm(obj.end_time),
        })
        await self.session.commit()
        logger.info(f"Weekly range {obj.day_of_week} {_hhmm(obj.start_time)}-{_hhmm(obj.end_time)} added for doctor {doctor_id}")
        return obj

    async def replace_weekly_schedule(self, doctor_id: uuid.UUID, entries: list[WeeklySlotCreate]) -> list[DoctorSchedule]:
        await self._require_doctor(doctor_id, lock=True)
        accepted: dict[str, list[WeeklySlotCreate]] = {d: [] for d in DAYS_OF_WEEK}
        for entry in entries:
            validate_weekly_entry(entry)
            clash = _first_overlap(entry.start_time, entry.end_time, accepted[entry.day_of_week])
            if clash is not None:
                raise ConflictError(
                    f"{entry.day_of_week.capitalize()} {_hhmm(entry.start_time)}-{_hhmm(entry.end_time)} overlaps "
                    f"{_hhmm(clash.start_time)}-{_hhmm(clash.end_time)} in the same request"
                )
            accepted[entry.day_of_week].append(entry)

        removed = await self.repo.soft_delete_all_weekly(doctor_id)
        created = [await self.repo.create_weekly(doctor_id, **e.model_dump()) for e in entries]
        await self.outbox.enqueue(doctor_id, "SCHEDULE_REPLACED", "doctor", doctor_id, {"removed": removed, "created": len(created)})
        await self.session.commit()
        logger.info(f"Weekly schedule replaced for doctor {doctor_id}: {removed} removed, {len(created)} created")
        return sorted(created, key=lambda r: (DAYS_OF_WEEK.index(r.day_of_week), r.start_time))

    async def set_weekly_slot_active(self, doctor_id: uuid.UUID, schedule_id: uuid.UUID, is_active: bool) -> DoctorSchedule:
        obj = await self.repo.get_weekly(doctor_id, schedule_id)
        if not obj:
            raise NotFoundError("Schedule not found")
        if obj.is_active != is_active:
            obj.is_active = is_active
            await self.outbox.enqueue(doctor_id, "SCHEDULE_UPDATED", "doctor_schedule", obj.id, {"is_active": is_active})
            await self.session.commit()
        return obj

    async def remove_weekly_slot(self, doctor_id: uuid.UUID, schedule_id: uuid.UUID) -> None:
        obj = await self.repo.get_weekly(doctor_id, schedule_id)
        if not obj:
            raise NotFoundError("Schedule not found")
        await self.repo.soft_delete_weekly(obj)
        await self.outbox.enqueue(doctor_id, "SCHEDULE_DELETED", "doctor_schedule", obj.id, {"day_of_week": obj.day_of_week})
        await self.session.commit()
        logger.info(f"Weekly range {schedule_id} removed for doctor {doctor_id}")

    # ---- Overrides ----

    async def list_overrides(self, doctor_id: uuid.UUID, start_date: date | None = None, end_date: date | None = None):
        await self._require_doctor(doctor_id)
        if start_date and end_date and start_date > end_date:
            raise InvalidArgumentError("startDate must not be after endDate")
        return await self.repo.list_overrides(doctor_id, start_date, end_date)

    async def add_override(self, doctor_id: uuid.UUID, payload: OverrideCreate) -> ScheduleOverride:
        await self._require_doctor(doctor_id)
        if payload.override_type not in OVERRIDE_TYPES:
            raise InvalidArgumentError(f"Unknown override type: {payload.override_type}")
        if payload.override_date < self.clock.today():
            raise PastDateError("Cannot create an override for a past date")

        if payload.override_type == "special_hours":
            if payload.start_time is None or payload.end_time is None:
                raise InvalidArgumentError("special_hours overrides need startTime and endTime")
            if payload.start_time >= payload.end_time:
                raise InvalidArgumentError("startTime must be before endTime")
        elif payload.start_time is not None or payload.end_time is not None:
            raise InvalidArgumentError(f"{payload.override_type} overrides block the whole day and take no times")

        if await self.repo.get_override_for_date(doctor_id, payload.override_date):
            raise ConflictError(f"An override already exists for {payload.override_date.isoformat()}")

        try:
            obj = await self.repo.create_override(doctor_id, **payload.model_dump())
        except IntegrityError:
            # lost the race against a concurrent insert for the same date
            await self.session.rollback()
            raise ConflictError(f"An override already exists for {payload.override_date.isoformat()}")

        await self.outbox.enqueue(doctor_id, "OVERRIDE_CREATED", "schedule_override", obj.id, {
            "override_date": obj.override_date.isoformat(),
            "override_type": obj.override_type,
        })
        await self.session.commit()
        logger.info(f"Override {obj.override_type} on {obj.override_date} added for doctor {doctor_id}")
        return obj

    async def remove_override(self, doctor_id: uuid.UUID, override_id: uuid.UUID) -> None:
        obj = await self.repo.get_override(doctor_id, override_id)
        if not obj:
            raise NotFoundError("Override not found")
        await self.repo.soft_delete_override(obj)
        await self.outbox.enqueue(doctor_id, "OVERRIDE_DELETED", "schedule_override", obj.id, {"override_date": obj.override_date.isoformat()})
        await self.session.commit()
        logger.info(f"Override {override_id} removed for doctor {doctor_id}")
