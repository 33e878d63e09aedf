import uuid
import logging
from datetime import date, time, timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.clock import Clock, get_clock
from app.core.config import settings
from app.core.errors import NotFoundError, InvalidArgumentError
from app.modules.availability.slots import Slot, SlotRange, generate_slots, split_on_break
from app.modules.appointments.repository import AppointmentRepository
from app.modules.directory.models import Doctor, CONSULTATION_TYPES
from app.modules.directory.repository import DoctorRepository
from app.modules.schedules.models import BLOCKING_OVERRIDE_TYPES, day_of_week
from app.modules.schedules.repository import ScheduleRepository

logger = logging.getLogger(__name__)

def parse_date(value: str | date) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"Invalid date {value!r}; expected YYYY-MM-DD")

def parse_consultation_type(value: str) -> str:
    if value not in CONSULTATION_TYPES:
        raise InvalidArgumentError(f"Unknown consultation type {value!r}")
    return value

class AvailabilityService:
    """Resolves a doctor's bookable slots for a date from template, overrides and bookings.

    Read-only: nothing here writes, so concurrent queries need no coordination.
    The result is a snapshot; the booking writer re-checks at commit time.
    """

    def __init__(self, session: AsyncSession, clock: Clock | None = None):
        self.session = session
        self.clock = clock or get_clock()
        self.doctors = DoctorRepository(session)
        self.schedules = ScheduleRepository(session)
        self.appointments = AppointmentRepository(session)

    async def _require_doctor(self, doctor_id: uuid.UUID) -> Doctor:
        doctor = await self.doctors.get_active(doctor_id)
        if not doctor:
            raise NotFoundError("Doctor not found")
        return doctor

    def _horizon(self) -> date:
        return self.clock.today() + timedelta(days=settings.AVAILABILITY_MAX_HORIZON_DAYS)

    def _check_horizon(self, on: date) -> None:
        if on > self._horizon():
            raise InvalidArgumentError(
                f"Date {on.isoformat()} is more than {settings.AVAILABILITY_MAX_HORIZON_DAYS} days ahead"
            )

    def _default_duration(self, doctor: Doctor) -> int:
        return doctor.slot_duration_minutes or settings.DEFAULT_SLOT_DURATION_MINUTES

    async def effective_ranges(self, doctor: Doctor, on: date) -> list[SlotRange]:
        """Ranges that apply on ``on``: the override if there is one, else the weekly template."""
        override = await self.schedules.get_override_for_date(doctor.id, on)
        if override is not None:
            if override.override_type in BLOCKING_OVERRIDE_TYPES:
                return []
            if override.start_time is None or override.end_time is None:
                logger.warning(f"special_hours override {override.id} has no bounds; treating {on} as closed")
                return []
            return [SlotRange(override.start_time, override.end_time, self._default_duration(doctor))]

        rows = await self.schedules.list_weekly(doctor.id, day_of_week(on), active_only=True)
        ranges: list[SlotRange] = []
        for r in rows:
            duration = r.slot_duration_minutes or self._default_duration(doctor)
            ranges.extend(split_on_break(r.start_time, r.end_time, duration, r.break_start, r.break_end))
        return ranges

    async def _slots_for(self, doctor: Doctor, on: date, consultation_type: str) -> list[Slot]:
        if consultation_type not in (doctor.consultation_types or []):
            return []
        ranges = await self.effective_ranges(doctor, on)
        if not ranges:
            return []
        # consultation types share one calendar, so every live booking counts
        booked = await self.appointments.booked_start_times(doctor.id, on)
        return generate_slots(ranges, booked, on, self.clock.now(), settings.SAME_DAY_LEAD_MINUTES)

    async def get_available_slots(self, doctor_id: uuid.UUID, on: str | date, consultation_type: str = "in_person") -> list[Slot]:
        on = parse_date(on)
        consultation_type = parse_consultation_type(consultation_type)
        doctor = await self._require_doctor(doctor_id)
        self._check_horizon(on)
        return await self._slots_for(doctor, on, consultation_type)

    async def find_slot(self, doctor_id: uuid.UUID, on: date, start: time, consultation_type: str) -> Slot | None:
        for slot in await self.get_available_slots(doctor_id, on, consultation_type):
            if slot.time == start:
                return slot
        return None

    def _range_bounds(self, start: date, end: date) -> tuple[date, date]:
        if end < start:
            raise InvalidArgumentError("endDate must not be before startDate")
        if (end - start).days + 1 > settings.AVAILABILITY_MAX_RANGE_DAYS:
            raise InvalidArgumentError(f"A range covers at most {settings.AVAILABILITY_MAX_RANGE_DAYS} days")
        self._check_horizon(start)
        return start, min(end, self._horizon())

    async def get_range_availability(self, doctor_id: uuid.UUID, start_date: str | date, days: int = 7,
                                     consultation_type: str = "in_person") -> list[dict]:
        start = parse_date(start_date)
        consultation_type = parse_consultation_type(consultation_type)
        if days < 1:
            raise InvalidArgumentError("days must be at least 1")
        doctor = await self._require_doctor(doctor_id)
        first, last = self._range_bounds(start, start + timedelta(days=days - 1))

        out = []
        on = first
        while on <= last:
            slots = await self._slots_for(doctor, on, consultation_type)
            out.append({
                "date": on,
                "day_of_week": day_of_week(on),
                "is_available": any(s.available for s in slots),
                "slots": slots,
            })
            on += timedelta(days=1)
        return out

    async def get_available_dates(self, doctor_id: uuid.UUID, start_date: str | date, end_date: str | date,
                                  consultation_type: str = "in_person") -> list[date]:
        start, end = parse_date(start_date), parse_date(end_date)
        consultation_type = parse_consultation_type(consultation_type)
        doctor = await self._require_doctor(doctor_id)
        first, last = self._range_bounds(start, end)

        dates = []
        on = first
        while on <= last:
            if any(s.available for s in await self._slots_for(doctor, on, consultation_type)):
                dates.append(on)
            on += timedelta(days=1)
        return dates
