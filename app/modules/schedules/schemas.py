import uuid
from datetime import date, datetime
from typing import Literal
from pydantic import Field
from app.core.schemas import ApiModel, HHMM

DayOfWeek = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
OverrideType = Literal["holiday", "leave", "emergency", "special_hours"]

# Range checks (start < end, duration > 0, break inside range) live in
# ScheduleService so direct callers get the same InvalidArgumentError.

class WeeklySlotCreate(ApiModel):
    day_of_week: DayOfWeek
    start_time: HHMM
    end_time: HHMM
    slot_duration_minutes: int | None = None
    break_start: HHMM | None = None
    break_end: HHMM | None = None

class WeeklySlotOut(ApiModel):
    id: uuid.UUID
    doctor_id: uuid.UUID
    day_of_week: str
    start_time: HHMM
    end_time: HHMM
    break_start: HHMM | None
    break_end: HHMM | None
    slot_duration_minutes: int | None
    is_active: bool
    effective_slot_duration_minutes: int | None = None

class WeeklyScheduleReplace(ApiModel):
    schedules: list[WeeklySlotCreate] = Field(default_factory=list)

class WeeklySlotStatus(ApiModel):
    is_active: bool

class WeeklyDayOut(ApiModel):
    day_name: str
    schedules: list[WeeklySlotOut]

class OverrideCreate(ApiModel):
    override_date: date
    override_type: OverrideType
    reason: str | None = Field(default=None, max_length=500)
    start_time: HHMM | None = None
    end_time: HHMM | None = None

class OverrideOut(ApiModel):
    id: uuid.UUID
    doctor_id: uuid.UUID
    override_date: date
    override_type: str
    reason: str | None
    start_time: HHMM | None
    end_time: HHMM | None
    created_at: datetime | None = None
