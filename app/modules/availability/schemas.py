import uuid
from datetime import date
from app.core.schemas import ApiModel, HHMM

class SlotOut(ApiModel):
    time: HHMM
    end_time: HHMM
    available: bool

class AvailabilityOut(ApiModel):
    doctor_id: uuid.UUID
    date: date
    consultation_type: str
    slots: list[SlotOut]

class DayAvailabilityOut(ApiModel):
    date: date
    day_of_week: str
    is_available: bool
    slots: list[SlotOut]

class AvailableDatesOut(ApiModel):
    doctor_id: uuid.UUID
    start_date: date
    end_date: date
    dates: list[date]
