import uuid
from datetime import date, datetime
from typing import Literal
from pydantic import Field
from app.core.schemas import ApiModel, HHMM

ConsultationType = Literal["in_person", "online", "walk_in"]
BookingSource = Literal["app", "web", "walk_in", "phone", "referral"]
AppointmentStatus = Literal["pending_payment", "confirmed", "checked_in", "in_progress", "completed", "cancelled", "no_show"]

class BookingCreate(ApiModel):
    scheduled_date: date
    scheduled_start: HHMM
    consultation_type: ConsultationType = "in_person"
    booking_source: BookingSource = "app"
    patient_id: uuid.UUID | None = None
    notes: str | None = Field(default=None, max_length=1000)

class AppointmentStatusChange(ApiModel):
    status: AppointmentStatus

class AppointmentOut(ApiModel):
    id: uuid.UUID
    doctor_id: uuid.UUID
    patient_id: uuid.UUID | None
    scheduled_date: date
    scheduled_start: HHMM
    scheduled_end: HHMM
    consultation_type: str
    booking_source: str
    status: str
    notes: str | None
    created_at: datetime | None = None
