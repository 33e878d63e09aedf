import uuid
from datetime import datetime
from typing import Literal
from pydantic import Field, field_validator
from app.core.config import settings
from app.core.schemas import ApiModel

ConsultationType = Literal["in_person", "online", "walk_in"]

class DoctorCreate(ApiModel):
    name: str = Field(min_length=1, max_length=160)
    specialization: str | None = None
    hospital_id: uuid.UUID | None = None
    slot_duration_minutes: int = Field(default_factory=lambda: settings.DEFAULT_SLOT_DURATION_MINUTES, ge=5, le=240)
    consultation_types: list[ConsultationType] = Field(default_factory=lambda: ["in_person"])

    @field_validator("consultation_types")
    @classmethod
    def _dedupe(cls, v: list[str]):
        if not v:
            raise ValueError("at least one consultation type is required")
        return list(dict.fromkeys(v))

class DoctorSettingsUpdate(ApiModel):
    slot_duration_minutes: int | None = Field(default=None, ge=5, le=240)
    consultation_types: list[ConsultationType] | None = None
    active: bool | None = None

    @field_validator("consultation_types")
    @classmethod
    def _dedupe(cls, v: list[str] | None):
        if v is None:
            return v
        if not v:
            raise ValueError("at least one consultation type is required")
        return list(dict.fromkeys(v))

class DoctorOut(ApiModel):
    id: uuid.UUID
    name: str
    specialization: str | None
    hospital_id: uuid.UUID | None
    active: bool
    slot_duration_minutes: int
    consultation_types: list[str]
    created_at: datetime | None = None
