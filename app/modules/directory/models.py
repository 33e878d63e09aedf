import uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, JSON
from app.core.base import Base, TimestampedMixin

CONSULTATION_TYPES = ("in_person", "online", "walk_in")

class Doctor(Base, TimestampedMixin):
    __tablename__ = "doctor"
    name: Mapped[str] = mapped_column(String(160), index=True)
    specialization: Mapped[str | None] = mapped_column(String(120), nullable=True)
    hospital_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True, index=True)  # owned by the hospital service
    active: Mapped[bool] = mapped_column(default=True)

    # profile defaults consumed by the schedule engine
    slot_duration_minutes: Mapped[int] = mapped_column(Integer, default=15)
    consultation_types: Mapped[list] = mapped_column(JSON, default=lambda: ["in_person"])
