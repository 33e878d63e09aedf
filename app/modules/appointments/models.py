import uuid
from datetime import date, time
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Date, Time, ForeignKey, Index, text
from app.core.base import Base, TimestampedMixin

APPOINTMENT_STATUSES = ("pending_payment", "confirmed", "checked_in", "in_progress", "completed", "cancelled", "no_show")
# statuses that give the time back
RELEASED_STATUSES = ("cancelled", "no_show")
BOOKING_SOURCES = ("app", "web", "walk_in", "phone", "referral")

class Appointment(Base, TimestampedMixin):
    __tablename__ = "appointment"
    doctor_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("doctor.id"), index=True)
    patient_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)  # owned by the patient service
    scheduled_date: Mapped[date] = mapped_column(Date)
    scheduled_start: Mapped[time] = mapped_column(Time)
    scheduled_end: Mapped[time] = mapped_column(Time)
    consultation_type: Mapped[str] = mapped_column(String(16))  # in_person | online | walk_in
    booking_source: Mapped[str] = mapped_column(String(16), default="app")
    status: Mapped[str] = mapped_column(String(24), default="pending_payment")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_appointment_doctor_date", "doctor_id", "scheduled_date"),
        # one live booking per doctor, date and start time
        Index(
            "uq_appointment_doctor_slot",
            "doctor_id", "scheduled_date", "scheduled_start",
            unique=True,
            postgresql_where=text("deleted_at IS NULL AND status NOT IN ('cancelled', 'no_show')"),
            sqlite_where=text("deleted_at IS NULL AND status NOT IN ('cancelled', 'no_show')"),
        ),
    )
