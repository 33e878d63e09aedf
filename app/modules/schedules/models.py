import uuid
from datetime import date, time
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Text, Date, Time, ForeignKey, Index, text
from app.core.base import Base, TimestampedMixin

DAYS_OF_WEEK = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

# types that wipe out the whole day
BLOCKING_OVERRIDE_TYPES = ("holiday", "leave", "emergency")
OVERRIDE_TYPES = BLOCKING_OVERRIDE_TYPES + ("special_hours",)

def day_of_week(d: date) -> str:
    return DAYS_OF_WEEK[d.weekday()]

# Recurring weekly template row: one per doctor x day x time range
class DoctorSchedule(Base, TimestampedMixin):
    __tablename__ = "doctor_schedule"
    doctor_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("doctor.id"), index=True)
    day_of_week: Mapped[str] = mapped_column(String(9))  # monday..sunday
    start_time: Mapped[time] = mapped_column(Time)
    end_time: Mapped[time] = mapped_column(Time)
    break_start: Mapped[time | None] = mapped_column(Time, nullable=True)
    break_end: Mapped[time | None] = mapped_column(Time, nullable=True)
    slot_duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)  # None => doctor default
    is_active: Mapped[bool] = mapped_column(default=True)

    __table_args__ = (
        Index("ix_doctor_schedule_doctor_day", "doctor_id", "day_of_week"),
    )

# Date-specific exception to the weekly template
class ScheduleOverride(Base, TimestampedMixin):
    __tablename__ = "schedule_override"
    doctor_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("doctor.id"), index=True)
    override_date: Mapped[date] = mapped_column(Date)
    override_type: Mapped[str] = mapped_column(String(16))  # holiday | leave | emergency | special_hours
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_time: Mapped[time | None] = mapped_column(Time, nullable=True)  # special_hours only
    end_time: Mapped[time | None] = mapped_column(Time, nullable=True)

    __table_args__ = (
        # at most one live override per doctor and date
        Index(
            "uq_schedule_override_doctor_date",
            "doctor_id", "override_date",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )
