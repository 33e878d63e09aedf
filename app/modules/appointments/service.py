import uuid
import logging
from datetime import date, datetime, time, timedelta
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.clock import Clock, get_clock
from app.core.config import settings
from app.core.errors import NotFoundError, InvalidArgumentError, PastDateError, ConflictError
from app.modules.appointments.models import Appointment
from app.modules.appointments.repository import AppointmentRepository
from app.modules.appointments.schemas import BookingCreate
from app.modules.availability.service import AvailabilityService
from app.modules.events.outbox import OutboxService

logger = logging.getLogger(__name__)

VALID_NEXT = {
    "pending_payment": {"confirmed", "cancelled"},
    "confirmed": {"checked_in", "cancelled", "no_show"},
    "checked_in": {"in_progress", "no_show"},
    "in_progress": {"completed"},
    "completed": set(),
    "cancelled": set(),
    "no_show": set(),
}

SLOT_TAKEN = "This slot was just booked, please choose another"
SLOT_STARTED = "This slot has already started, please choose a later one"

class BookingService:
    """Writes bookings against the same slot list the booking UIs were shown.

    Uniqueness of (doctor, date, start) among live bookings is enforced by a
    partial unique index; losing that race surfaces as ConflictError.
    """

    def __init__(self, session: AsyncSession, clock: Clock | None = None):
        self.session = session
        self.clock = clock or get_clock()
        self.repo = AppointmentRepository(session)
        self.availability = AvailabilityService(session, self.clock)

    def _has_started(self, on: date, start: time) -> bool:
        cutoff = self.clock.now().replace(tzinfo=None) + timedelta(minutes=settings.SAME_DAY_LEAD_MINUTES)
        return datetime.combine(on, start) <= cutoff

    async def create_booking(self, doctor_id: uuid.UUID, payload: BookingCreate) -> Appointment:
        if payload.scheduled_date < self.clock.today():
            raise PastDateError("Cannot book a date that has already passed")

        slot = await self.availability.find_slot(doctor_id, payload.scheduled_date, payload.scheduled_start, payload.consultation_type)
        if slot is None:
            raise InvalidArgumentError(
                f"{payload.scheduled_start.strftime('%H:%M')} is not a slot on {payload.scheduled_date.isoformat()}"
            )
        if not slot.available:
            raise ConflictError(SLOT_STARTED if self._has_started(payload.scheduled_date, slot.time) else SLOT_TAKEN)

        try:
            obj = await self.repo.create(
                doctor_id=doctor_id,
                patient_id=payload.patient_id,
                scheduled_date=payload.scheduled_date,
                scheduled_start=slot.time,
                scheduled_end=slot.end_time,
                consultation_type=payload.consultation_type,
                booking_source=payload.booking_source,
                # walk-ins are at the desk and settle there
                status="confirmed" if payload.booking_source == "walk_in" else "pending_payment",
                notes=payload.notes,
            )
        except IntegrityError:
            await self.session.rollback()
            logger.info(f"Booking race lost for doctor {doctor_id} at {payload.scheduled_date} {slot.time}")
            raise ConflictError(SLOT_TAKEN)

        await OutboxService(self.session).enqueue(doctor_id, "APPOINTMENT_BOOKED", "appointment", obj.id, {
            "scheduled_date": obj.scheduled_date.isoformat(),
            "scheduled_start": obj.scheduled_start.strftime("%H:%M"),
            "consultation_type": obj.consultation_type,
            "booking_source": obj.booking_source,
        })
        await self.session.commit()
        logger.info(f"Appointment {obj.id} booked for doctor {doctor_id} on {obj.scheduled_date} at {obj.scheduled_start:%H:%M}")
        return obj

    async def get(self, appointment_id: uuid.UUID) -> Appointment:
        obj = await self.repo.get(appointment_id)
        if not obj:
            raise NotFoundError("Appointment not found")
        return obj

    async def change_status(self, appointment_id: uuid.UUID, new_status: str) -> Appointment:
        obj = await self.get(appointment_id)
        if new_status == obj.status:
            return obj
        if new_status not in VALID_NEXT.get(obj.status, set()):
            raise ConflictError(f"Cannot move an appointment from {obj.status} to {new_status}")
        before = obj.status
        obj.status = new_status
        await OutboxService(self.session).enqueue(obj.doctor_id, "APPOINTMENT_STATUS_CHANGED", "appointment", obj.id, {"from": before, "to": new_status})
        await self.session.commit()
        return obj
