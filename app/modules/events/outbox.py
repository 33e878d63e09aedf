import uuid
import asyncio
import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import TIMESTAMP, text, String, Integer, Text, JSON, Index, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.base import Base, TimestampedMixin
from app.platform.provider_registry import registry

log = logging.getLogger("event.outbox")

TOPIC = "schedules.events"
MAX_BACKOFF_SECONDS = 60

# Written in the same transaction as the schedule/booking change it describes.
class EventOutbox(Base, TimestampedMixin):
    doctor_id: Mapped[uuid.UUID] = mapped_column()  # partition key on the bus
    event_type: Mapped[str] = mapped_column(String(64))
    subject_type: Mapped[str] = mapped_column(String(32))
    subject_id: Mapped[str] = mapped_column(String(64))
    payload: Mapped[dict] = mapped_column(JSON)
    occurred_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=text("CURRENT_TIMESTAMP"))

    status: Mapped[str] = mapped_column(String(16), default="pending")  # pending | processing | sent
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    next_attempt_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=text("CURRENT_TIMESTAMP"))
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_eventoutbox_status_next_attempt", "status", "next_attempt_at"),
    )

def _backoff(attempts: int) -> timedelta:
    return timedelta(seconds=min(MAX_BACKOFF_SECONDS, 2 ** min(attempts, 6)))

class OutboxRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, doctor_id: uuid.UUID, event_type: str, subject_type: str, subject_id: str, payload: dict) -> EventOutbox:
        now = datetime.now(timezone.utc)
        obj = EventOutbox(
            doctor_id=doctor_id,
            event_type=event_type,
            subject_type=subject_type,
            subject_id=subject_id,
            payload=payload,
            occurred_at=now,
            next_attempt_at=now,
        )
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def claim_due(self, limit: int) -> list[EventOutbox]:
        # skip rows another relay instance already holds
        q = (
            select(EventOutbox)
            .where(
                EventOutbox.deleted_at.is_(None),
                EventOutbox.status == "pending",
                EventOutbox.next_attempt_at <= datetime.now(timezone.utc),
            )
            .order_by(EventOutbox.occurred_at.asc())
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        rows = list((await self.session.execute(q)).scalars().all())
        for r in rows:
            r.status = "processing"
        await self.session.flush()
        return rows

    async def mark_sent(self, obj: EventOutbox) -> None:
        obj.status, obj.last_error = "sent", None
        await self.session.flush()

    async def reschedule(self, obj: EventOutbox, error: str) -> None:
        obj.attempts = (obj.attempts or 0) + 1
        obj.status = "pending"
        obj.next_attempt_at = datetime.now(timezone.utc) + _backoff(obj.attempts)
        obj.last_error = error[:2000]
        await self.session.flush()

class OutboxService:
    """Records a doctor-scoped change for later publication; the caller commits."""

    def __init__(self, session: AsyncSession):
        self.repo = OutboxRepository(session)

    async def enqueue(self, doctor_id: uuid.UUID, event_type: str, subject_type: str,
                      subject_id: str | uuid.UUID, payload: dict | None = None) -> EventOutbox:
        return await self.repo.add(doctor_id, event_type, subject_type, str(subject_id), payload or {})

def _envelope(ev: EventOutbox) -> dict:
    return {
        "event_type": ev.event_type,
        "doctor_id": str(ev.doctor_id),
        "subject": {"type": ev.subject_type, "id": ev.subject_id},
        "payload": ev.payload,
        "occurred_at": ev.occurred_at.isoformat() if ev.occurred_at else None,
        "outbox_id": str(ev.id),
    }

async def relay_once(session: AsyncSession, bus, limit: int = 50) -> int:
    """Publish one batch of due events, keyed by doctor. Returns how many were claimed."""
    repo = OutboxRepository(session)
    batch = await repo.claim_due(limit)
    for ev in batch:
        try:
            await bus.publish(topic=TOPIC, key=str(ev.doctor_id), value=_envelope(ev))
            await repo.mark_sent(ev)
        except Exception as ex:  # noqa
            log.exception(f"Publish failed for outbox event {ev.id} ({ev.event_type})")
            await repo.reschedule(ev, error=str(ex))
    await session.commit()
    return len(batch)

async def run_outbox_relay(session_factory: async_sessionmaker, poll_interval_seconds: float = 1.0):
    bus = registry.event_bus()
    log.info("Outbox relay started with bus=%s", bus.__class__.__name__)
    try:
        while True:
            async with session_factory() as session:
                try:
                    claimed = await relay_once(session, bus)
                except Exception:
                    log.exception("Outbox relay iteration failed")
                    await session.rollback()
                    claimed = 0
            # drain quickly while there is a backlog
            await asyncio.sleep(0 if claimed else poll_interval_seconds)
    except asyncio.CancelledError:
        log.info("Outbox relay cancelled; shutting down")
        raise
