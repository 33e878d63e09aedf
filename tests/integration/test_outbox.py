"""Test the transactional outbox relay."""
import uuid

from sqlalchemy import select

from app.modules.events.outbox import TOPIC, EventOutbox, OutboxService, relay_once
from app.modules.schedules.schemas import WeeklySlotCreate
from app.modules.schedules.service import ScheduleService
from app.platform.adapters.bus_noop import NoopEventBus


class BrokenBus:
    async def publish(self, topic, key, value, headers=None):
        raise ConnectionError("stream unavailable")


async def enqueue(session, doctor_id, n=1):
    for i in range(n):
        await OutboxService(session).enqueue(doctor_id, "OVERRIDE_CREATED", "schedule_override", uuid.uuid4(), {"n": i})
    await session.commit()


async def test_relay_publishes_pending_events_keyed_by_doctor(session):
    doctor_id = uuid.uuid4()
    await enqueue(session, doctor_id, 2)
    bus = NoopEventBus()

    claimed = await relay_once(session, bus)

    assert claimed == 2
    assert [(topic, key) for topic, key, _ in bus.published] == [(TOPIC, str(doctor_id))] * 2
    envelope = bus.published[0][2]
    assert envelope["event_type"] == "OVERRIDE_CREATED"
    assert envelope["doctor_id"] == str(doctor_id)
    assert envelope["subject"]["type"] == "schedule_override"
    assert [v["payload"]["n"] for _, _, v in bus.published] == [0, 1]

    statuses = (await session.execute(select(EventOutbox.status))).scalars().all()
    assert set(statuses) == {"sent"}


async def test_sent_events_are_not_published_twice(session):
    await enqueue(session, uuid.uuid4())
    bus = NoopEventBus()
    await relay_once(session, bus)

    assert await relay_once(session, bus) == 0
    assert len(bus.published) == 1


async def test_failed_publish_is_retried_later(session):
    await enqueue(session, uuid.uuid4())

    await relay_once(session, BrokenBus())

    ev = (await session.execute(select(EventOutbox))).scalar_one()
    assert ev.status == "pending"
    assert ev.attempts == 1
    assert "stream unavailable" in ev.last_error
    # backoff keeps it out of the next batch
    assert await relay_once(session, NoopEventBus()) == 0


async def test_schedule_changes_reach_the_bus(session, clock, make_doctor):
    doctor = await make_doctor()
    await ScheduleService(session, clock).add_weekly_slot(
        doctor.id, WeeklySlotCreate(day_of_week="monday", start_time="09:00", end_time="12:00"),
    )
    bus = NoopEventBus()

    await relay_once(session, bus)

    (_, key, value), = bus.published
    assert key == str(doctor.id)
    assert value["event_type"] == "SCHEDULE_CREATED"
    assert value["payload"] == {"day_of_week": "monday", "start_time": "09:00", "end_time": "12:00"}
