"""Shared test fixtures."""
import os

# settings are read at import time, so the environment goes first
os.environ["ENV"] = "local"
os.environ["DATABASE_DSN"] = "sqlite+aiosqlite:///:memory:"
os.environ["DB_MANAGE"] = "none"
os.environ["OUTBOX_RELAY_ENABLED"] = "false"
os.environ["EVENT_BUS_PROVIDER"] = "noop"
os.environ["CLINIC_TIMEZONE"] = "Asia/Kolkata"

from datetime import date, datetime

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.base import Base
from app.core.clock import FixedClock, get_clock
from app.core.db import get_session, import_models
from app.main import app
from app.modules.directory.repository import DoctorRepository
from app.modules.schedules.repository import ScheduleRepository

# Monday 2 March 2026, 10:07 clinic time
NOW = datetime(2026, 3, 2, 10, 7)
TODAY = date(2026, 3, 2)
NEXT_MONDAY = date(2026, 3, 9)
NEXT_TUESDAY = date(2026, 3, 10)


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test."""
    import_models()
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def make_doctor(session):
    """Create a doctor row straight through the repository."""
    async def _create(**overrides):
        data = {
            "name": "Dr. Meera Iyer",
            "specialization": "Dermatology",
            "slot_duration_minutes": 15,
            "consultation_types": ["in_person", "online"],
        }
        data.update(overrides)
        doctor = await DoctorRepository(session).create(**data)
        await session.commit()
        return doctor
    return _create


@pytest.fixture
def add_weekly(session):
    """Insert a weekly row without the service-level checks."""
    async def _create(doctor_id, day_of_week, start, end, **extra):
        row = await ScheduleRepository(session).create_weekly(
            doctor_id, day_of_week=day_of_week, start_time=start, end_time=end, **extra
        )
        await session.commit()
        return row
    return _create


@pytest_asyncio.fixture
async def client(session_factory, clock):
    """HTTP client bound to the app with the test database and a fixed clock."""
    async def _session():
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_clock] = lambda: clock
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
