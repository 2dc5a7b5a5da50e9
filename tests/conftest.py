"""
Pytest fixtures for the engine, its database, users and events.

Each test gets a fresh SQLite file database so sessions opened by
concurrent engine calls see one shared store.
"""

from datetime import datetime, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine

from booking_engine.core.config import Settings
from booking_engine.db.base import utcnow
from booking_engine.db.session import build_engine, build_session_factory, create_schema
from booking_engine.engine import BookingEngine
from booking_engine.models import Event, User, UserRole
from booking_engine.schemas import EventCreate, UserCreate
from booking_engine.services.admission_service import LockAdmission


class Clock:
    """Wall clock that tests can push forward."""

    def __init__(self):
        self.offset = timedelta()

    def __call__(self) -> datetime:
        return utcnow() + self.offset

    def advance(self, delta: timedelta) -> None:
        self.offset += delta


def event_details(**overrides) -> EventCreate:
    start = overrides.pop("start_time", utcnow() + timedelta(days=30))
    data = {
        "title": "Test Concert",
        "description": "A test event",
        "location": "Test Venue",
        "start_time": start,
        "end_time": start + timedelta(hours=3),
        "capacity": 100,
    }
    data.update(overrides)
    return EventCreate(**data)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'booking.db'}",
        ADMISSION_LOCK_TIMEOUT=10.0,
    )


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest_asyncio.fixture
async def db_engine(settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """Create tables, yield the engine, then dispose of it."""
    db_engine = build_engine(settings)
    await create_schema(db_engine)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine):
    return build_session_factory(db_engine)


@pytest.fixture
def engine(session_factory, settings: Settings, clock: Clock) -> BookingEngine:
    return BookingEngine(
        session_factory,
        admission=LockAdmission(timeout=settings.ADMISSION_LOCK_TIMEOUT),
        settings=settings,
        clock=clock,
    )


@pytest_asyncio.fixture
async def organizer(engine: BookingEngine) -> User:
    result = await engine.register_user(
        UserCreate(email="organizer@example.com", username="organizer", role=UserRole.ORGANIZER)
    )
    return result.unwrap()


@pytest_asyncio.fixture
async def other_organizer(engine: BookingEngine) -> User:
    result = await engine.register_user(
        UserCreate(email="rival@example.com", username="rival", role=UserRole.ORGANIZER)
    )
    return result.unwrap()


@pytest_asyncio.fixture
async def attendee(engine: BookingEngine) -> User:
    result = await engine.register_user(UserCreate(email="alice@example.com", username="alice"))
    return result.unwrap()


@pytest_asyncio.fixture
async def second_attendee(engine: BookingEngine) -> User:
    result = await engine.register_user(UserCreate(email="bob@example.com", username="bob"))
    return result.unwrap()


@pytest.fixture
def make_attendees(engine: BookingEngine):
    """Register ``count`` attendees and return them."""

    async def _make(count: int) -> list[User]:
        users = []
        for i in range(count):
            result = await engine.register_user(
                UserCreate(email=f"user{i}@example.com", username=f"user{i}")
            )
            users.append(result.unwrap())
        return users

    return _make


@pytest.fixture
def make_event(engine: BookingEngine, organizer: User):
    """Create an event for the organizer, published unless asked otherwise."""

    async def _make(publish: bool = True, **overrides) -> Event:
        event = (await engine.create_event(organizer.id, event_details(**overrides))).unwrap()
        if publish:
            event = (await engine.publish_event(event.id, organizer.id)).unwrap()
        return event

    return _make


@pytest_asyncio.fixture
async def test_event(make_event) -> Event:
    """A published event with 100 tickets, starting in 30 days."""
    return await make_event()
