"""Shared test fixtures."""
import random
from datetime import datetime, timedelta
from typing import Generator

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

# Import all models so SQLModel.metadata knows about them
from hydration.models.hydration import HydrationGoal, HydrationRecord  # noqa: F401
from hydration.models.reminder import ReminderLog, ReminderSettings, SettingsUpdate  # noqa: F401
from hydration.reminders.service import build_reminder_service

# 2025-01-15 is a Wednesday
WEDNESDAY_10AM = datetime(2025, 1, 15, 10, 0)


class FixedClock:
    """Deterministic user-local clock; the same `now` for every user."""

    def __init__(self, now: datetime):
        self.current = now

    def now(self, user_id: int) -> datetime:
        return self.current

    def set(self, now: datetime) -> None:
        self.current = now

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine. Tables recreated fresh for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="test_session")
def test_session_fixture(engine) -> Generator[Session, None, None]:
    """Provides a DB session connected to in-memory SQLite."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="clock")
def clock_fixture() -> FixedClock:
    return FixedClock(WEDNESDAY_10AM)


@pytest.fixture(name="service")
def service_fixture(engine, clock):
    """ReminderService on the in-memory DB with a fixed clock and seeded randomness."""
    return build_reminder_service(engine, clock=clock, rng=random.Random(7))


@pytest.fixture(name="interval_settings")
def interval_settings_fixture(service) -> ReminderSettings:
    """Persisted default settings for user 1 with smart mode off (plain interval stepping)."""
    return service.settings_store.update(1, SettingsUpdate(smart_mode=False))


@pytest.fixture(name="add_drinks")
def add_drinks_fixture(engine):
    """Returns a helper persisting `count` drinks at `hour`, one per day before `start`."""

    def _add(hour: int, count: int, *, start: datetime = WEDNESDAY_10AM, amount: float = 250.0):
        with Session(engine) as s:
            for i in range(count):
                day = (start - timedelta(days=i + 1)).date()
                s.add(HydrationRecord(
                    user_id=1,
                    amount_ml=amount,
                    recorded_at=datetime(day.year, day.month, day.day, hour, 15),
                ))
            s.commit()

    return _add
