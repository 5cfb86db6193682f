"""Shared test fixtures."""
import os

os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from datetime import date, timedelta

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from wakala.database import create_db_engine, get_db
from wakala.main import app
from wakala.models import (
    AvailabilitySlots,
    Base,
    BookingServices,
    WakalaApplications,
    WorkingHoursConfig,
)
from wakala.redis_client import get_redis


@pytest.fixture
def engine(tmp_path):
    """Fresh SQLite file per test (threads need a real file, not :memory:)."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'wakala.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def redis():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def client(session_factory, redis):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: redis
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def target_date() -> date:
    """A date a week ahead: inside the booking horizon, never in the past."""
    return date.today() + timedelta(days=7)


@pytest.fixture
def service(db) -> BookingServices:
    obj = BookingServices(name_en="Power of attorney", name_ar="وكالة", is_active=1)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@pytest.fixture
def working_week(db) -> list[WorkingHoursConfig]:
    """Every weekday open 10:00-14:30, last start 14:00, 30 min slots."""
    rows = [
        WorkingHoursConfig(
            day_of_week=dow,
            start_time="10:00",
            end_time="14:30",
            last_appointment_time="14:00",
            slot_interval_minutes=30,
            is_active=1,
        )
        for dow in range(1, 8)
    ]
    db.add_all(rows)
    db.commit()
    return rows


@pytest.fixture
def make_slots(db):
    """Insert slots directly: make_slots(service_id, date, [("09:00", "09:30"), ...])."""
    def _create(service_id: int, slot_date: date, times: list[tuple[str, str]]):
        rows = [
            AvailabilitySlots(
                service_id=service_id,
                date=slot_date.isoformat(),
                start_time=start,
                end_time=end,
                is_available=1,
                is_blocked_by_admin=0,
            )
            for start, end in times
        ]
        db.add_all(rows)
        db.commit()
        return rows
    return _create


@pytest.fixture
def make_booking(db):
    """Record an active booking holding the given (already claimed) slots."""
    def _create(slots: list[AvailabilitySlots], status: str = "submitted"):
        for slot in slots:
            slot.is_available = 0
        obj = WakalaApplications(
            service_id=slots[0].service_id,
            full_name="Test Member",
            booking_date=slots[0].date,
            start_time=slots[0].start_time,
            end_time=slots[-1].end_time,
            duration_minutes=30 * len(slots),
            slot_id=slots[0].id,
            second_slot_id=slots[1].id if len(slots) > 1 else None,
            status=status,
        )
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj
    return _create
