"""
Pytest configuration and shared fixtures.

Each test gets its own file-backed SQLite database, a seeded salon catalog
and a clock it can move. Settings are pinned through the environment before
any app module is imported.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BUSINESS_TIMEZONE"] = "America/Los_Angeles"
os.environ["HOLD_DURATION_SECONDS"] = "300"
os.environ["SLOT_GRANULARITY_MINUTES"] = "15"

from datetime import datetime, time, timedelta
from types import SimpleNamespace

import pytest
from sqlalchemy.orm import sessionmaker

from app.config.database import build_engine
from app.models import (
    Base,
    Booking,
    BookingStatus,
    ScheduleBlock,
    Service,
    Staff,
    StaffAvailability,
    StaffServicePricing,
)

from helpers import WORK_DAY, MutableClock, local


@pytest.fixture
def clock():
    return MutableClock(local(WORK_DAY - timedelta(days=1), 8))


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'booking.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def salon(db):
    """
    Two stylists and three services.

    Maya performs haircut and color and works Tuesdays 09:00-17:00 with no
    blocks. Leo performs haircut only. Maya charges a custom price for color.
    Only ids are returned so the session holds no open transaction.
    """
    haircut = Service(name="Haircut", duration_minutes=60, base_price=6500)
    color = Service(name="Color", duration_minutes=120, base_price=14000)
    manicure = Service(name="Manicure", duration_minutes=30, base_price=3000)
    db.add_all([haircut, color, manicure])

    maya = Staff(name="Maya Chen", services=[haircut, color])
    leo = Staff(name="Leo Park", services=[haircut])
    db.add_all([maya, leo])
    db.flush()

    db.add(StaffServicePricing(staff_id=maya.id, service_id=color.id, custom_price=16000))
    for member in (maya, leo):
        db.add(StaffAvailability(
            staff_id=member.id,
            day_of_week=WORK_DAY.weekday(),
            start_time=time(9, 0),
            end_time=time(17, 0),
        ))
    db.flush()

    ids = SimpleNamespace(
        maya=maya.id,
        leo=leo.id,
        haircut=haircut.id,
        color=color.id,
        manicure=manicure.id,
    )
    db.commit()
    return ids


@pytest.fixture
def add_block(db):
    """Add a block to a staff member's weekly rule for WORK_DAY"""

    def _add_block(staff_id, start: time, end: time, title: str = "Lunch", block_type: str = "lunch"):
        rule = (
            db.query(StaffAvailability)
            .filter(
                StaffAvailability.staff_id == staff_id,
                StaffAvailability.day_of_week == WORK_DAY.weekday(),
                StaffAvailability.override_date.is_(None),
            )
            .one()
        )
        rule.blocks.append(ScheduleBlock(
            block_start_time=start,
            block_end_time=end,
            block_type=block_type,
            title=title,
        ))
        db.commit()

    return _add_block


@pytest.fixture
def add_booking(db):
    """Insert a booking row directly, bypassing the writer"""

    def _add_booking(staff_id, service_id, start: datetime, minutes: int = 60,
                     status: str = BookingStatus.CONFIRMED.value):
        booking = Booking(
            staff_id=staff_id,
            service_id=service_id,
            slot_datetime=start,
            slot_end_datetime=start + timedelta(minutes=minutes),
            duration_minutes=minutes,
            customer_name="Existing Customer",
            customer_phone="5555550100",
            final_price=6500,
            status=status,
        )
        db.add(booking)
        db.flush()
        booking_id = booking.id
        db.commit()
        return booking_id

    return _add_booking


@pytest.fixture
def customer():
    from app.schemas.bookings import CustomerInfo

    return CustomerInfo(name="Ada Lovelace", phone="5555550123", email="ada@example.com")


@pytest.fixture
def availability_service(db, clock):
    from app.services.availability.availability_service import AvailabilityService

    return AvailabilityService(db, now_fn=clock)


@pytest.fixture
def booking_service(db, clock):
    from app.services.booking.booking_service import BookingService

    return BookingService(db, now_fn=clock)


@pytest.fixture
def hold_service(db, clock):
    from app.services.holds.hold_service import BookingHoldService

    return BookingHoldService(db, now_fn=clock)


@pytest.fixture
def schedule_service(db, clock):
    from app.services.schedule.schedule_service import ScheduleService

    return ScheduleService(db, now_fn=clock)


@pytest.fixture
def client(db, clock):
    """FastAPI TestClient sharing the test session and clock"""
    from fastapi.testclient import TestClient

    from app.api.dependencies import get_clock
    from app.config.database import get_db
    from app.main import create_app

    app = create_app()

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_clock] = lambda: clock

    with TestClient(app) as test_client:
        yield test_client
