"""Shared test fixtures and factories."""
import os

# Must be set before any booking_app module reads settings
os.environ["SESSION_BACKEND"] = "memory"
os.environ["DEFAULT_LANGUAGE"] = "en"
os.environ.setdefault("DATABASE_URL", "sqlite:///./booking_test.db")

from datetime import datetime, timedelta
from typing import Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from booking_app.models import Base, Booking, BookingStatus, Facility, Service, Staff
from booking_app.services.booking.booking_code import generate_booking_code
from booking_app.services.session.session_store import ConversationSessionStore, InMemorySessionBackend

DAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

FACILITY_HOURS = {day: {"start": "09:00", "end": "20:00"} for day in DAYS}
STAFF_WEEKDAY_HOURS = {day: {"start": "09:00", "end": "18:00"} for day in DAYS[:5]}

# Monday; every date used by the tests is in the same or the following week
NOW = datetime(2024, 11, 4, 8, 0)
WEDNESDAY = datetime(2024, 11, 6).date()
THURSDAY = datetime(2024, 11, 7).date()
SATURDAY = datetime(2024, 11, 9).date()


class FakeClock:
    """Callable clock that only moves when told to"""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'bookings.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
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
def clock():
    return FakeClock()


@pytest.fixture
def session_store(clock):
    return ConversationSessionStore(InMemorySessionBackend(clock), clock=clock)


def make_facility(db, working_hours=None, name="Studio One") -> Facility:
    facility = Facility(name=name, working_hours=FACILITY_HOURS if working_hours is None else working_hours)
    db.add(facility)
    db.commit()
    db.refresh(facility)
    return facility


def make_staff(
    db,
    facility: Facility,
    name: str = "Anna Petrova",
    working_hours: Optional[dict] = None,
    specializations: Optional[list] = None,
    is_active: bool = True,
    staff_id: Optional[str] = None,
) -> Staff:
    staff = Staff(
        facility_id=facility.id,
        name=name,
        working_hours=working_hours,
        specializations=specializations or [],
        is_active=is_active,
    )
    if staff_id:
        staff.id = staff_id
    db.add(staff)
    db.commit()
    db.refresh(staff)
    return staff


def make_service(db, facility: Facility, name: str = "Haircut", duration: int = 60, category: str = "hair") -> Service:
    service = Service(facility_id=facility.id, name=name, duration_minutes=duration, category=category, price=35)
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


def make_booking(
    db,
    staff: Staff,
    service: Service,
    start: datetime,
    minutes: int = 60,
    status: str = BookingStatus.CONFIRMED.value,
    customer_id: str = "existing-customer",
) -> Booking:
    booking = Booking(
        facility_id=staff.facility_id,
        staff_id=staff.id,
        service_id=service.id,
        customer_id=customer_id,
        start_ts=start,
        end_ts=start + timedelta(minutes=minutes),
        status=status,
        booking_code=generate_booking_code(),
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


@pytest.fixture
def salon(db):
    """Facility open 09-20 daily, one weekday stylist, one 60 minute service"""
    facility = make_facility(db)
    staff = make_staff(db, facility, working_hours=STAFF_WEEKDAY_HOURS)
    service = make_service(db, facility)
    return facility, staff, service
