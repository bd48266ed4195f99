import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from sales_calendar.database import Base  # noqa: E402
from sales_calendar.models.appointment import Appointment  # noqa: E402
from sales_calendar.schemas.appointment import BookingFormData  # noqa: E402
from sales_calendar.store import AppointmentStore  # noqa: E402


@pytest.fixture
def session_factory():
    # One shared connection so every session sees the same in-memory database.
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine, tables=[Appointment.__table__])
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine, tables=[Appointment.__table__])
        engine.dispose()


@pytest.fixture
def store(session_factory) -> AppointmentStore:
    return AppointmentStore(session_factory)


@pytest.fixture
def booking_form() -> BookingFormData:
    return BookingFormData(
        business_name='Corner Bakery',
        meter_number='MTR-1001',
        contact_name='Dana Lopez',
        phone_number='555-0100',
        email='dana@example.com',
        address='12 Main St',
        own_lease='Own',
        employees='8',
        notes='Prefers mornings',
        appointment_type='Sales Call',
    )
