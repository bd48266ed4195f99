"""Appointment model definitions."""

from sqlalchemy import Column, Date, DateTime, String
from sales_calendar.database import Base


class Appointment(Base):
    """Represents one booked slot for a sales rep."""
    __tablename__ = "appointments"

    id = Column(String, primary_key=True)
    sales_rep = Column(String, nullable=False)
    date = Column(Date, nullable=False, index=True)
    time_slot = Column(String, nullable=False)

    business_name = Column(String, nullable=False)
    meter_number = Column(String, nullable=False)
    contact_name = Column(String, nullable=False)
    phone_number = Column(String, nullable=False)
    email = Column(String)
    address = Column(String, nullable=False)
    own_lease = Column(String, nullable=False)
    employees = Column(String, nullable=False)
    notes = Column(String)
    appointment_type = Column(String, nullable=False)

    booked_by = Column(String, nullable=False)
    booked_at = Column(DateTime(timezone=True))
    updated_at = Column(DateTime(timezone=True))
    status = Column(String, nullable=False, default="scheduled")  # scheduled/completed/cancelled
