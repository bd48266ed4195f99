"""Pydantic schemas and enumerations for appointments."""

import enum
from datetime import date, datetime

from pydantic import BaseModel, field_validator

MAX_APPOINTMENT_NOTES_LENGTH = 600


class SalesRep(str, enum.Enum):
    REP_A = "Rep A"
    REP_B = "Rep B"


class TimeSlot(str, enum.Enum):
    MORNING = "8-10 AM"
    LATE_MORNING = "10-12 PM"
    EARLY_AFTERNOON = "1-3 PM"
    LATE_AFTERNOON = "3-5 PM"


class AppointmentType(str, enum.Enum):
    SALES_CALL = "Sales Call"
    DEMO = "Demo"
    FOLLOW_UP = "Follow-up"


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OwnLease(str, enum.Enum):
    OWN = "Own"
    LEASE = "Lease"


SALES_REPS = list(SalesRep)
TIME_SLOTS = list(TimeSlot)


class SlotKey(BaseModel):
    """The (date, time slot, sales rep) triple that identifies a bookable slot."""
    date: date
    time_slot: TimeSlot
    sales_rep: SalesRep

    class Config:
        frozen = True


class BookingFormData(BaseModel):
    """Customer and business details entered when booking or editing."""
    business_name: str
    meter_number: str
    contact_name: str
    phone_number: str
    email: str | None = None
    address: str
    own_lease: OwnLease = OwnLease.OWN
    employees: str
    notes: str | None = None
    appointment_type: AppointmentType = AppointmentType.SALES_CALL

    @field_validator('business_name', 'meter_number', 'contact_name', 'phone_number', 'address', 'employees')
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('This field is required.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip().lower()
        if not normalized:
            return None
        if '@' not in normalized:
            raise ValueError('Enter a valid email address.')
        return normalized

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

        return normalized


class AppointmentRecord(BookingFormData):
    """A stored appointment as read back from the store."""
    id: str
    sales_rep: SalesRep
    date: date
    time_slot: TimeSlot
    booked_by: str
    booked_at: datetime | None = None
    updated_at: datetime | None = None
    status: AppointmentStatus = AppointmentStatus.SCHEDULED

    class Config:
        from_attributes = True

    @property
    def slot_key(self) -> SlotKey:
        return SlotKey(date=self.date, time_slot=self.time_slot, sales_rep=self.sales_rep)
