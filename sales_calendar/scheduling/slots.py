"""
Slot resolution.

Matches appointments to (date, time slot, sales rep) slots. Two bookings can
race into the same slot; when that happens the most recently booked record
is treated as authoritative and the duplicate is only logged.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timezone
from typing import Any

from sales_calendar.scheduling.weeks import format_date, is_today
from sales_calendar.schemas.appointment import SALES_REPS, TIME_SLOTS, SalesRep, TimeSlot

logger = logging.getLogger(__name__)

OLDEST_TIMESTAMP = float('-inf')


def _enum_value(value: Any) -> Any:
    return getattr(value, 'value', value)


def booking_timestamp(value: Any) -> float:
    """
    Epoch seconds for a booking timestamp.

    Accepts structured values carrying ``seconds`` (and optionally
    ``nanoseconds``), either as a mapping or as attributes, plus datetimes,
    dates, ISO-8601 strings and plain numbers. Naive datetimes are read as
    UTC. Missing values sort as the oldest possible timestamp.
    """
    if value is None:
        return OLDEST_TIMESTAMP

    if isinstance(value, bool):
        raise TypeError('Booking timestamp cannot be a boolean.')

    if isinstance(value, (int, float)):
        return float(value)

    if isinstance(value, Mapping):
        if 'seconds' not in value:
            return OLDEST_TIMESTAMP
        return float(value['seconds']) + float(value.get('nanoseconds') or 0) / 1e9

    if hasattr(value, 'seconds') and not isinstance(value, (date, str)):
        return float(value.seconds) + float(getattr(value, 'nanoseconds', 0) or 0) / 1e9

    if isinstance(value, str):
        if not value.strip():
            return OLDEST_TIMESTAMP
        value = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))

    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc).timestamp()

    raise TypeError(f'Unsupported booking timestamp: {value!r}')


def matches_slot(appointment: Any, slot_date: str, time_slot: str, sales_rep: str) -> bool:
    return (
        format_date(appointment.date) == slot_date
        and _enum_value(appointment.time_slot) == time_slot
        and _enum_value(appointment.sales_rep) == sales_rep
    )


def resolve_slot(
    appointments: Iterable[Any],
    slot_date: date | datetime | str,
    time_slot: TimeSlot | str,
    sales_rep: SalesRep | str,
) -> Any | None:
    """
    Return the appointment occupying a slot, or None when it is free.

    Dates are compared as ``YYYY-MM-DD`` strings. With several matches the
    one with the latest booking timestamp wins; ties keep the first match.
    """
    normalized_date = format_date(slot_date)
    normalized_slot = _enum_value(time_slot)
    normalized_rep = _enum_value(sales_rep)

    matching = [
        appointment
        for appointment in appointments
        if matches_slot(appointment, normalized_date, normalized_slot, normalized_rep)
    ]

    if not matching:
        return None

    if len(matching) > 1:
        logger.warning(
            'Multiple appointments found for same slot: date=%s time_slot=%s sales_rep=%s count=%d',
            normalized_date,
            normalized_slot,
            normalized_rep,
            len(matching),
        )

    # max() keeps the first maximal element, which gives the tie rule.
    return max(matching, key=lambda appointment: booking_timestamp(appointment.booked_at))


def build_week_grid(appointments: Iterable[Any], dates: list[date], today: date | None = None) -> list[dict]:
    """One entry per day, each holding every time slot and sales rep cell."""
    snapshot = list(appointments)
    days = []

    for day in dates:
        slots = []
        for time_slot in TIME_SLOTS:
            cells = []
            for sales_rep in SALES_REPS:
                appointment = resolve_slot(snapshot, day, time_slot, sales_rep)
                cells.append({
                    'sales_rep': sales_rep.value,
                    'is_available': appointment is None,
                    'appointment': appointment,
                })
            slots.append({'time_slot': time_slot.value, 'cells': cells})

        days.append({
            'date': day,
            'is_today': is_today(day, today),
            'slots': slots,
        })

    return days
