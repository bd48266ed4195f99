import logging
from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest

from sales_calendar.scheduling.slots import (
    OLDEST_TIMESTAMP,
    booking_timestamp,
    build_week_grid,
    resolve_slot,
)
from sales_calendar.scheduling.weeks import week_dates
from sales_calendar.schemas.appointment import SalesRep, TimeSlot


def _appointment(appointment_id: str, booked_at, *, day='2025-03-05', time_slot='8-10 AM', sales_rep='Rep A'):
    return SimpleNamespace(
        id=appointment_id,
        date=day,
        time_slot=time_slot,
        sales_rep=sales_rep,
        booked_at=booked_at,
        contact_name=f'Contact {appointment_id}',
    )


def test_resolve_slot_returns_none_for_empty_slot() -> None:
    appointments = [_appointment('a', {'seconds': 100}, time_slot='1-3 PM')]

    assert resolve_slot(appointments, date(2025, 3, 5), '8-10 AM', 'Rep A') is None


def test_resolve_slot_returns_single_match_unchanged() -> None:
    only = _appointment('a', None)
    other_rep = _appointment('b', {'seconds': 500}, sales_rep='Rep B')

    assert resolve_slot([only, other_rep], date(2025, 3, 5), TimeSlot.MORNING, SalesRep.REP_A) is only


def test_resolve_slot_prefers_most_recent_booking() -> None:
    older = _appointment('older', {'seconds': 100})
    newer = _appointment('newer', {'seconds': 200})

    assert resolve_slot([newer, older], '2025-03-05', '8-10 AM', 'Rep A') is newer
    assert resolve_slot([older, newer], '2025-03-05', '8-10 AM', 'Rep A') is newer


def test_resolve_slot_logs_duplicate_bookings(caplog: pytest.LogCaptureFixture) -> None:
    appointments = [_appointment('a', {'seconds': 100}), _appointment('b', {'seconds': 200})]

    with caplog.at_level(logging.WARNING, logger='sales_calendar.scheduling.slots'):
        resolve_slot(appointments, '2025-03-05', '8-10 AM', 'Rep A')

    assert 'Multiple appointments found for same slot' in caplog.text
    assert 'count=2' in caplog.text


def test_resolve_slot_keeps_first_record_on_timestamp_tie() -> None:
    first = _appointment('first', {'seconds': 300})
    second = _appointment('second', {'seconds': 300})

    assert resolve_slot([first, second], '2025-03-05', '8-10 AM', 'Rep A') is first


def test_resolve_slot_compares_mixed_timestamp_representations() -> None:
    structured = _appointment('structured', {'seconds': 1_700_000_000})
    native = _appointment('native', datetime(2024, 1, 1, tzinfo=timezone.utc))
    missing = _appointment('missing', None)

    assert resolve_slot([structured, missing, native], '2025-03-05', '8-10 AM', 'Rep A') is native


def test_resolve_slot_matches_datetime_dates_by_calendar_day() -> None:
    appointment = _appointment('a', None, day=date(2025, 3, 5))

    assert resolve_slot([appointment], datetime(2025, 3, 5, 23, 59), '8-10 AM', 'Rep A') is appointment


@pytest.mark.parametrize(
    ('value', 'expected'),
    [
        (None, OLDEST_TIMESTAMP),
        ({'seconds': 200}, 200.0),
        ({'seconds': 200, 'nanoseconds': 500_000_000}, 200.5),
        (SimpleNamespace(seconds=42, nanoseconds=0), 42.0),
        (datetime(1970, 1, 1, 0, 1, tzinfo=timezone.utc), 60.0),
        (datetime(1970, 1, 1, 0, 2), 120.0),
        ('1970-01-01T00:03:00Z', 180.0),
        (date(1970, 1, 2), 86400.0),
        (7, 7.0),
    ],
)
def test_booking_timestamp_normalizes_representations(value, expected: float) -> None:
    assert booking_timestamp(value) == expected


def test_booking_timestamp_sorts_missing_before_pre_epoch_dates() -> None:
    assert booking_timestamp(None) < booking_timestamp(datetime(1900, 1, 1))


def test_build_week_grid_marks_booked_and_available_cells() -> None:
    booked = _appointment('a', {'seconds': 1}, day='2025-03-05', time_slot='1-3 PM', sales_rep='Rep B')
    dates = week_dates(date(2025, 3, 5))

    grid = build_week_grid([booked], dates, today=date(2025, 3, 5))

    assert [day['date'] for day in grid] == dates
    assert [day['is_today'] for day in grid] == [False, False, False, True, False, False, False]

    wednesday = grid[3]
    assert [slot['time_slot'] for slot in wednesday['slots']] == ['8-10 AM', '10-12 PM', '1-3 PM', '3-5 PM']
    afternoon_cells = wednesday['slots'][2]['cells']
    assert afternoon_cells[0] == {'sales_rep': 'Rep A', 'is_available': True, 'appointment': None}
    assert afternoon_cells[1]['appointment'] is booked
    assert afternoon_cells[1]['is_available'] is False

    booked_cells = [
        cell
        for day in grid
        for slot in day['slots']
        for cell in slot['cells']
        if not cell['is_available']
    ]
    assert len(booked_cells) == 1
