from datetime import date

import pytest

from sales_calendar.core.errors import SLOT_TAKEN_MESSAGE, SlotTaken
from sales_calendar.scheduling.booking import submit_booking
from sales_calendar.scheduling.session import CalendarSession
from sales_calendar.schemas.appointment import AppointmentStatus, SalesRep, SlotKey, TimeSlot


def _key(day: date = date(2025, 3, 5)) -> SlotKey:
    return SlotKey(date=day, time_slot=TimeSlot.MORNING, sales_rep=SalesRep.REP_A)


def test_submit_booking_creates_scheduled_appointment(store, booking_form) -> None:
    appointment = submit_booking([], _key(), booking_form, store, booked_by='rep@example.com')

    assert appointment.status == AppointmentStatus.SCHEDULED
    assert appointment.booked_by == 'rep@example.com'
    assert appointment.booked_at is not None
    assert appointment.slot_key == _key()
    assert store.get(appointment.id) == appointment


def test_submit_booking_rejects_slot_taken_since_form_opened(store, booking_form, monkeypatch) -> None:
    with CalendarSession(store, date(2025, 3, 5)) as session:
        # Another client books the slot while this form is open.
        submit_booking([], _key(), booking_form, store, booked_by='other@example.com')
        snapshot = list(session.appointments)

        def fail_create(*args, **kwargs):
            raise AssertionError('no write expected')

        monkeypatch.setattr(store, 'create', fail_create)

        with pytest.raises(SlotTaken) as exception_info:
            submit_booking(snapshot, _key(), booking_form, store, booked_by='rep@example.com')

    assert str(exception_info.value) == SLOT_TAKEN_MESSAGE
    assert exception_info.value.date == '2025-03-05'
    assert exception_info.value.time_slot == '8-10 AM'
    assert exception_info.value.sales_rep == 'Rep A'


def test_submit_booking_allows_other_rep_in_same_time_slot(store, booking_form) -> None:
    first = submit_booking([], _key(), booking_form, store, booked_by='rep@example.com')
    other_rep = SlotKey(date=date(2025, 3, 5), time_slot=TimeSlot.MORNING, sales_rep=SalesRep.REP_B)

    second = submit_booking([first], other_rep, booking_form, store, booked_by='rep@example.com')

    assert second.sales_rep == SalesRep.REP_B


def test_calendar_session_receives_snapshot_after_each_write(store, booking_form) -> None:
    session = CalendarSession(store, date(2025, 3, 5))
    assert session.appointments == []

    appointment = session.book(_key(), booking_form, booked_by='rep@example.com')
    assert [record.id for record in session.appointments] == [appointment.id]
    assert session.slot(date(2025, 3, 5), '8-10 AM', 'Rep A') == appointment

    with pytest.raises(SlotTaken):
        session.book(_key(), booking_form, booked_by='rep@example.com')

    assert session.delete(appointment.id) is True
    assert session.appointments == []
    session.close()


def test_calendar_session_only_tracks_visible_week(store, booking_form) -> None:
    session = CalendarSession(store, date(2025, 3, 5))

    # Written by another client outside the visible week.
    submit_booking([], _key(date(2025, 3, 12)), booking_form, store, booked_by='other@example.com')
    assert session.appointments == []

    session.next_week()
    assert len(session.appointments) == 1
    assert store.listener_count() == 1

    session.previous_week()
    assert session.appointments == []
    session.close()


def test_calendar_session_guards_slots_outside_visible_week(store, booking_form) -> None:
    with CalendarSession(store, date(2025, 3, 5)) as session:
        next_week_key = _key(date(2025, 3, 12))
        session.book(next_week_key, booking_form, booked_by='rep@example.com')

        with pytest.raises(SlotTaken):
            session.book(next_week_key, booking_form, booked_by='other@example.com')

    assert len(store.list_range(date(2025, 3, 12), date(2025, 3, 12))) == 1


def test_calendar_session_close_cancels_subscription(store) -> None:
    session = CalendarSession(store, date(2025, 3, 5))
    assert store.listener_count() == 1

    session.close()
    session.close()

    assert store.listener_count() == 0


def test_calendar_session_update_overwrites_form_fields(store, booking_form) -> None:
    with CalendarSession(store, date(2025, 3, 5)) as session:
        appointment = session.book(_key(), booking_form, booked_by='rep@example.com')
        edited = booking_form.model_copy(update={'contact_name': 'Sam Lee', 'notes': None})

        updated = session.update(appointment.id, edited, AppointmentStatus.COMPLETED)

        assert updated.contact_name == 'Sam Lee'
        assert updated.notes is None
        assert updated.status == AppointmentStatus.COMPLETED
        assert updated.updated_at is not None
        assert updated.booked_at == appointment.booked_at
        assert session.appointments == [updated]


def test_calendar_session_grid_reflects_snapshot(store, booking_form) -> None:
    with CalendarSession(store, date(2025, 3, 5)) as session:
        appointment = session.book(_key(), booking_form, booked_by='rep@example.com')

        grid = session.grid(today=date(2025, 3, 5))

    cell = grid[3]['slots'][0]['cells'][0]
    assert cell['appointment'] == appointment
    assert grid[3]['is_today'] is True
