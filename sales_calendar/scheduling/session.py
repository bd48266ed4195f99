"""
Calendar session.

State behind one calendar view: the anchor date, the live snapshot of the
visible week and the subscription that keeps it current. Navigating swaps
the subscription for one covering the new week.
"""

import logging
from datetime import date, datetime

from sales_calendar.scheduling.booking import submit_booking
from sales_calendar.scheduling.slots import build_week_grid, resolve_slot
from sales_calendar.scheduling.weeks import WeekNavigator, format_date
from sales_calendar.schemas.appointment import (
    AppointmentRecord,
    AppointmentStatus,
    BookingFormData,
    SalesRep,
    SlotKey,
    TimeSlot,
)
from sales_calendar.store import AppointmentStore, Subscription

logger = logging.getLogger(__name__)


class CalendarSession:
    def __init__(self, store: AppointmentStore, anchor: date | datetime | str | None = None):
        self.store = store
        self.navigator = WeekNavigator(anchor)
        self.appointments: list[AppointmentRecord] = []
        self.last_error: Exception | None = None
        self._subscription: Subscription | None = None
        self._subscribe()

    def __enter__(self) -> 'CalendarSession':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def week(self) -> list[date]:
        return self.navigator.week

    def _on_snapshot(self, appointments: list[AppointmentRecord]) -> None:
        logger.debug('Loaded %d appointments', len(appointments))
        self.appointments = appointments
        self.last_error = None

    def _on_error(self, exc: Exception) -> None:
        self.last_error = exc

    def _subscribe(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()

        start, end = self.navigator.range
        logger.debug('Loading appointments for week: %s to %s', format_date(start), format_date(end))
        self._subscription = self.store.subscribe(start, end, self._on_snapshot, self._on_error)

    def next_week(self) -> list[date]:
        self.navigator.next()
        self._subscribe()
        return self.week

    def previous_week(self) -> list[date]:
        self.navigator.previous()
        self._subscribe()
        return self.week

    def this_week(self) -> list[date]:
        self.navigator.today()
        self._subscribe()
        return self.week

    def slot(self, slot_date: date, time_slot: TimeSlot | str, sales_rep: SalesRep | str) -> AppointmentRecord | None:
        return resolve_slot(self.appointments, slot_date, time_slot, sales_rep)

    def grid(self, today: date | None = None) -> list[dict]:
        return build_week_grid(self.appointments, self.week, today)

    def book(self, key: SlotKey, form: BookingFormData, booked_by: str) -> AppointmentRecord:
        if key.date in self.week:
            snapshot = self.appointments
        else:
            # The live snapshot only covers the visible week.
            snapshot = self.store.list_range(key.date, key.date)
        return submit_booking(snapshot, key, form, self.store, booked_by)

    def update(
        self,
        appointment_id: str,
        form: BookingFormData,
        status: AppointmentStatus | None = None,
    ) -> AppointmentRecord | None:
        logger.info('Updating appointment %s: %s', appointment_id, form.contact_name)
        appointment = self.store.update(appointment_id, form, status)
        if appointment is not None:
            logger.info('Appointment %s updated successfully', appointment_id)
        return appointment

    def delete(self, appointment_id: str) -> bool:
        deleted = self.store.delete(appointment_id)
        if deleted:
            logger.info('Appointment %s deleted successfully', appointment_id)
        return deleted

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
