import logging
from collections.abc import Iterable

from sales_calendar.core.errors import SlotTaken
from sales_calendar.scheduling.slots import resolve_slot
from sales_calendar.scheduling.weeks import format_date
from sales_calendar.schemas.appointment import AppointmentRecord, BookingFormData, SlotKey
from sales_calendar.store import AppointmentStore

logger = logging.getLogger(__name__)


def submit_booking(
    snapshot: Iterable[AppointmentRecord],
    key: SlotKey,
    form: BookingFormData,
    store: AppointmentStore,
    booked_by: str,
) -> AppointmentRecord:
    """
    Book ``key`` unless the latest snapshot already shows it occupied.

    The check runs against the caller's in-memory snapshot only, so two
    clients can still both pass it before either write lands.
    """
    existing = resolve_slot(snapshot, key.date, key.time_slot, key.sales_rep)
    if existing is not None:
        logger.info(
            'Slot %s %s %s was booked by someone else while the form was open',
            format_date(key.date),
            key.time_slot.value,
            key.sales_rep.value,
        )
        raise SlotTaken(format_date(key.date), key.time_slot.value, key.sales_rep.value)

    logger.info(
        'Booking appointment: %s with %s on %s %s',
        form.contact_name,
        key.sales_rep.value,
        format_date(key.date),
        key.time_slot.value,
    )
    appointment = store.create(
        form,
        sales_rep=key.sales_rep.value,
        slot_date=key.date,
        time_slot=key.time_slot.value,
        booked_by=booked_by,
    )
    logger.info('Appointment %s booked successfully', appointment.id)
    return appointment
