"""
Appointment document store.

Thin create/read/update/delete access to the ``appointments`` collection plus
standing subscriptions: every successful write pushes a full replacement
snapshot of each subscriber's date range. Nothing is merged incrementally.
"""

import logging
import uuid
from collections.abc import Callable
from datetime import date, datetime, timezone
from threading import Lock, RLock

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from sales_calendar.core.errors import WriteFailed
from sales_calendar.database import SessionLocal
from sales_calendar.models.appointment import Appointment
from sales_calendar.schemas.appointment import AppointmentRecord, AppointmentStatus, BookingFormData

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[list[AppointmentRecord]], None]
ErrorListener = Callable[[Exception], None]


def _to_record(appointment: Appointment) -> AppointmentRecord:
    return AppointmentRecord.model_validate(appointment)


class Subscription:
    """Cancellation handle returned by ``AppointmentStore.subscribe``."""

    def __init__(self, store: 'AppointmentStore', subscription_id: int):
        self._store = store
        self.subscription_id = subscription_id
        self.active = True

    def cancel(self) -> None:
        if not self.active:
            return
        self._store._unsubscribe(self.subscription_id)
        self.active = False


class AppointmentStore:
    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self._session_factory = session_factory
        self._listeners: dict[int, tuple[date, date, SnapshotListener, ErrorListener | None]] = {}
        self._listener_lock = Lock()
        self._delivery_lock = RLock()
        self._next_subscription_id = 1

    def list_range(self, start: date, end: date) -> list[AppointmentRecord]:
        """Appointments whose date falls in ``[start, end]``, inclusive."""
        db = self._session_factory()
        try:
            appointments = db.query(Appointment).filter(
                Appointment.date >= start,
                Appointment.date <= end,
            ).order_by(Appointment.date.asc()).all()
            return [_to_record(appointment) for appointment in appointments]
        finally:
            db.close()

    def get(self, appointment_id: str) -> AppointmentRecord | None:
        db = self._session_factory()
        try:
            appointment = db.get(Appointment, appointment_id)
            return _to_record(appointment) if appointment else None
        finally:
            db.close()

    def create(
        self,
        form: BookingFormData,
        *,
        sales_rep: str,
        slot_date: date,
        time_slot: str,
        booked_by: str,
    ) -> AppointmentRecord:
        db = self._session_factory()
        try:
            appointment = Appointment(
                id=uuid.uuid4().hex,
                sales_rep=sales_rep,
                date=slot_date,
                time_slot=time_slot,
                booked_by=booked_by,
                booked_at=datetime.now(timezone.utc),
                status=AppointmentStatus.SCHEDULED.value,
                **form.model_dump(mode='json'),
            )
            db.add(appointment)
            db.commit()
            db.refresh(appointment)
            record = _to_record(appointment)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception('Error saving appointment for %s on %s %s', sales_rep, slot_date, time_slot)
            raise WriteFailed('book') from exc
        finally:
            db.close()

        self._publish()
        return record

    def update(
        self,
        appointment_id: str,
        form: BookingFormData,
        status: AppointmentStatus | None = None,
    ) -> AppointmentRecord | None:
        """Overwrite every form field and stamp ``updated_at``. None if missing."""
        db = self._session_factory()
        try:
            appointment = db.get(Appointment, appointment_id)
            if appointment is None:
                return None

            for field, value in form.model_dump(mode='json').items():
                setattr(appointment, field, value)
            if status is not None:
                appointment.status = status.value
            appointment.updated_at = datetime.now(timezone.utc)

            db.commit()
            db.refresh(appointment)
            record = _to_record(appointment)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception('Error updating appointment %s', appointment_id)
            raise WriteFailed('update') from exc
        finally:
            db.close()

        self._publish()
        return record

    def delete(self, appointment_id: str) -> bool:
        db = self._session_factory()
        try:
            appointment = db.get(Appointment, appointment_id)
            if appointment is None:
                return False

            db.delete(appointment)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception('Error deleting appointment %s', appointment_id)
            raise WriteFailed('delete') from exc
        finally:
            db.close()

        self._publish()
        return True

    def subscribe(
        self,
        start: date,
        end: date,
        on_snapshot: SnapshotListener,
        on_error: ErrorListener | None = None,
    ) -> Subscription:
        """
        Register a listener for the inclusive range ``[start, end]``.

        The current snapshot is delivered before this returns; later writes
        deliver a fresh full snapshot.
        """
        with self._delivery_lock:
            with self._listener_lock:
                subscription_id = self._next_subscription_id
                self._next_subscription_id += 1
                self._listeners[subscription_id] = (start, end, on_snapshot, on_error)

            self._deliver(start, end, on_snapshot, on_error)
        return Subscription(self, subscription_id)

    def listener_count(self) -> int:
        with self._listener_lock:
            return len(self._listeners)

    def _unsubscribe(self, subscription_id: int) -> None:
        with self._listener_lock:
            self._listeners.pop(subscription_id, None)

    def _publish(self) -> None:
        # Snapshots are read and delivered one at a time, so a listener never
        # receives an older snapshot after a newer one.
        with self._delivery_lock:
            with self._listener_lock:
                listeners = list(self._listeners.values())

            for start, end, on_snapshot, on_error in listeners:
                self._deliver(start, end, on_snapshot, on_error)

    def _deliver(
        self,
        start: date,
        end: date,
        on_snapshot: SnapshotListener,
        on_error: ErrorListener | None,
    ) -> None:
        try:
            snapshot = self.list_range(start, end)
        except SQLAlchemyError as exc:
            logger.exception('Error listening to appointments for %s to %s', start, end)
            if on_error is not None:
                on_error(exc)
            return

        try:
            on_snapshot(snapshot)
        except Exception:
            logger.exception('Appointment listener for %s to %s failed', start, end)
