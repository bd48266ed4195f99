import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from sales_calendar.auth.access import AccessPolicy, check_access
from sales_calendar.auth.dependencies import (
    CurrentUser,
    get_access_policy,
    get_current_email,
    require_authorized_user,
)
from sales_calendar.core import config
from sales_calendar.core.errors import SlotTaken, Unauthenticated, Unauthorized, WriteFailed
from sales_calendar.database import ensure_appointment_schema
from sales_calendar.scheduling.session import CalendarSession
from sales_calendar.scheduling.weeks import format_date_display, format_week_range, next_week, previous_week
from sales_calendar.schemas.appointment import (
    SALES_REPS,
    TIME_SLOTS,
    AppointmentRecord,
    AppointmentStatus,
    AppointmentType,
    BookingFormData,
    SalesRep,
    SlotKey,
    TimeSlot,
)
from sales_calendar.store import AppointmentStore

router = APIRouter(tags=['calendar'])

logger = logging.getLogger(__name__)

appointment_store = AppointmentStore()

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'


class CreateAppointmentRequest(BookingFormData):
    sales_rep: SalesRep
    date: date
    time_slot: TimeSlot

    @property
    def slot_key(self) -> SlotKey:
        return SlotKey(date=self.date, time_slot=self.time_slot, sales_rep=self.sales_rep)

    def form_data(self) -> BookingFormData:
        return BookingFormData.model_validate(self.model_dump(include=set(BookingFormData.model_fields)))


class UpdateAppointmentRequest(BookingFormData):
    status: AppointmentStatus | None = None

    def form_data(self) -> BookingFormData:
        return BookingFormData.model_validate(self.model_dump(include=set(BookingFormData.model_fields)))


class CalendarCellResponse(BaseModel):
    sales_rep: SalesRep
    is_available: bool
    appointment: AppointmentRecord | None = None


class CalendarTimeSlotResponse(BaseModel):
    time_slot: TimeSlot
    cells: list[CalendarCellResponse]


class CalendarDayResponse(BaseModel):
    date: date
    label: str
    is_today: bool
    slots: list[CalendarTimeSlotResponse]


class CalendarWeekResponse(BaseModel):
    week_start: date
    week_end: date
    label: str
    previous_anchor: date
    next_anchor: date
    days: list[CalendarDayResponse]


class CalendarOptionsResponse(BaseModel):
    sales_reps: list[SalesRep]
    time_slots: list[TimeSlot]
    appointment_types: list[AppointmentType]


def get_store() -> AppointmentStore:
    return appointment_store


def ensure_database_ready() -> None:
    try:
        ensure_appointment_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


def open_session(store: AppointmentStore, anchor: date | None = None) -> CalendarSession:
    session = CalendarSession(store, anchor)
    if session.last_error is not None:
        session.close()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        )
    return session


def build_week_response(session: CalendarSession, today: date | None = None) -> CalendarWeekResponse:
    week = session.week
    days = [
        CalendarDayResponse(
            date=day['date'],
            label=format_date_display(day['date']),
            is_today=day['is_today'],
            slots=[
                CalendarTimeSlotResponse(
                    time_slot=slot['time_slot'],
                    cells=[CalendarCellResponse(**cell) for cell in slot['cells']],
                )
                for slot in day['slots']
            ],
        )
        for day in session.grid(today)
    ]
    return CalendarWeekResponse(
        week_start=week[0],
        week_end=week[-1],
        label=format_week_range(week),
        previous_anchor=previous_week(session.navigator.anchor),
        next_anchor=next_week(session.navigator.anchor),
        days=days,
    )


def home(
    email: str | None = Depends(get_current_email),
    policy: AccessPolicy = Depends(get_access_policy),
    store: AppointmentStore = Depends(get_store),
):
    """Landing view: sign-in redirect, access-denied notice or this week's grid."""
    try:
        check_access(email, policy)
    except Unauthenticated:
        return RedirectResponse(url=config.SIGN_IN_PATH, status_code=status.HTTP_302_FOUND)
    except Unauthorized as exc:
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={
                'error': 'Access Restricted',
                'email': exc.email,
                'message': 'Please contact your administrator to request access to the appointment scheduling system.',
                'sign_out_url': config.SIGN_OUT_PATH,
            },
        )

    ensure_database_ready()
    with open_session(store) as session:
        return build_week_response(session)


@router.get('/week', response_model=CalendarWeekResponse)
def get_week(
    anchor: date | None = Query(default=None),
    current_user: CurrentUser = Depends(require_authorized_user),
    store: AppointmentStore = Depends(get_store),
):
    del current_user
    ensure_database_ready()

    with open_session(store, anchor) as session:
        return build_week_response(session)


@router.get('/options', response_model=CalendarOptionsResponse)
def list_options(current_user: CurrentUser = Depends(require_authorized_user)):
    del current_user
    return CalendarOptionsResponse(
        sales_reps=SALES_REPS,
        time_slots=TIME_SLOTS,
        appointment_types=list(AppointmentType),
    )


@router.post('/appointments', response_model=AppointmentRecord, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    current_user: CurrentUser = Depends(require_authorized_user),
    store: AppointmentStore = Depends(get_store),
):
    ensure_database_ready()

    key = data.slot_key
    with open_session(store, key.date) as session:
        try:
            return session.book(key, data.form_data(), booked_by=current_user.email)
        except SlotTaken as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
        except WriteFailed as exc:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc


def get_appointment_or_404(appointment_id: str, store: AppointmentStore) -> AppointmentRecord:
    try:
        appointment = store.get(appointment_id)
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc

    if appointment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Appointment not found.',
        )
    return appointment


@router.get('/appointments/{appointment_id}', response_model=AppointmentRecord)
def get_appointment(
    appointment_id: str,
    current_user: CurrentUser = Depends(require_authorized_user),
    store: AppointmentStore = Depends(get_store),
):
    del current_user
    ensure_database_ready()
    return get_appointment_or_404(appointment_id, store)


@router.put('/appointments/{appointment_id}', response_model=AppointmentRecord)
def update_appointment(
    appointment_id: str,
    data: UpdateAppointmentRequest,
    current_user: CurrentUser = Depends(require_authorized_user),
    store: AppointmentStore = Depends(get_store),
):
    del current_user
    ensure_database_ready()

    existing = get_appointment_or_404(appointment_id, store)
    with open_session(store, existing.date) as session:
        try:
            appointment = session.update(appointment_id, data.form_data(), data.status)
        except WriteFailed as exc:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    if appointment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Appointment not found.',
        )
    return appointment


@router.delete('/appointments/{appointment_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(
    appointment_id: str,
    current_user: CurrentUser = Depends(require_authorized_user),
    store: AppointmentStore = Depends(get_store),
):
    del current_user
    ensure_database_ready()

    existing = get_appointment_or_404(appointment_id, store)
    with open_session(store, existing.date) as session:
        try:
            deleted = session.delete(appointment_id)
        except WriteFailed as exc:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Appointment not found.',
        )
