"""Error kinds raised by calendar operations."""

SLOT_TAKEN_MESSAGE = 'This slot was just booked by someone else. Please choose a different time slot.'


class CalendarError(Exception):
    """Base class for calendar failures that end the attempted operation."""


class SlotTaken(CalendarError):
    """The slot was occupied by another booking before this one was written."""

    def __init__(self, date: str, time_slot: str, sales_rep: str):
        super().__init__(SLOT_TAKEN_MESSAGE)
        self.date = date
        self.time_slot = time_slot
        self.sales_rep = sales_rep


class WriteFailed(CalendarError):
    """A create, update or delete could not be applied by the store."""

    def __init__(self, operation: str, message: str = ''):
        super().__init__(message or f'Error trying to {operation} appointment. Please try again.')
        self.operation = operation


class Unauthenticated(CalendarError):
    """No signed-in identity."""


class Unauthorized(CalendarError):
    """Signed-in identity is not on the allow-list."""

    def __init__(self, email: str):
        super().__init__(f'{email} is not authorized to access the scheduling system.')
        self.email = email
