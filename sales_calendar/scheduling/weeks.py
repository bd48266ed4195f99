"""
Week navigation for the calendar grid.

The visible week is always derived from a single anchor date, so the
displayed span is a Sunday-to-Saturday run of seven consecutive days.
"""

from datetime import date, datetime, timedelta

DAYS_IN_WEEK = 7


def to_calendar_day(value: date | datetime | str) -> date:
    """Drop any time-of-day component; ISO strings are accepted."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip()[:10])


def format_date(value: date | datetime | str) -> str:
    """Normalize a calendar day to ``YYYY-MM-DD``."""
    return to_calendar_day(value).isoformat()


def start_of_week(anchor: date | datetime | str) -> date:
    """Sunday on or before ``anchor``."""
    day = to_calendar_day(anchor)
    # weekday() is Monday=0 .. Sunday=6
    return day - timedelta(days=(day.weekday() + 1) % DAYS_IN_WEEK)


def week_dates(anchor: date | datetime | str | None = None) -> list[date]:
    first_day = start_of_week(anchor if anchor is not None else date.today())
    return [first_day + timedelta(days=offset) for offset in range(DAYS_IN_WEEK)]


def next_week(anchor: date | datetime | str) -> date:
    return to_calendar_day(anchor) + timedelta(days=DAYS_IN_WEEK)


def previous_week(anchor: date | datetime | str) -> date:
    return to_calendar_day(anchor) - timedelta(days=DAYS_IN_WEEK)


def is_today(day: date, today: date | None = None) -> bool:
    return to_calendar_day(day) == (today or date.today())


def format_date_display(day: date) -> str:
    """e.g. ``Wed, Mar 5``."""
    return f'{day:%a}, {day:%b} {day.day}'


def format_week_range(dates: list[date]) -> str:
    """e.g. ``Mar 2, 2025 - Mar 8, 2025``."""
    start, end = dates[0], dates[-1]
    return f'{start:%b} {start.day}, {start.year} - {end:%b} {end.day}, {end.year}'


class WeekNavigator:
    """Holds the anchor date; the week itself is never stored."""

    def __init__(self, anchor: date | datetime | str | None = None):
        self.anchor = to_calendar_day(anchor) if anchor is not None else date.today()

    @property
    def week(self) -> list[date]:
        return week_dates(self.anchor)

    @property
    def range(self) -> tuple[date, date]:
        dates = self.week
        return dates[0], dates[-1]

    def next(self) -> list[date]:
        self.anchor = next_week(self.anchor)
        return self.week

    def previous(self) -> list[date]:
        self.anchor = previous_week(self.anchor)
        return self.week

    def today(self) -> list[date]:
        self.anchor = date.today()
        return self.week
