"""
Creation-date windows for browsing maintenance reports.

All windows are computed in UTC and returned as a half-open
``[start, end)`` range; either bound may be None.
"""

import calendar
from datetime import UTC, date, datetime, time, timedelta

from dcmaint.models.enums import DateRange

Window = tuple[datetime | None, datetime | None]


def _start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)


def one_month_before(day: date) -> date:
    """Same day of the previous month, clamped to that month's length."""
    year, month = (day.year, day.month - 1) if day.month > 1 else (day.year - 1, 12)
    return day.replace(year=year, month=month, day=min(day.day, calendar.monthrange(year, month)[1]))


def date_window(
    date_range: DateRange,
    start_date: date | None = None,
    end_date: date | None = None,
    now: datetime | None = None,
) -> Window:
    """
    Resolve a date filter to a created_at window.

    - today: since midnight today
    - week: since midnight seven days ago
    - month: since midnight on the same day last month
    - custom: start_date through end_date, both days included; ignored
      unless both dates are given

    Raises:
        ValueError: If a custom range ends before it starts
    """
    today = (now or datetime.now(UTC)).astimezone(UTC).date()

    if date_range == DateRange.TODAY:
        return _start_of_day(today), _start_of_day(today + timedelta(days=1))
    if date_range == DateRange.WEEK:
        return _start_of_day(today - timedelta(days=7)), None
    if date_range == DateRange.MONTH:
        return _start_of_day(one_month_before(today)), None
    if date_range == DateRange.CUSTOM and start_date and end_date:
        if end_date < start_date:
            raise ValueError("end_date must not be before start_date")
        return _start_of_day(start_date), _start_of_day(end_date + timedelta(days=1))
    return None, None
