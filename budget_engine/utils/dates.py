"""Calendar helpers working at day granularity."""

import calendar
from collections.abc import Iterator
from datetime import date, datetime, timedelta

DATE_KEY_FORMAT = "%Y-%m-%d"


def as_date(value: date | datetime | str) -> date:
    """Truncate a datetime (or ISO string) to its calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    raise TypeError(f"Expected a date, got {type(value).__name__}")


def as_optional_date(value: date | datetime | str | None) -> date | None:
    if value is None or value == "":
        return None
    return as_date(value)


def date_key(value: date) -> str:
    """Ledger key for a day bucket (YYYY-MM-DD)."""
    return value.strftime(DATE_KEY_FORMAT)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day_to_month(year: int, month: int, day: int) -> int:
    """Clamp day to valid range for the given year/month."""
    return min(day, days_in_month(year, month))


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Return (first_day, last_day) for a month."""
    return date(year, month, 1), date(year, month, days_in_month(year, month))


def next_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def add_months(d: date, n: int) -> date:
    """Add n months to date d, clamping day to month end."""
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    return d.replace(year=year, month=month, day=clamp_day_to_month(year, month, d.day))


def add_years(d: date, n: int) -> date:
    """Add n years; Feb 29 becomes Feb 28 in non-leap years."""
    year = d.year + n
    return d.replace(year=year, day=clamp_day_to_month(year, d.month, d.day))


def sunday_weekday(d: date) -> int:
    """Day of week with 0=Sunday..6=Saturday."""
    return (d.weekday() + 1) % 7


def iter_days(start: date, end: date, step: timedelta = timedelta(days=1)) -> Iterator[date]:
    """Yield dates from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += step
