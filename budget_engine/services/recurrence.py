"""Occurrence calculation for recurrence patterns.

All arithmetic is at day granularity: datetimes are truncated to their
date before comparing. ``end_date`` is inclusive and resolved dates past
it are dropped, never clamped back onto the boundary.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from budget_engine.logger import get_logger
from budget_engine.schemas.recurrence import (
    LAST_DAY_OF_MONTH,
    AnnualPattern,
    BiweeklyPattern,
    DailyPattern,
    MonthlyPattern,
    QuarterlyPattern,
    RecurrencePattern,
    SemiannualPattern,
    WeeklyPattern,
)
from budget_engine.utils.dates import (
    add_months,
    add_years,
    as_date,
    as_optional_date,
    days_in_month,
    iter_days,
    month_bounds,
    next_month,
    sunday_weekday,
)

logger = get_logger(__name__)

SEMIANNUAL_MONTHS = (1, 7)
WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

DateLike = date | datetime | str


def next_occurrence(
    pattern: RecurrencePattern,
    from_date: DateLike,
    start_date: DateLike | None = None,
    end_date: DateLike | None = None,
) -> date | None:
    """Return the first occurrence strictly after ``from_date``, or None.

    When ``start_date`` lies after ``from_date`` the search begins at the
    start date. Step-based cadences (no fixed weekday or day of month)
    count their series from the start date, so it is returned as is.
    """
    current = as_date(from_date)
    start = as_optional_date(start_date)
    end = as_optional_date(end_date)

    if end is not None and current >= end:
        return None

    if start is not None and start > current:
        if _is_step_based(pattern):
            resolved = start
        else:
            resolved = _first_after(pattern, start - timedelta(days=1), start)
    else:
        resolved = _first_after(pattern, current, start)

    if resolved is None:
        return None
    if end is not None and resolved > end:
        return None
    return resolved


def occurrences_in_month(
    pattern: RecurrencePattern,
    year: int,
    month: int,
    start_date: DateLike | None = None,
    end_date: DateLike | None = None,
) -> list[date]:
    """Return the pattern's occurrences inside one month, ascending."""
    month_start, month_end = month_bounds(year, month)
    start = as_optional_date(start_date)
    end = as_optional_date(end_date)

    if end is not None and end < month_start:
        return []
    if start is not None and start > month_end:
        return []

    candidates = _candidates_in_month(pattern, month_start, month_end, start)
    return sorted(
        {
            day
            for day in candidates
            if (start is None or day >= start) and (end is None or day <= end)
        }
    )


def format_pattern(pattern: RecurrencePattern) -> str:
    """Render a pattern as short human-readable text."""
    if isinstance(pattern, DailyPattern):
        return f"Every {pattern.interval} days" if pattern.interval > 1 else "Daily"

    if isinstance(pattern, WeeklyPattern):
        if pattern.day_of_week is not None:
            return f"Every {WEEKDAY_NAMES[pattern.day_of_week]}"
        return f"Every {pattern.interval} weeks" if pattern.interval > 1 else "Weekly"

    if isinstance(pattern, BiweeklyPattern):
        return "Bi-weekly (every 2 weeks)"

    if isinstance(pattern, MonthlyPattern):
        if pattern.day_of_month == LAST_DAY_OF_MONTH:
            return "Last day of each month"
        if pattern.day_of_month is not None:
            return f"Day {pattern.day_of_month} of each month"
        return f"Every {pattern.interval} months" if pattern.interval > 1 else "Monthly"

    if isinstance(pattern, QuarterlyPattern):
        return "Quarterly (every 3 months)"

    if isinstance(pattern, SemiannualPattern):
        return "Semi-annually (every 6 months)"

    if isinstance(pattern, AnnualPattern):
        return "Annually (once per year)"

    return "Unknown"


def _is_step_based(pattern: RecurrencePattern) -> bool:
    if isinstance(pattern, (DailyPattern, BiweeklyPattern, AnnualPattern)):
        return True
    if isinstance(pattern, WeeklyPattern):
        return pattern.day_of_week is None
    if isinstance(pattern, MonthlyPattern):
        return pattern.day_of_month is None
    return False


def _first_after(pattern: RecurrencePattern, after: date, start: date | None) -> date | None:
    if isinstance(pattern, DailyPattern):
        return after + timedelta(days=pattern.interval)

    if isinstance(pattern, WeeklyPattern):
        if pattern.day_of_week is not None:
            days_until = (pattern.day_of_week - sunday_weekday(after)) % 7 or 7
            return after + timedelta(days=days_until + (pattern.interval - 1) * 7)
        return after + timedelta(weeks=pattern.interval)

    if isinstance(pattern, BiweeklyPattern):
        return after + timedelta(weeks=2)

    if isinstance(pattern, MonthlyPattern) and pattern.day_of_month is None:
        return add_months(after, pattern.interval)

    if isinstance(pattern, (MonthlyPattern, QuarterlyPattern, SemiannualPattern)):
        return _next_day_of_month(pattern, after, start)

    if isinstance(pattern, AnnualPattern):
        return add_years(after, 1)

    logger.warning("Unsupported recurrence pattern", pattern_type=type(pattern).__name__)
    return None


def _next_day_of_month(
    pattern: MonthlyPattern | QuarterlyPattern | SemiannualPattern,
    after: date,
    start: date | None,
) -> date | None:
    year, month = after.year, after.month
    # One full cycle plus the current month always contains an applicable month
    scan_limit = 12 * getattr(pattern, "interval", 1) + 1
    for _ in range(scan_limit):
        if _month_applies(pattern, year, month, start):
            candidate = _resolve_day(pattern, year, month)
            if candidate > after:
                return candidate
        year, month = next_month(year, month)
    return None


def _month_applies(
    pattern: MonthlyPattern | QuarterlyPattern | SemiannualPattern,
    year: int,
    month: int,
    start: date | None,
) -> bool:
    if isinstance(pattern, QuarterlyPattern):
        return (month - 1) % 3 == 0
    if isinstance(pattern, SemiannualPattern):
        return month in SEMIANNUAL_MONTHS
    if pattern.interval > 1 and start is not None:
        elapsed = (year - start.year) * 12 + (month - start.month)
        return elapsed % pattern.interval == 0
    return True


def _resolve_day(
    pattern: MonthlyPattern | QuarterlyPattern | SemiannualPattern,
    year: int,
    month: int,
) -> date:
    last_day = days_in_month(year, month)
    day = pattern.day_of_month
    if day is None or day == LAST_DAY_OF_MONTH:
        return date(year, month, last_day)
    return date(year, month, min(day, last_day))


def _candidates_in_month(
    pattern: RecurrencePattern,
    month_start: date,
    month_end: date,
    start: date | None,
) -> list[date]:
    if isinstance(pattern, DailyPattern):
        return list(iter_days(month_start, month_end, timedelta(days=pattern.interval)))

    if isinstance(pattern, WeeklyPattern):
        if pattern.day_of_week is not None:
            return [day for day in iter_days(month_start, month_end) if sunday_weekday(day) == pattern.day_of_week]
        return list(iter_days(month_start, month_end, timedelta(weeks=pattern.interval)))

    if isinstance(pattern, BiweeklyPattern):
        return list(iter_days(month_start, month_end, timedelta(weeks=2)))

    if isinstance(pattern, MonthlyPattern) and pattern.day_of_month is None:
        return []

    if isinstance(pattern, (MonthlyPattern, QuarterlyPattern, SemiannualPattern)):
        if not _month_applies(pattern, month_start.year, month_start.month, start):
            return []
        return [_resolve_day(pattern, month_start.year, month_start.month)]

    if isinstance(pattern, AnnualPattern):
        if pattern.month == month_start.month:
            return [month_start]
        return []

    logger.warning("Unsupported recurrence pattern", pattern_type=type(pattern).__name__)
    return []
