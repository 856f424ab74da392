"""Pydantic schemas for recurrence patterns.

A pattern is a tagged union keyed on ``type``; each variant only carries
the anchor that makes sense for it. The budget store persists the flat
shape ``{"type", "dayType", "dayValue", "interval"}``, converted with
:func:`pattern_from_record` / :func:`pattern_to_record`.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import AfterValidator, ConfigDict, Field, TypeAdapter

from budget_engine.schemas.base import RecordModel

LAST_DAY_OF_MONTH = -1


class RecurrenceType(str, Enum):
    """Recurrence cadence."""

    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMIANNUAL = "semiannual"
    ANNUAL = "annual"


class RecurrenceDayType(str, Enum):
    """Anchor kind in the persisted pattern shape."""

    DAY_OF_MONTH = "dayOfMonth"
    DAY_OF_WEEK = "dayOfWeek"
    LAST_DAY_OF_MONTH = "lastDayOfMonth"


def _check_day_of_month(value: int | None) -> int | None:
    if value is None or value == LAST_DAY_OF_MONTH or 1 <= value <= 31:
        return value
    raise ValueError(f"day of month must be 1-31 or {LAST_DAY_OF_MONTH} (last day), got {value}")


DayOfMonth = Annotated[int | None, AfterValidator(_check_day_of_month)]
DayOfWeek = Annotated[int | None, Field(ge=0, le=6)]
Interval = Annotated[int, Field(ge=1)]


class _Pattern(RecordModel):
    model_config = ConfigDict(extra="forbid")


class DailyPattern(_Pattern):
    type: Literal["daily"] = "daily"
    interval: Interval = 1


class WeeklyPattern(_Pattern):
    type: Literal["weekly"] = "weekly"
    day_of_week: DayOfWeek = None  # 0=Sunday..6=Saturday
    interval: Interval = 1


class BiweeklyPattern(_Pattern):
    """Fixed 14-day step; the weekday is kept for display only."""

    type: Literal["biweekly"] = "biweekly"
    day_of_week: DayOfWeek = None


class MonthlyPattern(_Pattern):
    type: Literal["monthly"] = "monthly"
    day_of_month: DayOfMonth = None
    interval: Interval = 1


class QuarterlyPattern(_Pattern):
    type: Literal["quarterly"] = "quarterly"
    day_of_month: DayOfMonth = None


class SemiannualPattern(_Pattern):
    type: Literal["semiannual"] = "semiannual"
    day_of_month: DayOfMonth = None


class AnnualPattern(_Pattern):
    type: Literal["annual"] = "annual"
    month: Annotated[int | None, Field(ge=1, le=12)] = None


RecurrencePattern = Annotated[
    DailyPattern
    | WeeklyPattern
    | BiweeklyPattern
    | MonthlyPattern
    | QuarterlyPattern
    | SemiannualPattern
    | AnnualPattern,
    Field(discriminator="type"),
]

_pattern_adapter: TypeAdapter[Any] = TypeAdapter(RecurrencePattern)

_WEEKDAY_TYPES = {RecurrenceType.WEEKLY.value, RecurrenceType.BIWEEKLY.value}
_DAY_OF_MONTH_TYPES = {
    RecurrenceType.MONTHLY.value,
    RecurrenceType.QUARTERLY.value,
    RecurrenceType.SEMIANNUAL.value,
}
_INTERVAL_TYPES = {
    RecurrenceType.DAILY.value,
    RecurrenceType.WEEKLY.value,
    RecurrenceType.MONTHLY.value,
}


def pattern_from_record(record: Mapping[str, Any] | _Pattern) -> RecurrencePattern:
    """Build a pattern variant from the persisted flat shape.

    Raises ValueError (pydantic.ValidationError for schema violations) on
    unknown types or anchors that do not fit the type, e.g. a weekday on a
    monthly pattern.
    """
    if isinstance(record, _Pattern):
        return record

    data = dict(record)
    kind = data.get("type")
    day_type = data.pop("dayType", None)
    day_value = data.pop("dayValue", None)

    if day_type == RecurrenceDayType.DAY_OF_WEEK.value:
        data["dayOfWeek"] = day_value
    elif day_type == RecurrenceDayType.LAST_DAY_OF_MONTH.value:
        data["dayOfMonth"] = LAST_DAY_OF_MONTH
    elif day_type == RecurrenceDayType.DAY_OF_MONTH.value:
        data["dayOfMonth"] = day_value
    elif day_type is not None:
        raise ValueError(f"Unknown dayType: {day_type!r}")
    elif day_value is not None:
        # Untyped anchors: annual stores its month here
        if kind == RecurrenceType.ANNUAL.value:
            data["month"] = day_value
        elif kind in _DAY_OF_MONTH_TYPES:
            data["dayOfMonth"] = day_value
        elif kind in _WEEKDAY_TYPES:
            data["dayOfWeek"] = day_value

    if kind not in _INTERVAL_TYPES or data.get("interval") is None:
        data.pop("interval", None)

    return _pattern_adapter.validate_python(data)


def pattern_to_record(pattern: RecurrencePattern) -> dict[str, Any]:
    """Serialize a pattern variant to the persisted flat shape."""
    record: dict[str, Any] = {"type": pattern.type}

    if isinstance(pattern, (WeeklyPattern, BiweeklyPattern)):
        if pattern.day_of_week is not None:
            record["dayType"] = RecurrenceDayType.DAY_OF_WEEK.value
            record["dayValue"] = pattern.day_of_week
    elif isinstance(pattern, (MonthlyPattern, QuarterlyPattern, SemiannualPattern)):
        if pattern.day_of_month is not None:
            record["dayType"] = RecurrenceDayType.DAY_OF_MONTH.value
            record["dayValue"] = pattern.day_of_month
    elif isinstance(pattern, AnnualPattern):
        if pattern.month is not None:
            record["dayValue"] = pattern.month

    interval = getattr(pattern, "interval", 1)
    if interval != 1:
        record["interval"] = interval
    return record
