"""Pydantic schemas for recurring expenses and income."""

from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, ClassVar

from pydantic import Field, field_serializer, field_validator

from budget_engine.schemas.base import RecordModel
from budget_engine.schemas.recurrence import RecurrencePattern, pattern_from_record, pattern_to_record
from budget_engine.schemas.transaction import TransactionType


class RecurringItemBase(RecordModel):
    """Shared shape of recurring expenses and income."""

    transaction_type: ClassVar[TransactionType]

    id: str
    amount: Annotated[Decimal, Field(gt=0)]
    description: Annotated[str, Field(min_length=1)]
    category: str | None = None
    account_id: str | None = None
    pattern: RecurrencePattern
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool = True
    created_at: datetime | None = None

    @field_validator("pattern", mode="before")
    @classmethod
    def coerce_pattern(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return pattern_from_record(value)
        return value

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def blank_date_is_none(cls, value: Any) -> Any:
        if value == "":
            return None
        if isinstance(value, datetime):
            return value.date()
        return value

    @field_serializer("pattern")
    def serialize_pattern(self, pattern: RecurrencePattern) -> dict[str, Any]:
        return pattern_to_record(pattern)


class RecurringExpense(RecurringItemBase):
    transaction_type: ClassVar[TransactionType] = TransactionType.SPENDING


class RecurringIncome(RecurringItemBase):
    transaction_type: ClassVar[TransactionType] = TransactionType.INCOME
