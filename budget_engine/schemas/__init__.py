"""Pydantic schemas for engine records."""

from .base import RecordModel
from .reconciliation import ImportResult, MatchDecision, MatchResult
from .recurrence import (
    LAST_DAY_OF_MONTH,
    AnnualPattern,
    BiweeklyPattern,
    DailyPattern,
    MonthlyPattern,
    QuarterlyPattern,
    RecurrenceDayType,
    RecurrencePattern,
    RecurrenceType,
    SemiannualPattern,
    WeeklyPattern,
    pattern_from_record,
    pattern_to_record,
)
from .recurring import RecurringExpense, RecurringIncome, RecurringItemBase
from .transaction import StatementTransaction, Transaction, TransactionType

__all__ = [
    "LAST_DAY_OF_MONTH",
    "AnnualPattern",
    "BiweeklyPattern",
    "DailyPattern",
    "ImportResult",
    "MatchDecision",
    "MatchResult",
    "MonthlyPattern",
    "QuarterlyPattern",
    "RecordModel",
    "RecurrenceDayType",
    "RecurrencePattern",
    "RecurrenceType",
    "RecurringExpense",
    "RecurringIncome",
    "RecurringItemBase",
    "SemiannualPattern",
    "StatementTransaction",
    "Transaction",
    "TransactionType",
    "WeeklyPattern",
]
