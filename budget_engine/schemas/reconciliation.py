"""Pydantic schemas for statement reconciliation results."""

from enum import Enum

from pydantic import ConfigDict, Field

from budget_engine.schemas.base import RecordModel
from budget_engine.schemas.transaction import StatementTransaction, Transaction


class MatchDecision(str, Enum):
    """Outcome of classifying one statement candidate."""

    ADDED = "added"
    SKIPPED_EXACT = "skipped_exact"
    SKIPPED_RECURRING = "skipped_recurring"
    SKIPPED_FUZZY = "skipped_fuzzy"

    @property
    def is_skip(self) -> bool:
        return self is not MatchDecision.ADDED


class MatchResult(RecordModel):
    """Matcher decision; ``transaction`` is set only for ADDED."""

    decision: MatchDecision
    recurring_id: str | None = None
    transaction: Transaction | None = None


class ImportResult(RecordModel):
    """Tally of one statement import."""

    model_config = ConfigDict(frozen=False)

    added: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)
    skipped_transactions: list[StatementTransaction] = Field(default_factory=list)
    decisions: list[MatchResult] = Field(default_factory=list)
