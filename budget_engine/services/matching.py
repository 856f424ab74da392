"""Duplicate detection for statement candidates.

A candidate is checked in a fixed order and the first rule that fires
decides: exact duplicate, already-recorded recurring instance, fuzzy
duplicate. Anything left is added, carrying recurring provenance when a
recurring item explains it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from pathlib import Path
from uuid import uuid4

import yaml

from budget_engine.config import settings
from budget_engine.logger import get_logger
from budget_engine.schemas.reconciliation import MatchDecision, MatchResult
from budget_engine.schemas.recurring import RecurringItemBase
from budget_engine.schemas.transaction import StatementTransaction, Transaction, TransactionType
from budget_engine.services.ledger import LedgerContext
from budget_engine.services.recurrence import occurrences_in_month
from budget_engine.services.similarity import descriptions_equal, similarity

logger = get_logger(__name__)


@dataclass(frozen=True)
class MatchingConfig:
    """Runtime thresholds for duplicate detection."""

    date_window_days: int
    amount_tolerance: Decimal
    # Similarities are 0-1 ratios, not money
    recurring_similarity: float
    fuzzy_similarity: float


DEFAULT_CONFIG = MatchingConfig(
    date_window_days=2,
    amount_tolerance=Decimal("0.01"),
    recurring_similarity=0.70,
    fuzzy_similarity=0.80,
)

_config_cache: MatchingConfig | None = None


def load_matching_config(force_reload: bool = False) -> MatchingConfig:
    """Load matching configuration from YAML if configured.

    Environment variables override the file. Caches the result to avoid
    repeated disk I/O.
    """
    global _config_cache
    if _config_cache is not None and not force_reload:
        return _config_cache

    config = DEFAULT_CONFIG
    config_path = Path(settings.matching_config_path) if settings.matching_config_path else None

    if config_path is not None and config_path.exists():
        try:
            raw = yaml.safe_load(config_path.read_text()) or {}
            matching = raw.get("matching", {}) or {}
            config = MatchingConfig(
                date_window_days=int(matching.get("date_window_days", config.date_window_days)),
                amount_tolerance=Decimal(str(matching.get("amount_tolerance", config.amount_tolerance))),
                recurring_similarity=float(matching.get("recurring_similarity", config.recurring_similarity)),
                fuzzy_similarity=float(matching.get("fuzzy_similarity", config.fuzzy_similarity)),
            )
        except (yaml.YAMLError, AttributeError, TypeError, ValueError, InvalidOperation) as e:
            logger.warning(
                "Failed to load matching config - using defaults",
                config_path=str(config_path),
                error=str(e),
                error_type=type(e).__name__,
            )
            config = DEFAULT_CONFIG

    window_env = os.getenv("MATCHING_DATE_WINDOW_DAYS")
    recurring_env = os.getenv("MATCHING_RECURRING_SIMILARITY")
    fuzzy_env = os.getenv("MATCHING_FUZZY_SIMILARITY")
    if window_env:
        config = replace(config, date_window_days=int(window_env))
    if recurring_env:
        config = replace(config, recurring_similarity=float(recurring_env))
    if fuzzy_env:
        config = replace(config, fuzzy_similarity=float(fuzzy_env))

    _config_cache = config
    return config


class TransactionMatcher:
    """Classifies statement candidates against a ledger context."""

    def __init__(self, config: MatchingConfig | None = None) -> None:
        self.config = config or load_matching_config()

    def classify(self, candidate: StatementTransaction, context: LedgerContext) -> MatchResult:
        txn_type = candidate.inferred_type

        if self.is_exact_duplicate(candidate, context):
            return MatchResult(decision=MatchDecision.SKIPPED_EXACT)

        recurring_item = self.find_recurring_match(candidate, context)
        if recurring_item is not None and self.has_recurring_instance(candidate, recurring_item, context):
            return MatchResult(decision=MatchDecision.SKIPPED_RECURRING, recurring_id=recurring_item.id)

        # An unrecorded recurring match still has to clear the fuzzy check
        if self.is_fuzzy_duplicate(candidate, context):
            return MatchResult(decision=MatchDecision.SKIPPED_FUZZY)

        transaction = self.build_transaction(candidate, txn_type, recurring_item)
        return MatchResult(
            decision=MatchDecision.ADDED,
            recurring_id=recurring_item.id if recurring_item is not None else None,
            transaction=transaction,
        )

    def is_exact_duplicate(self, candidate: StatementTransaction, context: LedgerContext) -> bool:
        """Same day, same type, amount within a cent, same description."""
        for existing in context.ledger.transactions_on(candidate.txn_date, candidate.inferred_type):
            if abs(existing.amount - candidate.amount) < self.config.amount_tolerance and descriptions_equal(
                existing.description, candidate.description
            ):
                return True
        return False

    def find_recurring_match(
        self, candidate: StatementTransaction, context: LedgerContext
    ) -> RecurringItemBase | None:
        """First active recurring item the candidate is an instance of."""
        for item in context.recurring_items_for(candidate.inferred_type):
            if not item.is_active:
                continue
            if abs(item.amount - candidate.amount) > self.config.amount_tolerance:
                continue
            if similarity(item.description, candidate.description) < self.config.recurring_similarity:
                continue
            if self._has_occurrence_near(item, candidate.txn_date):
                logger.debug(
                    "Candidate matches recurring item",
                    recurring_id=item.id,
                    date=candidate.txn_date.isoformat(),
                )
                return item
        return None

    def has_recurring_instance(
        self,
        candidate: StatementTransaction,
        item: RecurringItemBase,
        context: LedgerContext,
    ) -> bool:
        """A transaction generated from ``item`` is already recorded near the candidate."""
        start, end = self._window(candidate.txn_date)
        return any(
            txn.is_recurring and txn.recurring_id == item.id
            for _, txn in context.ledger.transactions_between(start, end, candidate.inferred_type)
        )

    def is_fuzzy_duplicate(self, candidate: StatementTransaction, context: LedgerContext) -> bool:
        start, end = self._window(candidate.txn_date)
        for _, existing in context.ledger.transactions_between(start, end, candidate.inferred_type):
            if abs(existing.amount - candidate.amount) > self.config.amount_tolerance:
                continue
            if similarity(existing.description, candidate.description) > self.config.fuzzy_similarity:
                return True
        return False

    def build_transaction(
        self,
        candidate: StatementTransaction,
        txn_type: TransactionType,
        recurring_item: RecurringItemBase | None = None,
    ) -> Transaction:
        if recurring_item is None:
            return Transaction(
                id=f"imported-{uuid4().hex}",
                type=txn_type,
                amount=candidate.amount,
                description=candidate.description,
            )
        # Linked transactions take the item's text so a re-import finds them
        return Transaction(
            id=f"imported-{uuid4().hex}",
            type=txn_type,
            amount=candidate.amount,
            description=recurring_item.description,
            category=recurring_item.category,
            account_id=recurring_item.account_id,
            is_recurring=True,
            recurring_id=recurring_item.id,
        )

    def _window(self, day: date) -> tuple[date, date]:
        delta = timedelta(days=self.config.date_window_days)
        return day - delta, day + delta

    def _has_occurrence_near(self, item: RecurringItemBase, day: date) -> bool:
        occurrences = occurrences_in_month(item.pattern, day.year, day.month, item.start_date, item.end_date)
        return any(abs((occurrence - day).days) <= self.config.date_window_days for occurrence in occurrences)
