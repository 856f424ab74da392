"""Test fixtures and configuration."""

from datetime import datetime
from decimal import Decimal

import pytest

from budget_engine.schemas import MonthlyPattern, RecurringExpense
from budget_engine.services import matching
from budget_engine.services.ledger import Ledger, LedgerContext
from budget_engine.services.matching import DEFAULT_CONFIG, TransactionMatcher

MATCHING_ENV_VARS = (
    "MATCHING_DATE_WINDOW_DAYS",
    "MATCHING_RECURRING_SIMILARITY",
    "MATCHING_FUZZY_SIMILARITY",
)


@pytest.fixture(autouse=True)
def reset_matching_config(monkeypatch):
    """Clear matching env overrides and the config cache between tests."""
    for name in MATCHING_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(matching, "_config_cache", None)
    monkeypatch.setattr(matching.settings, "matching_config_path", None)
    yield


@pytest.fixture
def ledger() -> Ledger:
    return Ledger()


@pytest.fixture
def matcher() -> TransactionMatcher:
    return TransactionMatcher(DEFAULT_CONFIG)


@pytest.fixture
def netflix() -> RecurringExpense:
    return RecurringExpense(
        id="rec-netflix",
        amount=Decimal("50.00"),
        description="Netflix",
        pattern=MonthlyPattern(day_of_month=5),
        created_at=datetime(2024, 12, 1, 9, 30),
    )


@pytest.fixture
def context(ledger: Ledger, netflix: RecurringExpense) -> LedgerContext:
    return LedgerContext(ledger=ledger, recurring_expenses=(netflix,))
