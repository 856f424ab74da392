"""Services package."""

from budget_engine.services.ledger import Ledger, LedgerContext
from budget_engine.services.materialization import (
    cleanup_past_recurring_transactions,
    populate_recurring_for_month,
)
from budget_engine.services.matching import MatchingConfig, TransactionMatcher, load_matching_config
from budget_engine.services.migration import CURRENT_SCHEMA_VERSION, migrate_state
from budget_engine.services.reconciliation import ReconciliationRunner
from budget_engine.services.recurrence import format_pattern, next_occurrence, occurrences_in_month
from budget_engine.services.similarity import levenshtein_distance, normalize_description, similarity
from budget_engine.services.statement_parser import (
    extract_transactions_from_lines,
    parse_csv_statement,
    parse_statement,
)

__all__ = [
    "CURRENT_SCHEMA_VERSION",
    "Ledger",
    "LedgerContext",
    "MatchingConfig",
    "ReconciliationRunner",
    "TransactionMatcher",
    "cleanup_past_recurring_transactions",
    "extract_transactions_from_lines",
    "format_pattern",
    "levenshtein_distance",
    "load_matching_config",
    "migrate_state",
    "next_occurrence",
    "normalize_description",
    "occurrences_in_month",
    "parse_csv_statement",
    "parse_statement",
    "populate_recurring_for_month",
    "similarity",
]
