"""Statement import: classify candidates in order and apply the additions."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from budget_engine.logger import get_logger, log_exception, log_timing
from budget_engine.schemas.reconciliation import ImportResult
from budget_engine.schemas.transaction import StatementTransaction
from budget_engine.services.ledger import LedgerContext
from budget_engine.services.matching import TransactionMatcher
from budget_engine.utils.dates import date_key

logger = get_logger(__name__)

CandidateInput = StatementTransaction | Mapping[str, Any]


def _candidate_date(candidate: CandidateInput) -> str:
    if isinstance(candidate, StatementTransaction):
        return date_key(candidate.txn_date)
    if isinstance(candidate, Mapping):
        return str(candidate.get("date", "unknown date"))
    return "unknown date"


def _error_message(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        return "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'value'}: {error['msg']}" for error in exc.errors()
        )
    return str(exc)


class ReconciliationRunner:
    """Runs one statement import against a ledger context."""

    def __init__(self, matcher: TransactionMatcher | None = None) -> None:
        self.matcher = matcher or TransactionMatcher()

    def import_batch(
        self,
        candidates: Iterable[CandidateInput],
        context: LedgerContext,
        *,
        dry_run: bool = False,
    ) -> ImportResult:
        """Classify candidates in input order.

        Added transactions are written to the ledger immediately, so later
        candidates in the same batch are checked against them. A failure on
        one candidate is recorded in ``errors`` and the batch continues.
        With ``dry_run`` nothing is written.
        """
        result = ImportResult()

        with log_timing("import_batch", logger=logger, dry_run=dry_run) as timing:
            for candidate in candidates:
                try:
                    statement_txn = (
                        candidate
                        if isinstance(candidate, StatementTransaction)
                        else StatementTransaction.model_validate(candidate)
                    )
                    match = self.matcher.classify(statement_txn, context)

                    if match.decision.is_skip:
                        result.skipped += 1
                        result.skipped_transactions.append(statement_txn)
                    else:
                        if not dry_run:
                            context.ledger.add_transaction(statement_txn.txn_date, match.transaction)
                        result.added += 1
                    result.decisions.append(match)
                except Exception as exc:
                    message = f"Error importing transaction on {_candidate_date(candidate)}: {_error_message(exc)}"
                    result.errors.append(message)
                    log_exception(
                        logger,
                        exc,
                        "Statement candidate failed",
                        level="warning",
                        include_traceback=False,
                        candidate_date=_candidate_date(candidate),
                    )

            timing["added"] = result.added
            timing["skipped"] = result.skipped
            timing["errors"] = len(result.errors)

        return result
