"""Tests for batch statement import."""

from datetime import date
from decimal import Decimal

from structlog.testing import capture_logs

from budget_engine.schemas import MatchDecision, StatementTransaction, TransactionType
from budget_engine.services.reconciliation import ReconciliationRunner


def _rows() -> list[dict]:
    return [
        {"date": "2025-01-10", "amount": "-4.50", "description": "Coffee Shop"},
        {"date": "2025-01-11", "amount": "-32.10", "description": "Hardware Store"},
        {"date": "2025-01-12", "amount": "1500.00", "description": "ACME Payroll", "type": "income"},
        {"date": "2025-01-13", "amount": "-12.00", "description": "Parking"},
    ]


class TestImportBatch:
    def test_exact_duplicate_on_second_import(self, matcher, context) -> None:
        runner = ReconciliationRunner(matcher)
        row = {"date": "2025-01-20", "amount": "-18.75", "description": "Book Store"}

        first = runner.import_batch([row], context)
        second = runner.import_batch([row], context)

        assert (first.added, first.skipped) == (1, 0)
        assert (second.added, second.skipped) == (0, 1)
        assert second.decisions[0].decision is MatchDecision.SKIPPED_EXACT

    def test_same_batch_sees_earlier_additions(self, matcher, context) -> None:
        row = {"date": "2025-01-20", "amount": "-18.75", "description": "Book Store"}
        result = ReconciliationRunner(matcher).import_batch([row, dict(row)], context)

        assert result.added == 1
        assert result.skipped == 1
        assert len(context.ledger) == 1

    def test_recurring_match_then_reimport(self, matcher, context, netflix) -> None:
        runner = ReconciliationRunner(matcher)
        candidate = StatementTransaction(
            txn_date=date(2025, 1, 6),
            amount=Decimal("50"),
            description="NETFLIX.COM",
            type=TransactionType.SPENDING,
        )

        first = runner.import_batch([candidate], context)
        assert first.added == 1
        added = context.ledger.transactions_on(date(2025, 1, 6), TransactionType.SPENDING)
        assert added[0].recurring_id == netflix.id
        assert added[0].is_recurring is True

        second = runner.import_batch([candidate], context)
        assert second.added == 0
        assert second.skipped == 1
        assert second.decisions[0].decision is MatchDecision.SKIPPED_RECURRING
        assert second.skipped_transactions == [candidate]

    def test_malformed_candidate_is_reported_and_batch_continues(self, matcher, context) -> None:
        rows = _rows()
        rows.insert(2, {"date": "2025-13-45", "amount": "-9.99", "description": "Broken row"})

        result = ReconciliationRunner(matcher).import_batch(rows, context)

        assert len(result.errors) == 1
        assert result.errors[0].startswith("Error importing transaction on 2025-13-45:")
        assert result.added + result.skipped == 4
        assert len(result.decisions) == 4
        assert len(context.ledger) == 4

    def test_errors_for_non_mapping_input(self, matcher, context) -> None:
        result = ReconciliationRunner(matcher).import_batch([None], context)
        assert result.errors[0].startswith("Error importing transaction on unknown date:")

    def test_dry_run_does_not_write(self, matcher, context) -> None:
        result = ReconciliationRunner(matcher).import_batch(_rows(), context, dry_run=True)

        assert result.added == 4
        assert len(context.ledger) == 0
        assert all(decision.transaction is not None for decision in result.decisions)

    def test_result_is_fresh_per_call(self, matcher, context) -> None:
        runner = ReconciliationRunner(matcher)
        runner.import_batch(_rows(), context)
        again = runner.import_batch(_rows(), context)

        assert again.added == 0
        assert again.skipped == 4
        assert again.errors == []

    def test_batch_timing_is_logged(self, matcher, context) -> None:
        with capture_logs() as logs:
            ReconciliationRunner(matcher).import_batch(_rows(), context)

        completed = [entry for entry in logs if entry["event"] == "import_batch completed"]
        assert len(completed) == 1
        assert completed[0]["added"] == 4
        assert "duration_ms" in completed[0]

    def test_counts_follow_decision_kind(self, matcher, context) -> None:
        runner = ReconciliationRunner(matcher)
        runner.import_batch(_rows()[:2], context)

        result = runner.import_batch(_rows(), context)

        skipped = [match for match in result.decisions if match.decision.is_skip]
        assert result.skipped == len(skipped) == len(result.skipped_transactions) == 2
        assert result.added == 2
        assert all(match.transaction is None for match in skipped)
