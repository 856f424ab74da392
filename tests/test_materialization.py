"""Tests for populating and cleaning up recurring transactions."""

from datetime import UTC, date, datetime
from decimal import Decimal

from budget_engine.schemas import MonthlyPattern, TransactionType, WeeklyPattern
from budget_engine.services.ledger import LedgerContext
from budget_engine.services.materialization import (
    cleanup_past_recurring_transactions,
    materialized_id,
    populate_recurring_for_month,
)
from factories import RecurringExpenseFactory, RecurringIncomeFactory, TransactionFactory


class TestPopulateRecurringForMonth:
    def test_creates_future_occurrences(self, context, netflix) -> None:
        created = populate_recurring_for_month(context, 2025, 1, today=date(2025, 1, 1))

        assert [(day, txn.id) for day, txn in created] == [(date(2025, 1, 5), "rec-netflix-2025-01-05")]
        txn = context.ledger.transactions_on(date(2025, 1, 5), TransactionType.SPENDING)[0]
        assert txn.is_recurring is True
        assert txn.recurring_id == netflix.id
        assert txn.amount == Decimal("50.00")

    def test_is_idempotent(self, context) -> None:
        populate_recurring_for_month(context, 2025, 1, today=date(2025, 1, 1))
        again = populate_recurring_for_month(context, 2025, 1, today=date(2025, 1, 1))

        assert again == []
        assert len(context.ledger) == 1

    def test_skips_days_before_today(self, context) -> None:
        assert populate_recurring_for_month(context, 2025, 1, today=date(2025, 1, 10)) == []

    def test_skips_days_before_creation(self, ledger) -> None:
        item = RecurringExpenseFactory.build(
            pattern=MonthlyPattern(day_of_month=1),
            created_at=datetime(2025, 3, 15, tzinfo=UTC),
        )
        context = LedgerContext(ledger=ledger, recurring_expenses=(item,))

        created = populate_recurring_for_month(context, 2025, 3, today=date(2025, 1, 1))
        assert created == []
        created = populate_recurring_for_month(context, 2025, 4, today=date(2025, 1, 1))
        assert [day for day, _ in created] == [date(2025, 4, 1)]

    def test_income_and_inactive_items(self, ledger) -> None:
        paycheck = RecurringIncomeFactory.build(pattern=WeeklyPattern(day_of_week=5))
        paused = RecurringExpenseFactory.build(is_active=False)
        context = LedgerContext(ledger=ledger, recurring_expenses=(paused,), recurring_income=(paycheck,))

        created = populate_recurring_for_month(context, 2025, 1, today=date(2025, 1, 1))

        # Fridays in January 2025
        assert [day.day for day, _ in created] == [3, 10, 17, 24, 31]
        assert all(txn.type is TransactionType.INCOME for _, txn in created)

    def test_existing_linked_transaction_blocks_materialization(self, context, netflix) -> None:
        context.ledger.add_transaction(
            date(2025, 1, 5),
            TransactionFactory.build(
                amount=Decimal("50.00"), description="Netflix", is_recurring=True, recurring_id=netflix.id
            ),
        )
        assert populate_recurring_for_month(context, 2025, 1, today=date(2025, 1, 1)) == []


class TestCleanupPastRecurringTransactions:
    def test_removes_materialized_before_creation(self, ledger) -> None:
        item = RecurringExpenseFactory.build(
            pattern=MonthlyPattern(day_of_month=1),
            created_at=datetime(2025, 1, 10, tzinfo=UTC),
        )
        context = LedgerContext(ledger=ledger, recurring_expenses=(item,))
        stale = TransactionFactory.build(
            id=materialized_id(item, date(2025, 1, 1)),
            amount=item.amount,
            description=item.description,
            is_recurring=True,
            recurring_id=item.id,
        )
        current = TransactionFactory.build(
            id=materialized_id(item, date(2025, 2, 1)),
            amount=item.amount,
            description=item.description,
            is_recurring=True,
            recurring_id=item.id,
        )
        imported = TransactionFactory.build(
            id="imported-abc", amount=item.amount, description=item.description, is_recurring=True, recurring_id=item.id
        )
        orphan = TransactionFactory.build(
            id="gone-2025-01-01", is_recurring=True, recurring_id="gone"
        )
        ledger.add_transaction(date(2025, 1, 1), stale)
        ledger.add_transaction(date(2025, 2, 1), current)
        ledger.add_transaction(date(2025, 1, 2), imported)
        ledger.add_transaction(date(2025, 1, 1), orphan)

        removed = cleanup_past_recurring_transactions(context, today=date(2025, 3, 1))

        assert removed == 1
        assert sorted(txn.id for _, txn in ledger.iter_transactions()) == sorted(
            [current.id, imported.id, orphan.id]
        )

    def test_nothing_to_clean(self, context) -> None:
        populate_recurring_for_month(context, 2025, 1, today=date(2025, 1, 1))
        assert cleanup_past_recurring_transactions(context, today=date(2025, 2, 1)) == 0
        assert len(context.ledger) == 1
