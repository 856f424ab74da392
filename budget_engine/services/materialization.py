"""Materialize recurring items into ledger transactions."""

from __future__ import annotations

from datetime import date

from budget_engine.logger import get_logger
from budget_engine.schemas.recurring import RecurringItemBase
from budget_engine.schemas.transaction import Transaction
from budget_engine.services.ledger import LedgerContext
from budget_engine.services.recurrence import occurrences_in_month
from budget_engine.utils.dates import date_key

logger = get_logger(__name__)


def materialized_id(item: RecurringItemBase, day: date) -> str:
    """Deterministic id of the transaction generated for ``item`` on ``day``."""
    return f"{item.id}-{date_key(day)}"


def _created_on(item: RecurringItemBase, today: date) -> date:
    return item.created_at.date() if item.created_at is not None else today


def populate_recurring_for_month(
    context: LedgerContext,
    year: int,
    month: int,
    *,
    today: date | None = None,
) -> list[tuple[date, Transaction]]:
    """Write one transaction per occurrence of each active item in the month.

    Only occurrences on or after the later of the item's creation date and
    ``today`` are written; days that already hold a transaction for the
    item are left alone. Returns the created (date, transaction) pairs.
    """
    today = today or date.today()
    created: list[tuple[date, Transaction]] = []

    for item in (*context.recurring_expenses, *context.recurring_income):
        if not item.is_active:
            continue

        earliest = max(_created_on(item, today), today)
        for occurrence in occurrences_in_month(item.pattern, year, month, item.start_date, item.end_date):
            if occurrence < earliest:
                continue
            existing = context.ledger.transactions_on(occurrence, item.transaction_type)
            if any(txn.is_recurring and txn.recurring_id == item.id for txn in existing):
                continue

            transaction = Transaction(
                id=materialized_id(item, occurrence),
                type=item.transaction_type,
                amount=item.amount,
                description=item.description,
                category=item.category,
                account_id=item.account_id,
                is_recurring=True,
                recurring_id=item.id,
            )
            context.ledger.add_transaction(occurrence, transaction)
            created.append((occurrence, transaction))

    logger.info("Recurring transactions populated", year=year, month=month, created=len(created))
    return created


def cleanup_past_recurring_transactions(context: LedgerContext, *, today: date | None = None) -> int:
    """Remove materialized transactions dated before their item was created.

    Transactions linked by a statement import and transactions whose item
    no longer exists are kept. Returns the number removed.
    """
    today = today or date.today()
    stale: list[tuple[date, str]] = []

    for day, txn in context.ledger.iter_transactions():
        if not txn.is_recurring or txn.recurring_id is None:
            continue
        item = context.find_recurring_item(txn.recurring_id)
        if item is None or txn.id != materialized_id(item, day):
            continue
        if day < _created_on(item, today):
            stale.append((day, txn.id))

    for day, transaction_id in stale:
        context.ledger.remove_transaction(day, transaction_id)

    if stale:
        logger.info("Removed past recurring transactions", removed=len(stale))
    return len(stale)
