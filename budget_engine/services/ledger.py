"""In-memory ledger of dated transactions.

The ledger is the only thing the engine mutates. Everything else
(recurring items, statement candidates) is read-only input.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from budget_engine.exceptions import TransactionNotFoundError
from budget_engine.logger import get_logger
from budget_engine.schemas.recurring import RecurringExpense, RecurringIncome, RecurringItemBase
from budget_engine.schemas.transaction import Transaction, TransactionType
from budget_engine.services.migration import CURRENT_SCHEMA_VERSION, SCHEMA_VERSION_KEY, migrate_state
from budget_engine.utils.dates import as_date, date_key

logger = get_logger(__name__)

DateLike = date | datetime | str

BUCKET_KEYS: dict[TransactionType, str] = {
    TransactionType.INCOME: "income",
    TransactionType.SPENDING: "spending",
    TransactionType.TRANSFER: "transfers",
}


def _empty_day() -> dict[TransactionType, list[Transaction]]:
    return {txn_type: [] for txn_type in BUCKET_KEYS}


class Ledger:
    """Transactions grouped by day and type bucket."""

    def __init__(self) -> None:
        self._days: dict[date, dict[TransactionType, list[Transaction]]] = {}

    def __len__(self) -> int:
        return sum(len(bucket) for day in self._days.values() for bucket in day.values())

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_transaction(self, day: DateLike, transaction: Transaction) -> Transaction:
        key = as_date(day)
        self._days.setdefault(key, _empty_day())[transaction.type].append(transaction)
        logger.debug(
            "Transaction added",
            date=date_key(key),
            transaction_id=transaction.id,
            type=transaction.type.value,
        )
        return transaction

    def remove_transaction(self, day: DateLike, transaction_id: str) -> Transaction:
        key = as_date(day)
        txn_type, index = self._locate(key, transaction_id)
        removed = self._days[key][txn_type].pop(index)
        logger.debug("Transaction removed", date=date_key(key), transaction_id=transaction_id)
        return removed

    def update_transaction(self, day: DateLike, transaction_id: str, **changes: Any) -> Transaction:
        """Replace a transaction with a revalidated copy carrying ``changes``.

        A type change moves the transaction to the matching bucket.
        """
        key = as_date(day)
        txn_type, index = self._locate(key, transaction_id)
        current = self._days[key][txn_type][index]
        updated = Transaction.model_validate({**current.model_dump(), **changes})

        if updated.type == txn_type:
            self._days[key][txn_type][index] = updated
        else:
            self._days[key][txn_type].pop(index)
            self._days[key][updated.type].append(updated)
        return updated

    def _locate(self, key: date, transaction_id: str) -> tuple[TransactionType, int]:
        for txn_type, bucket in self._days.get(key, {}).items():
            for index, txn in enumerate(bucket):
                if txn.id == transaction_id:
                    return txn_type, index
        raise TransactionNotFoundError(f"Transaction {transaction_id} not found on {date_key(key)}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_day(self, day: DateLike) -> dict[TransactionType, list[Transaction]]:
        """Copy of one day's buckets; empty buckets when nothing is recorded."""
        buckets = self._days.get(as_date(day))
        if buckets is None:
            return _empty_day()
        return {txn_type: list(bucket) for txn_type, bucket in buckets.items()}

    def transactions_on(self, day: DateLike, txn_type: TransactionType | None = None) -> list[Transaction]:
        buckets = self._days.get(as_date(day))
        if buckets is None:
            return []
        if txn_type is not None:
            return list(buckets[txn_type])
        return [txn for bucket in buckets.values() for txn in bucket]

    def transactions_between(
        self,
        start: DateLike,
        end: DateLike,
        txn_type: TransactionType | None = None,
    ) -> list[tuple[date, Transaction]]:
        """Transactions dated within [start, end], ordered by date."""
        first, last = as_date(start), as_date(end)
        return [
            (day, txn)
            for day, txn in self.iter_transactions(txn_type)
            if first <= day <= last
        ]

    def iter_transactions(self, txn_type: TransactionType | None = None) -> Iterator[tuple[date, Transaction]]:
        for day in sorted(self._days):
            for bucket_type, bucket in self._days[day].items():
                if txn_type is not None and bucket_type != txn_type:
                    continue
                for txn in bucket:
                    yield day, txn

    # ------------------------------------------------------------------
    # Persistence shape
    # ------------------------------------------------------------------

    @classmethod
    def from_records(cls, days: Mapping[str, Mapping[str, Any]]) -> Ledger:
        """Build a ledger from the persisted ``days`` map.

        Entries missing ``type`` take it from the bucket they are stored in.
        """
        ledger = cls()
        for key, bucket in days.items():
            day = as_date(bucket.get("date") or key)
            for txn_type, bucket_key in BUCKET_KEYS.items():
                for record in bucket.get(bucket_key) or []:
                    data = dict(record)
                    data.setdefault("type", txn_type.value)
                    ledger.add_transaction(day, Transaction.model_validate(data))
        return ledger

    def to_records(self) -> dict[str, dict[str, Any]]:
        records: dict[str, dict[str, Any]] = {}
        for day in sorted(self._days):
            key = date_key(day)
            records[key] = {"date": key}
            for txn_type, bucket_key in BUCKET_KEYS.items():
                records[key][bucket_key] = [txn.to_record() for txn in self._days[day][txn_type]]
        return records


@dataclass(frozen=True)
class LedgerContext:
    """Read access to the ledger and recurring items for one import or populate run."""

    ledger: Ledger
    recurring_expenses: Sequence[RecurringExpense] = field(default_factory=tuple)
    recurring_income: Sequence[RecurringIncome] = field(default_factory=tuple)

    def recurring_items_for(self, txn_type: TransactionType) -> Sequence[RecurringItemBase]:
        if txn_type is TransactionType.SPENDING:
            return self.recurring_expenses
        if txn_type is TransactionType.INCOME:
            return self.recurring_income
        return ()

    def find_recurring_item(self, recurring_id: str) -> RecurringItemBase | None:
        for item in (*self.recurring_expenses, *self.recurring_income):
            if item.id == recurring_id:
                return item
        return None

    @classmethod
    def from_state(cls, state: Mapping[str, Any], *, now: datetime | None = None) -> LedgerContext:
        """Load a persisted state, upgrading it to the current schema first."""
        migrated = migrate_state(state, now=now)
        return cls(
            ledger=Ledger.from_records(migrated.get("days") or {}),
            recurring_expenses=tuple(
                RecurringExpense.model_validate(item) for item in migrated.get("recurringExpenses") or []
            ),
            recurring_income=tuple(
                RecurringIncome.model_validate(item) for item in migrated.get("recurringIncome") or []
            ),
        )

    def to_state(self) -> dict[str, Any]:
        return {
            SCHEMA_VERSION_KEY: CURRENT_SCHEMA_VERSION,
            "days": self.ledger.to_records(),
            "recurringExpenses": [item.to_record() for item in self.recurring_expenses],
            "recurringIncome": [item.to_record() for item in self.recurring_income],
        }
