"""Pydantic schemas for ledger transactions and statement candidates."""

from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any

from pydantic import Field, field_validator, model_validator

from budget_engine.schemas.base import RecordModel


class TransactionType(str, Enum):
    """Ledger bucket a transaction belongs to."""

    INCOME = "income"
    SPENDING = "spending"
    TRANSFER = "transfer"


class Transaction(RecordModel):
    """A ledger transaction. The sign of ``amount`` is implied by ``type``."""

    id: str
    type: TransactionType
    amount: Annotated[Decimal, Field(gt=0)]
    description: str
    category: str | None = None
    account_id: str | None = None
    transfer_to_account_id: str | None = None
    is_recurring: bool = False
    recurring_id: str | None = None


class StatementTransaction(RecordModel):
    """A statement-derived candidate, not yet reconciled."""

    txn_date: date = Field(alias="date")
    amount: Annotated[Decimal, Field(ge=0)]
    description: str
    type: TransactionType | None = None

    @model_validator(mode="before")
    @classmethod
    def split_signed_amount(cls, data: Any) -> Any:
        """Turn a signed amount into magnitude + spending type."""
        if not isinstance(data, Mapping):
            return data
        try:
            amount = Decimal(str(data.get("amount")))
            negative = amount < 0
        except (InvalidOperation, ValueError):
            return data
        if not negative:
            return data
        data = dict(data)
        data["amount"] = -amount
        if data.get("type") is None:
            data["type"] = TransactionType.SPENDING.value
        return data

    @field_validator("txn_date", mode="before")
    @classmethod
    def truncate_datetime(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.date()
        return value

    @field_validator("type")
    @classmethod
    def reject_transfers(cls, value: TransactionType | None) -> TransactionType | None:
        if value is TransactionType.TRANSFER:
            raise ValueError("statement candidates are income or spending")
        return value

    @property
    def inferred_type(self) -> TransactionType:
        """Explicit type, or income when the statement gave none."""
        return self.type or TransactionType.INCOME
