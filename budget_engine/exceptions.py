"""Domain exceptions raised by the engine."""


class BudgetEngineError(Exception):
    """Base class for engine errors."""


class StatementParseError(BudgetEngineError):
    """Raised when a whole statement document cannot be interpreted."""


class MigrationError(BudgetEngineError):
    """Raised when persisted state cannot be upgraded to the current schema."""


class TransactionNotFoundError(BudgetEngineError):
    """Raised when a ledger mutation targets a transaction that does not exist."""
