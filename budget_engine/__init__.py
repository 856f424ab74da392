"""Recurrence and statement reconciliation engine for personal budgets."""

__version__ = "0.1.0"
