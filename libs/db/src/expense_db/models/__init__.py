"""Shared SQLAlchemy models registry for the expense tracker database.

Currently includes the tracker domain models used by ``expense_tracker``.
"""

from .tracker import Base, Budget, BudgetError, Category, Expense

__all__ = [
    "Base",
    "Budget",
    "BudgetError",
    "Category",
    "Expense",
]
