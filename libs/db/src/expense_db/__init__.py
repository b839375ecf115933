"""expense_db: shared database library (SQLAlchemy/Alembic).

Public exports
--------------
- ``Base`` and ``metadata`` for Alembic autogenerate/targeting
- ORM models in ``expense_db.models.tracker`` (re-exported for convenience)
- Engine/session helpers in ``expense_db.client``
"""

from __future__ import annotations

from .models.tracker import Base, Budget, BudgetError, Category, Expense

# Re-export SQLAlchemy metadata for Alembic's env.py
metadata = Base.metadata

__all__ = [
    "Base",
    "metadata",
    "Budget",
    "BudgetError",
    "Category",
    "Expense",
]
