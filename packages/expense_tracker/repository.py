"""Explicit repository over a SQLAlchemy session.

Every component that needs data access receives a :class:`Repository`; there
is no module-level session. Reads are pull-based: callers re-query after a
mutation instead of observing live collections.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, TypeVar

from expense_db.models.tracker import Base, Budget, Category, Expense
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .date_ranges import month_range
from .filters import ExpenseFilter, apply_filters
from .logging_setup import get_logger

logger = get_logger("expense_tracker.repository")

M = TypeVar("M", bound=Base)


class PersistenceError(RuntimeError):
    """A write could not be committed; ``str(err)`` is suitable for users."""


class Repository:
    def __init__(self, session: Session) -> None:
        self.session = session

    # ---- Primitive operations ---------------------------------------------

    def fetch(self, model: type[M], *criteria: Any, order_by: Any = None) -> list[M]:
        stmt = select(model).where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(*(order_by if isinstance(order_by, tuple) else (order_by,)))
        return list(self.session.execute(stmt).scalars().all())

    def insert(self, obj: Base) -> None:
        self.session.add(obj)

    def delete(self, obj: Base) -> None:
        self.session.delete(obj)

    def save(self) -> None:
        """Commit pending changes.

        On failure the transaction is rolled back so the session stays
        usable (pending inserts are discarded), and a :class:`PersistenceError`
        is raised.
        """

        try:
            self.session.commit()
        except SQLAlchemyError as e:
            logger.error("save failed: %s", e)
            self.session.rollback()
            raise PersistenceError(str(e.orig) if getattr(e, "orig", None) else str(e)) from e

    # ---- Queries ------------------------------------------------------------

    def list_expenses(
        self,
        expense_filter: ExpenseFilter | None = None,
        *,
        now: datetime | None = None,
    ) -> list[Expense]:
        """All expenses newest first, narrowed by ``expense_filter`` when given."""

        rows = self.fetch(Expense, order_by=(Expense.date.desc(), Expense.id.desc()))
        return apply_filters(rows, expense_filter, now=now)

    def list_categories(self) -> list[Category]:
        return self.fetch(Category, order_by=(func.lower(Category.name), Category.id))

    def find_category(self, name: str) -> Category | None:
        """Case-insensitive lookup by name (surrounding whitespace ignored)."""

        key = name.strip().lower()
        rows = self.fetch(Category, func.lower(Category.name) == key, order_by=Category.id)
        return rows[0] if rows else None

    def list_budgets(self, month: date | datetime | None = None) -> list[Budget]:
        """Budgets, optionally only those anchored to ``month``."""

        if month is None:
            return self.fetch(Budget, order_by=(Budget.current_month.desc(), Budget.id))
        window = month_range(month)
        return self.fetch(
            Budget,
            Budget.current_month >= window.start,
            Budget.current_month < window.stop,
            order_by=Budget.id,
        )

    def count_expenses(self, *criteria: Any) -> int:
        stmt = select(func.count()).select_from(Expense).where(*criteria)
        return int(self.session.execute(stmt).scalar_one())


__all__ = ["PersistenceError", "Repository"]
