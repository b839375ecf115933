from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, validates
from sqlalchemy.sql import expression as sa_expr


class Base(DeclarativeBase):
    pass


class BudgetError(ValueError):
    """Raised when a budget is constructed or edited with invalid values."""


# ---------------------------
# Reference: categories
# ---------------------------


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Case-insensitive uniqueness is enforced by ``expense_tracker.categories``,
    # not by the database. Do not declare a unique constraint here.
    name: Mapped[str] = mapped_column(String, nullable=False)
    # Free-text palette tags; unknown values fall back to defaults at render
    # time (see ``expense_tracker.palette``).
    color: Mapped[str] = mapped_column(String, nullable=False, server_default=text("'blue'"))
    symbol_name: Mapped[str] = mapped_column(
        String, nullable=False, server_default=text("'tag.fill'")
    )

    expenses: Mapped[list[Expense]] = relationship(back_populates="category")
    budgets: Mapped[list[Budget]] = relationship(
        back_populates="category", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"Category(id={self.id!r}, name={self.name!r})"


# ---------------------------
# Core: expenses
# ---------------------------


class Expense(Base):
    __tablename__ = "expenses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Positivity is validated by input flows (CLI, CSV import), not here.
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_demo: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa_expr.false()
    )
    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id"), nullable=False, index=True
    )

    category: Mapped[Category] = relationship(back_populates="expenses")

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"Expense(id={self.id!r}, amount={self.amount!r}, date={self.date!r})"


# ---------------------------
# Budgets
# ---------------------------


class Budget(Base):
    __tablename__ = "budgets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), nullable=False)
    monthly_limit: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    # Always the first instant of a month.
    current_month: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_demo: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa_expr.false()
    )

    category: Mapped[Category] = relationship(back_populates="budgets")

    __table_args__ = (
        CheckConstraint("monthly_limit > 0", name="ck_budgets_monthly_limit"),
        Index("ix_budgets_category_month", "category_id", "current_month"),
    )

    @validates("monthly_limit")
    def _validate_monthly_limit(self, _key: str, value: Any) -> Decimal:
        try:
            limit = value if isinstance(value, Decimal) else Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise BudgetError(f"Budget monthly limit must be a number, got {value!r}") from None
        if not limit.is_finite() or limit <= 0:
            raise BudgetError(f"Budget monthly limit must be positive, got {value}")
        return limit

    @validates("current_month")
    def _normalize_current_month(self, _key: str, value: date | datetime) -> datetime:
        return datetime(value.year, value.month, 1)

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return (
            f"Budget(id={self.id!r}, category_id={self.category_id!r}, "
            f"monthly_limit={self.monthly_limit!r}, current_month={self.current_month!r})"
        )


__all__ = [
    "Base",
    "BudgetError",
    "Budget",
    "Category",
    "Expense",
]
