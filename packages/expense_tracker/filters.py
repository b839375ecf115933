"""Compose date-range, category, and free-text predicates over expenses.

Filtering is pure: the input sequence is never mutated and the result keeps
the input order (the repository supplies expenses newest first).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime

from expense_db.models.tracker import Expense

from .date_ranges import DateRange, DateRangeFilter, resolve_date_range


@dataclass(frozen=True, slots=True)
class ExpenseFilter:
    """Filter state as held by the preferences store.

    ``category_name`` of ``None`` means "all categories"; blank
    ``search_text`` disables the text predicate.
    """

    date_filter: DateRangeFilter = DateRangeFilter.ALL_TIME
    custom_start: date | datetime | None = None
    custom_end: date | datetime | None = None
    category_name: str | None = None
    search_text: str = ""

    def __post_init__(self) -> None:
        # Accept stored selector strings ("last_7_days", "Last 7 Days").
        object.__setattr__(self, "date_filter", DateRangeFilter.parse(self.date_filter))

    @property
    def is_active(self) -> bool:
        """True when a date or category filter narrows the view (search excluded)."""

        return self.date_filter is not DateRangeFilter.default() or bool(self.category_name)

    def date_range(self, *, now: datetime | None = None) -> DateRange | None:
        return resolve_date_range(
            self.date_filter,
            custom_start=self.custom_start,
            custom_end=self.custom_end,
            now=now,
        )

    def describe(self, *, now: datetime | None = None) -> str | None:
        """One-line summary of active filters, e.g. ``"Oct 13 – Oct 20 • Food"``."""

        if not self.is_active:
            return None
        parts: list[str] = []
        window = self.date_range(now=now)
        if window is not None:
            parts.append(f"{window.start:%b %d, %Y} – {window.end:%b %d, %Y}")
        if self.category_name:
            parts.append(self.category_name)
        return " • ".join(parts) if parts else self.date_filter.display_name


def _matches_text(expense: Expense, needle: str) -> bool:
    notes = (expense.notes or "").casefold()
    return needle in notes or needle in expense.category.name.casefold()


def apply_filters(
    expenses: Iterable[Expense],
    expense_filter: ExpenseFilter | None = None,
    *,
    now: datetime | None = None,
) -> list[Expense]:
    """Return the expenses matching every active predicate, in input order.

    Order of application: date range (skipped when it resolves to ``None``),
    category equality (case-insensitive on name), then case-insensitive
    substring search over notes or category name.
    """

    result = list(expenses)
    if expense_filter is None:
        return result

    window = expense_filter.date_range(now=now)
    if window is not None:
        result = [e for e in result if window.contains(e.date)]

    if expense_filter.category_name:
        wanted = expense_filter.category_name.casefold()
        result = [e for e in result if e.category.name.casefold() == wanted]

    needle = expense_filter.search_text.strip().casefold()
    if needle:
        result = [e for e in result if _matches_text(e, needle)]

    return result


__all__ = ["ExpenseFilter", "apply_filters"]
