from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest
from expense_db.models.tracker import Category, Expense

from expense_tracker.date_ranges import DateRangeFilter
from expense_tracker.filters import ExpenseFilter, apply_filters

NOW = datetime(2025, 10, 20, 14, 30)


@pytest.fixture
def expenses() -> list[Expense]:
    food = Category(name="Food", color="orange", symbol_name="fork.knife")
    travel = Category(name="Travel", color="teal", symbol_name="airplane")

    def mk(amount: str, when: datetime, category: Category, notes: str | None) -> Expense:
        return Expense(amount=Decimal(amount), date=when, notes=notes, category=category)

    # Newest first, as the repository returns them
    return [
        mk("12.50", datetime(2025, 10, 20, 9, 0), food, "Lunch with team"),
        mk("300.00", datetime(2025, 10, 14), travel, "Hotel in Lisbon"),
        mk("8.00", datetime(2025, 10, 12, 23, 59), food, None),
        mk("45.00", datetime(2025, 9, 2), food, "Groceries"),
    ]


def test_no_filter_returns_everything_in_order(expenses) -> None:
    assert apply_filters(expenses) == expenses
    assert apply_filters(expenses, ExpenseFilter(), now=NOW) == expenses


def test_date_filter_uses_resolved_window(expenses) -> None:
    result = apply_filters(
        expenses, ExpenseFilter(date_filter=DateRangeFilter.LAST_7_DAYS), now=NOW
    )

    # 2025-10-12 23:59 falls just before the window start (2025-10-13 00:00)
    assert [e.amount for e in result] == [Decimal("12.50"), Decimal("300.00")]


def test_category_filter_is_case_insensitive(expenses) -> None:
    result = apply_filters(expenses, ExpenseFilter(category_name="food"), now=NOW)

    assert len(result) == 3
    assert all(e.category.name == "Food" for e in result)


def test_search_matches_notes_or_category_name(expenses) -> None:
    by_notes = apply_filters(expenses, ExpenseFilter(search_text="  LISBON "), now=NOW)
    by_category = apply_filters(expenses, ExpenseFilter(search_text="trav"), now=NOW)

    assert [e.amount for e in by_notes] == [Decimal("300.00")]
    assert by_category == by_notes


def test_blank_search_is_ignored(expenses) -> None:
    assert apply_filters(expenses, ExpenseFilter(search_text="   "), now=NOW) == expenses


def test_predicates_compose(expenses) -> None:
    f = ExpenseFilter(
        date_filter=DateRangeFilter.THIS_MONTH,
        category_name="Food",
        search_text="lunch",
    )

    result = apply_filters(expenses, f, now=NOW)

    assert [e.notes for e in result] == ["Lunch with team"]


def test_input_is_not_mutated(expenses) -> None:
    snapshot = list(expenses)

    apply_filters(expenses, ExpenseFilter(category_name="Travel"), now=NOW)

    assert expenses == snapshot


def test_is_active_ignores_search_text() -> None:
    assert not ExpenseFilter().is_active
    assert not ExpenseFilter(search_text="coffee").is_active
    assert ExpenseFilter(category_name="Food").is_active
    assert ExpenseFilter(date_filter=DateRangeFilter.THIS_MONTH).is_active


def test_describe_lists_range_and_category() -> None:
    f = ExpenseFilter(date_filter=DateRangeFilter.LAST_7_DAYS, category_name="Food")

    text = f.describe(now=NOW)

    assert text is not None
    assert "Oct 13, 2025" in text
    assert "Oct 20, 2025" in text
    assert text.endswith("Food")
    assert ExpenseFilter().describe(now=NOW) is None
