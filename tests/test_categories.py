from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest
from expense_db.models.tracker import Budget, Expense

from expense_tracker.budgets import create_budget
from expense_tracker.categories import (
    DEFAULT_CATEGORIES,
    UNCATEGORIZED_NAME,
    CategoryError,
    create_category,
    delete_category,
    ensure_uncategorized,
    is_name_taken,
    normalize_name,
    seed_default_categories,
    update_category,
    validate_name,
)
from tests.helpers.db import add_category, add_expense, bootstrap_sqlite_db, repository


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return bootstrap_sqlite_db(tmp_path / "tracker.db")


def test_seed_default_categories_once(db_url: str) -> None:
    with repository(db_url) as repo:
        inserted = seed_default_categories(repo)
        again = seed_default_categories(repo)
        names = [c.name for c in repo.list_categories()]

    assert inserted == len(DEFAULT_CATEGORIES) + 1
    assert again == 0
    assert UNCATEGORIZED_NAME in names
    assert names == sorted(names, key=str.lower)


def test_seed_adds_missing_sentinel_to_existing_store(db_url: str) -> None:
    with repository(db_url) as repo:
        add_category(repo, "Rent")
        inserted = seed_default_categories(repo)
        names = {c.name for c in repo.list_categories()}

    assert inserted == 1
    assert names == {"Rent", UNCATEGORIZED_NAME}


def test_create_category_rejects_case_insensitive_duplicates(db_url: str) -> None:
    with repository(db_url) as repo:
        create_category(repo, "  Groceries ")
        repo.save()

        with pytest.raises(CategoryError, match="already exists"):
            create_category(repo, "GROCERIES")

        assert [c.name for c in repo.list_categories()] == ["Groceries"]


@pytest.mark.parametrize("name", ["", "   ", "x" * 65])
def test_create_category_rejects_invalid_names(db_url: str, name: str) -> None:
    with repository(db_url) as repo, pytest.raises(CategoryError):
        create_category(repo, name)


def test_name_helpers() -> None:
    assert normalize_name("  Eating   Out ") == "Eating Out"
    assert validate_name("Food").ok
    assert validate_name(" ").reason == "Name cannot be empty"


def test_rename_to_own_name_with_new_casing_is_allowed(db_url: str) -> None:
    with repository(db_url) as repo:
        food = add_category(repo, "Food")
        add_category(repo, "Fuel")

        assert not is_name_taken(repo.list_categories(), "FOOD", editing=food)
        update_category(repo, food, name="FOOD", color="green")
        repo.save()

        with pytest.raises(CategoryError):
            update_category(repo, food, name="fuel")

        assert repo.find_category("food").name == "FOOD"
        assert repo.find_category("food").color == "green"


def test_sentinel_cannot_be_renamed_or_deleted(db_url: str) -> None:
    with repository(db_url) as repo:
        sentinel = ensure_uncategorized(repo)
        repo.save()

        with pytest.raises(CategoryError):
            update_category(repo, sentinel, name="Misc")
        with pytest.raises(CategoryError):
            delete_category(repo, sentinel)


def test_delete_category_reassigns_expenses_and_drops_budgets(db_url: str) -> None:
    with repository(db_url) as repo:
        seed_default_categories(repo)
        food = repo.find_category("Food")
        add_expense(repo, food, "12.00", datetime(2025, 10, 1), notes="Lunch")
        add_expense(repo, food, "8.50", datetime(2025, 10, 2))
        create_budget(repo, food, "300", month=datetime(2025, 10, 1))
        repo.save()

        moved = delete_category(repo, food)

        assert moved == 2
        assert repo.find_category("Food") is None
        sentinel = repo.find_category(UNCATEGORIZED_NAME)
        expenses = repo.fetch(Expense)
        assert len(expenses) == 2
        assert {e.category_id for e in expenses} == {sentinel.id}
        assert sum((e.amount for e in expenses), Decimal("0")) == Decimal("20.50")
        assert repo.fetch(Budget) == []


def test_delete_category_creates_missing_sentinel(db_url: str) -> None:
    with repository(db_url) as repo:
        travel = add_category(repo, "Travel")
        add_expense(repo, travel, "99.00", datetime(2025, 6, 1))

        delete_category(repo, travel)

        assert [c.name for c in repo.list_categories()] == [UNCATEGORIZED_NAME]
        assert repo.fetch(Expense)[0].category.name == UNCATEGORIZED_NAME
