"""Budget creation, editing, and per-month status listing."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from expense_db.models.tracker import Budget, Category

from .aggregation import BudgetStatus, budget_status
from .date_ranges import start_of_month
from .logging_setup import get_logger
from .repository import Repository

logger = get_logger("expense_tracker.budgets")


def create_budget(
    repo: Repository,
    category: Category,
    monthly_limit: Decimal | int | str,
    *,
    month: date | datetime | None = None,
    notes: str | None = None,
    is_demo: bool = False,
) -> Budget:
    """Construct and insert a budget; the caller saves.

    ``BudgetError`` propagates from the model for a non-positive limit.
    Budgets for an already-budgeted (category, month) are allowed but logged.
    """

    anchor = start_of_month(month or datetime.now())
    budget = Budget(
        monthly_limit=monthly_limit,
        current_month=anchor,
        notes=(notes or None),
        is_demo=is_demo,
    )
    # Attach only once validated; the backref puts it in category.budgets.
    budget.category = category
    duplicates = [b for b in repo.list_budgets(anchor) if b is not budget and b.category is category]
    if duplicates:
        logger.warning(
            "category %r already has %d budget(s) for %s",
            category.name,
            len(duplicates),
            f"{anchor:%Y-%m}",
        )
    repo.insert(budget)
    return budget


def update_budget(
    budget: Budget,
    *,
    monthly_limit: Decimal | int | str | None = None,
    notes: str | None = None,
) -> Budget:
    if monthly_limit is not None:
        budget.monthly_limit = monthly_limit
    if notes is not None:
        budget.notes = notes or None
    return budget


def budgets_for_month(
    repo: Repository, month: date | datetime | None = None
) -> list[BudgetStatus]:
    """Status of every budget anchored to ``month`` (default: this month).

    Sorted by percentage used, highest first, then by category name.
    """

    statuses = [budget_status(b) for b in repo.list_budgets(month or datetime.now())]
    statuses.sort(key=lambda s: (-s.percentage_used, s.budget.category.name.lower()))
    return statuses


__all__ = ["budgets_for_month", "create_budget", "update_budget"]
