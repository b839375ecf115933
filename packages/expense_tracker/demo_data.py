"""Generate and remove sample expenses flagged ``is_demo``.

Demo expenses are spread over roughly the past year with amounts that look
plausible for their category. They appear in listings and dashboards but are
excluded from budget spending.
"""

from __future__ import annotations

import calendar
import random
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from expense_db.models.tracker import Expense

from .logging_setup import get_logger
from .repository import Repository

logger = get_logger("expense_tracker.demo_data")

MIN_EXPENSES = 80
MAX_EXPENSES = 120
CENTS = Decimal("0.01")

SAMPLE_NOTES: tuple[str | None, ...] = (
    "Coffee and pastry",
    "Grocery shopping",
    "Gas station fill-up",
    "Restaurant dinner",
    "Online shopping",
    "Pharmacy pickup",
    "Movie tickets",
    "Lunch with colleagues",
    "Weekend groceries",
    "Car maintenance",
    "Streaming subscription",
    "Phone bill",
    "Internet service",
    "Gym membership",
    "Haircut",
    "Book purchase",
    "Home supplies",
    "Pet food",
    "Clothing purchase",
    "Birthday gift",
    None,
    None,
    None,
)

# First matching keyword group wins; see ``amount_range_for``.
_AMOUNT_RANGES: tuple[tuple[tuple[str, ...], tuple[float, float]], ...] = (
    (("food", "restaurant", "dining"), (8.0, 45.0)),
    (("transport", "gas", "fuel"), (25.0, 85.0)),
    (("shopping", "retail"), (15.0, 120.0)),
    (("entertainment", "movie", "game"), (10.0, 35.0)),
    (("health", "medical", "pharmacy"), (15.0, 75.0)),
    (("utility", "bill", "subscription"), (25.0, 150.0)),
    (("travel", "hotel"), (50.0, 300.0)),
    (("education", "book"), (20.0, 80.0)),
)
_DEFAULT_RANGE = (10.0, 100.0)


def amount_range_for(category_name: str) -> tuple[float, float]:
    name = category_name.lower()
    for keywords, bounds in _AMOUNT_RANGES:
        if any(k in name for k in keywords):
            return bounds
    return _DEFAULT_RANGE


def _months_before(value: datetime, months: int) -> datetime:
    # Same day-of-month, clamped to the target month's length.
    index = value.year * 12 + (value.month - 1) - months
    year, month = index // 12, index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def count_demo_expenses(repo: Repository) -> int:
    return repo.count_expenses(Expense.is_demo.is_(True))


def insert_demo_data(
    repo: Repository,
    *,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> int:
    """Insert 80-120 demo expenses across existing categories and save.

    Returns the existing demo count unchanged when demo data is already
    present, and 0 when there are no categories to attach expenses to.
    """

    existing = count_demo_expenses(repo)
    if existing > 0:
        logger.info("demo data already present (%d expenses)", existing)
        return existing

    categories = repo.list_categories()
    if not categories:
        logger.warning("no categories found; cannot generate demo data")
        return 0

    rand = rng or random.Random()
    current = now or datetime.now()
    count = rand.randint(MIN_EXPENSES, MAX_EXPENSES)

    for _ in range(count):
        category = rand.choice(categories)
        lo, hi = amount_range_for(category.name)
        when = _months_before(current, rand.randint(1, 12)) - timedelta(days=rand.randint(0, 30))
        repo.insert(
            Expense(
                amount=Decimal(str(rand.uniform(lo, hi))).quantize(CENTS, rounding=ROUND_HALF_UP),
                date=when,
                notes=rand.choice(SAMPLE_NOTES),
                category=category,
                is_demo=True,
            )
        )

    repo.save()
    logger.info("created %d demo expenses", count)
    return count


def remove_demo_data(repo: Repository) -> int:
    """Delete every demo expense and save; returns how many were removed."""

    demo = repo.fetch(Expense, Expense.is_demo.is_(True))
    for expense in demo:
        repo.delete(expense)
    repo.save()
    logger.info("removed %d demo expenses", len(demo))
    return len(demo)


__all__ = [
    "SAMPLE_NOTES",
    "amount_range_for",
    "count_demo_expenses",
    "insert_demo_data",
    "remove_demo_data",
]
