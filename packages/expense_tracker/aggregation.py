"""Budget progress, spending trends, and category breakdowns.

Amounts are summed as ``Decimal``; floats appear only in percentages. Budget
metrics are derived from the category's live expense collection on every
call and never stored.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import StrEnum

from expense_db.models.tracker import Budget, Expense

from .date_ranges import (
    DateRangeFilter,
    add_months,
    month_range,
    previous_period,
    resolve_date_range,
    start_of_month,
)

ZERO = Decimal("0")
ALERT_THRESHOLD = 75.0
WARNING_THRESHOLD = 90.0


def total_amount(expenses: Iterable[Expense]) -> Decimal:
    return sum((e.amount for e in expenses), ZERO)


# ---------------------------------------------------------------------------
# Budget metrics
# ---------------------------------------------------------------------------


def _budget_expenses(budget: Budget, expenses: Iterable[Expense] | None) -> Iterable[Expense]:
    return budget.category.expenses if expenses is None else expenses


def calculate_current_spending(
    budget: Budget, expenses: Iterable[Expense] | None = None
) -> Decimal:
    """Sum of non-demo expenses dated inside the budget's month.

    ``expenses`` defaults to ``budget.category.expenses``. Callers passing an
    explicit collection are expected to pass that category's expenses; no
    category filtering happens here.
    """

    window = month_range(budget.current_month)
    return total_amount(
        e for e in _budget_expenses(budget, expenses) if not e.is_demo and window.contains(e.date)
    )


def _percentage(part: Decimal, whole: Decimal) -> float:
    # Divide in Decimal so exact ratios (e.g. 600/500) stay exact.
    try:
        value = part / whole * 100
    except (ZeroDivisionError, InvalidOperation):
        return 0.0
    if not value.is_finite():
        return 0.0
    return max(0.0, float(value))


def percentage_used(budget: Budget, expenses: Iterable[Expense] | None = None) -> float:
    """Share of the monthly limit spent, in percent (0-100+, never negative)."""

    return _percentage(calculate_current_spending(budget, expenses), budget.monthly_limit)


def amount_remaining(budget: Budget, expenses: Iterable[Expense] | None = None) -> Decimal:
    """Unspent part of the limit; overspending yields 0, never a negative amount."""

    return max(ZERO, budget.monthly_limit - calculate_current_spending(budget, expenses))


def is_alert_threshold(budget: Budget, expenses: Iterable[Expense] | None = None) -> bool:
    return percentage_used(budget, expenses) >= ALERT_THRESHOLD


def is_warning_threshold(budget: Budget, expenses: Iterable[Expense] | None = None) -> bool:
    return percentage_used(budget, expenses) >= WARNING_THRESHOLD


@dataclass(frozen=True, slots=True)
class BudgetStatus:
    """Point-in-time snapshot of a budget's derived metrics."""

    budget: Budget
    spent: Decimal
    percentage_used: float
    amount_remaining: Decimal

    @property
    def is_alert(self) -> bool:
        return self.percentage_used >= ALERT_THRESHOLD

    @property
    def is_warning(self) -> bool:
        return self.percentage_used >= WARNING_THRESHOLD

    @property
    def is_over_budget(self) -> bool:
        return self.spent > self.budget.monthly_limit


def budget_status(budget: Budget, expenses: Iterable[Expense] | None = None) -> BudgetStatus:
    # Materialize once so the three metrics agree.
    items = list(_budget_expenses(budget, expenses))
    spent = calculate_current_spending(budget, items)
    return BudgetStatus(
        budget=budget,
        spent=spent,
        percentage_used=_percentage(spent, budget.monthly_limit),
        amount_remaining=max(ZERO, budget.monthly_limit - spent),
    )


# ---------------------------------------------------------------------------
# Monthly trend buckets
# ---------------------------------------------------------------------------


class DashboardTimeRange(StrEnum):
    SIX_MONTHS = "6M"
    TWELVE_MONTHS = "12M"

    @property
    def months_back(self) -> int:
        return 6 if self is DashboardTimeRange.SIX_MONTHS else 12


@dataclass(frozen=True, slots=True)
class MonthlyBucket:
    month: datetime
    total: Decimal

    @property
    def label(self) -> str:
        return f"{self.month:%b}"


def monthly_trend(
    expenses: Iterable[Expense],
    *,
    months: int | DashboardTimeRange = DashboardTimeRange.TWELVE_MONTHS,
    now: datetime | None = None,
) -> list[MonthlyBucket]:
    """Dense per-month totals for the last ``months`` months, oldest first.

    The window ends with the current month (inclusive). Months without
    expenses appear with a zero total; expenses outside the window are
    ignored.
    """

    count = months.months_back if isinstance(months, DashboardTimeRange) else months
    if count <= 0:
        raise ValueError(f"months must be positive, got {count}")

    current = now or datetime.now()
    first = add_months(current, -(count - 1))
    totals: dict[datetime, Decimal] = {add_months(first, i): ZERO for i in range(count)}
    for e in expenses:
        key = start_of_month(e.date)
        if key in totals:
            totals[key] += e.amount
    return [MonthlyBucket(month=m, total=t) for m, t in totals.items()]


# ---------------------------------------------------------------------------
# Category breakdown
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CategoryShare:
    category_name: str
    amount: Decimal
    percentage: float
    color: str | None = None


def category_breakdown(expenses: Iterable[Expense]) -> list[CategoryShare]:
    """Per-category totals with their share of the grand total.

    Returns an empty list when the grand total is zero. Sorted by amount
    descending; ties by name.
    """

    groups: dict[str, Decimal] = defaultdict(lambda: ZERO)
    colors: dict[str, str] = {}
    for e in expenses:
        name = e.category.name
        groups[name] += e.amount
        colors.setdefault(name, e.category.color)

    grand = sum(groups.values(), ZERO)
    if grand <= 0:
        return []

    shares = [
        CategoryShare(
            category_name=name,
            amount=amount,
            percentage=_percentage(amount, grand),
            color=colors.get(name),
        )
        for name, amount in groups.items()
    ]
    shares.sort(key=lambda s: (-s.amount, s.category_name))
    return shares


# ---------------------------------------------------------------------------
# Period-over-period trend
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PeriodTrend:
    current_total: Decimal
    previous_total: Decimal
    difference: Decimal
    percent_change: float


def _in_category(expense: Expense, category_name: str | None) -> bool:
    return category_name is None or expense.category.name.casefold() == category_name.casefold()


def period_over_period(
    expenses: Sequence[Expense],
    date_filter: DateRangeFilter | str,
    *,
    category_name: str | None = None,
    now: datetime | None = None,
) -> PeriodTrend | None:
    """Compare the filter's window with the equivalent prior window.

    Returns ``None`` for selectors without a prior period (all time, year to
    date, custom). ``percent_change`` is 0 when the prior total is 0.
    """

    current_now = now or datetime.now()
    prior = previous_period(date_filter, now=current_now)
    window = resolve_date_range(date_filter, now=current_now)
    if prior is None or window is None:
        return None

    scoped = [e for e in expenses if _in_category(e, category_name)]
    current_total = total_amount(e for e in scoped if window.contains(e.date))
    previous_total = total_amount(e for e in scoped if prior.contains(e.date))
    difference = current_total - previous_total
    percent_change = (
        float(difference / previous_total * 100) if previous_total > 0 else 0.0
    )
    return PeriodTrend(
        current_total=current_total,
        previous_total=previous_total,
        difference=difference,
        percent_change=percent_change,
    )


__all__ = [
    "ALERT_THRESHOLD",
    "WARNING_THRESHOLD",
    "BudgetStatus",
    "CategoryShare",
    "DashboardTimeRange",
    "MonthlyBucket",
    "PeriodTrend",
    "amount_remaining",
    "budget_status",
    "calculate_current_spending",
    "category_breakdown",
    "is_alert_threshold",
    "is_warning_threshold",
    "monthly_trend",
    "percentage_used",
    "period_over_period",
    "total_amount",
]
