"""Public API surface for the ``expense_tracker`` package.

The service functions live in their own modules and are re-exported here so
callers (the CLI, tests, host applications) have a single import point.
:func:`build_dashboard` composes filtering and aggregation into the summary
shown by the ``dashboard`` command.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal

from .aggregation import (
    CategoryShare,
    DashboardTimeRange,
    MonthlyBucket,
    PeriodTrend,
    budget_status,
    category_breakdown,
    monthly_trend,
    period_over_period,
    total_amount,
)
from .budgets import budgets_for_month, create_budget, update_budget
from .categories import (
    create_category,
    delete_category,
    ensure_uncategorized,
    seed_default_categories,
    update_category,
)
from .csv_codec import ImportResult, export_expenses, import_csv, import_csv_file
from .date_ranges import DateRangeFilter
from .demo_data import count_demo_expenses, insert_demo_data, remove_demo_data
from .filters import ExpenseFilter, apply_filters
from .repository import Repository


@dataclass(frozen=True, slots=True)
class DashboardSummary:
    total: Decimal
    period_label: str
    trend: PeriodTrend | None
    monthly: list[MonthlyBucket]
    categories: list[CategoryShare]

    @property
    def top_category(self) -> CategoryShare | None:
        return self.categories[0] if self.categories else None


def build_dashboard(
    repo: Repository,
    expense_filter: ExpenseFilter | None = None,
    *,
    time_range: DashboardTimeRange = DashboardTimeRange.TWELVE_MONTHS,
    now: datetime | None = None,
) -> DashboardSummary:
    """Summarize spending under ``expense_filter``.

    - ``total``: every predicate applied.
    - ``monthly``: category and search applied, date range ignored, so the
      chart always covers ``time_range``.
    - ``categories``: date range and search applied, category ignored, so the
      breakdown stays meaningful while a category is selected.
    - ``trend``: period-over-period for the date selector, scoped like
      ``monthly`` so its current total matches ``total``; ``None`` when the
      selector has no prior period.
    """

    current = now or datetime.now()
    active = expense_filter or ExpenseFilter()
    expenses = repo.list_expenses()

    filtered = apply_filters(expenses, active, now=current)
    without_dates = apply_filters(
        expenses,
        replace(active, date_filter=DateRangeFilter.ALL_TIME, custom_start=None, custom_end=None),
        now=current,
    )
    without_category = apply_filters(expenses, replace(active, category_name=None), now=current)

    return DashboardSummary(
        total=total_amount(filtered),
        period_label=active.describe(now=current) or active.date_filter.display_name,
        trend=period_over_period(without_dates, active.date_filter, now=current),
        monthly=monthly_trend(without_dates, months=time_range, now=current),
        categories=category_breakdown(without_category),
    )


__all__ = [
    "DashboardSummary",
    "ImportResult",
    "budget_status",
    "budgets_for_month",
    "build_dashboard",
    "count_demo_expenses",
    "create_budget",
    "create_category",
    "delete_category",
    "ensure_uncategorized",
    "export_expenses",
    "import_csv",
    "import_csv_file",
    "insert_demo_data",
    "remove_demo_data",
    "seed_default_categories",
    "update_budget",
    "update_category",
]
