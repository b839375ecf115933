"""Public interface for the ``expense_tracker`` package.

This module exposes the package's API functions and public types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

from .aggregation import (
    BudgetStatus,
    CategoryShare,
    DashboardTimeRange,
    MonthlyBucket,
    PeriodTrend,
)
from .api import (
    DashboardSummary,
    budgets_for_month,
    build_dashboard,
    create_budget,
    create_category,
    delete_category,
    export_expenses,
    import_csv,
    import_csv_file,
    insert_demo_data,
    remove_demo_data,
    seed_default_categories,
)
from .csv_codec import ImportResult
from .date_ranges import DateRange, DateRangeFilter
from .filters import ExpenseFilter
from .repository import PersistenceError, Repository

__all__ = [
    # API
    "budgets_for_month",
    "build_dashboard",
    "create_budget",
    "create_category",
    "delete_category",
    "export_expenses",
    "import_csv",
    "import_csv_file",
    "insert_demo_data",
    "remove_demo_data",
    "seed_default_categories",
    # Types
    "BudgetStatus",
    "CategoryShare",
    "DashboardSummary",
    "DashboardTimeRange",
    "DateRange",
    "DateRangeFilter",
    "ExpenseFilter",
    "ImportResult",
    "MonthlyBucket",
    "PeriodTrend",
    "PersistenceError",
    "Repository",
]
