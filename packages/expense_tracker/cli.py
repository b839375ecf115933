# ruff: noqa: I001
"""CLI for the ``expense_tracker`` package.

This module exposes callable command handlers (``cmd_*``, each returning a
process exit code) and a Typer-based console interface. Environment variables
(notably ``DATABASE_URL`` and the ``EXPENSE_TRACKER_*`` settings) are loaded
from a local ``.env`` using ``python-dotenv`` before delegating to command
logic. Business logic lives in ``expense_tracker.api`` and related modules.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError

from expense_db import Base, BudgetError
from expense_db.client import get_engine, session_scope

from .aggregation import DashboardTimeRange
from .api import (
    budgets_for_month,
    build_dashboard,
    create_budget,
    create_category,
    delete_category,
    ensure_uncategorized,
    insert_demo_data,
    remove_demo_data,
    seed_default_categories,
)
from .categories import CategoryError, UNCATEGORIZED_NAME
from .config import Settings, load_settings
from .date_ranges import DateRangeFilter
from .filters import ExpenseFilter
from .logging_setup import configure_logging, get_logger
from .palette import DEFAULT_COLOR, DEFAULT_SYMBOL, color_for_tag, symbol_for_tag
from .preferences import load_preferences, save_preferences
from .repository import PersistenceError, Repository

logger = get_logger("expense_tracker.cli")

# Failures every handler reports as "Error: ..." instead of a traceback.
_HANDLED_ERRORS = (CategoryError, BudgetError, PersistenceError, SQLAlchemyError, OSError)


# ---- Small module-level helpers used by CLI commands -------------------------


def _error(message: str) -> int:
    print(f"Error: {message}", file=sys.stderr)
    return 1


@contextmanager
def _repository(settings: Settings) -> Iterator[Repository]:
    with session_scope(database_url=settings.database_url) as session:
        yield Repository(session)


def _money(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def _signed_money(amount: Decimal) -> str:
    sign = "-" if amount < 0 else "+"
    return f"{sign}${abs(amount):,.2f}"


def prepare_database(settings: Settings) -> None:
    """Create the SQLite file's directory and schema when missing.

    Non-SQLite databases are expected to be migrated with Alembic.
    """

    if not settings.is_sqlite:
        return
    db_path = make_url(settings.database_url).database
    if db_path and db_path != ":memory:":
        Path(db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(get_engine(database_url=settings.database_url))
    logger.debug("schema ready for %s", settings.database_url)


# ---- Command handlers --------------------------------------------------------


def cmd_init(settings: Settings) -> int:
    """Seed default categories (and the Uncategorized sentinel) into an empty store."""

    try:
        with _repository(settings) as repo:
            inserted = seed_default_categories(repo)
    except _HANDLED_ERRORS as e:
        return _error(f"initialization failed: {e}")
    print(f"Initialized {inserted} categories.")
    return 0


def cmd_add_category(
    settings: Settings,
    name: str,
    *,
    color: str = DEFAULT_COLOR.value,
    symbol: str = DEFAULT_SYMBOL,
) -> int:
    try:
        with _repository(settings) as repo:
            category = create_category(
                repo, name, color=color_for_tag(color).value, symbol_name=symbol_for_tag(symbol)
            )
            repo.save()
            print(f"Added category {category.name} ({category.color}, {category.symbol_name}).")
    except _HANDLED_ERRORS as e:
        return _error(str(e))
    return 0


def cmd_delete_category(settings: Settings, name: str) -> int:
    try:
        with _repository(settings) as repo:
            category = repo.find_category(name)
            if category is None:
                return _error(f"Unknown category: {name}")
            label = category.name
            moved = delete_category(repo, category)
    except _HANDLED_ERRORS as e:
        return _error(str(e))
    print(f"Deleted category {label}; moved {moved} expenses to {UNCATEGORIZED_NAME}.")
    return 0


def cmd_list_categories(settings: Settings) -> int:
    try:
        with _repository(settings) as repo:
            for c in repo.list_categories():
                print(f"{c.name}\t{c.color}\t{c.symbol_name}\t{len(c.expenses)}")
    except _HANDLED_ERRORS as e:
        return _error(str(e))
    return 0


def cmd_add_expense(
    settings: Settings,
    amount: str,
    *,
    category_name: str | None = None,
    when: datetime | None = None,
    notes: str | None = None,
) -> int:
    from expense_db import Expense

    from .csv_codec import parse_amount

    value = parse_amount(amount)
    if value is None:
        return _error(f"Invalid amount '{amount}': must be a positive number")

    try:
        with _repository(settings) as repo:
            if category_name:
                category = repo.find_category(category_name)
                if category is None:
                    return _error(f"Unknown category: {category_name}")
            else:
                category = ensure_uncategorized(repo)
            expense = Expense(
                amount=value,
                date=when or datetime.now(),
                notes=(notes or "").strip() or None,
                category=category,
            )
            repo.insert(expense)
            repo.save()
            print(f"Added {_money(expense.amount)} to {category.name} on {expense.date:%Y-%m-%d}.")
    except _HANDLED_ERRORS as e:
        return _error(str(e))
    return 0


def _effective_filter(
    settings: Settings,
    *,
    range_name: str | None,
    category_name: str | None,
    search: str | None,
    ignore_saved: bool,
) -> ExpenseFilter:
    from dataclasses import replace

    base = ExpenseFilter() if ignore_saved else load_preferences(
        settings.preferences_path
    ).to_expense_filter()
    if range_name is not None:
        base = replace(base, date_filter=DateRangeFilter.parse(range_name))
    if category_name is not None:
        base = replace(base, category_name=category_name or None)
    if search is not None:
        base = replace(base, search_text=search)
    return base


def cmd_list_expenses(
    settings: Settings,
    *,
    range_name: str | None = None,
    category_name: str | None = None,
    search: str | None = None,
    ignore_saved: bool = False,
) -> int:
    """Print expenses newest first, narrowed by the saved (or given) filter."""

    from .aggregation import total_amount

    expense_filter = _effective_filter(
        settings,
        range_name=range_name,
        category_name=category_name,
        search=search,
        ignore_saved=ignore_saved,
    )
    try:
        with _repository(settings) as repo:
            expenses = repo.list_expenses(expense_filter)
            for e in expenses:
                print(f"{e.date:%Y-%m-%d}\t{e.amount}\t{e.category.name}\t{e.notes or ''}")
            description = expense_filter.describe()
            suffix = f" ({description})" if description else ""
            print(f"{len(expenses)} expenses, total {_money(total_amount(expenses))}{suffix}")
    except _HANDLED_ERRORS as e:
        return _error(str(e))
    return 0


def cmd_add_budget(
    settings: Settings,
    category_name: str,
    limit: str,
    *,
    month: datetime | None = None,
    notes: str | None = None,
) -> int:
    try:
        with _repository(settings) as repo:
            category = repo.find_category(category_name)
            if category is None:
                return _error(f"Unknown category: {category_name}")
            budget = create_budget(repo, category, limit, month=month, notes=notes)
            repo.save()
            print(
                f"Added budget of {_money(budget.monthly_limit)} for {category.name} "
                f"({budget.current_month:%B %Y})."
            )
    except _HANDLED_ERRORS as e:
        return _error(str(e))
    return 0


def cmd_budgets(settings: Settings, *, month: datetime | None = None) -> int:
    try:
        with _repository(settings) as repo:
            statuses = budgets_for_month(repo, month)
            if not statuses:
                print("No budgets for this month.")
                return 0
            for s in statuses:
                flag = ""
                if s.is_over_budget:
                    flag = "\tOVER BUDGET"
                elif s.is_warning:
                    flag = "\tWARNING"
                elif s.is_alert:
                    flag = "\tALERT"
                print(
                    f"{s.budget.category.name}\t{_money(s.spent)} / "
                    f"{_money(s.budget.monthly_limit)}\t{s.percentage_used:.1f}%\t"
                    f"{_money(s.amount_remaining)} left{flag}"
                )
    except _HANDLED_ERRORS as e:
        return _error(str(e))
    return 0


def cmd_dashboard(settings: Settings, *, time_range: str | None = None) -> int:
    prefs = load_preferences(settings.preferences_path)
    try:
        chosen = DashboardTimeRange(time_range) if time_range else prefs.dashboard_time_range
    except ValueError:
        return _error(f"Unknown time range '{time_range}' (expected 6M or 12M)")

    try:
        with _repository(settings) as repo:
            summary = build_dashboard(repo, prefs.to_expense_filter(), time_range=chosen)
    except _HANDLED_ERRORS as e:
        return _error(str(e))

    print(f"Period: {summary.period_label}")
    print(f"Total: {_money(summary.total)}")
    if summary.trend is not None:
        t = summary.trend
        print(
            f"Trend: {_signed_money(t.difference)} ({t.percent_change:+.1f}%) "
            f"vs previous {_money(t.previous_total)}"
        )
    print(f"Monthly ({chosen.value}):")
    for bucket in summary.monthly:
        print(f"  {bucket.month:%b %Y}\t{_money(bucket.total)}")
    if summary.categories:
        print("By category:")
        for share in summary.categories:
            print(f"  {share.category_name}\t{_money(share.amount)}\t{share.percentage:.1f}%")
    if summary.top_category is not None:
        print(f"Top category: {summary.top_category.category_name}")
    return 0


def cmd_export_csv(settings: Settings, *, output: Path | None = None) -> int:
    from .csv_codec import export_expenses, write_export_file

    try:
        with _repository(settings) as repo:
            content = export_expenses(repo.list_expenses())
        if output is not None:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(content, encoding="utf-8")
            path = output
        else:
            path = write_export_file(content, directory=settings.export_dir)
    except _HANDLED_ERRORS as e:
        return _error(f"export failed: {e}")
    print(str(path))
    return 0


def cmd_import_csv(settings: Settings, csv_path: str) -> int:
    """Import a CSV and print a summary plus one line per row error.

    Returns non-zero only when nothing could be processed successfully
    (unreadable or empty file, or every row invalid).
    """

    from .csv_codec import import_csv_file

    try:
        with _repository(settings) as repo:
            result = import_csv_file(repo, csv_path)
    except _HANDLED_ERRORS as e:
        return _error(f"import failed: {e}")

    print(
        f"Imported {result.imported}, skipped {result.duplicates_skipped} duplicates, "
        f"{result.invalid_rows} invalid rows."
    )
    for message in result.errors:
        print(message, file=sys.stderr)
    if result.has_errors and result.imported == 0 and result.duplicates_skipped == 0:
        return 1
    return 0


_REPORT_SUFFIXES = {"json": "json", "spreadsheet": "csv", "text": "txt"}


def cmd_export_report(
    settings: Settings, *, fmt: str = "text", output: Path | None = None
) -> int:
    from .csv_codec import write_export_file
    from .reports import export_expenses_json, export_spreadsheet_csv, render_text_report

    if fmt not in _REPORT_SUFFIXES:
        return _error(f"Unknown report format '{fmt}' (expected json, spreadsheet, or text)")

    try:
        with _repository(settings) as repo:
            expenses = repo.list_expenses()
            if fmt == "json":
                content = export_expenses_json(expenses)
            elif fmt == "spreadsheet":
                content = export_spreadsheet_csv(expenses)
            else:
                content = render_text_report(expenses)
        if output is not None:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(content, encoding="utf-8")
            path = output
        else:
            path = write_export_file(
                content, directory=settings.export_dir, suffix=_REPORT_SUFFIXES[fmt]
            )
    except _HANDLED_ERRORS as e:
        return _error(f"export failed: {e}")
    print(str(path))
    return 0


def cmd_demo_data(settings: Settings, *, remove: bool = False) -> int:
    """Insert (or remove) demo expenses and record demo mode in preferences."""

    try:
        with _repository(settings) as repo:
            if remove:
                count = remove_demo_data(repo)
                message = f"Removed {count} demo expenses."
            else:
                count = insert_demo_data(repo)
                if count == 0:
                    return _error("no categories found; run 'init' first")
                message = f"Demo data: {count} expenses."
    except _HANDLED_ERRORS as e:
        return _error(str(e))

    prefs = load_preferences(settings.preferences_path)
    save_preferences(settings.preferences_path, prefs.model_copy(update={"demo_mode": not remove}))
    print(message)
    return 0


def cmd_set_filter(
    settings: Settings,
    *,
    range_name: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    category_name: str | None = None,
    search: str | None = None,
    time_range: str | None = None,
    clear: bool = False,
) -> int:
    """Update the saved filter used by ``list-expenses`` and ``dashboard``."""

    from dataclasses import replace

    prefs = load_preferences(settings.preferences_path)
    current = ExpenseFilter() if clear else prefs.to_expense_filter()

    if range_name is not None:
        selector = DateRangeFilter.parse(range_name)
        if selector is DateRangeFilter.CUSTOM:
            if start is None or end is None:
                return _error("custom range requires --start and --end")
            if start > end:
                return _error("--start must not be after --end")
            current = replace(current, date_filter=selector, custom_start=start, custom_end=end)
        else:
            current = replace(current, date_filter=selector, custom_start=None, custom_end=None)
    if category_name is not None:
        current = replace(current, category_name=category_name or None)
    if search is not None:
        current = replace(current, search_text=search)

    updated = prefs.with_filter(current)
    if time_range is not None:
        try:
            updated = updated.model_copy(
                update={"dashboard_time_range": DashboardTimeRange(time_range)}
            )
        except ValueError:
            return _error(f"Unknown time range '{time_range}' (expected 6M or 12M)")

    try:
        save_preferences(settings.preferences_path, updated)
    except OSError as e:
        return _error(f"failed to save preferences: {e}")
    print(current.describe() or "No filters active.")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Track expenses, categories, and monthly budgets in a local database. "
        "Loads DATABASE_URL and EXPENSE_TRACKER_* settings from a local .env."
    ),
)

DATE_FORMATS = ["%Y-%m-%d"]
MONTH_FORMATS = ["%Y-%m", "%Y-%m-%d"]


def _settings(ctx: typer.Context) -> Settings:
    settings = ctx.obj
    assert isinstance(settings, Settings)  # set by the root callback
    return settings


def _exit(code: int) -> None:
    if code:
        raise typer.Exit(code)


@app.command("init")
def init_cmd(ctx: typer.Context) -> None:
    """Create default categories on first run."""

    _exit(cmd_init(_settings(ctx)))


@app.command("add-category")
def add_category_cmd(
    ctx: typer.Context,
    name: str,
    *,
    color: str = typer.Option(DEFAULT_COLOR.value, help="Palette color tag (e.g. green)."),
    symbol: str = typer.Option(DEFAULT_SYMBOL, help="Icon symbol name."),
) -> None:
    _exit(cmd_add_category(_settings(ctx), name, color=color, symbol=symbol))


@app.command("delete-category")
def delete_category_cmd(ctx: typer.Context, name: str) -> None:
    """Delete a category, moving its expenses to Uncategorized."""

    _exit(cmd_delete_category(_settings(ctx), name))


@app.command("categories")
def categories_cmd(ctx: typer.Context) -> None:
    _exit(cmd_list_categories(_settings(ctx)))


@app.command("add-expense")
def add_expense_cmd(
    ctx: typer.Context,
    amount: str,
    *,
    category: str | None = typer.Option(None, help="Category name (default Uncategorized)."),
    date: Annotated[
        datetime | None, typer.Option(formats=DATE_FORMATS, help="Expense date (YYYY-MM-DD).")
    ] = None,
    notes: str | None = typer.Option(None, help="Free-text notes."),
) -> None:
    _exit(cmd_add_expense(_settings(ctx), amount, category_name=category, when=date, notes=notes))


@app.command("list-expenses")
def list_expenses_cmd(
    ctx: typer.Context,
    *,
    range_name: str | None = typer.Option(
        None, "--range", help="Date range (e.g. this_month, last_7_days)."
    ),
    category: str | None = typer.Option(None, help="Only this category."),
    search: str | None = typer.Option(None, help="Substring of notes or category."),
    all_: bool = typer.Option(False, "--all", help="Ignore the saved filter."),
) -> None:
    _exit(
        cmd_list_expenses(
            _settings(ctx),
            range_name=range_name,
            category_name=category,
            search=search,
            ignore_saved=all_,
        )
    )


@app.command("add-budget")
def add_budget_cmd(
    ctx: typer.Context,
    category: str,
    limit: str,
    *,
    month: Annotated[
        datetime | None, typer.Option(formats=MONTH_FORMATS, help="Budget month (YYYY-MM).")
    ] = None,
    notes: str | None = typer.Option(None, help="Free-text notes."),
) -> None:
    _exit(cmd_add_budget(_settings(ctx), category, limit, month=month, notes=notes))


@app.command("budgets")
def budgets_cmd(
    ctx: typer.Context,
    *,
    month: Annotated[
        datetime | None, typer.Option(formats=MONTH_FORMATS, help="Month to show (YYYY-MM).")
    ] = None,
) -> None:
    _exit(cmd_budgets(_settings(ctx), month=month))


@app.command("dashboard")
def dashboard_cmd(
    ctx: typer.Context,
    *,
    time_range: str | None = typer.Option(None, "--time-range", help="Trend window: 6M or 12M."),
) -> None:
    _exit(cmd_dashboard(_settings(ctx), time_range=time_range))


@app.command("export-csv")
def export_csv_cmd(
    ctx: typer.Context,
    *,
    output: Path | None = typer.Option(None, help="Destination file (default: export dir)."),
) -> None:
    _exit(cmd_export_csv(_settings(ctx), output=output))


@app.command("import-csv")
def import_csv_cmd(ctx: typer.Context, csv_path: Path) -> None:
    _exit(cmd_import_csv(_settings(ctx), str(csv_path)))


@app.command("export-report")
def export_report_cmd(
    ctx: typer.Context,
    *,
    fmt: str = typer.Option("text", "--format", help="json, spreadsheet, or text."),
    output: Path | None = typer.Option(None, help="Destination file (default: export dir)."),
) -> None:
    _exit(cmd_export_report(_settings(ctx), fmt=fmt, output=output))


@app.command("demo-data")
def demo_data_cmd(
    ctx: typer.Context,
    *,
    remove: bool = typer.Option(False, help="Remove demo expenses instead of adding them."),
) -> None:
    _exit(cmd_demo_data(_settings(ctx), remove=remove))


@app.command("set-filter")
def set_filter_cmd(
    ctx: typer.Context,
    *,
    range_name: str | None = typer.Option(None, "--range", help="Date range selector."),
    start: Annotated[
        datetime | None, typer.Option(formats=DATE_FORMATS, help="Custom range start.")
    ] = None,
    end: Annotated[
        datetime | None, typer.Option(formats=DATE_FORMATS, help="Custom range end.")
    ] = None,
    category: str | None = typer.Option(None, help="Category name; empty string clears."),
    search: str | None = typer.Option(None, help="Search text; empty string clears."),
    time_range: str | None = typer.Option(None, "--time-range", help="Dashboard window."),
    clear: bool = typer.Option(False, help="Reset the filter before applying options."),
) -> None:
    _exit(
        cmd_set_filter(
            _settings(ctx),
            range_name=range_name,
            start=start,
            end=end,
            category_name=category,
            search=search,
            time_range=time_range,
            clear=clear,
        )
    )


@app.callback()
def _root(
    ctx: typer.Context,
    *,
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var, then a local SQLite file)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables), configures logging, and makes sure a
    SQLite database has its schema before any subcommand runs.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    settings = load_settings(database_url=database_url)

    # Central logging setup so child loggers inherit configuration
    configure_logging(settings.log_level)

    try:
        prepare_database(settings)
    except (SQLAlchemyError, OSError) as e:
        _error(f"failed to open database: {e}")
        raise typer.Exit(1) from e
    ctx.obj = settings


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m expense_tracker.cli`
    app()
