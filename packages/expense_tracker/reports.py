"""Alternative export formats: JSON, spreadsheet CSV, and a paginated text report."""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from datetime import datetime
from decimal import Decimal

from expense_db.models.tracker import Expense

from .aggregation import total_amount
from .csv_codec import DATE_FORMAT, escape_csv_field, format_amount

SPREADSHEET_HEADER = "Date,Amount,Category,Notes"
REPORT_TITLE = "Expense Report"
ROWS_PER_PAGE = 15

_COLUMNS: tuple[tuple[str, int], ...] = (
    ("Date", 10),
    ("Amount", 12),
    ("Category", 20),
    ("Notes", 30),
)


def _expense_record(e: Expense) -> dict[str, str | None]:
    return {
        "date": f"{e.date:{DATE_FORMAT}}",
        "amount": format_amount(e.amount),
        "category": e.category.name,
        "notes": e.notes or None,
    }


def export_expenses_json(expenses: Iterable[Expense], *, indent: int = 2) -> str:
    """List of ``{date, amount, category, notes}`` objects; amounts as strings."""

    return json.dumps([_expense_record(e) for e in expenses], indent=indent, sort_keys=True)


def export_spreadsheet_csv(expenses: Iterable[Expense]) -> str:
    lines = [SPREADSHEET_HEADER]
    for e in expenses:
        lines.append(
            f"{e.date:{DATE_FORMAT}},{format_amount(e.amount)},"
            f"{escape_csv_field(e.category.name)},{escape_csv_field(e.notes or '')}"
        )
    return "\n".join(lines) + "\n"


def format_currency(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def _clip(text: str, width: int) -> str:
    # Single line; long values end with "..."
    flat = " ".join(text.split())
    return flat if len(flat) <= width else flat[: width - 3] + "..."


def _row(values: Sequence[str]) -> str:
    cells = []
    for (name, width), value in zip(_COLUMNS, values, strict=True):
        text = _clip(value, width)
        cells.append(text.rjust(width) if name == "Amount" else text.ljust(width))
    return "  ".join(cells).rstrip()


def render_text_report(
    expenses: Sequence[Expense],
    *,
    rows_per_page: int = ROWS_PER_PAGE,
    now: datetime | None = None,
) -> str:
    """Render a fixed-width table, ``rows_per_page`` expenses per page.

    Each page repeats the title block and column header and ends with a
    ``Page N of M`` footer. A grand total follows the last page. Missing notes
    print as ``-``.
    """

    if rows_per_page <= 0:
        raise ValueError(f"rows_per_page must be positive, got {rows_per_page}")

    generated = f"Generated: {(now or datetime.now()):%b %d, %Y}"
    header = _row([name for name, _ in _COLUMNS])
    rule = "-" * len(header)

    pages = [list(expenses[i : i + rows_per_page]) for i in range(0, len(expenses), rows_per_page)]
    if not pages:
        pages = [[]]

    out: list[str] = []
    for number, page in enumerate(pages, start=1):
        if number > 1:
            out.append("\f")
        out.extend([REPORT_TITLE, generated, "", header, rule])
        if not page:
            out.append("No expenses.")
        for e in page:
            out.append(
                _row(
                    [
                        f"{e.date:{DATE_FORMAT}}",
                        format_currency(e.amount),
                        e.category.name,
                        e.notes or "-",
                    ]
                )
            )
        out.extend(["", f"Page {number} of {len(pages)}"])

    out.extend(
        [
            "",
            f"Total: {format_currency(total_amount(expenses))} ({len(expenses)} expenses)",
        ]
    )
    return "\n".join(out) + "\n"


__all__ = [
    "SPREADSHEET_HEADER",
    "export_expenses_json",
    "export_spreadsheet_csv",
    "format_currency",
    "render_text_report",
]
