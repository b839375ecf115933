from __future__ import annotations

import json
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from expense_db.models.tracker import Category, Expense

from expense_tracker.reports import (
    SPREADSHEET_HEADER,
    export_expenses_json,
    export_spreadsheet_csv,
    render_text_report,
)

NOW = datetime(2025, 10, 20, 14, 30)


def _expenses(n: int) -> list[Expense]:
    food = Category(name="Food")
    return [
        Expense(
            amount=Decimal("10.00") + i,
            date=datetime(2025, 10, 1) + timedelta(days=i),
            notes=None if i % 2 else f"note {i}",
            category=food,
        )
        for i in range(n)
    ]


def test_json_export_is_sorted_and_stringly_typed() -> None:
    rent = Category(name="Rent")
    expense = Expense(amount=Decimal("1200"), date=datetime(2025, 10, 1), category=rent)

    payload = json.loads(export_expenses_json([expense]))

    assert payload == [
        {"amount": "1200.00", "category": "Rent", "date": "2025-10-01", "notes": None}
    ]
    assert json.loads(export_expenses_json([])) == []


def test_spreadsheet_export_escapes_fields() -> None:
    bills = Category(name="Bills, Utilities")
    expense = Expense(
        amount=Decimal("80.15"), date=datetime(2025, 9, 3), notes='Power "Sept"', category=bills
    )

    lines = export_spreadsheet_csv([expense]).splitlines()

    assert lines == [SPREADSHEET_HEADER, '2025-09-03,80.15,"Bills, Utilities","Power ""Sept"""']


def test_text_report_paginates_and_totals() -> None:
    expenses = _expenses(20)

    report = render_text_report(expenses, rows_per_page=15, now=NOW)

    assert report.startswith("Expense Report\nGenerated: Oct 20, 2025\n")
    assert report.count("Expense Report") == 2
    assert "Page 1 of 2" in report
    assert "Page 2 of 2" in report
    # 20 rows of 10..29 dollars
    assert "Total: $390.00 (20 expenses)" in report
    first_page, second_page = report.split("\f")
    assert first_page.count("2025-10-") == 15
    assert second_page.count("2025-10-") == 5


def test_text_report_uses_dash_for_missing_notes() -> None:
    report = render_text_report(_expenses(2), now=NOW)
    rows = [line for line in report.splitlines() if line.startswith("2025-")]

    assert rows[0].endswith("note 0")
    assert rows[1].endswith("-")
    assert "$11.00" in rows[1]


def test_text_report_for_no_expenses() -> None:
    report = render_text_report([], now=NOW)

    assert "No expenses." in report
    assert "Page 1 of 1" in report
    assert "Total: $0.00 (0 expenses)" in report


def test_text_report_rejects_bad_page_size() -> None:
    with pytest.raises(ValueError):
        render_text_report([], rows_per_page=0)
