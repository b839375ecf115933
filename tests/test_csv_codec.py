from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest
from expense_db.client import dispose_engine
from expense_db.models.tracker import Expense
from sqlalchemy.exc import OperationalError

from expense_tracker.csv_codec import (
    CSV_HEADER,
    ImportResult,
    escape_csv_field,
    export_expenses,
    import_csv,
    import_csv_file,
    iter_records,
    parse_amount,
    parse_csv_line,
    write_export_file,
)
from tests.helpers.db import add_category, add_expense, bootstrap_sqlite_db, repository


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return bootstrap_sqlite_db(tmp_path / "tracker.db")


def _rows(repo) -> list[tuple[str, Decimal, str, str | None]]:
    return sorted(
        (f"{e.date:%Y-%m-%d}", e.amount, e.category.name, e.notes)
        for e in repo.list_expenses()
    )


# ---- Field-level encoding ----------------------------------------------------


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("plain", "plain"),
        ("a,b", '"a,b"'),
        ('say "hi"', '"say ""hi"""'),
        ("two\nlines", '"two\nlines"'),
        ("", ""),
    ],
)
def test_escape_csv_field(raw: str, expected: str) -> None:
    assert escape_csv_field(raw) == expected


def test_parse_csv_line_handles_quotes() -> None:
    assert parse_csv_line('2025-10-01,12.50,Food,"Lunch, with ""Sam"""') == [
        "2025-10-01",
        "12.50",
        "Food",
        'Lunch, with "Sam"',
    ]
    assert parse_csv_line("a,,c,") == ["a", "", "c", ""]


def test_iter_records_skips_blank_lines_and_joins_quoted_newlines() -> None:
    content = 'h1,h2\n\n2025-01-01,1,A,"first\nsecond"\r\n2025-01-02,2,B,\n'

    records = list(iter_records(content))

    assert records == [
        (1, ["h1", "h2"]),
        (3, ["2025-01-01", "1", "A", "first\nsecond"]),
        (5, ["2025-01-02", "2", "B", ""]),
    ]


# ---- Export ------------------------------------------------------------------


def test_export_of_no_expenses_is_header_only() -> None:
    assert export_expenses([]) == CSV_HEADER + "\n"


def test_export_formats_rows(db_url: str) -> None:
    with repository(db_url) as repo:
        food = add_category(repo, "Food")
        add_expense(repo, food, "12.50", datetime(2025, 10, 1, 18, 30), notes='Pizza, "large"')
        add_expense(repo, food, "3", datetime(2025, 10, 2))

        content = export_expenses(repo.list_expenses())

    assert content.splitlines() == [
        CSV_HEADER,
        "2025-10-02,3.00,Food,",
        '2025-10-01,12.50,Food,"Pizza, ""large"""',
    ]


def test_write_export_file_uses_timestamped_name(tmp_path: Path) -> None:
    path = write_export_file(
        CSV_HEADER + "\n", directory=tmp_path / "out", now=datetime(2025, 10, 20, 9, 5)
    )

    assert path.name == "expenses-2025-10-20_09-05.csv"
    assert path.read_text(encoding="utf-8") == CSV_HEADER + "\n"


# ---- Import ------------------------------------------------------------------


def test_round_trip_into_empty_store(tmp_path: Path) -> None:
    source_url = bootstrap_sqlite_db(tmp_path / "source.db")
    with repository(source_url) as repo:
        food = add_category(repo, "Food")
        travel = add_category(repo, "Travel, Abroad")
        add_expense(repo, food, "12.50", datetime(2025, 10, 1), notes="Lunch")
        add_expense(repo, food, "0.99", datetime(2025, 10, 2), notes='He said "hi", then left')
        add_expense(repo, travel, "1234.56", datetime(2024, 2, 29), notes="Flight\nand hotel")
        add_expense(repo, travel, "40", datetime(2025, 1, 15))
        content = export_expenses(repo.list_expenses())
        expected = _rows(repo)

    dispose_engine()
    target_url = bootstrap_sqlite_db(tmp_path / "target.db")
    with repository(target_url) as repo:
        result = import_csv(repo, content)
        imported = _rows(repo)

    assert result == ImportResult(imported=4)
    assert imported == expected


def test_reimport_into_same_store_skips_everything(db_url: str) -> None:
    with repository(db_url) as repo:
        food = add_category(repo, "Food")
        add_expense(repo, food, "12.50", datetime(2025, 10, 1), notes="Lunch")
        add_expense(repo, food, "7.00", datetime(2025, 10, 3))
        content = export_expenses(repo.list_expenses())

        result = import_csv(repo, content)

        assert repo.count_expenses() == 2

    assert result.imported == 0
    assert result.duplicates_skipped == 2
    assert result.total_processed == 2
    assert not result.has_errors


def test_duplicate_detection_normalizes_case_and_whitespace(db_url: str) -> None:
    with repository(db_url) as repo:
        food = add_category(repo, "Food")
        add_expense(repo, food, "12.50", datetime(2025, 10, 1, 20, 15), notes="Lunch")

        result = import_csv(
            repo,
            "date,amount,category,notes\n"
            "2025-10-01,12.5,FOOD,  lunch \n"
            "2025-10-01,12.50,Food,Dinner\n",
        )

    assert result.duplicates_skipped == 1
    assert result.imported == 1


def test_rows_duplicated_within_one_file_are_all_imported(db_url: str) -> None:
    with repository(db_url) as repo:
        add_category(repo, "Food")

        result = import_csv(
            repo,
            "date,amount,category,notes\n2025-10-01,5.00,Food,Coffee\n2025-10-01,5.00,Food,Coffee\n",
        )

        assert repo.count_expenses() == 2

    assert result.imported == 2
    assert result.duplicates_skipped == 0


def test_invalid_rows_are_reported_with_line_numbers(db_url: str) -> None:
    content = "\n".join(
        [
            "date,amount,category,notes",
            "2025-10-01,12.50,Food,ok",
            "2025-13-45,10.00,Food,bad date",
            "2025-10-02,-5,Food,negative",
            "2025-10-03,abc,Food,not a number",
            "2025-10-04,0,Food,zero",
            "2025-10-05,12.00",
            "",
        ]
    )

    with repository(db_url) as repo:
        add_category(repo, "Food")
        result = import_csv(repo, content)

    assert result.imported == 1
    assert result.invalid_rows == 5
    assert result.errors == (
        "Line 3: Invalid date format '2025-13-45'",
        "Line 4: Invalid amount '-5'",
        "Line 5: Invalid amount 'abc'",
        "Line 6: Invalid amount '0'",
        "Line 7: Not enough fields",
    )
    assert result.total_processed == 6


@pytest.mark.parametrize("content", ["", "   \n\n", "date,amount,category,notes\n"])
def test_empty_or_header_only_input(db_url: str, content: str) -> None:
    with repository(db_url) as repo:
        result = import_csv(repo, content)

    assert result == ImportResult(invalid_rows=1, errors=("Empty or invalid CSV file",))


def test_unknown_categories_are_created_once(db_url: str) -> None:
    with repository(db_url) as repo:
        add_category(repo, "Food")

        result = import_csv(
            repo,
            "date,amount,category,notes\n"
            "2025-10-01,20.00, Hobbies ,Paint\n"
            "2025-10-02,30.00,hobbies,Brushes\n"
            "2025-10-03,5.00,food,\n",
        )

        categories = {c.name: c for c in repo.list_categories()}
        hobbies = categories["Hobbies"]

        assert result.imported == 3
        assert set(categories) == {"Food", "Hobbies"}
        assert hobbies.color == "gray"
        assert hobbies.symbol_name == "square.grid.2x2.fill"
        assert len(hobbies.expenses) == 2
        assert [e.notes for e in categories["Food"].expenses] == [None]


def test_blank_category_goes_to_uncategorized(db_url: str) -> None:
    with repository(db_url) as repo:
        result = import_csv(repo, "date,amount,category,notes\n2025-10-01,4.00,,misc\n")
        expense = repo.fetch(Expense)[0]

    assert result.imported == 1
    assert expense.category.name == "Uncategorized"


def test_import_csv_file_reports_read_failures(db_url: str, tmp_path: Path) -> None:
    with repository(db_url) as repo:
        result = import_csv_file(repo, tmp_path / "missing.csv")

    assert result.imported == 0
    assert result.invalid_rows == 1
    assert len(result.errors) == 1
    assert result.errors[0].startswith("Failed to read file: ")


def test_import_csv_file_reads_utf8(db_url: str, tmp_path: Path) -> None:
    path = tmp_path / "in.csv"
    path.write_text("date,amount,category,notes\n2025-10-01,3.20,Café,Crème brûlée\n", "utf-8")

    with repository(db_url) as repo:
        result = import_csv_file(repo, path)
        expense = repo.fetch(Expense)[0]

    assert result.imported == 1
    assert expense.category.name == "Café"
    assert expense.notes == "Crème brûlée"


def test_stray_quote_only_affects_its_own_row(db_url: str) -> None:
    content = (
        "date,amount,category,notes\n"
        '2025-10-01,5.00,Food,6" ruler\n'
        "2025-10-02,6.00,Food,lunch\n"
        "2025-10-03,7.00,Food,dinner\n"
    )

    with repository(db_url) as repo:
        add_category(repo, "Food")
        result = import_csv(repo, content)
        rows = _rows(repo)

    assert result == ImportResult(imported=3)
    assert rows == [
        ("2025-10-01", Decimal("5.00"), "Food", "6 ruler"),
        ("2025-10-02", Decimal("6.00"), "Food", "lunch"),
        ("2025-10-03", Decimal("7.00"), "Food", "dinner"),
    ]


def test_unterminated_quoted_field_marks_remaining_lines_invalid(db_url: str) -> None:
    content = (
        "date,amount,category,notes\n"
        "2025-10-01,5.00,Food,ok\n"
        '2025-10-02,6.00,Food,"never closed\n'
        "2025-10-03,7.00,Food,dinner\n"
    )

    with repository(db_url) as repo:
        add_category(repo, "Food")
        result = import_csv(repo, content)

        assert repo.count_expenses() == 1

    assert result.imported == 1
    assert result.invalid_rows == 2
    assert result.errors == (
        "Line 3: Unterminated quoted field",
        "Line 4: Unterminated quoted field",
    )


def test_iter_records_keeps_original_line_breaks_inside_quotes() -> None:
    content = 'h\r\n2025-01-01,1,A,"a\r\nb"\r\n2025-01-02,2,B,"c\rd"\n'

    assert list(iter_records(content)) == [
        (1, ["h"]),
        (2, ["2025-01-01", "1", "A", "a\r\nb"]),
        (4, ["2025-01-02", "2", "B", "c\rd"]),
    ]


def test_carriage_returns_in_notes_survive_export_and_import(tmp_path: Path) -> None:
    source_url = bootstrap_sqlite_db(tmp_path / "source.db")
    with repository(source_url) as repo:
        food = add_category(repo, "Food")
        add_expense(repo, food, "1.00", datetime(2025, 10, 1), notes="a\r\nb")
        add_expense(repo, food, "2.00", datetime(2025, 10, 2), notes="c\rd")
        content = export_expenses(repo.list_expenses())

    dispose_engine()
    target_url = bootstrap_sqlite_db(tmp_path / "target.db")
    with repository(target_url) as repo:
        result = import_csv(repo, content)
        notes = [n for *_, n in _rows(repo)]

    assert result == ImportResult(imported=2)
    assert notes == ["a\r\nb", "c\rd"]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("12.5", Decimal("12.50")),
        ("10.000", Decimal("10.00")),
        (" 3 ", Decimal("3.00")),
        ("10.005", None),
        ("0.001", None),
        ("-1", None),
        ("NaN", None),
        ("Infinity", None),
        ("1e40", None),
    ],
)
def test_parse_amount_requires_whole_cents(raw: str, expected: Decimal | None) -> None:
    assert parse_amount(raw) == expected


def test_sub_cent_amounts_are_invalid_instead_of_rounded(db_url: str) -> None:
    with repository(db_url) as repo:
        add_category(repo, "Food")
        result = import_csv(repo, "date,amount,category,notes\n2025-10-01,10.005,Food,x\n")

        assert repo.count_expenses() == 0

    assert result.invalid_rows == 1
    assert result.errors == ("Line 2: Invalid amount '10.005'",)


def test_reimporting_trailing_zero_amounts_is_detected_as_duplicate(db_url: str) -> None:
    content = "date,amount,category,notes\n2025-10-01,10.000,Food,x\n"

    with repository(db_url) as repo:
        add_category(repo, "Food")
        first = import_csv(repo, content)
        second = import_csv(repo, content)
        amounts = [e.amount for e in repo.list_expenses()]

    assert first.imported == 1
    assert second == ImportResult(duplicates_skipped=1)
    assert amounts == [Decimal("10.00")]


def test_save_failure_is_reported_in_the_summary(
    db_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _failing_commit() -> None:
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    with repository(db_url) as repo:
        add_category(repo, "Food")
        monkeypatch.setattr(repo.session, "commit", _failing_commit)

        result = import_csv(
            repo,
            "date,amount,category,notes\n2025-10-01,5.00,Food,a\n2025-10-02,bad,Food,b\n",
        )

        monkeypatch.undo()
        assert repo.count_expenses() == 0

    assert result.imported == 1
    assert result.invalid_rows == 1
    assert result.errors == (
        "Line 3: Invalid amount 'bad'",
        "Failed to save imported expenses: database is locked",
    )
