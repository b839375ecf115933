"""CSV export and import of expenses.

Format
------
Header ``date,amount,category,notes`` followed by one row per expense:

- ``date``: ``YYYY-MM-DD``
- ``amount``: exact decimal text (e.g. ``12.50``)
- ``category``: category name
- ``notes``: free text; empty when absent

Fields containing a comma, a double quote, CR, or LF are wrapped in double
quotes with embedded quotes doubled. A field that opens with a quote may span
lines, keeping its original line breaks.

Import never aborts on a bad row. Each data row is either imported, skipped as
a duplicate of an expense that existed before the import started, or counted
as invalid with a ``"Line N: ..."`` message (N is the 1-based line in the
file, header included).
"""

from __future__ import annotations

import re
import tempfile
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from os import PathLike
from pathlib import Path

from expense_db.models.tracker import Category, Expense

from .categories import UNCATEGORIZED_NAME, ensure_uncategorized, normalize_name
from .logging_setup import get_logger
from .palette import IMPORTED_CATEGORY_COLOR, IMPORTED_CATEGORY_SYMBOL
from .repository import PersistenceError, Repository

logger = get_logger("expense_tracker.csv_codec")

CSV_HEADER = "date,amount,category,notes"
DATE_FORMAT = "%Y-%m-%d"
EXPORT_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M"
CENTS = Decimal("0.01")

_NEEDS_QUOTES = re.compile(r'[,"\r\n]')
_LINE_BREAK = re.compile(r"(\r\n|\r|\n)")


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def escape_csv_field(value: str) -> str:
    if _NEEDS_QUOTES.search(value):
        return '"' + value.replace('"', '""') + '"'
    return value


def format_amount(amount: Decimal) -> str:
    """Exact decimal text with at least two fractional digits (``3`` -> ``3.00``)."""

    if amount.as_tuple().exponent > -2:
        amount = amount.quantize(CENTS)
    return str(amount)


def export_expenses(expenses: Iterable[Expense]) -> str:
    """Serialize expenses; an empty input yields a header-only document."""

    lines = [CSV_HEADER]
    for e in expenses:
        lines.append(
            ",".join(
                (
                    f"{e.date:{DATE_FORMAT}}",
                    format_amount(e.amount),
                    escape_csv_field(e.category.name),
                    escape_csv_field(e.notes or ""),
                )
            )
        )
    return "\n".join(lines) + "\n"


def export_filename(*, now: datetime | None = None, suffix: str = "csv") -> str:
    return f"expenses-{(now or datetime.now()):{EXPORT_TIMESTAMP_FORMAT}}.{suffix}"


def write_export_file(
    content: str | bytes,
    *,
    directory: str | PathLike[str] | None = None,
    now: datetime | None = None,
    suffix: str = "csv",
) -> Path:
    """Write ``content`` to ``expenses-<YYYY-MM-DD_HH-MM>.<suffix>``.

    ``directory`` defaults to the system temporary directory. ``OSError``
    propagates to the caller.
    """

    target_dir = Path(directory) if directory is not None else Path(tempfile.gettempdir())
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / export_filename(now=now, suffix=suffix)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    logger.info("wrote export file %s", path)
    return path


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_csv_line(line: str) -> list[str]:
    """Split one record into fields.

    A double quote toggles "inside quotes"; inside quotes, a doubled quote is
    a literal quote and commas do not separate fields.
    """

    fields: list[str] = []
    current: list[str] = []
    inside_quotes = False
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == '"':
            if inside_quotes and i + 1 < n and line[i + 1] == '"':
                current.append('"')
                i += 2
                continue
            inside_quotes = not inside_quotes
        elif ch == "," and not inside_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    fields.append("".join(current))
    return fields


def _ends_inside_quoted_field(text: str) -> bool:
    """True when ``text`` stops inside a field that opened with a quote.

    Only a quote at the start of a field opens a quoted section; a stray
    quote elsewhere never carries the record onto the next line.
    """

    quoted = False
    at_field_start = True
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if quoted:
            if ch == '"':
                if i + 1 < n and text[i + 1] == '"':
                    i += 2
                    continue
                quoted = False
        elif ch == ",":
            at_field_start = True
            i += 1
            continue
        elif ch == '"' and at_field_start:
            quoted = True
        at_field_start = False
        i += 1
    return quoted


def iter_records(content: str) -> Iterator[tuple[int, list[str] | None]]:
    """Yield ``(line_number, fields)`` for each non-blank record.

    A record continues onto the next physical line only while a quoted field
    is open; the original line break is kept inside the field.
    ``line_number`` is the 1-based line on which the record starts. A quoted
    field still open at end of input yields ``(n, None)`` for every line it
    covers.
    """

    parts = _LINE_BREAK.split(content)
    lines = parts[0::2]
    breaks = parts[1::2]
    if len(lines) > 1 and not lines[-1]:
        lines.pop()  # content ended with a line break
    else:
        breaks.append("")

    pending: str | None = None
    start = 0
    for number, (line, brk) in enumerate(zip(lines, breaks, strict=True), start=1):
        if pending is None:
            if not line.strip():
                continue
            start = number
            pending = line
        else:
            pending += line
        if _ends_inside_quoted_field(pending):
            pending += brk
            continue
        yield start, parse_csv_line(pending)
        pending = None
    if pending is not None:
        for number in range(start, len(lines) + 1):
            yield number, None


def parse_date(raw: str) -> datetime | None:
    try:
        return datetime.strptime(raw.strip(), DATE_FORMAT)
    except ValueError:
        return None


def parse_amount(raw: str) -> Decimal | None:
    """Return a positive amount in whole cents, or ``None``.

    Amounts that would lose precision when stored (more than two fractional
    digits, e.g. ``10.005``) are rejected rather than rounded.
    """

    try:
        amount = Decimal(raw.strip())
        if not amount.is_finite() or amount <= 0:
            return None
        cents = amount.quantize(CENTS)
    except (InvalidOperation, ValueError):
        return None
    if cents != amount:
        return None
    return cents


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ImportResult:
    imported: int = 0
    duplicates_skipped: int = 0
    invalid_rows: int = 0
    errors: tuple[str, ...] = field(default_factory=tuple)

    @property
    def total_processed(self) -> int:
        return self.imported + self.duplicates_skipped + self.invalid_rows

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


DuplicateKey = tuple[date, Decimal, str, str]


def _normalize_notes(notes: str | None) -> str:
    return (notes or "").strip().lower()


def duplicate_key(
    when: datetime, amount: Decimal, category_name: str, notes: str | None
) -> DuplicateKey:
    """Identity used for duplicate detection: day, amount, category, notes."""

    return (when.date(), amount, category_name.strip().lower(), _normalize_notes(notes))


class _CategoryResolver:
    """Case-insensitive get-or-create over the store's categories."""

    def __init__(self, repo: Repository) -> None:
        self._repo = repo
        self._by_key: dict[str, Category] = {}
        for c in repo.list_categories():
            self._by_key.setdefault(c.name.strip().lower(), c)

    def resolve(self, name: str) -> Category:
        key = name.lower()
        found = self._by_key.get(key)
        if found is not None:
            return found
        if key == UNCATEGORIZED_NAME.lower():
            category = ensure_uncategorized(self._repo)
        else:
            category = Category(
                name=name,
                color=IMPORTED_CATEGORY_COLOR.value,
                symbol_name=IMPORTED_CATEGORY_SYMBOL,
            )
            self._repo.insert(category)
            logger.info("created category %r during import", name)
        self._by_key[key] = category
        return category


def import_csv(repo: Repository, content: str) -> ImportResult:
    """Import expenses from CSV text into ``repo`` and save once at the end."""

    records = list(iter_records(content))
    if len(records) < 2:
        return ImportResult(invalid_rows=1, errors=("Empty or invalid CSV file",))

    existing: set[DuplicateKey] = {
        duplicate_key(e.date, e.amount, e.category.name, e.notes) for e in repo.list_expenses()
    }
    categories = _CategoryResolver(repo)

    imported = 0
    duplicates = 0
    invalid = 0
    errors: list[str] = []

    # First record is the header, skipped unconditionally.
    for line_number, fields in records[1:]:
        if fields is None:
            invalid += 1
            errors.append(f"Line {line_number}: Unterminated quoted field")
            continue

        if len(fields) < 3:
            invalid += 1
            errors.append(f"Line {line_number}: Not enough fields")
            continue

        when = parse_date(fields[0])
        if when is None:
            invalid += 1
            errors.append(f"Line {line_number}: Invalid date format '{fields[0]}'")
            continue

        amount = parse_amount(fields[1])
        if amount is None:
            invalid += 1
            errors.append(f"Line {line_number}: Invalid amount '{fields[1]}'")
            continue

        category_name = normalize_name(fields[2]) or UNCATEGORIZED_NAME
        notes = fields[3] if len(fields) > 3 and fields[3] else None

        if duplicate_key(when, amount, category_name, notes) in existing:
            duplicates += 1
            continue

        repo.insert(
            Expense(
                amount=amount,
                date=when,
                notes=notes,
                category=categories.resolve(category_name),
            )
        )
        imported += 1

    try:
        repo.save()
    except PersistenceError as e:
        errors.append(f"Failed to save imported expenses: {e}")

    logger.info(
        "csv import: imported=%d duplicates=%d invalid=%d", imported, duplicates, invalid
    )
    return ImportResult(
        imported=imported,
        duplicates_skipped=duplicates,
        invalid_rows=invalid,
        errors=tuple(errors),
    )


def import_csv_file(repo: Repository, path: str | PathLike[str]) -> ImportResult:
    """Read ``path`` as UTF-8 and import it; read failures become one invalid row."""

    try:
        content = Path(path).read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        return ImportResult(invalid_rows=1, errors=(f"Failed to read file: {e}",))
    return import_csv(repo, content)


__all__ = [
    "CSV_HEADER",
    "ImportResult",
    "duplicate_key",
    "escape_csv_field",
    "export_expenses",
    "export_filename",
    "format_amount",
    "import_csv",
    "import_csv_file",
    "iter_records",
    "parse_amount",
    "parse_csv_line",
    "parse_date",
    "write_export_file",
]
