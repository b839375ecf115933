"""Category domain helpers and service operations.

Name uniqueness is case-insensitive and enforced here rather than in the
database. The ``"Uncategorized"`` sentinel always exists once the store is
initialized; deleting any other category moves its expenses onto it.

Exports
-------
- ``normalize_name(...)`` / ``validate_name(...)`` / ``is_name_taken(...)``:
  validation shared by the CLI and the service functions.
- ``create_category`` / ``update_category`` / ``delete_category``.
- ``ensure_uncategorized`` / ``seed_default_categories``: initialization.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from expense_db.models.tracker import Category

from .logging_setup import get_logger
from .palette import DEFAULT_COLOR, DEFAULT_SYMBOL
from .repository import Repository

logger = get_logger("expense_tracker.categories")

UNCATEGORIZED_NAME = "Uncategorized"
UNCATEGORIZED_COLOR = "gray"
UNCATEGORIZED_SYMBOL = "questionmark.circle.fill"

DEFAULT_CATEGORIES: tuple[tuple[str, str, str], ...] = (
    ("Food", "orange", "fork.knife"),
    ("Transportation", "blue", "car.fill"),
    ("Entertainment", "purple", "tv.fill"),
    ("Shopping", "pink", "bag.fill"),
    ("Bills", "red", "doc.text.fill"),
    ("Other", "gray", "ellipsis.circle.fill"),
)

MAX_NAME_LENGTH = 64


class CategoryError(ValueError):
    """Invalid, duplicate, or protected category operation."""


# ---------------------------
# Name normalization/validation
# ---------------------------


def normalize_name(name: str) -> str:
    """Return a trimmed, single-spaced representation of ``name``.

    Does not change case.
    """

    return " ".join(name.strip().split())


@dataclass(frozen=True, slots=True)
class NameValidation:
    ok: bool
    reason: str | None = None


def validate_name(name: str, *, max_len: int = MAX_NAME_LENGTH) -> NameValidation:
    n = normalize_name(name)
    if not n:
        return NameValidation(False, "Name cannot be empty")
    if len(n) > max_len:
        return NameValidation(False, f"Name must be at most {max_len} characters")
    return NameValidation(True, None)


def is_uncategorized(category: Category) -> bool:
    return category.name.strip().lower() == UNCATEGORIZED_NAME.lower()


def is_name_taken(
    existing: Iterable[Category],
    name: str,
    *,
    editing: Category | None = None,
) -> bool:
    """True when ``name`` collides (case-insensitively) with another category.

    When ``editing`` is given, that category's current name is not counted,
    so renaming a category to its own name (in any casing) is allowed.
    """

    wanted = normalize_name(name).lower()
    own = normalize_name(editing.name).lower() if editing is not None else None
    return any(
        normalize_name(c.name).lower() == wanted
        for c in existing
        if c is not editing and normalize_name(c.name).lower() != own
    )


def _checked_name(repo: Repository, name: str, *, editing: Category | None = None) -> str:
    v = validate_name(name)
    if not v.ok:
        raise CategoryError(f"Invalid category name: {v.reason}")
    n = normalize_name(name)
    if is_name_taken(repo.list_categories(), n, editing=editing):
        raise CategoryError("A category with this name already exists")
    return n


# ---------------------------
# Service operations
# ---------------------------


def create_category(
    repo: Repository,
    name: str,
    *,
    color: str = DEFAULT_COLOR.value,
    symbol_name: str = DEFAULT_SYMBOL,
) -> Category:
    """Create and insert a category; the caller saves.

    Raises ``CategoryError`` for empty, overlong, or duplicate names.
    """

    category = Category(
        name=_checked_name(repo, name),
        color=color,
        symbol_name=symbol_name,
    )
    repo.insert(category)
    logger.info("created category %r", category.name)
    return category


def update_category(
    repo: Repository,
    category: Category,
    *,
    name: str | None = None,
    color: str | None = None,
    symbol_name: str | None = None,
) -> Category:
    if name is not None:
        new_name = _checked_name(repo, name, editing=category)
        if is_uncategorized(category) and new_name.lower() != UNCATEGORIZED_NAME.lower():
            raise CategoryError(f"The {UNCATEGORIZED_NAME} category cannot be renamed")
        category.name = new_name
    if color is not None:
        category.color = color
    if symbol_name is not None:
        category.symbol_name = symbol_name
    return category


def ensure_uncategorized(repo: Repository) -> Category:
    """Return the sentinel category, inserting it when missing."""

    existing = repo.find_category(UNCATEGORIZED_NAME)
    if existing is not None:
        return existing
    sentinel = Category(
        name=UNCATEGORIZED_NAME,
        color=UNCATEGORIZED_COLOR,
        symbol_name=UNCATEGORIZED_SYMBOL,
    )
    repo.insert(sentinel)
    logger.info("created %s sentinel category", UNCATEGORIZED_NAME)
    return sentinel


def seed_default_categories(repo: Repository) -> int:
    """Insert the default categories into an empty store and save.

    Always ensures the sentinel exists. Returns the number of categories
    inserted (0 when categories were already present).
    """

    inserted = 0
    if not repo.list_categories():
        for name, color, symbol in DEFAULT_CATEGORIES:
            repo.insert(Category(name=name, color=color, symbol_name=symbol))
            inserted += 1
        logger.info("seeded %d default categories", inserted)
    if repo.find_category(UNCATEGORIZED_NAME) is None:
        ensure_uncategorized(repo)
        inserted += 1
    repo.save()
    return inserted


def can_delete(category: Category) -> bool:
    return not is_uncategorized(category)


def delete_category(repo: Repository, category: Category) -> int:
    """Reassign the category's expenses to the sentinel and delete it.

    Budgets of the category are deleted with it. Saves and returns the number
    of reassigned expenses. Raises ``CategoryError`` for the sentinel itself.
    """

    if not can_delete(category):
        raise CategoryError(f"The {UNCATEGORIZED_NAME} category cannot be deleted")

    sentinel = ensure_uncategorized(repo)
    moved = list(category.expenses)
    for expense in moved:
        expense.category = sentinel
    repo.delete(category)
    repo.save()
    logger.info(
        "deleted category %r; reassigned %d expenses to %s",
        category.name,
        len(moved),
        UNCATEGORIZED_NAME,
    )
    return len(moved)


__all__ = [
    "CategoryError",
    "DEFAULT_CATEGORIES",
    "NameValidation",
    "UNCATEGORIZED_NAME",
    "can_delete",
    "create_category",
    "delete_category",
    "ensure_uncategorized",
    "is_name_taken",
    "is_uncategorized",
    "normalize_name",
    "seed_default_categories",
    "update_category",
    "validate_name",
]
