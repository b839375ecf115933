"""Category color and symbol tags.

Categories store their color and icon as free-text tags. Rendering code maps
them through :func:`color_for_tag` / :func:`symbol_for_tag`, which fall back to
``CategoryColor.BLUE`` and ``DEFAULT_SYMBOL`` for anything unrecognized.
"""

from __future__ import annotations

from enum import StrEnum


class CategoryColor(StrEnum):
    GREEN = "green"
    BLUE = "blue"
    ORANGE = "orange"
    PINK = "pink"
    RED = "red"
    PURPLE = "purple"
    TEAL = "teal"
    YELLOW = "yellow"
    INDIGO = "indigo"
    BROWN = "brown"
    GRAY = "gray"

    @property
    def hex(self) -> str:
        return _HEX[self]


_HEX: dict[CategoryColor, str] = {
    CategoryColor.GREEN: "#34C759",
    CategoryColor.BLUE: "#007AFF",
    CategoryColor.ORANGE: "#FF9500",
    CategoryColor.PINK: "#FF2D55",
    CategoryColor.RED: "#FF3B30",
    CategoryColor.PURPLE: "#AF52DE",
    CategoryColor.TEAL: "#30B0C7",
    CategoryColor.YELLOW: "#FFCC00",
    CategoryColor.INDIGO: "#5856D6",
    CategoryColor.BROWN: "#A2845E",
    CategoryColor.GRAY: "#8E8E93",
}

DEFAULT_COLOR = CategoryColor.BLUE
DEFAULT_SYMBOL = "tag.fill"
# Icon given to categories created on the fly by CSV import.
IMPORTED_CATEGORY_COLOR = CategoryColor.GRAY
IMPORTED_CATEGORY_SYMBOL = "square.grid.2x2.fill"

SUGGESTED_SYMBOLS: tuple[str, ...] = (
    "fork.knife",
    "car.fill",
    "popcorn.fill",
    "bag.fill",
    "creditcard.fill",
    "house.fill",
    "cart.fill",
    "fuelpump.fill",
    "dollarsign.circle.fill",
    "gift.fill",
    "stethoscope",
    "gamecontroller.fill",
    "wifi",
    "theatermasks.fill",
    "music.note",
    "book.fill",
    "airplane",
    "bicycle",
    "pawprint.fill",
    "leaf.fill",
    "hammer.fill",
    "paintbrush.fill",
    "wrench.fill",
    "lightbulb.fill",
    "camera.fill",
)

KNOWN_SYMBOLS: frozenset[str] = frozenset(
    SUGGESTED_SYMBOLS
    + (
        DEFAULT_SYMBOL,
        IMPORTED_CATEGORY_SYMBOL,
        "questionmark.circle.fill",
        "tv.fill",
        "doc.text.fill",
        "ellipsis.circle.fill",
    )
)


def color_for_tag(tag: str | None) -> CategoryColor:
    """Map a stored color tag to a palette entry (case-insensitive)."""

    if not tag:
        return DEFAULT_COLOR
    try:
        return CategoryColor(tag.strip().lower())
    except ValueError:
        return DEFAULT_COLOR


def symbol_for_tag(tag: str | None) -> str:
    if tag and tag.strip() in KNOWN_SYMBOLS:
        return tag.strip()
    return DEFAULT_SYMBOL


__all__ = [
    "CategoryColor",
    "DEFAULT_COLOR",
    "DEFAULT_SYMBOL",
    "IMPORTED_CATEGORY_COLOR",
    "IMPORTED_CATEGORY_SYMBOL",
    "KNOWN_SYMBOLS",
    "SUGGESTED_SYMBOLS",
    "color_for_tag",
    "symbol_for_tag",
]
