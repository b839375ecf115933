"""Named date-range filters and their resolution to concrete intervals.

Every interval produced here is half-open: ``start <= ts < stop`` where
``stop`` is the first instant of the next day/month. ``DateRange.end`` exposes
the last whole second before ``stop`` (``23:59:59``) for display and for
callers that think in closed "end of day" terms; membership never uses it.

All functions are pure. ``now`` defaults to ``datetime.now()`` (naive local
time) and can be passed explicitly to pin results.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import StrEnum


class DateRangeFilter(StrEnum):
    ALL_TIME = "all_time"
    THIS_MONTH = "this_month"
    LAST_MONTH = "last_month"
    LAST_7_DAYS = "last_7_days"
    LAST_30_DAYS = "last_30_days"
    YEAR_TO_DATE = "year_to_date"
    CUSTOM = "custom"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def short_display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def default(cls) -> DateRangeFilter:
        return cls.ALL_TIME

    @classmethod
    def parse(cls, value: str | DateRangeFilter | None) -> DateRangeFilter:
        """Parse a stored selector; unknown or empty values map to the default.

        Accepts the enum value (``"last_7_days"``), the member name
        (``"LAST_7_DAYS"``), or the display name (``"Last 7 Days"``).
        """

        if isinstance(value, DateRangeFilter):
            return value
        if not value:
            return cls.default()
        key = value.strip()
        for member in cls:
            if key.lower() in (member.value, member.name.lower(), member.display_name.lower()):
                return member
        return cls.default()


_DISPLAY_NAMES: dict[DateRangeFilter, str] = {
    DateRangeFilter.ALL_TIME: "All Time",
    DateRangeFilter.THIS_MONTH: "This Month",
    DateRangeFilter.LAST_MONTH: "Last Month",
    DateRangeFilter.LAST_7_DAYS: "Last 7 Days",
    DateRangeFilter.LAST_30_DAYS: "Last 30 Days",
    DateRangeFilter.YEAR_TO_DATE: "Year to Date",
    DateRangeFilter.CUSTOM: "Custom",
}

# Filters with an "equivalent prior period" for period-over-period trends.
_ROLLING_DAYS: dict[DateRangeFilter, int] = {
    DateRangeFilter.LAST_7_DAYS: 7,
    DateRangeFilter.LAST_30_DAYS: 30,
}


@dataclass(frozen=True, slots=True)
class DateRange:
    """Half-open interval ``[start, stop)`` of naive datetimes."""

    start: datetime
    stop: datetime

    def __post_init__(self) -> None:
        if self.stop < self.start:
            raise ValueError(f"DateRange stop {self.stop} precedes start {self.start}")

    @property
    def end(self) -> datetime:
        """Last whole second inside the range (e.g. ``23:59:59`` end-of-day)."""

        return self.stop - timedelta(seconds=1)

    def contains(self, ts: datetime) -> bool:
        return self.start <= ts < self.stop

    __contains__ = contains


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def start_of_day(value: date | datetime) -> datetime:
    return datetime(value.year, value.month, value.day)


def start_of_month(value: date | datetime) -> datetime:
    return datetime(value.year, value.month, 1)


def add_months(value: date | datetime, months: int) -> datetime:
    """Return the first instant of the month ``months`` away from ``value``."""

    index = value.year * 12 + (value.month - 1) + months
    return datetime(index // 12, index % 12 + 1, 1)


def month_range(anchor: date | datetime) -> DateRange:
    """Calendar month containing ``anchor``."""

    return DateRange(start_of_month(anchor), add_months(anchor, 1))


def end_of_month(anchor: date | datetime) -> datetime:
    """Last whole second of the month containing ``anchor``."""

    return month_range(anchor).end


def _today_stop(now: datetime) -> datetime:
    return start_of_day(now) + timedelta(days=1)


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def resolve_date_range(
    date_filter: DateRangeFilter | str,
    *,
    custom_start: date | datetime | None = None,
    custom_end: date | datetime | None = None,
    now: datetime | None = None,
) -> DateRange | None:
    """Resolve a filter selector to a concrete interval.

    Returns ``None`` for ``ALL_TIME`` (skip date filtering entirely) and for a
    ``CUSTOM`` selector whose bounds are missing or inverted.
    """

    selector = DateRangeFilter.parse(date_filter)
    current = now or datetime.now()

    if selector is DateRangeFilter.ALL_TIME:
        return None
    if selector is DateRangeFilter.THIS_MONTH:
        return month_range(current)
    if selector is DateRangeFilter.LAST_MONTH:
        return month_range(add_months(current, -1))
    if selector in _ROLLING_DAYS:
        days = _ROLLING_DAYS[selector]
        return DateRange(start_of_day(current - timedelta(days=days)), _today_stop(current))
    if selector is DateRangeFilter.YEAR_TO_DATE:
        return DateRange(datetime(current.year, 1, 1), _today_stop(current))

    # CUSTOM
    if custom_start is None or custom_end is None:
        return None
    lo, hi = _as_datetime(custom_start), _as_datetime(custom_end)
    if lo > hi:
        return None
    return DateRange(start_of_day(lo), start_of_day(hi) + timedelta(days=1))


def previous_period(
    date_filter: DateRangeFilter | str,
    *,
    now: datetime | None = None,
) -> DateRange | None:
    """Window immediately preceding the filter's current window.

    Defined only for ``THIS_MONTH``/``LAST_MONTH`` (the prior calendar month)
    and ``LAST_7_DAYS``/``LAST_30_DAYS`` (the N days before the window's
    start). Every other selector returns ``None``.
    """

    selector = DateRangeFilter.parse(date_filter)
    current = now or datetime.now()

    if selector is DateRangeFilter.THIS_MONTH:
        return month_range(add_months(current, -1))
    if selector is DateRangeFilter.LAST_MONTH:
        return month_range(add_months(current, -2))
    if selector in _ROLLING_DAYS:
        window = resolve_date_range(selector, now=current)
        assert window is not None  # rolling windows always resolve
        return DateRange(window.start - timedelta(days=_ROLLING_DAYS[selector]), window.start)
    return None


def has_previous_period(date_filter: DateRangeFilter | str) -> bool:
    return DateRangeFilter.parse(date_filter) in (
        DateRangeFilter.THIS_MONTH,
        DateRangeFilter.LAST_MONTH,
        *_ROLLING_DAYS,
    )


__all__ = [
    "DateRange",
    "DateRangeFilter",
    "add_months",
    "end_of_month",
    "has_previous_period",
    "month_range",
    "previous_period",
    "resolve_date_range",
    "start_of_day",
    "start_of_month",
]
