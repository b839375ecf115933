"""Persisted user preferences (filter state, demo mode, dashboard range).

Stored as a small JSON document validated with Pydantic. A missing or
unreadable file yields defaults; unknown keys are ignored so older/newer files
still load.

Custom date bounds are kept as epoch seconds where ``0`` means "unset".
"""

from __future__ import annotations

import contextlib
import json
import os
from datetime import date, datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .aggregation import DashboardTimeRange
from .date_ranges import DateRangeFilter
from .filters import ExpenseFilter
from .logging_setup import get_logger

logger = get_logger("expense_tracker.preferences")


class Preferences(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    filter_type: str = DateRangeFilter.ALL_TIME.value
    custom_start_ts: float = 0.0
    custom_end_ts: float = 0.0
    selected_category: str | None = None
    search_text: str = ""
    demo_mode: bool = False
    dashboard_time_range: DashboardTimeRange = DashboardTimeRange.TWELVE_MONTHS

    @field_validator("selected_category")
    @classmethod
    def _blank_category_is_all(cls, v: str | None) -> str | None:
        return v or None

    @field_validator("custom_start_ts", "custom_end_ts")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        return v if v > 0 else 0.0

    # ---- Conversions ---------------------------------------------------------

    def to_expense_filter(self) -> ExpenseFilter:
        """Build the filter used by listings and dashboards.

        Unknown ``filter_type`` strings fall back to all time; zero timestamps
        mean no custom bound.
        """

        return ExpenseFilter(
            date_filter=DateRangeFilter.parse(self.filter_type),
            custom_start=_from_timestamp(self.custom_start_ts),
            custom_end=_from_timestamp(self.custom_end_ts),
            category_name=self.selected_category,
            search_text=self.search_text,
        )

    def with_filter(self, expense_filter: ExpenseFilter) -> Preferences:
        return self.model_copy(
            update={
                "filter_type": expense_filter.date_filter.value,
                "custom_start_ts": _to_timestamp(expense_filter.custom_start),
                "custom_end_ts": _to_timestamp(expense_filter.custom_end),
                "selected_category": expense_filter.category_name or None,
                "search_text": expense_filter.search_text,
            }
        )


def _from_timestamp(ts: float) -> datetime | None:
    return datetime.fromtimestamp(ts) if ts > 0 else None


def _to_timestamp(value: date | datetime | None) -> float:
    if value is None:
        return 0.0
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    return value.timestamp()


def load_preferences(path: Path) -> Preferences:
    """Read preferences from ``path``; defaults when missing or invalid."""

    if not path.exists():
        return Preferences()
    try:
        return Preferences.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ValidationError):
        logger.warning("ignoring unreadable preferences file %s", path, exc_info=True)
        return Preferences()


def save_preferences(path: Path, prefs: Preferences) -> None:
    """Write ``prefs`` to ``path`` atomically (``.tmp`` then ``os.replace``)."""

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(
            json.dumps(prefs.model_dump(mode="json"), indent=2, sort_keys=True),
            encoding="utf-8",
        )
        os.replace(tmp, path)
    except Exception:
        with contextlib.suppress(FileNotFoundError):
            tmp.unlink()
        raise


__all__ = ["Preferences", "load_preferences", "save_preferences"]
