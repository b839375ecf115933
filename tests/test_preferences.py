from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

from expense_tracker.aggregation import DashboardTimeRange
from expense_tracker.date_ranges import DateRangeFilter
from expense_tracker.filters import ExpenseFilter
from expense_tracker.preferences import Preferences, load_preferences, save_preferences


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    prefs = load_preferences(tmp_path / "nope.json")

    assert prefs == Preferences()
    assert prefs.to_expense_filter() == ExpenseFilter()
    assert prefs.dashboard_time_range is DashboardTimeRange.TWELVE_MONTHS


def test_save_and_load_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "preferences.json"
    custom = ExpenseFilter(
        date_filter=DateRangeFilter.CUSTOM,
        custom_start=datetime(2025, 3, 1),
        custom_end=datetime(2025, 3, 31),
        category_name="Food",
        search_text="lunch",
    )
    prefs = Preferences(demo_mode=True, dashboard_time_range="6M").with_filter(custom)

    save_preferences(path, prefs)
    loaded = load_preferences(path)

    assert loaded == prefs
    assert loaded.to_expense_filter() == custom
    assert not path.with_suffix(".json.tmp").exists()


def test_unknown_filter_and_zero_timestamps(tmp_path: Path) -> None:
    path = tmp_path / "preferences.json"
    path.write_text(
        json.dumps(
            {
                "filter_type": "fortnight",
                "custom_start_ts": 0,
                "custom_end_ts": 0,
                "selected_category": "",
                "unexpected": True,
            }
        ),
        encoding="utf-8",
    )

    f = load_preferences(path).to_expense_filter()

    assert f.date_filter is DateRangeFilter.ALL_TIME
    assert f.custom_start is None and f.custom_end is None
    assert f.category_name is None


def test_corrupt_file_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "preferences.json"
    path.write_text("{not json", encoding="utf-8")

    assert load_preferences(path) == Preferences()
