"""Pytest configuration for test isolation.

The CLI keeps its SQLite database and preferences file under a data directory
(``./.expense_tracker`` by default) and the database client caches a single
engine per process. When tests run in the same working tree, both can leak
state between tests.

To keep tests hermetic, an autouse fixture points the data and export
directories at the test's own temporary directory, clears any ambient
``DATABASE_URL``, and disposes the shared engine afterwards.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

# Make sure the workspace source dirs are on sys.path so `expense_tracker` and
# `expense_db` are importable without an editable install.
_ROOT = Path(__file__).resolve().parents[1]
_SRC_DIRS = [_ROOT / "packages", _ROOT / "libs" / "db" / "src", _ROOT]
sys.path[:0] = [str(p) for p in _SRC_DIRS if str(p) not in sys.path]

from expense_db.client import dispose_engine  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Force a per-test data/export dir and a fresh database engine."""

    data_dir = tmp_path / "data"
    export_dir = tmp_path / "exports"
    # Ensure the directories exist to make behavior explicit and help debugging.
    data_dir.mkdir(parents=True, exist_ok=True)
    export_dir.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("EXPENSE_TRACKER_DATA_DIR", os.fspath(data_dir))
    monkeypatch.setenv("EXPENSE_TRACKER_EXPORT_DIR", os.fspath(export_dir))
    monkeypatch.delenv("DATABASE_URL", raising=False)
    # Run from the temp dir so a developer's .env is never picked up.
    monkeypatch.chdir(tmp_path)

    dispose_engine()
    yield
    dispose_engine()
