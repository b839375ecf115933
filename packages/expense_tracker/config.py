"""Environment-backed settings for the ``expense_tracker`` entrypoints.

Values are read from the process environment. The CLI loads a local ``.env``
with ``python-dotenv`` (without overriding already-set variables) before
calling :func:`load_settings`, so both sources work.

Environment variables
---------------------
- ``DATABASE_URL``: SQLAlchemy URL. Defaults to a SQLite file in the data dir.
- ``EXPENSE_TRACKER_DATA_DIR``: directory for the default database and the
  preferences file (default ``./.expense_tracker``).
- ``EXPENSE_TRACKER_EXPORT_DIR``: directory for export files (default: the
  system temporary directory).
- ``EXPENSE_TRACKER_LOG_LEVEL``: logging level name or number.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

DEFAULT_DATA_DIR = ".expense_tracker"
DATABASE_FILENAME = "expenses.db"
PREFERENCES_FILENAME = "preferences.json"


@dataclass(frozen=True, slots=True)
class Settings:
    database_url: str
    data_dir: Path
    export_dir: Path
    log_level: str | None = None

    @property
    def preferences_path(self) -> Path:
        return self.data_dir / PREFERENCES_FILENAME

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


def _resolve_data_dir() -> Path:
    raw = os.getenv("EXPENSE_TRACKER_DATA_DIR")
    if raw and raw.strip():
        return Path(raw.strip()).expanduser()
    return Path.cwd() / DEFAULT_DATA_DIR


def load_settings(*, database_url: str | None = None) -> Settings:
    """Build :class:`Settings` from the environment.

    ``database_url`` (e.g., from a ``--database-url`` option) wins over the
    ``DATABASE_URL`` environment variable.
    """

    data_dir = _resolve_data_dir()
    url = database_url or os.getenv("DATABASE_URL")
    if not url:
        url = f"sqlite+pysqlite:///{data_dir / DATABASE_FILENAME}"

    export_raw = os.getenv("EXPENSE_TRACKER_EXPORT_DIR")
    export_dir = (
        Path(export_raw.strip()).expanduser()
        if export_raw and export_raw.strip()
        else Path(tempfile.gettempdir())
    )

    return Settings(
        database_url=url,
        data_dir=data_dir,
        export_dir=export_dir,
        log_level=os.getenv("EXPENSE_TRACKER_LOG_LEVEL") or None,
    )


__all__ = ["Settings", "load_settings"]
