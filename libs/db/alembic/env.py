# ruff: noqa: I001
"""Alembic environment for the expense store schema (``expense_db``).

URL precedence: ``DATABASE_URL`` (a ``.env`` found from the working directory
is loaded first, without overriding the process environment), then
``sqlalchemy.url`` from the INI file.
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool
from dotenv import load_dotenv, find_dotenv

from expense_db import metadata as target_metadata


config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Works from the repo root as well as from libs/db.
if env_file := find_dotenv(usecwd=True):
    load_dotenv(dotenv_path=env_file, override=False)


def _database_url() -> str:
    url = os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url")
    if not url:
        raise RuntimeError("set DATABASE_URL or sqlalchemy.url before running migrations")
    return url


DATABASE_URL = _database_url()
config.set_main_option("sqlalchemy.url", DATABASE_URL)


def run_migrations_offline() -> None:
    """Emit SQL for the expense schema without connecting."""

    context.configure(
        url=DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section) or {"sqlalchemy.url": DATABASE_URL},
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            # ALTERs on SQLite go through table copies.
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
