"""Centralized logging configuration for the ``expense_tracker`` package.

This module provides two public helpers:

- ``configure_logging(...)``: attach a single ``StreamHandler`` to the package
  root logger (``"expense_tracker"``). Intended to be called once by
  entrypoints (e.g., the CLI) at process startup.
- ``get_logger(name)``: acquire a logger by name, ensuring that the package
  root logger has at least a ``NullHandler`` attached when not configured to
  avoid "No handler" warnings in library contexts.

Library modules must never attach their own handlers. They should only call
``get_logger("expense_tracker.<module>")`` and rely on the centralized
configuration performed by the CLI or host application.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "expense_tracker"
_LEVEL_ENV_VAR = "EXPENSE_TRACKER_LOG_LEVEL"
_CONFIGURED = False


def _level_from_name(value: str) -> int | None:
    # Accept numeric strings or standard level names (INFO/DEBUG/etc.).
    value = value.strip().upper()
    if value.isdigit():
        return int(value)
    numeric = getattr(logging, value, None)
    return numeric if isinstance(numeric, int) else None


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        parsed = _level_from_name(level)
        if parsed is not None:
            return parsed
    # Env override when explicit ``level`` is None or unrecognized
    env_val = os.getenv(_LEVEL_ENV_VAR)
    if env_val:
        parsed = _level_from_name(env_val)
        if parsed is not None:
            return parsed
    return logging.WARNING


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Configure the package root logger exactly once.

    Parameters
    ----------
    level:
        Logging level as ``int`` or level-name string (e.g., ``"INFO"``). If
        ``None``, defaults to the ``EXPENSE_TRACKER_LOG_LEVEL`` environment
        variable when set, otherwise ``logging.WARNING`` so CLI output stays
        clean.
    fmt:
        Optional logging format string. Defaults to
        ``"%(asctime)s %(name)s %(levelname)s %(message)s"``.
    stream:
        The output stream for the single ``StreamHandler`` (defaults to
        ``sys.stderr``).
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)

    # Remove any existing NullHandlers to avoid swallowing logs after config.
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    formatter = logging.Formatter(fmt or "%(asctime)s %(name)s %(levelname)s %(message)s")
    handler.setFormatter(formatter)

    logger.setLevel(resolved)
    logger.addHandler(handler)
    # Avoid double emission via the root logger.
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger by name, ensuring safe defaults for library use.

    When the central configuration hasn't run yet, attach a ``NullHandler`` to
    the package root logger to avoid noisy warnings.
    """

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
