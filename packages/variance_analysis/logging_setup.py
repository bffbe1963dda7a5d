"""Logging helpers for the ``variance_analysis`` package.

Stage modules log through ``get_logger("variance_analysis.<stage>")`` using
``stage:event key=value`` messages and never attach handlers themselves.
Until an entrypoint calls :func:`configure_logging` the package logger only
carries a ``NullHandler``, so library callers see nothing unless they opt in.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "variance_analysis"
LOG_LEVEL_ENV = "VARIANCE_ANALYSIS_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_configured = False


def resolve_level(level: int | str | None) -> int:
    """Turn a level name, numeric string or int into a logging level.

    ``None`` reads ``VARIANCE_ANALYSIS_LOG_LEVEL``; anything unrecognised
    resolves to ``WARNING`` so the report output stays uncluttered.
    """

    if level is None:
        level = os.getenv(LOG_LEVEL_ENV)
    if isinstance(level, int):
        return level
    if not isinstance(level, str):
        return logging.WARNING
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelNamesMapping().get(name)
    return numeric if numeric is not None else logging.WARNING


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Send package logs to ``stream``; later calls are no-ops.

    The package logger stops propagating to the root logger once configured
    so host applications with their own root handlers do not print twice.
    """

    global _configured
    if _configured:
        return

    resolved = resolve_level(level)
    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    for h in [h for h in pkg_logger.handlers if isinstance(h, logging.NullHandler)]:
        pkg_logger.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(resolved)
    pkg_logger.propagate = False

    _configured = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    if not _configured and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level"]
