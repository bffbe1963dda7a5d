# ruff: noqa: E402, I001
import logging
import sys
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
sys.path[:0] = [p for p in [str(_ROOT / "packages"), str(_ROOT)] if p not in sys.path]

from variance_analysis.logging_setup import LOG_LEVEL_ENV, get_logger, resolve_level


@pytest.mark.parametrize(
    ("level", "expected"),
    [
        (logging.DEBUG, logging.DEBUG),
        ("info", logging.INFO),
        (" Error ", logging.ERROR),
        ("15", 15),
        ("chatty", logging.WARNING),
        (None, logging.WARNING),
    ],
)
def test_resolve_level(level, expected):
    assert resolve_level(level) == expected


def test_resolve_level_reads_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv(LOG_LEVEL_ENV, "DEBUG")

    assert resolve_level(None) == logging.DEBUG
    assert resolve_level("ERROR") == logging.ERROR


def test_get_logger_is_silent_by_default():
    logger = get_logger("variance_analysis.rows")

    assert logger.name == "variance_analysis.rows"
    assert logging.getLogger("variance_analysis").handlers
