"""Pytest configuration for test isolation.

Tests must never reach the real text-generation service or pick up settings
from the developer's shell. An autouse fixture clears the package's
environment variables and replaces the SDK client class with one that fails
on use, so any code path that forgets to inject a stub falls back to
factual-only commentary instead of making a network call.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
sys.path[:0] = [p for p in [str(_PKG_DIR), str(_ROOT)] if p not in sys.path]

import variance_analysis.enhance as enhance_mod  # noqa: E402

_ENV_VARS = (
    "ANTHROPIC_API_KEY",
    "VARIANCE_ANALYSIS_MODEL",
    "VARIANCE_ANALYSIS_CONCURRENCY",
    "VARIANCE_ANALYSIS_LOG_LEVEL",
)


class _OfflineAnthropic:
    def __init__(self, *a, **kw) -> None:
        raise RuntimeError("network access is disabled in tests; inject a stub client")


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(enhance_mod, "Anthropic", _OfflineAnthropic)
