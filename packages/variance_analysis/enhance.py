"""Narrative enhancement of factual commentary via the Anthropic Messages API.

Public API:
    - :func:`enhance_commentary`
    - :func:`request_narrative`

Every enhancement attempt yields an :class:`EnhancementResult`; the caller
keeps the factual-only item whenever the result carries an error. Failures
are logged and never propagate, and one item's failure never affects another.
No side effects occur at import time (no client creation, no environment
reads).
"""

from __future__ import annotations

import random
import time
from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any, NamedTuple

from anthropic import Anthropic

from .logging_setup import get_logger
from .memos import select_top_driver_memos
from .models import CommentaryItem, DriverAggregate, EnhancementSettings, SourceKind
from .pmap import p_map
from .prompting import build_enhancement_prompt

# ---- Tunables (private) ------------------------------------------------------

_MAX_ATTEMPTS: int = 2
_BACKOFF_SCHEDULE_SEC: tuple[float, ...] = (0.5,)
_JITTER_PCT: float = 0.20

_logger = get_logger("variance_analysis.enhance")


class EnhancementResult(NamedTuple):
    """Outcome of one enhancement attempt: a narrative or an error description."""

    category_name: str
    narrative: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.narrative)


# ---- Internal helpers --------------------------------------------------------


def _create_client(settings: EnhancementSettings) -> Anthropic:
    # Retries are handled here so the policy is the same for every client.
    return Anthropic(timeout=settings.request_timeout_s, max_retries=0)


def _extract_narrative_text(message: Any) -> str:
    """Concatenate the text of every content fragment in a Messages response.

    Raises ``ValueError`` when the response has no content list or the
    combined text is empty after trimming.
    """

    content = getattr(message, "content", None)
    if content is None and isinstance(message, Mapping):
        content = message.get("content")
    if not isinstance(content, (list, tuple)):
        raise ValueError("Unexpected Messages API shape; missing content fragments")

    parts: list[str] = []
    for block in content:
        text = block.get("text") if isinstance(block, Mapping) else getattr(block, "text", None)
        if isinstance(text, str):
            parts.append(text)
    narrative = "".join(parts).strip()
    if not narrative:
        raise ValueError("Messages API returned no narrative text")
    return narrative


def _is_retryable(exc: BaseException) -> bool:
    """Return True only for HTTP 429 and 5xx errors."""

    sc = getattr(exc, "status_code", None)
    return isinstance(sc, int) and (sc == 429 or 500 <= sc < 600)


def _sleep_backoff(attempt_no: int) -> None:
    base = _BACKOFF_SCHEDULE_SEC[min(attempt_no - 1, len(_BACKOFF_SCHEDULE_SEC) - 1)]
    jitter = base * _JITTER_PCT
    time.sleep(max(0.0, base + random.uniform(-jitter, jitter)))


# ---- Public API --------------------------------------------------------------


def request_narrative(
    client: Any,
    prompt: str,
    *,
    category_name: str,
    settings: EnhancementSettings,
) -> EnhancementResult:
    """Ask the model for narrative context; never raises.

    Transient HTTP failures (429/5xx) are retried with jittered backoff up to
    ``_MAX_ATTEMPTS``. Timeouts, other API errors, malformed payloads and empty
    text all come back as an error result.

    Every request carries ``settings.request_timeout_s`` as its own timeout,
    whatever the client was constructed with.
    """

    attempt = 1
    while True:
        t0 = time.perf_counter()
        try:
            message = client.messages.create(
                model=settings.model,
                max_tokens=settings.max_tokens,
                messages=[{"role": "user", "content": prompt}],
                timeout=settings.request_timeout_s,
            )
            narrative = _extract_narrative_text(message)
        except Exception as e:  # noqa: BLE001 - any failure falls back to factual-only
            dt_ms = (time.perf_counter() - t0) * 1000.0
            if attempt < _MAX_ATTEMPTS and _is_retryable(e):
                _logger.warning(
                    "enhance:retry category=%s attempt=%d latency_ms=%.2f error=%s",
                    category_name,
                    attempt,
                    dt_ms,
                    e.__class__.__name__,
                )
                _sleep_backoff(attempt)
                attempt += 1
                continue
            _logger.warning(
                "enhance:fallback category=%s attempts=%d latency_ms=%.2f error=%s detail=%s",
                category_name,
                attempt,
                dt_ms,
                e.__class__.__name__,
                e,
            )
            return EnhancementResult(
                category_name=category_name, error=f"{e.__class__.__name__}: {e}"
            )

        dt_ms = (time.perf_counter() - t0) * 1000.0
        _logger.info(
            "enhance:done category=%s chars=%d latency_ms=%.2f",
            category_name,
            len(narrative),
            dt_ms,
        )
        return EnhancementResult(category_name=category_name, narrative=narrative)


def enhance_commentary(
    items: Sequence[CommentaryItem],
    drivers: Sequence[DriverAggregate],
    *,
    settings: EnhancementSettings | None = None,
    client: Any = None,
) -> list[CommentaryItem]:
    """Attach model-written narrative to each factual item where possible.

    For each item the top-driver memos of its category are sampled; items
    with no memos (or already enhanced) are returned unchanged without a
    request. Successful responses produce a copy with ``narrative_sentence``
    set and ``source_kind`` = ``FACTUAL_PLUS_NARRATIVE``. Output order always
    matches input order.

    ``client`` defaults to an :class:`anthropic.Anthropic` instance configured
    with ``settings.request_timeout_s``; if it cannot be constructed every
    item stays factual-only.
    """

    settings = settings or EnhancementSettings()

    work: list[tuple[CommentaryItem, str | None]] = []
    for item in items:
        if item.source_kind is SourceKind.FACTUAL_PLUS_NARRATIVE:
            work.append((item, None))
            continue
        memos = select_top_driver_memos(drivers, item.category_name)
        prompt = build_enhancement_prompt(item.factual_sentence, memos) if memos else None
        work.append((item, prompt))

    candidates = sum(1 for _, prompt in work if prompt is not None)
    if candidates == 0:
        return list(items)

    if client is None:
        try:
            client = _create_client(settings)
        except Exception as e:  # noqa: BLE001 - missing credentials or SDK config
            _logger.warning(
                "enhance:client_unavailable error=%s detail=%s", e.__class__.__name__, e
            )
            return list(items)

    def _enhance_one(entry: tuple[CommentaryItem, str | None]) -> CommentaryItem:
        item, prompt = entry
        if prompt is None:
            return item
        result = request_narrative(
            client, prompt, category_name=item.category_name, settings=settings
        )
        if not result.ok:
            return item
        return replace(
            item,
            narrative_sentence=result.narrative,
            source_kind=SourceKind.FACTUAL_PLUS_NARRATIVE,
        )

    enhanced = p_map(work, _enhance_one, concurrency=settings.concurrency)

    n_enhanced = sum(
        1 for before, after in zip(items, enhanced, strict=True) if after is not before
    )
    _logger.info(
        "enhance:summary candidates=%d enhanced=%d fallbacks=%d",
        candidates,
        n_enhanced,
        candidates - n_enhanced,
    )
    return enhanced


__all__ = ["EnhancementResult", "enhance_commentary", "request_narrative"]
