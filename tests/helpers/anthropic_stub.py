"""Test helpers to stub the Anthropic Messages client used by enhance.py.

The stub reads the factual sentence embedded in each prompt and hands it to a
test-provided ``respond`` callable, which returns the narrative text, raises
to simulate a failure, or returns a prebuilt response object for malformed
payload cases.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any

_SENTENCE_MARKER = 'FACTUAL SENTENCE (DO NOT MODIFY THIS):\n"'


def extract_factual_sentence(prompt: str) -> str:
    start = prompt.find(_SENTENCE_MARKER)
    if start == -1:
        raise AssertionError("enhance: prompt missing the factual sentence block")
    start += len(_SENTENCE_MARKER)
    end = prompt.find('"\n', start)
    return prompt[start:end]


def extract_memo_lines(prompt: str) -> list[str]:
    begin = prompt.find("BEGIN_LINE_MEMOS\n")
    end = prompt.find("\nEND_LINE_MEMOS")
    if begin == -1 or end == -1 or end <= begin:
        raise AssertionError("enhance: prompt missing the delimited memo list")
    return prompt[begin + len("BEGIN_LINE_MEMOS\n") : end].split("\n")


class TextBlock:
    type = "text"

    def __init__(self, text: str) -> None:
        self.text = text


class Message:
    def __init__(self, *texts: str) -> None:
        self.content = [TextBlock(t) for t in texts]


class StatusError(Exception):
    """Exception carrying an HTTP ``status_code`` like the SDK's API errors."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


class AnthropicStub:
    """Minimal stub matching the ``anthropic.Anthropic`` shape used by enhance.py.

    Parameters
    ----------
    respond:
        Receives the factual sentence of each request and returns narrative
        text (``str``), a ready-made response object, or raises.
    sleep_per_call:
        Optional delay that makes concurrent calls overlap measurably. A call
        whose delay exceeds the request ``timeout`` raises ``TimeoutError``
        the way the SDK does.
    """

    def __init__(
        self,
        respond: Callable[[str], Any],
        *,
        sleep_per_call: float = 0.0,
    ) -> None:
        self._respond = respond
        self.sleep_per_call = sleep_per_call
        self.calls: list[dict[str, Any]] = []
        self._lock = threading.Lock()
        self.inflight = 0
        self.max_inflight = 0

        class _Messages:
            def __init__(self, outer: AnthropicStub) -> None:
                self._outer = outer

            def create(self, **kwargs):
                outer = self._outer
                with outer._lock:
                    outer.calls.append(kwargs)
                    outer.inflight += 1
                    outer.max_inflight = max(outer.max_inflight, outer.inflight)
                try:
                    timeout = kwargs.get("timeout")
                    if timeout is not None and outer.sleep_per_call > timeout:
                        time.sleep(timeout)
                        raise TimeoutError(f"request exceeded {timeout}s")
                    if outer.sleep_per_call > 0:
                        time.sleep(outer.sleep_per_call)
                    prompt = kwargs["messages"][0]["content"]
                    out = outer._respond(extract_factual_sentence(prompt))
                    return Message(out) if isinstance(out, str) else out
                finally:
                    with outer._lock:
                        outer.inflight -= 1

        self.messages = _Messages(self)

    def prompts(self) -> list[str]:
        return [c["messages"][0]["content"] for c in self.calls]
