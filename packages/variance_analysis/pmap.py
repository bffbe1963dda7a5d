"""Order-preserving bounded-concurrency map over a thread pool, in the style of `p-map`.

``p_map(items, mapper, concurrency=N)`` runs at most ``N`` mapper calls at a
time and returns results in input order. Each result lands in its own slot,
so mappers never share an output list.

With ``concurrency=1`` calls run strictly one after another on the calling
thread, which keeps sequential behaviour free of pool overhead.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import TypeVar

InT = TypeVar("InT")
OutT = TypeVar("OutT")


def p_map(
    iterable: Iterable[InT],
    mapper: Callable[[InT], OutT],
    *,
    concurrency: int,
) -> list[OutT]:
    """Map ``iterable`` through ``mapper`` with at most ``concurrency`` calls in flight.

    The first mapper exception is re-raised after cancelling work that has
    not started yet. Callers that need per-item failure isolation return an
    error value from the mapper instead of raising.
    """

    if not isinstance(concurrency, int) or concurrency < 1:
        raise ValueError("concurrency must be a positive integer")

    items = list(iterable)
    if concurrency == 1 or len(items) <= 1:
        return [mapper(item) for item in items]

    slots: list[OutT | None] = [None] * len(items)
    pending = iter(enumerate(items))
    future_to_idx: dict[Future[OutT], int] = {}

    with ThreadPoolExecutor(max_workers=min(concurrency, len(items))) as pool:

        def _submit() -> bool:
            try:
                idx, item = next(pending)
            except StopIteration:
                return False
            future_to_idx[pool.submit(mapper, item)] = idx
            return True

        # Prime the window.
        for _ in range(concurrency):
            if not _submit():
                break

        active = set(future_to_idx)
        while active:
            done, active = wait(active, return_when=FIRST_COMPLETED)
            for fut in done:
                idx = future_to_idx.pop(fut)
                try:
                    slots[idx] = fut.result()
                except Exception:
                    pool.shutdown(wait=False, cancel_futures=True)
                    raise
            # Top up one new call per completion.
            for _ in range(len(done)):
                if not _submit():
                    break
            active = set(future_to_idx)

    return slots  # type: ignore[return-value]


__all__ = ["p_map"]
