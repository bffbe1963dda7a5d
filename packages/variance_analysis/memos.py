"""Line-memo sampling for commentary context.

Only the drivers that explain the bulk of a category's movement are sampled,
and the sample is capped so the prompt stays small.
"""

from __future__ import annotations

from collections.abc import Sequence

from .aggregation import drivers_for_category
from .models import DriverAggregate

COVERAGE_SHARE = 0.85
MEMOS_PER_DRIVER = 5
MAX_MEMOS = 30


def select_top_driver_memos(
    drivers: Sequence[DriverAggregate],
    category_name: str,
    *,
    coverage: float = COVERAGE_SHARE,
    per_driver_cap: int = MEMOS_PER_DRIVER,
    total_cap: int = MAX_MEMOS,
) -> list[str]:
    """Return memos from the drivers covering ``coverage`` of the category's variance.

    Drivers are walked in descending absolute-variance order. Before each
    driver the running absolute variance is compared with
    ``coverage * total``; once it has reached the threshold the walk stops,
    otherwise the driver's variance is added and up to ``per_driver_cap`` of
    its memos are taken. The first driver is always visited, so a category
    whose variances are all zero still contributes its top driver's memos.
    The combined list is truncated to ``total_cap``.
    """

    ranked = drivers_for_category(drivers, category_name)
    total_abs = sum(abs(d.variance_amount) for d in ranked)
    threshold = total_abs * coverage

    cumulative = 0.0
    memos: list[str] = []
    for pos, driver in enumerate(ranked):
        if pos > 0 and cumulative >= threshold:
            break
        cumulative += abs(driver.variance_amount)
        memos.extend(driver.memos[:per_driver_cap])

    return memos[:total_cap]


__all__ = ["COVERAGE_SHARE", "MAX_MEMOS", "MEMOS_PER_DRIVER", "select_top_driver_memos"]
