"""Deterministic factual commentary per spend category."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from .aggregation import drivers_for_category, sort_by_abs_variance
from .logging_setup import get_logger
from .models import CategoryAggregate, CommentaryItem, DriverAggregate, Severity

_logger = get_logger("variance_analysis.commentary")


def _scaled(n: float) -> tuple[str, Decimal]:
    """Return the unit suffix and the rounded magnitude of ``n`` in that unit."""

    magnitude = abs(Decimal(repr(float(n))))
    if magnitude >= 1_000_000:
        return "M", (magnitude / 1_000_000).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    if magnitude >= 1_000:
        return "K", (magnitude / 1_000).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return "", magnitude.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def format_variance(n: float) -> str:
    """Format a signed variance compactly: ``+$1.2M``, ``$-5K``, ``+$238``.

    Increases carry a leading ``+``; decreases keep their minus sign after
    the currency symbol. Millions keep one decimal, thousands none, and
    smaller amounts print as whole units with thousands separators.
    """

    suffix, scaled = _scaled(n)
    prefix = "+" if n >= 0 else ""
    minus = "-" if n < 0 and scaled != 0 else ""
    body = f"{int(scaled):,}" if not suffix else f"{scaled}"
    return f"{prefix}${minus}{body}{suffix}"


def format_amount(n: float) -> str:
    """Format a whole-currency figure with separators: ``$1,238``, ``$-5``."""

    return f"${round(n):,}"


def format_percent(pct: float) -> str:
    sign = "+" if pct >= 0 else ""
    return f"{sign}{pct:.1f}%"


def factual_sentence(category: CategoryAggregate, top_driver: DriverAggregate) -> str:
    direction = "increased" if category.variance_amount >= 0 else "decreased"
    return (
        f"{category.name} spend {direction} {format_variance(category.variance_amount)} "
        f"vs. prior period, driven primarily by {top_driver.cost_center} "
        f"({format_variance(top_driver.variance_amount)} via {top_driver.supplier})."
    )


def generate_commentary(
    categories: Sequence[CategoryAggregate],
    drivers: Sequence[DriverAggregate],
    count: int,
) -> list[CommentaryItem]:
    """Build one factual item for each of the ``count`` largest-moving categories.

    Categories are ranked by descending absolute variance and the first
    ``count`` are considered. A category with no attributable driver is
    skipped, so fewer than ``count`` items may come back.
    """

    items: list[CommentaryItem] = []
    for category in sort_by_abs_variance(categories)[:count]:
        ranked = drivers_for_category(drivers, category.name)
        if not ranked:
            _logger.debug("commentary:skip_no_driver category=%s", category.name)
            continue
        items.append(
            CommentaryItem(
                category_name=category.name,
                title=f"{category.name} Variance",
                factual_sentence=factual_sentence(category, ranked[0]),
                severity=Severity.for_variance(category.variance_amount),
            )
        )
    return items


__all__ = [
    "factual_sentence",
    "format_amount",
    "format_percent",
    "format_variance",
    "generate_commentary",
]
