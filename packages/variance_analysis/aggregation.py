"""Category- and driver-level variance aggregation.

Both aggregators group with plain dicts keyed by the grouping value (a tuple
for drivers) and fix output order with explicit sorts, so results do not
depend on row arrival order beyond stable tie-breaking.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import ROUND_FLOOR, Decimal
from typing import Protocol, TypeVar

from .logging_setup import get_logger
from .models import CategoryAggregate, DriverAggregate, NormalizedRow

# Driver rows with no supplier group under this token instead of being dropped.
UNKNOWN_SUPPLIER = "Unknown Supplier"

_logger = get_logger("variance_analysis.aggregation")


class _HasVariance(Protocol):
    @property
    def variance_amount(self) -> float: ...


VarT = TypeVar("VarT", bound=_HasVariance)


def round_currency(value: float) -> int:
    """Round to the nearest whole currency unit; halves round up (``-2.5`` -> ``-2``)."""

    return int((Decimal(repr(value)) + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))


def sort_by_abs_variance(items: Iterable[VarT]) -> list[VarT]:
    """Sort by descending absolute variance; ties keep their input order."""

    return sorted(items, key=lambda item: abs(item.variance_amount), reverse=True)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class _CategoryTotals:
    amount: float = 0.0
    variance: float = 0.0
    row_count: int = 0


def _finalize_category(name: str, totals: _CategoryTotals) -> CategoryAggregate:
    prior = totals.amount - totals.variance
    prior_rounded = round_currency(prior)
    percent = (totals.variance / prior_rounded) * 100 if prior_rounded != 0 else 0.0
    return CategoryAggregate(
        name=name,
        prior_amount=prior_rounded,
        current_amount=round_currency(totals.amount),
        variance_amount=round_currency(totals.variance),
        variance_percent=percent,
        row_count=totals.row_count,
    )


def aggregate_categories(rows: Iterable[NormalizedRow]) -> list[CategoryAggregate]:
    """Sum amount and variance per spend category.

    Returned in first-seen category order; use :func:`sort_by_abs_variance`
    for display order.
    """

    by_category: dict[str, _CategoryTotals] = {}
    for row in rows:
        totals = by_category.setdefault(row.category, _CategoryTotals())
        totals.amount += row.amount
        totals.variance += row.variance_amount
        totals.row_count += 1

    return [_finalize_category(name, totals) for name, totals in by_category.items()]


# ---------------------------------------------------------------------------
# Drivers
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class _DriverTotals:
    department: str | None
    variance: float = 0.0
    row_count: int = 0
    memos: list[str] = field(default_factory=list)


def aggregate_drivers(rows: Iterable[NormalizedRow]) -> list[DriverAggregate]:
    """Group rows by ``(category, cost_center, supplier)`` and rank them.

    - Rows without a cost center cannot be attributed and are skipped.
    - A missing supplier groups under :data:`UNKNOWN_SUPPLIER`.
    - Memos are collected in first-seen order; department comes from the
      first contributing row.
    - Summed variance is rounded to whole units before ranking by descending
      absolute variance (stable by first appearance).
    """

    by_key: dict[tuple[str, str, str], _DriverTotals] = {}
    skipped = 0
    for row in rows:
        if row.cost_center is None:
            skipped += 1
            continue
        key = (row.category, row.cost_center, row.supplier or UNKNOWN_SUPPLIER)
        totals = by_key.get(key)
        if totals is None:
            totals = by_key[key] = _DriverTotals(department=row.department)
        totals.variance += row.variance_amount
        totals.row_count += 1
        if row.memo:
            totals.memos.append(row.memo)

    if skipped:
        _logger.debug("aggregation:driver_rows_without_cost_center count=%d", skipped)

    drivers = [
        DriverAggregate(
            category=category,
            cost_center=cost_center,
            supplier=supplier,
            department=totals.department,
            variance_amount=round_currency(totals.variance),
            row_count=totals.row_count,
            memos=tuple(totals.memos),
        )
        for (category, cost_center, supplier), totals in by_key.items()
    ]
    return sort_by_abs_variance(drivers)


def drivers_for_category(
    drivers: Sequence[DriverAggregate], category: str
) -> list[DriverAggregate]:
    """Drivers of ``category`` in descending absolute-variance order."""

    return sort_by_abs_variance(d for d in drivers if d.category == category)


def group_drivers_by_category(
    drivers: Sequence[DriverAggregate],
) -> list[tuple[str, list[DriverAggregate]]]:
    """Group drivers per category, largest total absolute variance first.

    Used by report renderers to show the driver breakdown as nested groups.
    """

    grouped: dict[str, list[DriverAggregate]] = {}
    for d in drivers:
        grouped.setdefault(d.category, []).append(d)
    return sorted(
        grouped.items(),
        key=lambda kv: sum(abs(d.variance_amount) for d in kv[1]),
        reverse=True,
    )


__all__ = [
    "UNKNOWN_SUPPLIER",
    "aggregate_categories",
    "aggregate_drivers",
    "drivers_for_category",
    "group_drivers_by_category",
    "round_currency",
    "sort_by_abs_variance",
]
