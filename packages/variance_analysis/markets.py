"""Market segmentation of normalized rows."""

from __future__ import annotations

from collections.abc import Iterable

from .models import MarketScope, NormalizedRow

# Rows tagged with this market value make up the JP segment.
APAC_MARKER = "APAC"


def filter_by_market(
    rows: Iterable[NormalizedRow], scope: MarketScope | str
) -> list[NormalizedRow]:
    """Return the rows in ``scope``, preserving order.

    ``JP`` keeps rows whose market is the APAC marker, ``Non-JP`` keeps every
    other row (including rows with no market), ``All`` keeps everything.
    Filtering is idempotent.
    """

    scope = MarketScope.parse(scope)
    if scope is MarketScope.ALL:
        return list(rows)
    if scope is MarketScope.JP:
        return [r for r in rows if r.market == APAC_MARKER]
    return [r for r in rows if r.market != APAC_MARKER]


__all__ = ["APAC_MARKER", "filter_by_market"]
