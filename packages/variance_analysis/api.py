"""Pipeline entry points for the ``variance_analysis`` package.

:func:`run_analysis` runs the whole flow on already-parsed rows:

    normalize -> market filter -> category & driver aggregation
    -> factual commentary -> optional narrative enhancement

It only raises when the row source itself is unusable (non-mapping rows);
everything below that is absorbed and the result bundle is always complete.
:func:`analyze_csv` adds CSV loading in front.
"""

from __future__ import annotations

from collections.abc import Sequence
from os import PathLike
from typing import Any

from .aggregation import aggregate_categories, aggregate_drivers, sort_by_abs_variance
from .commentary import generate_commentary
from .enhance import enhance_commentary
from .ingest import read_spend_rows
from .logging_setup import get_logger
from .markets import filter_by_market
from .models import (
    AnalysisConfig,
    AnalysisResult,
    CategoryAggregate,
    CommentaryMode,
    RawRows,
    VarianceTotals,
)
from .rows import normalize_rows

_logger = get_logger("variance_analysis.api")


def summarize_totals(categories: Sequence[CategoryAggregate]) -> VarianceTotals:
    """Sum the rounded category figures into report-level totals."""

    prior = sum(c.prior_amount for c in categories)
    current = sum(c.current_amount for c in categories)
    variance = sum(c.variance_amount for c in categories)
    percent = (variance / prior) * 100 if prior != 0 else 0.0
    return VarianceTotals(
        prior_amount=prior,
        current_amount=current,
        variance_amount=variance,
        variance_percent=percent,
    )


def run_analysis(
    rows: RawRows,
    config: AnalysisConfig | None = None,
    *,
    client: Any = None,
) -> AnalysisResult:
    """Aggregate spend rows and build commentary according to ``config``.

    Parameters
    ----------
    rows:
        Parsed source rows (``{column header: cell text}``), in file order.
    config:
        Market scope, number of comments, commentary mode and enhancement
        settings. Defaults to :class:`AnalysisConfig` defaults.
    client:
        Optional text-generation client exposing ``messages.create``; used
        only in ``CommentaryMode.AI``. Built from the environment when omitted.

    Returns
    -------
    AnalysisResult
        Categories in descending absolute-variance order, ranked drivers,
        commentary items, and totals. ``row_count`` counts every input row.
    """

    config = config or AnalysisConfig()
    raw_rows = list(rows)
    normalized = normalize_rows(raw_rows)
    scoped = filter_by_market(normalized, config.market_scope)

    categories = sort_by_abs_variance(aggregate_categories(scoped))
    drivers = aggregate_drivers(scoped)

    _logger.info(
        "analysis:aggregated rows=%d in_scope=%d market=%s categories=%d drivers=%d",
        len(raw_rows),
        len(scoped),
        config.market_scope,
        len(categories),
        len(drivers),
    )

    commentary = []
    if config.commentary_mode is not CommentaryMode.NONE:
        commentary = generate_commentary(categories, drivers, config.comment_count)
        if config.commentary_mode is CommentaryMode.AI and commentary:
            commentary = enhance_commentary(
                commentary, drivers, settings=config.enhancement, client=client
            )

    return AnalysisResult(
        categories=tuple(categories),
        drivers=tuple(drivers),
        commentary=tuple(commentary),
        market_scope=config.market_scope,
        row_count=len(raw_rows),
        filtered_row_count=len(scoped),
        totals=summarize_totals(categories),
    )


def analyze_csv(
    csv_path: str | PathLike[str],
    config: AnalysisConfig | None = None,
    *,
    client: Any = None,
) -> AnalysisResult:
    """Read a spend export CSV and run :func:`run_analysis` on it.

    File and header errors (``FileNotFoundError``, ``csv.Error``) propagate.
    """

    return run_analysis(read_spend_rows(csv_path), config, client=client)


__all__ = ["analyze_csv", "run_analysis", "summarize_totals"]
