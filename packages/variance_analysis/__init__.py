"""Public interface for the ``variance_analysis`` package.

Symbol re-exports only; no runtime logic lives here.
"""

from .aggregation import UNKNOWN_SUPPLIER, aggregate_categories, aggregate_drivers
from .api import analyze_csv, run_analysis
from .commentary import format_variance, generate_commentary
from .enhance import EnhancementResult, enhance_commentary
from .ingest import parse_spend_csv, read_spend_rows
from .markets import APAC_MARKER, filter_by_market
from .memos import select_top_driver_memos
from .models import (
    AnalysisConfig,
    AnalysisResult,
    CategoryAggregate,
    CommentaryItem,
    CommentaryMode,
    DriverAggregate,
    EnhancementSettings,
    MarketScope,
    NormalizedRow,
    RawRow,
    Severity,
    SourceKind,
    VarianceTotals,
)
from .rows import normalize_row, normalize_rows, parse_amount

__all__ = [
    # API
    "analyze_csv",
    "run_analysis",
    # Stages
    "aggregate_categories",
    "aggregate_drivers",
    "enhance_commentary",
    "filter_by_market",
    "format_variance",
    "generate_commentary",
    "normalize_row",
    "normalize_rows",
    "parse_amount",
    "parse_spend_csv",
    "read_spend_rows",
    "select_top_driver_memos",
    # Models / types
    "AnalysisConfig",
    "AnalysisResult",
    "CategoryAggregate",
    "CommentaryItem",
    "CommentaryMode",
    "DriverAggregate",
    "EnhancementResult",
    "EnhancementSettings",
    "MarketScope",
    "NormalizedRow",
    "RawRow",
    "Severity",
    "SourceKind",
    "VarianceTotals",
    # Constants
    "APAC_MARKER",
    "UNKNOWN_SUPPLIER",
]
