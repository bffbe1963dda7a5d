"""Data models and type aliases for ``variance_analysis``.

Pipeline values are frozen ``dataclass`` records with explicit field order so
each stage hands a fully built, immutable collection to the next. The run
configuration is a validated pydantic model, like the other typed DTOs in
this package.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import Any, TypeAlias

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Source columns
# ---------------------------------------------------------------------------

COL_MARKET = "Market"
COL_CATEGORY = "Spend Category"
COL_COST_CENTER = "Cost Center"
COL_SUPPLIER = "Supplier"
COL_DEPARTMENT = "Department"
COL_AMOUNT = "Amount"
COL_VARIANCE = "Variance Amount"
COL_MEMO = "Line Memo"

# One parsed source record: column header -> raw cell text.
RawRow: TypeAlias = Mapping[str, str | None]
"""A single row from a spend export, keyed by column header.

Cells may be missing or ``None``; the normalizer never raises on them.
"""

RawRows: TypeAlias = Iterable[RawRow]


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class MarketScope(StrEnum):
    ALL = "All"
    JP = "JP"
    NON_JP = "Non-JP"

    @classmethod
    def parse(cls, value: str | MarketScope) -> MarketScope:
        """Resolve a user-supplied selector (``all``, ``jp``, ``non-jp``)."""

        if isinstance(value, MarketScope):
            return value
        key = value.strip().lower().replace("_", "-")
        aliases = {
            "all": cls.ALL,
            "consolidated": cls.ALL,
            "jp": cls.JP,
            "non-jp": cls.NON_JP,
            "nonjp": cls.NON_JP,
        }
        try:
            return aliases[key]
        except KeyError:
            raise ValueError(f"unknown market scope: {value!r}") from None


class Severity(StrEnum):
    UNFAVORABLE = "Unfavorable"
    FAVORABLE = "Favorable"

    @classmethod
    def for_variance(cls, variance: float) -> Severity:
        # Positive variance is a spend increase.
        return cls.UNFAVORABLE if variance >= 0 else cls.FAVORABLE


class SourceKind(StrEnum):
    FACTUAL_ONLY = "Factual"
    FACTUAL_PLUS_NARRATIVE = "Factual + Narrative"


class CommentaryMode(StrEnum):
    AI = "ai"
    FACTUAL = "factual"
    NONE = "none"


# ---------------------------------------------------------------------------
# Pipeline records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NormalizedRow:
    """A typed view of one spend row.

    Text fields are stripped; blank cells become ``None``. ``category`` is the
    only required field (rows without it never reach this type).
    """

    market: str | None
    category: str
    cost_center: str | None
    supplier: str | None
    department: str | None
    amount: float
    variance_amount: float
    memo: str | None


@dataclass(frozen=True, slots=True)
class CategoryAggregate:
    """Totals for one spend category.

    ``prior_amount``, ``current_amount`` and ``variance_amount`` are rounded to
    whole currency units independently, so ``current - variance == prior`` is
    only guaranteed before rounding. ``variance_percent`` uses the rounded
    prior and the unrounded variance and is ``0.0`` when the prior rounds to 0.
    """

    name: str
    prior_amount: int
    current_amount: int
    variance_amount: int
    variance_percent: float
    row_count: int


@dataclass(frozen=True, slots=True)
class DriverAggregate:
    """Variance contributed by one (category, cost center, supplier) triple."""

    category: str
    cost_center: str
    supplier: str
    department: str | None
    variance_amount: int
    row_count: int
    memos: tuple[str, ...] = ()

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.category, self.cost_center, self.supplier)


@dataclass(frozen=True, slots=True)
class CommentaryItem:
    """One commentary entry for a category.

    ``factual_sentence`` and ``severity`` are fixed at creation. Enhancement
    produces a single replacement copy carrying ``narrative_sentence`` with
    ``source_kind`` set to ``FACTUAL_PLUS_NARRATIVE``.
    """

    category_name: str
    title: str
    factual_sentence: str
    severity: Severity
    narrative_sentence: str | None = None
    source_kind: SourceKind = SourceKind.FACTUAL_ONLY


@dataclass(frozen=True, slots=True)
class VarianceTotals:
    prior_amount: int
    current_amount: int
    variance_amount: int
    variance_percent: float


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """Result bundle handed to presentation layers.

    A plain value with no behaviour beyond :meth:`to_dict`, which returns a
    JSON-serializable mapping (enums serialize as their display strings).
    """

    categories: tuple[CategoryAggregate, ...]
    drivers: tuple[DriverAggregate, ...]
    commentary: tuple[CommentaryItem, ...]
    market_scope: MarketScope
    row_count: int
    filtered_row_count: int
    totals: VarianceTotals

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["market_scope"] = str(self.market_scope)
        for entry in out["commentary"]:
            entry["severity"] = str(entry["severity"])
            entry["source_kind"] = str(entry["source_kind"])
        for entry in out["drivers"]:
            entry["memos"] = list(entry["memos"])
        return out


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

DEFAULT_MODEL = "claude-sonnet-4-5"
DEFAULT_MAX_TOKENS = 1000
DEFAULT_TIMEOUT_S = 8.0
DEFAULT_CONCURRENCY = 4


class EnhancementSettings(BaseModel):
    """Knobs for the text-generation calls made by the enhancer."""

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    model: str = Field(default=DEFAULT_MODEL, min_length=1)
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, gt=0)
    request_timeout_s: float = Field(default=DEFAULT_TIMEOUT_S, gt=0)
    concurrency: int = Field(default=DEFAULT_CONCURRENCY, ge=1)


class AnalysisConfig(BaseModel):
    """Explicit configuration for one :func:`~variance_analysis.api.run_analysis` call."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    market_scope: MarketScope = MarketScope.ALL
    comment_count: int = Field(default=3, ge=1)
    commentary_mode: CommentaryMode = CommentaryMode.AI
    enhancement: EnhancementSettings = Field(default_factory=EnhancementSettings)
