"""Raw spend rows -> :class:`~variance_analysis.models.NormalizedRow`.

Numeric cells tolerate thousands separators and accounting notation
(``$``, leading sign, surrounding parentheses). Anything that still fails to
parse counts as ``0.0``; bad numeric data is never an error.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping

from .logging_setup import get_logger
from .models import (
    COL_AMOUNT,
    COL_CATEGORY,
    COL_COST_CENTER,
    COL_DEPARTMENT,
    COL_MARKET,
    COL_MEMO,
    COL_SUPPLIER,
    COL_VARIANCE,
    NormalizedRow,
    RawRow,
    RawRows,
)

_logger = get_logger("variance_analysis.rows")


def _clean_text(value: object) -> str | None:
    if value is None:
        return None
    # Collapse internal whitespace (including embedded newlines) and strip.
    cleaned = re.sub(r"\s+", " ", str(value)).strip()
    return cleaned or None


def parse_amount(raw: object) -> float:
    """Parse a spend cell into a float, defaulting to ``0.0``.

    ``"1,238"`` -> ``1238.0``; ``"($1,000.50)"`` -> ``-1000.5``; ``""``,
    ``None``, ``"n/a"`` and non-finite values -> ``0.0``.
    """

    if raw is None:
        return 0.0
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        value = float(raw)
        return value if math.isfinite(value) else 0.0

    s = str(raw).strip()
    negative = False

    # Strip leading sign, currency symbol and surrounding parentheses until
    # stable so any ordering of these markers is accepted.
    while s:
        changed = False
        if s.startswith("+"):
            s = s[1:].lstrip()
            changed = True
        elif s.startswith("-"):
            negative = not negative
            s = s[1:].lstrip()
            changed = True
        if s.startswith("$"):
            s = s[1:].lstrip()
            changed = True
        if s.startswith("(") and s.endswith(")") and len(s) >= 2:
            negative = not negative
            s = s[1:-1].strip()
            changed = True
        if not changed:
            break

    s = s.replace(",", "")
    try:
        value = float(s)
    except ValueError:
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return -value if negative else value


def normalize_row(raw: RawRow) -> NormalizedRow | None:
    """Return the typed row, or ``None`` when it has no spend category.

    Rows without a cost center are kept here (``cost_center=None``): they
    still count toward category totals and are dropped by the driver stage.
    """

    category = _clean_text(raw.get(COL_CATEGORY))
    if category is None:
        return None
    return NormalizedRow(
        market=_clean_text(raw.get(COL_MARKET)),
        category=category,
        cost_center=_clean_text(raw.get(COL_COST_CENTER)),
        supplier=_clean_text(raw.get(COL_SUPPLIER)),
        department=_clean_text(raw.get(COL_DEPARTMENT)),
        amount=parse_amount(raw.get(COL_AMOUNT)),
        variance_amount=parse_amount(raw.get(COL_VARIANCE)),
        memo=_clean_text(raw.get(COL_MEMO)),
    )


def normalize_rows(rows: RawRows) -> list[NormalizedRow]:
    """Normalize every row, dropping those without a spend category.

    Raises ``TypeError`` when an element is not a mapping: the row source
    itself is unusable and there is nothing to aggregate.
    """

    out: list[NormalizedRow] = []
    skipped = 0
    for pos, raw in enumerate(rows):
        if not isinstance(raw, Mapping):
            raise TypeError(
                f"expected each row to be a mapping of column name to cell text; "
                f"got {type(raw).__name__} at position {pos}"
            )
        row = normalize_row(raw)
        if row is None:
            skipped += 1
            continue
        out.append(row)
    if skipped:
        _logger.debug("rows:skipped_no_category count=%d", skipped)
    return out


__all__ = ["normalize_row", "normalize_rows", "parse_amount"]
