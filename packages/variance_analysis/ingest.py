"""CSV loading for spend exports.

The analysis core only needs an ordered sequence of ``{header: cell}``
mappings; these helpers produce one from a file or in-memory text using the
stdlib :mod:`csv` module (RFC 4180 quoting, embedded newlines, doubled
quotes). A byte-order mark on the header row is tolerated and fully blank
lines are skipped.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable
from io import StringIO
from os import PathLike
from pathlib import Path

from .logging_setup import get_logger
from .models import RawRow

_logger = get_logger("variance_analysis.ingest")


def _read_rows(lines: Iterable[str], *, source: str) -> list[RawRow]:
    reader = csv.DictReader(lines)
    headers = [h.strip() for h in (reader.fieldnames or []) if h is not None]
    if not any(headers):
        raise csv.Error(f"CSV appears to have no header row: {source}")

    rows: list[RawRow] = []
    for record in reader:
        row = {
            str(k).strip(): (v.strip() if isinstance(v, str) else None)
            for k, v in record.items()
            if k is not None
        }
        if not any(row.values()):
            continue
        rows.append(row)

    _logger.info("ingest:read source=%s rows=%d columns=%d", source, len(rows), len(headers))
    return rows


def parse_spend_csv(csv_text: str) -> list[RawRow]:
    """Parse CSV text (header row first) into row mappings."""

    return _read_rows(StringIO(csv_text.lstrip("\ufeff"), newline=""), source="<text>")


def read_spend_rows(csv_path: str | PathLike[str]) -> list[RawRow]:
    """Read a spend export CSV into row mappings.

    Raises ``FileNotFoundError``/``PermissionError`` when the file cannot be
    opened and ``csv.Error`` when it has no header row.
    """

    p = Path(csv_path)
    with p.open(encoding="utf-8-sig", newline="") as f:
        return _read_rows(f, source=str(p))


__all__ = ["parse_spend_csv", "read_spend_rows"]
