"""
Shared helpers for turning Polars frames into Vega-Lite inputs.

Responsibilities
- Convert frames to JSON-safe row records (dates → ISO strings, NaN/inf → null).
- Escape column names for Vega-Lite field references (dots and brackets are
  path syntax there; "Sepal.Length" must be written "Sepal\\.Length").
- Map column kinds to Vega-Lite measurement types.

Import DAG discipline
- Depends on stdlib, polars, and plotgram.core/io; never imports render/builder.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any

import polars as pl

from plotgram.core.grammar import ColumnKind

__all__ = ["to_values", "escape_field", "vl_type", "distinct"]

_VL_TYPES: dict[ColumnKind, str] = {
    ColumnKind.NUMERIC: "quantitative",
    ColumnKind.CATEGORICAL: "nominal",
    ColumnKind.DATE: "temporal",
}


def _json_safe(v: Any) -> Any:
    if isinstance(v, float) and not math.isfinite(v):
        return None
    if isinstance(v, datetime | date):
        return v.isoformat()
    return v


def to_values(df: pl.DataFrame, **extra: Any) -> list[dict[str, Any]]:
    """
    Convert a frame to a list of JSON-safe records, optionally tagging each row.

    Args:
        df (pl.DataFrame): Frame to convert.
        **extra: Constant fields added to every record (e.g., ``_layer=0``).

    Returns:
        list[dict[str, Any]]: Records in frame order.

    Examples:
        >>> import polars as pl
        >>> to_values(pl.DataFrame({"a": [1.0, float("nan")]}), _layer=0)
        [{'a': 1.0, '_layer': 0}, {'a': None, '_layer': 0}]
    """
    out: list[dict[str, Any]] = []
    for row in df.iter_rows(named=True):
        rec = {k: _json_safe(v) for k, v in row.items()}
        rec.update(extra)
        out.append(rec)
    return out


def escape_field(name: str) -> str:
    r"""
    Escape a column name for use as a Vega-Lite field reference.

    Examples:
        >>> escape_field("Sepal.Length")
        'Sepal\\.Length'
    """
    return name.replace("\\", "\\\\").replace(".", "\\.").replace("[", "\\[").replace("]", "\\]")


def vl_type(kind: ColumnKind) -> str:
    return _VL_TYPES[kind]


def distinct(seq: list[str]) -> list[str]:
    """Drop duplicates, keeping first occurrence order."""
    seen: set[str] = set()
    out: list[str] = []
    for s in seq:
        if s not in seen:
            seen.add(s)
            out.append(s)
    return out
