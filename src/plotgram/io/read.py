"""
Dataset loaders.

Overview
- load_dataset(): bundled sample name, http(s) URL, or local file → Dataset,
  with an optional wide-to-tall reshape.
- load_series(): whitespace-delimited numeric series (URL or file) → Dataset with
  a calendar date per observation.
- load_edges(): edge-list table (directed graph) with required endpoint columns.

Source resolution
- Bundled names resolve to CSV files shipped in plotgram/io/resources.
- URLs are fetched with requests (blocking; optional timeout from PlotSettings).
- Local files are parsed by extension: .csv, .tsv, .parquet, .json.

Import DAG discipline
- Depends on stdlib, polars, requests, plotgram.core.*, and plotgram.io helpers;
  does not import higher layers (viz, lab).
"""

from __future__ import annotations

import io
import logging
import os
from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from pathlib import Path
from urllib.parse import urlparse

import polars as pl
import requests

from plotgram.core.errors import SpecError

from .config import PlotSettings
from .dataset import Dataset
from .errors import SourceUnavailable
from .reshape import ReshapeDirective

__all__ = [
    "BUNDLED",
    "bundled_names",
    "load_dataset",
    "load_series",
    "load_edges",
]

logger = logging.getLogger(__name__)

_RESOURCES = Path(__file__).with_name("resources")

BUNDLED: dict[str, str] = {
    "iris": "iris.csv",
    "mtcars": "mtcars.csv",
    "social_network": "social_network.csv",
    "state_income": "state_income.csv",
}


def bundled_names() -> list[str]:
    """Names accepted by load_dataset() without a path or URL."""
    return sorted(BUNDLED)


def _is_url(source: str) -> bool:
    return urlparse(source).scheme in {"http", "https"}


def _fetch_bytes(url: str, settings: PlotSettings) -> bytes:
    try:
        resp = requests.get(url, timeout=settings.request_timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise SourceUnavailable(f"failed to fetch {url!r}: {exc}") from exc
    return resp.content


def _read_local_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise SourceUnavailable(f"cannot read {str(path)!r}: {exc}") from exc


def _parse_table(payload: bytes, suffix: str, origin: str) -> pl.DataFrame:
    buf = io.BytesIO(payload)
    try:
        if suffix == ".parquet":
            return pl.read_parquet(buf)
        if suffix == ".json":
            return pl.read_json(buf)
        if suffix == ".tsv":
            return pl.read_csv(buf, separator="\t")
        return pl.read_csv(buf)
    except pl.exceptions.PolarsError as exc:
        raise SourceUnavailable(f"cannot parse {origin!r} as {suffix or '.csv'}: {exc}") from exc


def _resolve(source: str | os.PathLike[str], settings: PlotSettings) -> tuple[bytes, str, str]:
    """Return (payload, suffix, default dataset name) for any supported source."""
    if isinstance(source, str) and source in BUNDLED:
        path = _RESOURCES / BUNDLED[source]
        return _read_local_bytes(path), path.suffix, source
    if isinstance(source, str) and _is_url(source):
        url_path = Path(urlparse(source).path)
        return _fetch_bytes(source, settings), url_path.suffix.lower(), url_path.stem or "data"
    path = Path(source)
    if not path.is_file():
        raise SourceUnavailable(
            f"no such dataset {str(source)!r} (bundled: {bundled_names()!r})"
        )
    return _read_local_bytes(path), path.suffix.lower(), path.stem


def load_dataset(
    source: str | os.PathLike[str],
    *,
    reshape: ReshapeDirective | None = None,
    levels: Mapping[str, Sequence[str]] | None = None,
    categorical: Iterable[str] = (),
    name: str | None = None,
    settings: PlotSettings | None = None,
) -> Dataset:
    """
    Load a tabular dataset from a bundled name, URL, or local file.

    Args:
        source: Bundled name ("iris", "mtcars", "social_network", "state_income"),
            http(s) URL, or filesystem path.
        reshape (ReshapeDirective | None): Optional wide-to-tall reshape applied after loading.
        levels: Explicit level order for categorical columns.
        categorical: Numeric columns to treat as factors.
        name (str | None): Dataset key; defaults to the bundled name or file stem.
        settings (PlotSettings | None): Network timeout source; defaults to PlotSettings().

    Returns:
        Dataset

    Raises:
        SourceUnavailable: Resource missing, unreachable, or unparseable.
        UnknownColumn: `levels`/`categorical`/`reshape` reference absent columns.
        ReshapeError: The reshape directive leaves no value columns.

    Examples:
        >>> from plotgram.io import load_dataset
        >>> load_dataset("iris").height
        150
    """
    settings = settings or PlotSettings()
    payload, suffix, default_name = _resolve(source, settings)
    frame = _parse_table(payload, suffix, str(source))
    ds = Dataset(frame, name=name or default_name, levels=levels, categorical=categorical)
    logger.debug("loaded %s: %d rows, columns=%s", ds.name, ds.height, ds.columns)
    if reshape is not None:
        ds = reshape.apply(ds)
    return ds


def _series_dates(n: int, start: tuple[int, int], frequency: int) -> list[date]:
    if frequency < 1 or 12 % frequency != 0:
        raise SpecError(f"series frequency must divide 12 (got {frequency})")
    year, period = start
    if not 1 <= period <= frequency:
        raise SpecError(f"start period {period} outside 1..{frequency}")
    months_per_period = 12 // frequency
    origin = year * frequency + (period - 1)
    out: list[date] = []
    for i in range(n):
        y, p = divmod(origin + i, frequency)
        out.append(date(y, p * months_per_period + 1, 1))
    return out


def load_series(
    source: str | os.PathLike[str],
    *,
    start: tuple[int, int] = (1, 1),
    frequency: int = 12,
    value_name: str = "value",
    name: str | None = None,
    settings: PlotSettings | None = None,
) -> Dataset:
    """
    Load a whitespace-delimited numeric series and attach calendar positions.

    Args:
        source: http(s) URL or local path of a text file of numbers.
        start (tuple[int, int]): (year, period) of the first observation.
        frequency (int): Observations per year (1, 2, 3, 4, 6, or 12).
        value_name (str): Name of the value column.
        name (str | None): Dataset key; defaults to the file stem.
        settings (PlotSettings | None): Network timeout source.

    Returns:
        Dataset: Columns date (first day of the period), year, period, value_name.

    Raises:
        SourceUnavailable: Resource unreadable, empty, or containing non-numeric tokens.
        SpecError: Invalid frequency or start period.
    """
    settings = settings or PlotSettings()
    if isinstance(source, str) and _is_url(source):
        payload = _fetch_bytes(source, settings)
        default_name = Path(urlparse(source).path).stem or "series"
    else:
        path = Path(source)
        if not path.is_file():
            raise SourceUnavailable(f"no such series file {str(source)!r}")
        payload = _read_local_bytes(path)
        default_name = path.stem

    tokens = payload.decode("utf-8", errors="replace").split()
    if not tokens:
        raise SourceUnavailable(f"series {str(source)!r} is empty")
    try:
        values = [float(t) for t in tokens]
    except ValueError as exc:
        raise SourceUnavailable(f"series {str(source)!r} contains non-numeric data: {exc}") from exc

    dates = _series_dates(len(values), start, frequency)
    frame = pl.DataFrame(
        {
            "date": pl.Series(dates, dtype=pl.Date),
            "year": [d.year for d in dates],
            "period": [(d.month - 1) // (12 // frequency) + 1 for d in dates],
            value_name: values,
        }
    )
    ds = Dataset(frame, name=name or default_name)
    logger.debug("loaded series %s: %d observations from %s", ds.name, ds.height, dates[0])
    return ds


def load_edges(
    source: str | os.PathLike[str],
    *,
    source_col: str = "from",
    target_col: str = "to",
    name: str | None = None,
    settings: PlotSettings | None = None,
) -> Dataset:
    """
    Load a directed edge list.

    Endpoint columns are always categorical so node ids format consistently
    whether they were written as names or numbers.

    Raises:
        SourceUnavailable: Resource unreadable.
        UnknownColumn: Either endpoint column is missing.
    """
    ds = load_dataset(source, name=name, settings=settings)
    ds.require(source_col, target_col)
    nodes = sorted(
        set(ds.frame.get_column(source_col).cast(pl.String).drop_nulls().to_list())
        | set(ds.frame.get_column(target_col).cast(pl.String).drop_nulls().to_list())
    )
    frame = ds.frame.with_columns(
        pl.col(source_col).cast(pl.String), pl.col(target_col).cast(pl.String)
    )
    return Dataset(frame, name=ds.name, levels={source_col: nodes, target_col: nodes})
