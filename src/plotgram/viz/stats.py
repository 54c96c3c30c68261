"""
Statistical transforms applied to a layer's data before drawing.

Each stat takes the layer's Dataset, the resolved channel → column fields, the
grouping columns (categorical color/fill/shape/group fields) and the facet
columns, and returns a StatResult: a Polars frame plus the channel → column
overrides the renderer should encode (e.g., y → "count").

Stats
- identity: the layer's columns, untouched.
- count: rows per (x, group, panel) cell; numeric x is binned when ``bins`` is set.
- summary_mean: mean of y per (x, group, panel) cell.
- smooth: least-squares polynomial fit per (group, panel), with a t-based
  confidence band (``method`` "lm" | "poly", ``degree``, ``se``, ``level``).
- density: Gaussian KDE of x per (group, panel) (``bw``, ``n``).
- ydensity: Gaussian KDE of y per (x, group, panel), laid out as violins around
  integer category positions and scaled to equal area.

Notes
- Aggregations run in Polars; fits and KDEs delegate to numpy/scipy.
- Groups too small (or too degenerate) to fit are skipped with a debug log; they
  never fail a render.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any

import numpy as np
import polars as pl
from scipy import stats as sps

from plotgram.core.constants import SMOOTH_LEVEL
from plotgram.core.errors import SpecError
from plotgram.core.grammar import ColumnKind, Stat
from plotgram.io.config import PlotSettings
from plotgram.io.dataset import Dataset

from .base import distinct

__all__ = ["StatResult", "compute_stat", "VIOLIN_WIDTH"]

logger = logging.getLogger(__name__)

# Maximum violin width in category units.
VIOLIN_WIDTH = 0.9


@dataclass(frozen=True)
class StatResult:
    """
    Output of one stat.

    Attributes:
        frame (pl.DataFrame): Rows to draw.
        fields (dict[str, str]): Channel (or band edge: xmin/xmax/ymin/ymax) → column.
        kinds (dict[str, ColumnKind]): Kinds of columns the stat created.
        axis_levels (tuple[str, ...]): Category labels for integer x positions (violins).
    """

    frame: pl.DataFrame
    fields: dict[str, str]
    kinds: dict[str, ColumnKind] = field(default_factory=dict)
    axis_levels: tuple[str, ...] = ()


def _columns(fields: Mapping[str, str], stat: Stat, *channels: str) -> tuple[str, ...]:
    missing = [c for c in channels if c not in fields]
    if missing:
        raise SpecError(f"stat {stat.value!r} needs a column mapped to {missing!r}")
    return tuple(fields[c] for c in channels)


def _require_numeric(ds: Dataset, column: str, stat: Stat, channel: str) -> None:
    if ds.kind(column) is not ColumnKind.NUMERIC:
        raise SpecError(
            f"stat {stat.value!r} needs a numeric {channel} (got {ds.kind(column).value} {column!r})"
        )


def _finite(values: np.ndarray) -> np.ndarray:
    return values[np.isfinite(values)]


def _key_columns(keys: Sequence[str], key_values: Sequence[str], n: int) -> dict[str, list[str]]:
    return {k: [v] * n for k, v in zip(keys, key_values, strict=True)}


def _concat(parts: list[pl.DataFrame], schema: Mapping[str, pl.DataType]) -> pl.DataFrame:
    if not parts:
        return pl.DataFrame(schema=dict(schema))
    return pl.concat(parts, how="vertical")


def _bandwidth(params: Mapping[str, Any]) -> str | float:
    bw = params.get("bw", "scott")
    if isinstance(bw, str):
        if bw not in {"scott", "silverman"}:
            raise SpecError(f"unknown bandwidth rule {bw!r} (allowed: 'scott', 'silverman', or a number)")
        return bw
    if isinstance(bw, bool) or not isinstance(bw, int | float) or bw <= 0:
        raise SpecError(f"bandwidth must be positive (got {bw!r})")
    return float(bw)


def _kde(values: np.ndarray, bw: str | float, n: int) -> tuple[np.ndarray, np.ndarray] | None:
    values = _finite(values)
    if values.size < 2 or np.ptp(values) == 0:
        return None
    try:
        kde = sps.gaussian_kde(values, bw_method=bw)
    except np.linalg.LinAlgError:
        return None
    grid = np.linspace(values.min(), values.max(), n)
    return grid, kde(grid)


# ---------------------------------------------------------------------------
# Aggregating stats (Polars)
# ---------------------------------------------------------------------------


def _stat_identity(ds: Dataset, fields: dict[str, str], keys: list[str]) -> StatResult:
    cols = distinct([*fields.values(), *keys])
    return StatResult(frame=ds.frame.select(cols), fields=dict(fields))


def _bin_numeric(frame: pl.DataFrame, column: str, bins: int) -> pl.DataFrame:
    frame = frame.drop_nulls(column)
    values = frame.get_column(column).cast(pl.Float64).to_numpy()
    if values.size == 0:
        return frame
    edges = np.histogram_bin_edges(values, bins=bins)
    centers = (edges[:-1] + edges[1:]) / 2.0
    idx = np.clip(np.searchsorted(edges, values, side="right") - 1, 0, bins - 1)
    return frame.with_columns(pl.Series(column, centers[idx]))


def _stat_count(
    ds: Dataset, fields: dict[str, str], keys: list[str], params: Mapping[str, Any]
) -> StatResult:
    (x,) = _columns(fields, Stat.COUNT, "x")
    frame = ds.frame
    bins = params.get("bins")
    if bins is not None:
        if isinstance(bins, bool) or not isinstance(bins, int) or bins < 1:
            raise SpecError(f"bins must be a positive integer (got {bins!r})")
        _require_numeric(ds, x, Stat.COUNT, "x")
        frame = _bin_numeric(frame, x, bins)
    by = distinct([x, *keys])
    out = frame.group_by(by, maintain_order=True).agg(pl.len().alias("count")).sort(by)
    out = out.with_columns(pl.col("count").cast(pl.Int64))
    new_fields = {k: v for k, v in fields.items() if k != "y"}
    new_fields["y"] = "count"
    return StatResult(frame=out, fields=new_fields, kinds={"count": ColumnKind.NUMERIC})


def _stat_summary_mean(ds: Dataset, fields: dict[str, str], keys: list[str]) -> StatResult:
    x, y = _columns(fields, Stat.SUMMARY_MEAN, "x", "y")
    _require_numeric(ds, y, Stat.SUMMARY_MEAN, "y")
    by = distinct([x, *keys])
    out = ds.frame.group_by(by, maintain_order=True).agg(pl.col(y).mean()).sort(by)
    return StatResult(frame=out, fields=dict(fields))


# ---------------------------------------------------------------------------
# Fitting stats (numpy/scipy, per partition)
# ---------------------------------------------------------------------------


def _smooth_params(params: Mapping[str, Any]) -> tuple[int, bool, float]:
    method = str(params.get("method", "lm")).lower()
    if method == "lm":
        degree = 1
    elif method == "poly":
        degree = params.get("degree", 2)
        if isinstance(degree, bool) or not isinstance(degree, int) or degree < 1:
            raise SpecError(f"degree must be a positive integer (got {degree!r})")
    else:
        raise SpecError(f"unknown smoothing method {method!r} (allowed: 'lm', 'poly')")
    se = bool(params.get("se", True))
    level = float(params.get("level", SMOOTH_LEVEL))
    if not 0 < level < 1:
        raise SpecError(f"confidence level must be in (0, 1) (got {level!r})")
    return degree, se, level


def _fit_polynomial(
    x: np.ndarray, y: np.ndarray, degree: int, grid: np.ndarray, se: bool, level: float
) -> tuple[np.ndarray, np.ndarray | None, np.ndarray | None]:
    X = np.vander(x, degree + 1)
    coef, *_ = np.linalg.lstsq(X, y, rcond=None)
    G = np.vander(grid, degree + 1)
    fit = G @ coef
    dof = x.size - (degree + 1)
    if not se or dof <= 0:
        return fit, None, None
    resid = y - X @ coef
    s2 = float(resid @ resid) / dof
    xtx_inv = np.linalg.pinv(X.T @ X)
    se_fit = np.sqrt(np.einsum("ij,jk,ik->i", G, xtx_inv, G) * s2)
    t = sps.t.ppf((1.0 + level) / 2.0, dof)
    return fit, fit - t * se_fit, fit + t * se_fit


def _stat_smooth(
    ds: Dataset,
    fields: dict[str, str],
    keys: list[str],
    params: Mapping[str, Any],
    settings: PlotSettings,
) -> StatResult:
    x, y = _columns(fields, Stat.SMOOTH, "x", "y")
    _require_numeric(ds, x, Stat.SMOOTH, "x")
    _require_numeric(ds, y, Stat.SMOOTH, "y")
    degree, se, level = _smooth_params(params)
    n_grid = int(params.get("n", settings.smooth_points))

    parts: list[pl.DataFrame] = []
    with_band = False
    for key, part in ds.partition(keys).items():
        xy = part.frame.select(pl.col(x).cast(pl.Float64), pl.col(y).cast(pl.Float64)).drop_nulls()
        xv, yv = xy.get_column(x).to_numpy(), xy.get_column(y).to_numpy()
        mask = np.isfinite(xv) & np.isfinite(yv)
        xv, yv = xv[mask], yv[mask]
        if xv.size <= degree or np.ptp(xv) == 0:
            logger.debug("smooth: skipping group %s (%d points)", key, xv.size)
            continue
        grid = np.linspace(xv.min(), xv.max(), n_grid)
        fit, lo, hi = _fit_polynomial(xv, yv, degree, grid, se, level)
        cols: dict[str, Any] = {x: grid, y: fit}
        if lo is not None and hi is not None:
            cols["ymin"], cols["ymax"] = lo, hi
            with_band = True
        cols.update(_key_columns(keys, key, grid.size))
        parts.append(pl.DataFrame(cols))

    if with_band:
        parts = [
            p if "ymin" in p.columns else p.with_columns(ymin=pl.lit(None, pl.Float64), ymax=pl.lit(None, pl.Float64))
            for p in parts
        ]
    schema: dict[str, pl.DataType] = {x: pl.Float64(), y: pl.Float64()}
    if with_band:
        schema.update(ymin=pl.Float64(), ymax=pl.Float64())
    schema.update({k: pl.String() for k in keys})
    frame = _concat([p.select(list(schema)) for p in parts], schema)

    new_fields = dict(fields)
    kinds: dict[str, ColumnKind] = {}
    if with_band:
        new_fields.update(ymin="ymin", ymax="ymax")
        kinds.update(ymin=ColumnKind.NUMERIC, ymax=ColumnKind.NUMERIC)
    return StatResult(frame=frame, fields=new_fields, kinds=kinds)


def _stat_density(
    ds: Dataset,
    fields: dict[str, str],
    keys: list[str],
    params: Mapping[str, Any],
    settings: PlotSettings,
) -> StatResult:
    (x,) = _columns(fields, Stat.DENSITY, "x")
    _require_numeric(ds, x, Stat.DENSITY, "x")
    bw = _bandwidth(params)
    n_grid = int(params.get("n", settings.density_points))

    parts: list[pl.DataFrame] = []
    for key, part in ds.partition(keys).items():
        values = part.frame.get_column(x).drop_nulls().cast(pl.Float64).to_numpy()
        est = _kde(values, bw, n_grid)
        if est is None:
            logger.debug("density: skipping group %s (%d values)", key, values.size)
            continue
        grid, dens = est
        cols: dict[str, Any] = {x: grid, "density": dens}
        cols.update(_key_columns(keys, key, grid.size))
        parts.append(pl.DataFrame(cols))

    schema: dict[str, pl.DataType] = {x: pl.Float64(), "density": pl.Float64()}
    schema.update({k: pl.String() for k in keys})
    frame = _concat(parts, schema)
    new_fields = {k: v for k, v in fields.items() if k != "y"}
    new_fields["y"] = "density"
    return StatResult(frame=frame, fields=new_fields, kinds={"density": ColumnKind.NUMERIC})


def _stat_ydensity(
    ds: Dataset,
    fields: dict[str, str],
    keys: list[str],
    params: Mapping[str, Any],
    settings: PlotSettings,
) -> StatResult:
    x, y = _columns(fields, Stat.YDENSITY, "x", "y")
    if ds.kind(x) is not ColumnKind.CATEGORICAL:
        raise SpecError(f"stat 'ydensity' needs a categorical x (got {ds.kind(x).value} {x!r})")
    _require_numeric(ds, y, Stat.YDENSITY, "y")
    bw = _bandwidth(params)
    n_grid = int(params.get("n", settings.density_points))
    levels = ds.levels(x)
    by = distinct([x, *keys])

    estimates: list[tuple[tuple[str, ...], np.ndarray, np.ndarray]] = []
    for key, part in ds.partition(by).items():
        values = part.frame.get_column(y).drop_nulls().cast(pl.Float64).to_numpy()
        est = _kde(values, bw, n_grid)
        if est is None:
            logger.debug("ydensity: skipping group %s (%d values)", key, values.size)
            continue
        estimates.append((key, *est))

    peak = max((float(d.max()) for _, _, d in estimates), default=0.0)
    parts: list[pl.DataFrame] = []
    for key, grid, dens in estimates:
        pos = float(levels.index(key[0]))
        half = dens / peak * (VIOLIN_WIDTH / 2.0)
        cols: dict[str, Any] = {y: grid, "xmin": pos - half, "xmax": pos + half}
        cols.update(_key_columns(by, key, grid.size))
        parts.append(pl.DataFrame(cols))

    schema: dict[str, pl.DataType] = {y: pl.Float64(), "xmin": pl.Float64(), "xmax": pl.Float64()}
    schema.update({k: pl.String() for k in by})
    frame = _concat([p.select(list(schema)) for p in parts], schema)
    new_fields = dict(fields)
    new_fields.update(xmin="xmin", xmax="xmax")
    return StatResult(
        frame=frame,
        fields=new_fields,
        kinds={"xmin": ColumnKind.NUMERIC, "xmax": ColumnKind.NUMERIC},
        axis_levels=levels,
    )


def compute_stat(
    stat: Stat,
    dataset: Dataset,
    fields: Mapping[str, str],
    *,
    group_columns: Sequence[str] = (),
    facet_columns: Sequence[str] = (),
    params: Mapping[str, Any] | None = None,
    settings: PlotSettings | None = None,
) -> StatResult:
    """
    Run one stat over a layer's dataset.

    Args:
        stat (Stat): Transform to run.
        dataset (Dataset): Layer data.
        fields (Mapping[str, str]): Channel → column for field-bound channels.
        group_columns (Sequence[str]): Categorical columns that split groups.
        facet_columns (Sequence[str]): Facet columns; joined to the grouping keys.
        params (Mapping[str, Any] | None): Stat parameters.
        settings (PlotSettings | None): Grid sizes for density/smooth.

    Returns:
        StatResult

    Raises:
        SpecError: Wrong column kinds or invalid parameters for the stat.

    Examples:
        >>> import polars as pl
        >>> from plotgram.io.dataset import Dataset
        >>> ds = Dataset(pl.DataFrame({"g": ["a", "b", "a"]}))
        >>> compute_stat(Stat.COUNT, ds, {"x": "g"}).frame.get_column("count").to_list()
        [2, 1]
    """
    params = dict(params or {})
    settings = settings or PlotSettings()
    fields = dict(fields)
    keys = distinct([*group_columns, *facet_columns])
    if keys:
        kept = dataset.frame.drop_nulls(keys)
        if kept.height < dataset.height:
            logger.debug(
                "stat %s on %s: dropped %d rows with missing group/facet values",
                stat.value,
                dataset.name,
                dataset.height - kept.height,
            )
            dataset = dataset.with_frame(kept)

    if stat is Stat.IDENTITY:
        result = _stat_identity(dataset, fields, keys)
    elif stat is Stat.COUNT:
        result = _stat_count(dataset, fields, keys, params)
    elif stat is Stat.SUMMARY_MEAN:
        result = _stat_summary_mean(dataset, fields, keys)
    elif stat is Stat.SMOOTH:
        result = _stat_smooth(dataset, fields, keys, params, settings)
    elif stat is Stat.DENSITY:
        result = _stat_density(dataset, fields, keys, params, settings)
    else:
        result = _stat_ydensity(dataset, fields, keys, params, settings)

    present = set(result.frame.columns)
    result = replace(result, fields={k: v for k, v in result.fields.items() if v in present})
    logger.debug("stat %s on %s: %d rows -> %d rows", stat.value, dataset.name, dataset.height, result.frame.height)
    return result
