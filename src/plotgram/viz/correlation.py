"""
Correlation matrices and correlation heatmaps.

correlation_matrix() computes pairwise Pearson or Spearman coefficients over the
complete rows of a set of numeric columns and returns them in tall form
(var1, var2, r), optionally reordered by hierarchical clustering on 1 - r so
that correlated variables sit next to each other.

corrplot() wraps that table into a Plot: a raster coloured by r on a diverging
RdBu palette pinned to [-1, 1], with the rounded coefficients printed on top.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
import polars as pl
from scipy import stats as sps
from scipy.cluster import hierarchy
from scipy.spatial.distance import squareform

from plotgram.core.errors import SpecError
from plotgram.core.grammar import ColumnKind
from plotgram.io.dataset import Dataset

from .builder import Plot

__all__ = ["correlation_matrix", "corrplot"]

logger = logging.getLogger(__name__)

_METHODS = ("pearson", "spearman")
_ORDERS = ("original", "hclust")


def _numeric_columns(dataset: Dataset, columns: Sequence[str] | None) -> list[str]:
    if columns is None:
        return [c for c in dataset.columns if dataset.kind(c) is ColumnKind.NUMERIC]
    cols = list(columns)
    dataset.require(*cols)
    for c in cols:
        if dataset.kind(c) is not ColumnKind.NUMERIC:
            raise SpecError(f"correlation needs numeric columns; {c!r} is {dataset.kind(c).value}")
    return cols


def _hclust_order(r: np.ndarray, method: str) -> list[int]:
    dist = np.clip(1.0 - r, 0.0, None)
    np.fill_diagonal(dist, 0.0)
    z = hierarchy.linkage(squareform(dist, checks=False), method=method)
    return [int(i) for i in hierarchy.leaves_list(z)]


def correlation_matrix(
    dataset: Dataset,
    columns: Sequence[str] | None = None,
    *,
    method: str = "pearson",
    order: str = "original",
    linkage_method: str = "complete",
) -> Dataset:
    """
    Pairwise correlation coefficients in tall form.

    Args:
        dataset (Dataset): Source data.
        columns (Sequence[str] | None): Numeric columns to correlate (default: every numeric column).
        method (str): "pearson" or "spearman".
        order (str): "original" keeps column order; "hclust" reorders by hierarchical clustering.
        linkage_method (str): scipy linkage method used when order="hclust".

    Returns:
        Dataset: Columns var1, var2 (categorical, levels in display order) and r;
        len(columns)**2 rows.

    Raises:
        SpecError: Fewer than two numeric columns, fewer than two complete rows,
            or an unknown method/order.
        UnknownColumn: A named column is missing.

    Examples:
        >>> from plotgram.io import load_dataset
        >>> cm = correlation_matrix(load_dataset("mtcars"), ["mpg", "wt", "hp"])
        >>> cm.height, cm.levels("var1")
        (9, ('mpg', 'wt', 'hp'))
    """
    if method not in _METHODS:
        raise SpecError(f"unknown correlation method {method!r} (allowed: {list(_METHODS)!r})")
    if order not in _ORDERS:
        raise SpecError(f"unknown correlation order {order!r} (allowed: {list(_ORDERS)!r})")
    cols = _numeric_columns(dataset, columns)
    if len(cols) < 2:
        raise SpecError("correlation needs at least two numeric columns")

    complete = dataset.frame.select([pl.col(c).cast(pl.Float64) for c in cols]).drop_nulls()
    if complete.height < 2:
        raise SpecError("correlation needs at least two complete rows")
    x = complete.to_numpy()
    if method == "spearman":
        x = sps.rankdata(x, axis=0)
    with np.errstate(invalid="ignore", divide="ignore"):
        r = np.corrcoef(x, rowvar=False)

    idx = list(range(len(cols)))
    if order == "hclust":
        idx = _hclust_order(np.nan_to_num(r, nan=0.0), linkage_method)
    ordered = [cols[i] for i in idx]
    logger.debug("correlation (%s, %s) over %d rows: %s", method, order, complete.height, ordered)

    frame = pl.DataFrame(
        {
            "var1": [cols[i] for i in idx for _ in idx],
            "var2": [cols[j] for _ in idx for j in idx],
            "r": [float(r[i, j]) for i in idx for j in idx],
        }
    )
    return Dataset(frame, name=f"{dataset.name}_cor", levels={"var1": ordered, "var2": ordered})


def corrplot(
    dataset: Dataset,
    columns: Sequence[str] | None = None,
    *,
    method: str = "pearson",
    order: str = "hclust",
    labels: bool = True,
    digits: int = 2,
) -> Plot:
    """
    Correlation heatmap of a dataset's numeric columns.

    Returns:
        Plot: raster of r (diverging RdBu palette on [-1, 1]) plus a text layer when `labels`.
    """
    cm = correlation_matrix(dataset, columns, method=method, order=order)
    frame = cm.frame.with_columns(pl.col("r").round(digits).cast(pl.String).alias("label"))
    cm = cm.with_frame(frame)
    p = (
        Plot(cm, x="var1", y="var2", fill="r")
        .geom_raster()
        .scale("fill", palette="RdBu", domain=[-1, 1], title=method)
        .labs(x="", y="")
        .theme("minimal")
    )
    if labels:
        p = p.geom_text({"x": "var1", "y": "var2", "label": "label"}, inherit=False, size=10)
    return p
