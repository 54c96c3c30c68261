"""
Wide-to-tall reshaping.

melt() collapses value columns into two new columns, ``variable`` (the original
column name) and ``value`` (the original cell), keeping the id columns. The
output has one row per (input row, value column) pair, stacked column by column,
and ``variable`` is categorical with levels in value-column order.

Import DAG discipline
- Depends only on stdlib, polars, and plotgram.core.* / plotgram.io.dataset.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

import polars as pl

from plotgram.core.errors import ReshapeError

from .dataset import Dataset

__all__ = ["ReshapeDirective", "melt"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReshapeDirective:
    """
    Reshape request applied by loaders after reading a source.

    Attributes:
        id_columns (tuple[str, ...]): Columns preserved on every output row.
        value_columns (tuple[str, ...] | None): Columns to collapse; None means every
            column that is not an id column.
        variable_name (str): Name of the new column holding original column names.
        value_name (str): Name of the new column holding cell values.
    """

    id_columns: tuple[str, ...]
    value_columns: tuple[str, ...] | None = None
    variable_name: str = "variable"
    value_name: str = "value"

    def apply(self, dataset: Dataset) -> Dataset:
        return melt(
            dataset,
            self.id_columns,
            self.value_columns,
            variable_name=self.variable_name,
            value_name=self.value_name,
        )


def melt(
    dataset: Dataset,
    id_columns: Sequence[str],
    value_columns: Sequence[str] | None = None,
    *,
    variable_name: str = "variable",
    value_name: str = "value",
) -> Dataset:
    """
    Reshape a dataset from wide to tall form.

    Args:
        dataset (Dataset): Source dataset.
        id_columns (Sequence[str]): Columns to keep on every row.
        value_columns (Sequence[str] | None): Columns to collapse (default: all non-id columns).
        variable_name (str): Output column for original column names.
        value_name (str): Output column for cell values.

    Returns:
        Dataset: rows(dataset) * len(value_columns) rows with columns
        id_columns + [variable_name, value_name].

    Raises:
        UnknownColumn: If an id or value column is absent.
        ReshapeError: If no value columns remain, a name collides with an id column,
            or the value columns cannot be stacked into one dtype.

    Examples:
        >>> import polars as pl
        >>> from plotgram.io.dataset import Dataset
        >>> ds = Dataset(pl.DataFrame({"k": ["a", "b"], "u": [1.0, 2.0], "v": [3.0, 4.0]}))
        >>> tall = melt(ds, ["k"])
        >>> tall.height, tall.levels("variable")
        (4, ('u', 'v'))
    """
    ids = list(id_columns)
    dataset.require(*ids)
    if value_columns is None:
        values = [c for c in dataset.columns if c not in ids]
    else:
        values = [c for c in value_columns if c not in ids]
        dataset.require(*values)
    if not values:
        raise ReshapeError("no value columns left to collapse")
    for new in (variable_name, value_name):
        if new in ids:
            raise ReshapeError(f"output column {new!r} collides with an id column")

    try:
        tall = dataset.frame.unpivot(
            on=values, index=ids, variable_name=variable_name, value_name=value_name
        )
    except pl.exceptions.PolarsError as exc:
        raise ReshapeError(f"cannot stack value columns {values!r}: {exc}") from exc

    logger.debug(
        "melt %s: %d rows x %d value columns -> %d rows",
        dataset.name,
        dataset.height,
        len(values),
        tall.height,
    )
    return Dataset(tall, name=dataset.name, levels={variable_name: values})
