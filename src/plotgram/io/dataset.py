"""
Dataset wrapper for plotgram.

A Dataset is a Polars DataFrame plus the semantic kind of every column
(numeric, categorical, date) and a fixed tuple of levels for each categorical
column. Categorical columns are stored as ``pl.Enum(levels)`` so the level order
travels with the frame through filters, group-bys and reshapes, and the renderer
can use the full level set as the color/fill domain (consistent colors across
plots and subsets).

Source of truth
- Column kinds: plotgram.core.grammar.ColumnKind.
- Errors: plotgram.core.errors.UnknownColumn / SpecError.

Import DAG discipline
- Depends only on stdlib, polars, and plotgram.core.*.

Notes
- Datasets are read-only once loaded: every operation returns a new Dataset.
- Levels default to the sorted distinct values unless given explicitly or already
  carried by an Enum dtype.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

import polars as pl

from plotgram.core.errors import SpecError, UnknownColumn
from plotgram.core.grammar import ColumnKind

__all__ = ["Dataset", "column_kind"]


def column_kind(dtype: pl.DataType) -> ColumnKind:
    """
    Classify a Polars dtype into a ColumnKind.

    Examples:
        >>> import polars as pl
        >>> column_kind(pl.Float64()).value
        'numeric'
        >>> column_kind(pl.String()).value
        'categorical'
    """
    if dtype.is_numeric():
        return ColumnKind.NUMERIC
    if dtype.is_temporal():
        return ColumnKind.DATE
    return ColumnKind.CATEGORICAL


def _default_levels(series: pl.Series) -> tuple[str, ...]:
    values = series.drop_nulls().unique()
    if series.dtype.is_numeric() or series.dtype == pl.Boolean:
        values = values.sort()
        return tuple(str(v) for v in values.cast(pl.String).to_list())
    return tuple(values.cast(pl.String).sort().to_list())


def _to_enum(series: pl.Series, levels: Sequence[str]) -> pl.Series:
    as_str = series.cast(pl.String)
    extra = set(as_str.drop_nulls().unique().to_list()) - set(levels)
    if extra:
        raise SpecError(f"column {series.name!r} has values outside its levels: {sorted(extra)!r}")
    return as_str.cast(pl.Enum(list(levels)))


class Dataset:
    """
    Ordered collection of equal-length named columns with semantic kinds.

    Args:
        frame (pl.DataFrame): Tabular data.
        name (str): Key under which plots reference this dataset.
        levels (Mapping[str, Sequence[str]] | None): Explicit level order per categorical column.
        categorical (Iterable[str]): Numeric/boolean columns to treat as factors.

    Raises:
        UnknownColumn: If `levels` or `categorical` reference absent columns.
        SpecError: If explicit levels do not cover a column's values.

    Examples:
        >>> import polars as pl
        >>> from plotgram.io.dataset import Dataset
        >>> ds = Dataset(pl.DataFrame({"g": ["b", "a", "b"], "v": [1.0, 2.0, 3.0]}))
        >>> ds.levels("g")
        ('a', 'b')
        >>> ds.kind("v").value
        'numeric'
    """

    def __init__(
        self,
        frame: pl.DataFrame,
        *,
        name: str = "data",
        levels: Mapping[str, Sequence[str]] | None = None,
        categorical: Iterable[str] = (),
    ) -> None:
        levels = dict(levels or {})
        forced = set(categorical) | set(levels)
        for col in forced:
            if col not in frame.columns:
                raise UnknownColumn(col, frame.columns)

        converted: list[pl.Series] = []
        for col in frame.columns:
            s = frame.get_column(col)
            dtype = s.dtype
            if isinstance(dtype, pl.Enum) and col not in levels:
                converted.append(s)
                continue
            if col in forced or column_kind(dtype) is ColumnKind.CATEGORICAL:
                lv = tuple(str(v) for v in levels[col]) if col in levels else _default_levels(s)
                converted.append(_to_enum(s, lv))
            else:
                converted.append(s)

        self._frame = pl.DataFrame(converted) if converted else frame
        self._name = name
        self._kinds = {c: column_kind(t) for c, t in self._frame.schema.items()}
        self._levels = {
            c: tuple(t.categories.to_list())
            for c, t in self._frame.schema.items()
            if isinstance(t, pl.Enum)
        }

    # ---------------------------------------------------------------------
    # Introspection
    # ---------------------------------------------------------------------
    @property
    def frame(self) -> pl.DataFrame:
        return self._frame

    @property
    def name(self) -> str:
        return self._name

    @property
    def columns(self) -> list[str]:
        return list(self._frame.columns)

    @property
    def height(self) -> int:
        return self._frame.height

    def __len__(self) -> int:
        return self._frame.height

    def __repr__(self) -> str:
        cols = ", ".join(f"{c}:{k.value}" for c, k in self._kinds.items())
        return f"Dataset(name={self._name!r}, rows={self.height}, columns=[{cols}])"

    def has_column(self, column: str) -> bool:
        return column in self._kinds

    def require(self, *columns: str) -> None:
        """
        Ensure every column exists.

        Raises:
            UnknownColumn: On the first absent column.
        """
        for col in columns:
            if col not in self._kinds:
                raise UnknownColumn(col, self.columns)

    def kind(self, column: str) -> ColumnKind:
        self.require(column)
        return self._kinds[column]

    def is_categorical(self, column: str) -> bool:
        return self.kind(column) is ColumnKind.CATEGORICAL

    def levels(self, column: str) -> tuple[str, ...]:
        """Fixed level order of a categorical column; () for other kinds."""
        self.require(column)
        return self._levels.get(column, ())

    # ---------------------------------------------------------------------
    # Derivation (always returns a new Dataset)
    # ---------------------------------------------------------------------
    def with_frame(self, frame: pl.DataFrame, *, name: str | None = None) -> Dataset:
        """Wrap a derived frame; Enum columns keep their levels."""
        return Dataset(frame, name=name or self._name)

    def renamed(self, name: str) -> Dataset:
        return Dataset(self._frame, name=name)

    def as_factor(self, column: str, levels: Sequence[str] | None = None) -> Dataset:
        """
        Treat a column as categorical, optionally with an explicit level order.

        Examples:
            >>> import polars as pl
            >>> ds = Dataset(pl.DataFrame({"cyl": [6, 4, 8, 4]}))
            >>> ds.as_factor("cyl").levels("cyl")
            ('4', '6', '8')
        """
        self.require(column)
        lv = {column: levels} if levels is not None else None
        return Dataset(self._frame, name=self._name, levels=lv, categorical=[column])

    def partition(self, columns: Sequence[str]) -> dict[tuple[str, ...], Dataset]:
        """
        Split rows by the values of one or more categorical columns.

        Returns:
            dict[tuple[str, ...], Dataset]: Key tuple (in `columns` order) -> sub-dataset.
            Level combinations with no rows are absent. Rows with a missing value in
            any key column belong to no partition.
        """
        self.require(*columns)
        if not columns:
            return {(): self}
        frame = self._frame.drop_nulls(list(columns))
        if frame.is_empty():
            return {}
        parts = frame.partition_by(list(columns), as_dict=True, maintain_order=True)
        return {tuple(str(k) for k in key): self.with_frame(df) for key, df in parts.items()}
