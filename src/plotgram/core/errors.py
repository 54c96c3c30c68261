"""
Core exception types raised by grammar normalization and plot-spec validation.

Provides typed exceptions for specification-level failures:
- UnknownColumn when a directive references a column absent from its dataset.
- InvalidPalette for unknown palette names or out-of-range palette indices.
- InvalidFacet when a facet directive targets a non-categorical column or an
  unsupported layer combination.
- ReshapeError when a wide-to-tall reshape has nothing to collapse.
- AestheticResolutionError when a layer lacks a required channel after the
  default and layer-local mappings are merged.

Notes:
    - This module uses only the Python standard library and has no side effects.
    - IO-layer failures (sources, formats, writes) live in plotgram.io.errors.
    - An empty facet partition is never an error; renderers skip it.

Examples:
    Catch a missing column.

    >>> from plotgram.core.errors import UnknownColumn
    >>> try:
    ...     raise UnknownColumn("Sepal.Area", available=["Sepal.Length"])
    ... except UnknownColumn as e:
    ...     msg = str(e)
    >>> "Sepal.Area" in msg
    True
"""

from __future__ import annotations

from collections.abc import Iterable

__all__ = [
    "PlotgramError",
    "SpecError",
    "UnknownColumn",
    "InvalidPalette",
    "InvalidFacet",
    "ReshapeError",
    "AestheticResolutionError",
]


class PlotgramError(Exception):
    """Base class for every error raised by plotgram."""


class SpecError(PlotgramError, ValueError):
    """Plot specification failed validation (grammar, schema, or combination rules)."""


class UnknownColumn(SpecError):
    """
    Raised when a directive references a column that is not in the dataset.

    Attributes:
        column (str): The missing column name.
        available (tuple[str, ...]): Columns that do exist, for the error message.
    """

    def __init__(self, column: str, available: Iterable[str] = ()) -> None:
        self.column = column
        self.available = tuple(available)
        msg = f"unknown column {column!r}"
        if self.available:
            msg += f" (available: {list(self.available)!r})"
        super().__init__(msg)


class InvalidPalette(SpecError):
    """Unknown palette name, or a palette index outside the registry for its kind."""


class InvalidFacet(SpecError):
    """Facet directive targets a non-categorical column or cannot be combined with a layer."""


class ReshapeError(SpecError):
    """Wide-to-tall reshape has no value columns left to collapse, or they cannot be stacked."""


class AestheticResolutionError(SpecError):
    """
    Raised at render time when a layer lacks a required channel after mapping merge.

    Attributes:
        geom (str): Geom of the offending layer.
        missing (tuple[str, ...]): Required channels with no mapping.
    """

    def __init__(self, geom: str, missing: Iterable[str]) -> None:
        self.geom = geom
        self.missing = tuple(missing)
        super().__init__(f"geom {geom!r} requires channels {list(self.missing)!r} but none were mapped")
