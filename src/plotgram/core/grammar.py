"""
Canonical plotgram grammar and helpers.

Defines the vocabulary of the plotting grammar: aesthetic channels, geoms,
statistical transforms, column kinds, palette kinds, facet layouts, facet scale
modes, scale transforms, and output formats. Includes zero-IO normalizers that
turn free-form user strings (``"colour"``, ``"box"``, ``"free_y"``) into
canonical enum values.

Design principles
-----------------
1) One naming standard:
   - Enum classes: PascalCase
   - Enum member names: UPPER_SNAKE
   - Enum serialized values (spec JSON, CLI flags): lower_snake

2) Geoms draw, stats compute:
   - Every geom has a default stat (GEOM_DEFAULT_STAT); a layer may override it.
   - Required channels are a property of the geom (GEOM_REQUIRED_CHANNELS) and are
     checked after the default and layer-local mappings merge.

Examples
--------
>>> from plotgram.core.grammar import channel_from_value, geom_from_value, Geom
>>> channel_from_value("colour")
<Channel.COLOR: 'color'>
>>> geom_from_value("box") == Geom.BOXPLOT
True
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Final

from .errors import SpecError

__all__ = [
    "Channel",
    "Geom",
    "Stat",
    "ColumnKind",
    "PaletteKind",
    "FacetLayout",
    "FacetScales",
    "ScaleTransform",
    "OutputFormat",
    "GEOM_DEFAULT_STAT",
    "GEOM_REQUIRED_CHANNELS",
    "GROUPING_CHANNELS",
    "is_lower_snake",
    "channel_from_value",
    "geom_from_value",
    "stat_from_value",
    "palette_kind_from_value",
    "facet_scales_from_value",
    "transform_from_value",
    "format_from_extension",
]


class Channel(Enum):
    """
    Visual channels a column or constant can be bound to.

    Serialized values appear in:
      - PlotSpec.mapping keys and Layer.mapping keys
      - Scale.channel
    """

    X = "x"
    Y = "y"
    XEND = "xend"
    YEND = "yend"
    COLOR = "color"
    FILL = "fill"
    SIZE = "size"
    ALPHA = "alpha"
    SHAPE = "shape"
    GROUP = "group"
    LABEL = "label"
    MAP_ID = "map_id"


class Geom(Enum):
    """Geometric drawing primitives, one per layer."""

    POINT = "point"
    LINE = "line"
    AREA = "area"
    BAR = "bar"
    COL = "col"
    DENSITY = "density"
    BOXPLOT = "boxplot"
    VIOLIN = "violin"
    RASTER = "raster"
    TEXT = "text"
    SEGMENT = "segment"
    SMOOTH = "smooth"
    MAP = "map"


class Stat(Enum):
    """
    Data-to-data transforms applied before drawing.

    Notes:
      - count: rows per (x, group) cell; fills y with a "count" column.
      - summary_mean: collapses rows per (x, group) to the mean of y.
      - smooth: fitted curve (least-squares polynomial) per group, with an optional band.
      - density: kernel density estimate of x per group.
      - ydensity: kernel density estimate of y per x category (violins).
    """

    IDENTITY = "identity"
    COUNT = "count"
    SUMMARY_MEAN = "summary_mean"
    SMOOTH = "smooth"
    DENSITY = "density"
    YDENSITY = "ydensity"


class ColumnKind(Enum):
    """Measurement type of a dataset column."""

    NUMERIC = "numeric"
    CATEGORICAL = "categorical"
    DATE = "date"


class PaletteKind(Enum):
    """ColorBrewer palette families."""

    SEQUENTIAL = "sequential"
    DIVERGING = "diverging"
    QUALITATIVE = "qualitative"


class FacetLayout(Enum):
    WRAP = "wrap"
    GRID = "grid"


class FacetScales(Enum):
    """Whether facet panels share axis domains (fixed) or resolve them per panel."""

    FIXED = "fixed"
    FREE = "free"
    FREE_X = "free_x"
    FREE_Y = "free_y"


class ScaleTransform(Enum):
    IDENTITY = "identity"
    LOG10 = "log10"
    SQRT = "sqrt"
    REVERSE = "reverse"


class OutputFormat(Enum):
    """File formats the output sink can write; the value is the file extension."""

    PDF = "pdf"
    PNG = "png"
    SVG = "svg"
    HTML = "html"
    JSON = "json"


GEOM_DEFAULT_STAT: Final[dict[Geom, Stat]] = {
    Geom.POINT: Stat.IDENTITY,
    Geom.LINE: Stat.IDENTITY,
    Geom.AREA: Stat.IDENTITY,
    Geom.BAR: Stat.COUNT,
    Geom.COL: Stat.IDENTITY,
    Geom.DENSITY: Stat.DENSITY,
    Geom.BOXPLOT: Stat.IDENTITY,
    Geom.VIOLIN: Stat.YDENSITY,
    Geom.RASTER: Stat.IDENTITY,
    Geom.TEXT: Stat.IDENTITY,
    Geom.SEGMENT: Stat.IDENTITY,
    Geom.SMOOTH: Stat.SMOOTH,
    Geom.MAP: Stat.IDENTITY,
}

GEOM_REQUIRED_CHANNELS: Final[dict[Geom, tuple[Channel, ...]]] = {
    Geom.POINT: (Channel.X, Channel.Y),
    Geom.LINE: (Channel.X, Channel.Y),
    Geom.AREA: (Channel.X, Channel.Y),
    Geom.BAR: (Channel.X,),
    Geom.COL: (Channel.X, Channel.Y),
    Geom.DENSITY: (Channel.X,),
    Geom.BOXPLOT: (Channel.X, Channel.Y),
    Geom.VIOLIN: (Channel.X, Channel.Y),
    Geom.RASTER: (Channel.X, Channel.Y, Channel.FILL),
    Geom.TEXT: (Channel.X, Channel.Y, Channel.LABEL),
    Geom.SEGMENT: (Channel.X, Channel.Y, Channel.XEND, Channel.YEND),
    Geom.SMOOTH: (Channel.X, Channel.Y),
    Geom.MAP: (Channel.MAP_ID,),
}

# Channels whose categorical columns split the data into groups before a stat runs.
GROUPING_CHANNELS: Final[tuple[Channel, ...]] = (
    Channel.COLOR,
    Channel.FILL,
    Channel.SHAPE,
    Channel.GROUP,
)

_ALIASES: Final[dict[str, str]] = {
    "colour": "color",
    "box": "boxplot",
    "tile": "raster",
    "heatmap": "raster",
    "scatter": "point",
    "mean": "summary_mean",
    "summary": "summary_mean",
    "log": "log10",
    "seq": "sequential",
    "div": "diverging",
    "qual": "qualitative",
}

_LOWER_SNAKE_RE: Final[re.Pattern[str]] = re.compile(r"^[a-z0-9]+(?:_[a-z0-9]+)*$")


def is_lower_snake(value: str) -> bool:
    """
    Check whether a string is lower_snake.

    Examples:
      >>> is_lower_snake("summary_mean")
      True
      >>> is_lower_snake("SummaryMean")
      False
    """
    return bool(_LOWER_SNAKE_RE.match(value or ""))


def _canonical(value: object) -> str:
    s = str(value.value if isinstance(value, Enum) else value).strip().lower().replace("-", "_")
    return _ALIASES.get(s, s)


def _parse(enum_cls: type[Enum], value: object, what: str) -> Enum:
    s = _canonical(value)
    if not is_lower_snake(s):
        raise SpecError(f"{what} must be lower_snake (got: {value!r})")
    try:
        return enum_cls(s)
    except ValueError as exc:
        allowed = [m.value for m in enum_cls]
        raise SpecError(f"unknown {what} {value!r} (allowed: {allowed!r})") from exc


def channel_from_value(s: object) -> Channel:
    """
    Parse a channel name (``"colour"`` accepted) into a Channel.

    Raises:
      SpecError: If s is not a known channel.
    """
    return _parse(Channel, s, "channel")  # type: ignore[return-value]


def geom_from_value(s: object) -> Geom:
    """
    Parse a geom name into a Geom (aliases: box, tile, heatmap, scatter).

    Raises:
      SpecError: If s is not a known geom.
    """
    return _parse(Geom, s, "geom")  # type: ignore[return-value]


def stat_from_value(s: object) -> Stat:
    """
    Parse a stat name into a Stat (aliases: mean, summary).

    Raises:
      SpecError: If s is not a known stat.
    """
    return _parse(Stat, s, "stat")  # type: ignore[return-value]


def palette_kind_from_value(s: object) -> PaletteKind:
    """Parse ``"seq"``/``"div"``/``"qual"`` or full palette kind names."""
    return _parse(PaletteKind, s, "palette kind")  # type: ignore[return-value]


def facet_scales_from_value(s: object) -> FacetScales:
    return _parse(FacetScales, s, "facet scales")  # type: ignore[return-value]


def transform_from_value(s: object) -> ScaleTransform:
    return _parse(ScaleTransform, s, "scale transform")  # type: ignore[return-value]


def format_from_extension(ext: str) -> OutputFormat | None:
    """
    Map a file extension (with or without the leading dot) to an OutputFormat.

    Returns:
      OutputFormat | None: None when the extension is not a supported format.

    Examples:
      >>> format_from_extension(".PDF")
      <OutputFormat.PDF: 'pdf'>
      >>> format_from_extension(".xyz") is None
      True
    """
    s = ext.lower().lstrip(".")
    if s == "htm":
        s = "html"
    try:
        return OutputFormat(s)
    except ValueError:
        return None
