"""
Pydantic v2 models for the declarative plot specification.

A PlotSpec is a frozen, JSON-serializable description of one chart: default
aesthetic mapping, ordered layers, optional facet directive, per-channel scales,
labels and theme. It never holds data; datasets are referenced by key and
supplied alongside the spec (see plotgram.viz.builder.Plot).

Responsibilities
- Define AestheticRef, Layer, FacetSpec, ScaleSpec, Labels, ThemeSpec, PlotSpec.
- Normalize enum-like strings (channels, geoms, stats, transforms, facet scales)
  to canonical lower_snake via grammar helpers.
- Provide the per-channel mapping merge used by renderers (layer-local wins).

Style
- Zero-IO (stdlib + pydantic only).
- Models are frozen; directives build new models with model_copy(update=...).

Notes
- Validators raise SpecError subclasses; pydantic surfaces them as ValidationError
  when a model is constructed directly. The builder checks dataset-dependent rules
  (columns, palettes, facet kinds) before it constructs models, so callers of the
  builder see the specific error types.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .constants import THEME_NAMES
from .errors import InvalidFacet, SpecError
from .grammar import (
    GEOM_DEFAULT_STAT,
    FacetLayout,
    FacetScales,
    channel_from_value,
    facet_scales_from_value,
    geom_from_value,
    stat_from_value,
    transform_from_value,
)
from .hashing import hash_mapping

__all__ = [
    "Scalar",
    "AestheticRef",
    "Layer",
    "FacetSpec",
    "ScaleSpec",
    "Labels",
    "ThemeSpec",
    "PlotSpec",
    "normalize_mapping",
    "merge_mappings",
]

Scalar = str | int | float | bool


class AestheticRef(BaseModel):
    """
    Binding of one visual channel to either a column or a constant.

    Attributes:
        field (str | None): Column name in the layer's dataset.
        value (Scalar | None): Constant (e.g., "steelblue", 0.4).

    Raises:
        pydantic.ValidationError: If neither or both of field/value are given.

    Examples:
        >>> from plotgram.core.schema import AestheticRef
        >>> AestheticRef(field="Species").is_field
        True
        >>> AestheticRef(value=0.4).value
        0.4
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    field: str | None = None
    value: Scalar | None = None

    @model_validator(mode="after")
    def _exactly_one(self) -> AestheticRef:
        if (self.field is None) == (self.value is None):
            raise SpecError("aesthetic must bind exactly one of field or value")
        return self

    @property
    def is_field(self) -> bool:
        return self.field is not None


def normalize_mapping(mapping: Mapping[Any, Any] | None) -> dict[str, AestheticRef]:
    """
    Normalize channel keys and wrap raw entries into AestheticRef.

    Raw strings are treated as column names; AestheticRef instances and
    ``{"field": ...}`` / ``{"value": ...}`` dicts pass through.

    Raises:
        SpecError: On unknown channel names.
    """
    out: dict[str, AestheticRef] = {}
    for key, ref in (mapping or {}).items():
        ch = channel_from_value(key).value
        if isinstance(ref, AestheticRef):
            out[ch] = ref
        elif isinstance(ref, dict):
            out[ch] = AestheticRef(**ref)
        else:
            out[ch] = AestheticRef(field=str(ref))
    return out


def merge_mappings(
    base: Mapping[str, AestheticRef], local: Mapping[str, AestheticRef]
) -> dict[str, AestheticRef]:
    """
    Merge a default mapping with a layer-local one, per channel, local wins.

    Examples:
        >>> from plotgram.core.schema import AestheticRef, merge_mappings
        >>> base = {"x": AestheticRef(field="a"), "fill": AestheticRef(field="g")}
        >>> merged = merge_mappings(base, {"fill": AestheticRef(value="red")})
        >>> merged["x"].field, merged["fill"].value
        ('a', 'red')
    """
    merged = dict(base)
    merged.update(local)
    return merged


class Layer(BaseModel):
    """
    One geometric layer.

    Attributes:
        geom (str): Geom serialized value (lower_snake).
        stat (str): Stat serialized value; defaults to the geom's default stat.
        mapping (dict[str, AestheticRef]): Layer-local mapping and style constants.
        params (dict[str, Any]): Geom/stat parameters (position, bins, method, bw, ...).
        data (str | None): Key of a layer-local dataset; None uses the plot's data.
        inherit (bool): Whether the plot's default mapping applies to this layer.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    geom: str
    stat: str
    mapping: dict[str, AestheticRef] = Field(default_factory=dict)
    params: dict[str, Any] = Field(default_factory=dict)
    data: str | None = None
    inherit: bool = True

    @model_validator(mode="before")
    @classmethod
    def _default_stat(cls, values: Any) -> Any:
        if isinstance(values, dict) and values.get("stat") is None and values.get("geom") is not None:
            values = dict(values)
            values["stat"] = GEOM_DEFAULT_STAT[geom_from_value(values["geom"])].value
        return values

    @field_validator("geom", mode="before")
    @classmethod
    def _normalize_geom(cls, v: Any) -> str:
        return geom_from_value(v).value

    @field_validator("stat", mode="before")
    @classmethod
    def _normalize_stat(cls, v: Any) -> str:
        return stat_from_value(v).value

    @field_validator("mapping", mode="before")
    @classmethod
    def _normalize_mapping(cls, v: Any) -> dict[str, AestheticRef]:
        return normalize_mapping(v)


class FacetSpec(BaseModel):
    """
    Facet directive: partition the data by one or two categorical columns.

    Attributes:
        layout (str): "wrap" or "grid".
        columns (tuple[str, ...]): Wrap columns (one or two).
        row (str | None): Grid row column.
        col (str | None): Grid column column.
        ncol (int | None): Panels per row for wrap layouts.
        scales (str): "fixed" | "free" | "free_x" | "free_y".

    Examples:
        >>> from plotgram.core.schema import FacetSpec
        >>> f = FacetSpec(layout="wrap", columns=("variable",), scales="free")
        >>> f.free_x, f.free_y
        (True, True)
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    layout: Literal["wrap", "grid"] = "wrap"
    columns: tuple[str, ...] = ()
    row: str | None = None
    col: str | None = None
    ncol: int | None = Field(default=None, ge=1)
    scales: str = FacetScales.FIXED.value

    @field_validator("scales", mode="before")
    @classmethod
    def _normalize_scales(cls, v: Any) -> str:
        return facet_scales_from_value(v).value

    @model_validator(mode="after")
    def _check_layout(self) -> FacetSpec:
        if self.layout == FacetLayout.WRAP.value:
            if not 1 <= len(self.columns) <= 2:
                raise InvalidFacet("facet_wrap takes one or two columns")
            if self.row is not None or self.col is not None:
                raise InvalidFacet("facet_wrap does not take row/col")
        else:
            if self.row is None and self.col is None:
                raise InvalidFacet("facet_grid requires row and/or col")
            if self.columns:
                raise InvalidFacet("facet_grid takes row/col, not columns")
        return self

    def facet_columns(self) -> tuple[str, ...]:
        """All dataset columns the directive partitions by, in declaration order."""
        if self.layout == FacetLayout.WRAP.value:
            return self.columns
        return tuple(c for c in (self.row, self.col) if c is not None)

    @property
    def free_x(self) -> bool:
        return self.scales in (FacetScales.FREE.value, FacetScales.FREE_X.value)

    @property
    def free_y(self) -> bool:
        return self.scales in (FacetScales.FREE.value, FacetScales.FREE_Y.value)


class ScaleSpec(BaseModel):
    """
    Scale override for one channel.

    Attributes:
        channel (str): Channel serialized value.
        transform (str): "identity" | "log10" | "sqrt" | "reverse".
        palette (str | None): Resolved ColorBrewer name.
        palette_kind (str | None): Resolved palette kind.
        scheme (str | None): Vega scheme name for the palette.
        values (list[Scalar] | None): Manual range (colors, sizes, shapes).
        low/mid/high (str | None): Gradient endpoints.
        midpoint (float | None): Domain midpoint for diverging gradients.
        domain (list[Any] | None): Explicit domain.
        reverse (bool): Reverse the palette/range direction.
        title (str | None): Axis or legend title.
        zero (bool | None): Whether a quantitative axis includes zero.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    channel: str
    transform: str = "identity"
    palette: str | None = None
    palette_kind: str | None = None
    scheme: str | None = None
    values: list[Scalar] | None = None
    low: str | None = None
    mid: str | None = None
    high: str | None = None
    midpoint: float | None = None
    domain: list[Any] | None = None
    reverse: bool = False
    title: str | None = None
    zero: bool | None = None

    @field_validator("channel", mode="before")
    @classmethod
    def _normalize_channel(cls, v: Any) -> str:
        return channel_from_value(v).value

    @field_validator("transform", mode="before")
    @classmethod
    def _normalize_transform(cls, v: Any) -> str:
        return transform_from_value(v).value


class Labels(BaseModel):
    """Title, subtitle, caption, and per-channel axis/legend titles."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    title: str | None = None
    subtitle: str | None = None
    caption: str | None = None
    channels: dict[str, str] = Field(default_factory=dict)

    @field_validator("channels", mode="before")
    @classmethod
    def _normalize_channels(cls, v: Any) -> dict[str, str]:
        return {channel_from_value(k).value: str(t) for k, t in (v or {}).items()}


class ThemeSpec(BaseModel):
    """
    Non-data styling.

    Attributes:
        name (str): Base theme ("grey", "bw", "minimal", "classic").
        base_size (float | None): Base font size; titles scale from it.
        font (str | None): Font family for all text.
        grid (bool | None): Force grid lines on or off.
        title_anchor (str | None): "start" | "middle" | "end".
        legend_position (str | None): "right" | "left" | "top" | "bottom" | "none".
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = "grey"
    base_size: float | None = Field(default=None, gt=0)
    font: str | None = None
    grid: bool | None = None
    title_anchor: Literal["start", "middle", "end"] | None = None
    legend_position: Literal["right", "left", "top", "bottom", "none"] | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _normalize_name(cls, v: Any) -> str:
        s = str(v).strip().lower()
        s = "grey" if s == "gray" else s
        if s not in THEME_NAMES:
            raise SpecError(f"unknown theme {v!r} (allowed: {list(THEME_NAMES)!r})")
        return s


class PlotSpec(BaseModel):
    """
    Immutable declarative description of one chart.

    Attributes:
        data (str): Key of the plot's default dataset.
        mapping (dict[str, AestheticRef]): Default aesthetic mapping.
        layers (tuple[Layer, ...]): Layers in drawing order (later on top).
        facet (FacetSpec | None): Optional facet directive.
        scales (dict[str, ScaleSpec]): Scale overrides keyed by channel.
        labels (Labels): Titles.
        theme (ThemeSpec | None): Theme; None defers to the renderer's settings.
        width/height (int | None): Panel size; None defers to settings.

    Examples:
        >>> from plotgram.core.schema import PlotSpec, Layer
        >>> spec = PlotSpec(mapping={"x": "value"}, layers=(Layer(geom="density"),))
        >>> spec.layers[0].stat
        'density'
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    data: str = "data"
    mapping: dict[str, AestheticRef] = Field(default_factory=dict)
    layers: tuple[Layer, ...] = ()
    facet: FacetSpec | None = None
    scales: dict[str, ScaleSpec] = Field(default_factory=dict)
    labels: Labels = Field(default_factory=Labels)
    theme: ThemeSpec | None = None
    width: int | None = Field(default=None, gt=0)
    height: int | None = Field(default=None, gt=0)

    @field_validator("mapping", mode="before")
    @classmethod
    def _normalize_mapping(cls, v: Any) -> dict[str, AestheticRef]:
        return normalize_mapping(v)

    @field_validator("scales", mode="before")
    @classmethod
    def _normalize_scale_keys(cls, v: Any) -> dict[str, Any]:
        return {channel_from_value(k).value: s for k, s in (v or {}).items()}

    def layer_mapping(self, layer: Layer) -> dict[str, AestheticRef]:
        """Resolved mapping for a layer: default mapping (if inherited) merged with local."""
        return merge_mappings(self.mapping if layer.inherit else {}, layer.mapping)

    def fingerprint(self) -> str:
        """SHA-256 over the canonical JSON dump of the spec."""
        return hash_mapping(self.model_dump(mode="json"))
