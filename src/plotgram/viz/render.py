"""
Renderer: Plot → Artifact (an Altair top-level chart plus its source spec).

Pipeline per layer
1) Merge the plot's default mapping with the layer's (per channel, layer wins).
2) Check the geom's required channels (AestheticResolutionError).
3) Run the stat in Polars per group and facet partition; empty partitions are skipped.
4) Resolve encodings: Vega-Lite types from column kinds, scales from ScaleSpecs,
   categorical colour/fill domains from the dataset's fixed levels.
5) Draw marks (plotgram.viz.layers).

Compositing
- Layers stack in declaration order. Non-map layers share one top-level data
  table whose rows carry a ``_layer`` tag; each layer filters to its own rows,
  so a facet operator partitions every layer at once.
- Two-column wraps facet on a synthetic ``_panel`` column ("a, b").
- ``free``/``free_x``/``free_y`` facets resolve the matching scales as independent;
  other axes are explicitly shared.
- Labels, size and theme are applied last.

Determinism
- No randomness and no generated names: identical inputs produce identical
  Vega-Lite JSON, and Artifact.fingerprint() is the SHA-256 of its canonical form.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import altair as alt
import polars as pl

from plotgram.core.constants import LAYER_FIELD, PANEL_FIELD, STATE_FIPS
from plotgram.core.errors import AestheticResolutionError, InvalidFacet, SpecError
from plotgram.core.grammar import (
    GEOM_REQUIRED_CHANNELS,
    GROUPING_CHANNELS,
    ColumnKind,
    FacetLayout,
    Geom,
    geom_from_value,
    stat_from_value,
)
from plotgram.core.hashing import hash_mapping
from plotgram.core.schema import AestheticRef, FacetSpec, Layer, PlotSpec, ThemeSpec
from plotgram.io.config import PlotSettings
from plotgram.io.dataset import Dataset

from .base import distinct, escape_field, to_values, vl_type
from .builder import Plot
from .layers import draw, draw_map, violin_axis
from .scales import check_palette_kind, scale_properties, to_scale
from .stats import StatResult, compute_stat
from .themes import apply_theme

__all__ = ["Artifact", "Renderer", "render"]

logger = logging.getLogger(__name__)

# Band edges and the scale/axis channel they belong to.
_EDGE_CHANNEL = {"xmin": "x", "xmax": "x", "ymin": "y", "ymax": "y"}
_FIPS_FIELD = "_fips"


@dataclass(frozen=True)
class Artifact:
    """
    Rendered chart ready for display or export.

    Attributes:
        chart (alt.TopLevelMixin): Altair chart (layered, faceted, and themed).
        spec (PlotSpec): The specification it was rendered from.
        panels (tuple[tuple[str, ...], ...]): Non-empty facet panels, as facet-key tuples;
            empty when the plot is not faceted.
    """

    chart: alt.TopLevelMixin
    spec: PlotSpec
    panels: tuple[tuple[str, ...], ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Vega-Lite specification as a dict."""
        return self.chart.to_dict()

    def to_json(self, indent: int | None = 2) -> str:
        return self.chart.to_json(indent=indent, sort_keys=True)

    def fingerprint(self) -> str:
        """SHA-256 over the canonical JSON of the Vega-Lite specification."""
        return hash_mapping(self.to_dict())

    def _repr_mimebundle_(self, include: Any = None, exclude: Any = None) -> Any:
        return self.chart._repr_mimebundle_(include, exclude)


class Renderer:
    """
    Turn Plots into Artifacts under explicit settings.

    Args:
        settings (PlotSettings | None): Size, theme, and stat grid defaults.

    Examples:
        >>> from plotgram.io import load_dataset
        >>> from plotgram.viz.builder import Plot
        >>> art = Renderer().render(Plot(load_dataset("iris"), x="Sepal.Length", y="Sepal.Width").geom_point())
        >>> art.to_dict()["layer"][0]["mark"]["type"]
        'point'
    """

    def __init__(self, settings: PlotSettings | None = None) -> None:
        self.settings = settings or PlotSettings()

    # ------------------------------------------------------------------
    # Encodings
    # ------------------------------------------------------------------
    def _title(self, spec: PlotSpec, channel: str, column: str) -> str:
        scale = spec.scales.get(channel)
        if channel in spec.labels.channels:
            return spec.labels.channels[channel]
        if scale is not None and scale.title is not None:
            return scale.title
        return column

    def _encodings(
        self, spec: PlotSpec, geom: Geom, ds: Dataset, result: StatResult
    ) -> dict[str, dict[str, Any]]:
        enc: dict[str, dict[str, Any]] = {}
        for key, column in result.fields.items():
            if key == "map_id":
                continue
            channel = _EDGE_CHANNEL.get(key, key)
            if column in result.kinds:
                kind = result.kinds[column]
            elif ds.has_column(column):
                kind = ds.kind(column)
            else:
                kind = ColumnKind.NUMERIC
            levels = ds.levels(column) if ds.has_column(column) else ()
            title_column = result.fields.get(channel, column)
            props: dict[str, Any] = {
                "field": escape_field(column),
                "type": vl_type(kind),
                "title": self._title(spec, channel, title_column),
            }
            if geom is Geom.RASTER and channel in {"x", "y"} and kind is ColumnKind.NUMERIC:
                props["type"] = "ordinal"
            if kind is ColumnKind.CATEGORICAL and levels:
                props["sort"] = list(levels)
            scale_spec = spec.scales.get(channel)
            if scale_spec is not None and channel in {"color", "fill"}:
                check_palette_kind(scale_spec, kind, column)
            sc = to_scale(scale_properties(channel, scale_spec, kind=kind, levels=levels))
            if sc is not None:
                props["scale"] = sc
            enc[key] = props

        if geom is Geom.VIOLIN and "xmin" in enc:
            axis, sc = violin_axis(result.axis_levels, enc["xmin"]["title"])
            enc["xmin"].update(axis=axis, scale=sc)
        return enc

    # ------------------------------------------------------------------
    # Layers
    # ------------------------------------------------------------------
    @staticmethod
    def _resolve_mapping(spec: PlotSpec, layer: Layer) -> tuple[Geom, dict[str, AestheticRef]]:
        geom = geom_from_value(layer.geom)
        mapping = spec.layer_mapping(layer)
        missing = [c.value for c in GEOM_REQUIRED_CHANNELS[geom] if c.value not in mapping]
        if missing:
            raise AestheticResolutionError(geom.value, missing)
        return geom, mapping

    def _map_layer(
        self, spec: PlotSpec, ds: Dataset, fields: dict[str, str], const: dict[str, Any]
    ) -> alt.Chart:
        id_col = fields["map_id"]
        frame = ds.frame.with_columns(
            pl.col(id_col)
            .cast(pl.String)
            .str.to_lowercase()
            .replace_strict(STATE_FIPS, default=None, return_dtype=pl.Int64)
            .alias(_FIPS_FIELD)
        )
        unmatched = frame.get_column(_FIPS_FIELD).null_count()
        if unmatched:
            logger.debug("map: %d rows of %s match no US state", unmatched, ds.name)
        cols = distinct([*fields.values(), _FIPS_FIELD])
        frame = frame.drop_nulls(_FIPS_FIELD).select(cols)
        result = StatResult(frame=frame, fields=fields)
        enc = self._encodings(spec, Geom.MAP, ds, result)
        lookup = [escape_field(c) for c in distinct(list(fields.values()))]
        return draw_map(to_values(frame), enc, const, key=_FIPS_FIELD, lookup_fields=lookup)

    @staticmethod
    def _check_facet(ds: Dataset, facet: FacetSpec) -> None:
        for col in facet.facet_columns():
            ds.require(col)
            if not ds.is_categorical(col):
                raise InvalidFacet(f"facet column {col!r} in {ds.name!r} is not categorical")

    # ------------------------------------------------------------------
    # Facets
    # ------------------------------------------------------------------
    @staticmethod
    def _facet(chart: alt.LayerChart, facet: FacetSpec, ds: Dataset) -> alt.TopLevelMixin:
        def header(col: str) -> dict[str, Any]:
            return {"field": escape_field(col), "type": "nominal", "sort": list(ds.levels(col)), "title": None}

        if facet.layout == FacetLayout.WRAP.value:
            if len(facet.columns) == 1:
                f = alt.Facet(**header(facet.columns[0]))
            else:
                a, b = facet.columns
                order = [f"{va}, {vb}" for va in ds.levels(a) for vb in ds.levels(b)]
                f = alt.Facet(field=PANEL_FIELD, type="nominal", sort=order, title=None)
            kwargs: dict[str, Any] = {"facet": f}
            if facet.ncol is not None:
                kwargs["columns"] = facet.ncol
            out = chart.facet(**kwargs)
        else:
            kwargs = {}
            if facet.row is not None:
                kwargs["row"] = alt.Row(**header(facet.row))
            if facet.col is not None:
                kwargs["column"] = alt.Column(**header(facet.col))
            out = chart.facet(**kwargs)
        return out.resolve_scale(
            x="independent" if facet.free_x else "shared",
            y="independent" if facet.free_y else "shared",
        )

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    def render(self, plot: Plot) -> Artifact:
        """
        Render a Plot.

        Raises:
            SpecError: The plot has no layers, or a stat rejects its inputs.
            AestheticResolutionError: A layer lacks a required channel.
            UnknownColumn: A mapped or facet column is missing from a layer's dataset.
            InvalidFacet: Facet column is not categorical, or a map layer is faceted.
        """
        spec = plot.spec
        if not spec.layers:
            raise SpecError("plot has no layers")
        facet = spec.facet
        facet_cols = list(facet.facet_columns()) if facet else []
        two_way = facet is not None and facet.layout == FacetLayout.WRAP.value and len(facet_cols) == 2

        records: list[dict[str, Any]] = []
        charts: list[alt.Chart] = []
        panels: set[tuple[str, ...]] = set()

        for i, layer in enumerate(spec.layers):
            geom, mapping = self._resolve_mapping(spec, layer)
            ds = plot.dataset_for(layer)
            fields = {ch: ref.field for ch, ref in mapping.items() if ref.is_field}
            const = {ch: ref.value for ch, ref in mapping.items() if not ref.is_field}
            ds.require(*fields.values())  # type: ignore[arg-type]

            if geom is Geom.MAP:
                if facet is not None:
                    raise InvalidFacet("map layers cannot be faceted")
                charts.append(self._map_layer(spec, ds, fields, const))  # type: ignore[arg-type]
                logger.debug("layer %d: map on %s", i, ds.name)
                continue

            if facet is not None:
                self._check_facet(ds, facet)
            groups = [
                fields[c.value]
                for c in GROUPING_CHANNELS
                if c.value in fields and ds.is_categorical(fields[c.value])  # type: ignore[arg-type]
            ]
            result = compute_stat(
                stat_from_value(layer.stat),
                ds,
                fields,  # type: ignore[arg-type]
                group_columns=groups,  # type: ignore[arg-type]
                facet_columns=facet_cols,
                params=layer.params,
                settings=self.settings,
            )
            frame = result.frame
            if facet_cols and frame.height:
                keys = frame.select(facet_cols).unique(maintain_order=True)
                panels.update(tuple(str(v) for v in row) for row in keys.iter_rows())
            if two_way:
                a, b = facet_cols
                frame = frame.with_columns(
                    pl.concat_str([pl.col(a).cast(pl.String), pl.col(b).cast(pl.String)], separator=", ").alias(
                        PANEL_FIELD
                    )
                )
            records.extend(to_values(frame, **{LAYER_FIELD: i}))
            enc = self._encodings(spec, geom, ds, result)
            for ch in draw(geom, enc, const, layer.params):
                charts.append(ch.transform_filter(alt.FieldEqualPredicate(field=LAYER_FIELD, equal=i)))
            logger.debug("layer %d: %s/%s on %s, %d rows after stat", i, geom.value, layer.stat, ds.name, frame.height)

        width = spec.width or self.settings.width
        height = spec.height or self.settings.height
        shared: dict[str, Any] = {"data": alt.Data(values=records)} if records else {}
        layered = alt.layer(*charts, **shared).properties(width=width, height=height)

        chart: alt.TopLevelMixin = layered
        if facet is not None:
            chart = self._facet(layered, facet, plot.data)

        labels = spec.labels
        if labels.title is not None:
            title = alt.TitleParams(text=labels.title, subtitle=labels.subtitle) if labels.subtitle else labels.title
            chart = chart.properties(title=title)
        if labels.caption is not None:
            chart = chart.properties(description=labels.caption)
        chart = apply_theme(chart, spec.theme or ThemeSpec(name=self.settings.theme))
        return Artifact(chart=chart, spec=spec, panels=tuple(sorted(panels)))


def render(plot: Plot, settings: PlotSettings | None = None) -> Artifact:
    """Render a Plot with a one-off Renderer."""
    return Renderer(settings).render(plot)
