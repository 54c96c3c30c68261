"""
Plot specification builder.

A Plot pairs an immutable PlotSpec with the datasets it references. Every
directive returns a new Plot; nothing is mutated and there is no global plot
state. Directives can be chained fluently or added with ``+``:

    Plot(iris, x="value", fill="Species").geom_density(alpha=0.5).facet_wrap("variable")
    Plot(iris) + aes(x="value", fill="Species") + geom("density", alpha=0.5) + facet_wrap("variable")

Validation happens when a directive is added, against the dataset the
directive applies to:
- unknown column → UnknownColumn
- unknown palette name or out-of-range palette index → InvalidPalette
- facet on a non-categorical column → InvalidFacet

Override semantics are last-writer-wins everywhere: a channel mapped twice keeps
the later column, a scale set twice for a channel keeps the later scale, labels
and theme overrides replace per key.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from plotgram.core.errors import InvalidFacet, InvalidPalette, SpecError
from plotgram.core.grammar import Channel, Geom, PaletteKind, channel_from_value, geom_from_value
from plotgram.core.palettes import resolve_palette
from plotgram.core.schema import (
    AestheticRef,
    FacetSpec,
    Labels,
    Layer,
    PlotSpec,
    ScaleSpec,
    ThemeSpec,
    merge_mappings,
    normalize_mapping,
)
from plotgram.io.dataset import Dataset

__all__ = [
    "Plot",
    "Directive",
    "aes",
    "geom",
    "facet_wrap",
    "facet_grid",
    "scale",
    "labs",
    "theme",
]


def _split_kwargs(kwargs: Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Split keyword arguments into channel constants (style) and layer params."""
    style: dict[str, Any] = {}
    params: dict[str, Any] = {}
    for k, v in kwargs.items():
        try:
            ch = channel_from_value(k)
        except SpecError:
            params[k] = v
        else:
            style[ch.value] = v
    return style, params


def _check_fields(dataset: Dataset, mapping: Mapping[str, AestheticRef]) -> None:
    for ref in mapping.values():
        if ref.is_field:
            dataset.require(ref.field)  # type: ignore[arg-type]


def _check_facet_columns(dataset: Dataset, columns: Iterable[str]) -> None:
    for col in columns:
        dataset.require(col)
        if not dataset.is_categorical(col):
            raise InvalidFacet(
                f"facet column {col!r} in {dataset.name!r} is {dataset.kind(col).value}, not categorical"
            )


class Plot:
    """
    Immutable plot value: a PlotSpec plus the datasets it references by key.

    Args:
        data (Dataset): The plot's default dataset.
        mapping (Mapping[str, Any] | None): Default aesthetic mapping (channel → column).
        **aesthetics: More default mappings as keywords (``x="value"``, ``fill="Species"``).

    Raises:
        UnknownColumn: A mapped column is not in `data`.
        SpecError: Unknown channel name.

    Examples:
        >>> from plotgram.io import load_dataset
        >>> p = Plot(load_dataset("iris"), x="Sepal.Length", y="Sepal.Width").geom_point()
        >>> p.spec.layers[0].geom
        'point'
    """

    __slots__ = ("_spec", "_datasets")

    def __init__(self, data: Dataset, mapping: Mapping[str, Any] | None = None, **aesthetics: Any) -> None:
        merged = normalize_mapping({**dict(mapping or {}), **aesthetics})
        _check_fields(data, merged)
        self._spec = PlotSpec(data=data.name, mapping=merged)
        self._datasets: Mapping[str, Dataset] = MappingProxyType({data.name: data})

    @classmethod
    def _derive(cls, spec: PlotSpec, datasets: Mapping[str, Dataset]) -> Plot:
        obj = cls.__new__(cls)
        obj._spec = spec
        obj._datasets = MappingProxyType(dict(datasets))
        return obj

    @classmethod
    def from_spec(cls, spec: PlotSpec, datasets: Mapping[str, Dataset]) -> Plot:
        """
        Rebuild a Plot from a stored PlotSpec and the datasets it references.

        Palettes named without a scheme are resolved; every mapping and facet
        column is validated against its layer's dataset.

        Raises:
            SpecError: A referenced dataset key is not supplied.
            UnknownColumn / InvalidFacet / InvalidPalette: As for the fluent directives.
        """
        keys = {spec.data, *(layer.data for layer in spec.layers if layer.data)}
        missing = sorted(k for k in keys if k not in datasets)
        if missing:
            raise SpecError(f"no dataset supplied for {missing!r} (have: {sorted(datasets)!r})")
        scales = {}
        for ch, sc in spec.scales.items():
            if sc.palette is not None and sc.scheme is None:
                pal = resolve_palette(sc.palette)
                sc = sc.model_copy(update={"palette": pal.name, "palette_kind": pal.kind.value, "scheme": pal.scheme})
            scales[ch] = sc
        plot = cls._derive(spec.model_copy(update={"scales": scales}), {k: datasets[k] for k in sorted(keys)})
        _check_fields(plot.data, spec.mapping)
        for layer in spec.layers:
            _check_fields(plot.dataset_for(layer), spec.layer_mapping(layer))
        if spec.facet is not None:
            plot._facet(spec.facet)
        return plot

    def _with(self, **update: Any) -> Plot:
        return Plot._derive(self._spec.model_copy(update=update), self._datasets)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def spec(self) -> PlotSpec:
        return self._spec

    @property
    def datasets(self) -> Mapping[str, Dataset]:
        return self._datasets

    @property
    def data(self) -> Dataset:
        return self._datasets[self._spec.data]

    def dataset_for(self, layer: Layer) -> Dataset:
        """Dataset a layer draws from: its own, or the plot's default."""
        return self._datasets[layer.data or self._spec.data]

    def __repr__(self) -> str:
        geoms = ", ".join(layer.geom for layer in self._spec.layers)
        return f"Plot(data={self._spec.data!r}, layers=[{geoms}])"

    def __add__(self, other: Directive | Iterable[Directive]) -> Plot:
        if isinstance(other, Directive):
            return other.apply(self)
        if isinstance(other, Iterable) and not isinstance(other, str | bytes):
            out = self
            for d in other:
                out = out + d
            return out
        return NotImplemented

    # ------------------------------------------------------------------
    # Mapping and layers
    # ------------------------------------------------------------------
    def aes(self, mapping: Mapping[str, Any] | None = None, **aesthetics: Any) -> Plot:
        """
        Set default mappings per channel; a channel set again replaces the earlier column.

        Raises:
            UnknownColumn: A column is missing from the default dataset, or from the
                dataset of a layer that inherits the channel.
        """
        local = normalize_mapping({**dict(mapping or {}), **aesthetics})
        _check_fields(self.data, local)
        for layer in self._spec.layers:
            if layer.inherit and layer.data is not None:
                shadowed = {ch: ref for ch, ref in local.items() if ch not in layer.mapping}
                _check_fields(self.dataset_for(layer), shadowed)
        return self._with(mapping={**self._spec.mapping, **local})

    def _register(self, data: Dataset) -> tuple[str, dict[str, Dataset]]:
        datasets = dict(self._datasets)
        for key, ds in datasets.items():
            if ds is data:
                return key, datasets
        key = data.name
        n = 2
        while key in datasets:
            key = f"{data.name}_{n}"
            n += 1
        datasets[key] = data
        return key, datasets

    def layer(
        self,
        geom: Geom | str,
        mapping: Mapping[str, Any] | None = None,
        *,
        stat: str | None = None,
        data: Dataset | None = None,
        inherit: bool = True,
        **kwargs: Any,
    ) -> Plot:
        """
        Append a layer.

        Keyword arguments named after channels (``alpha=0.5``, ``color="red"``)
        become constant style values; anything else (``bins``, ``position``,
        ``method``, ``se``, ``bw``) becomes a layer parameter.

        Args:
            geom (Geom | str): Geom or geom name (aliases accepted).
            mapping (Mapping[str, Any] | None): Layer-local channel → column mapping.
            stat (str | None): Stat override; defaults to the geom's stat.
            data (Dataset | None): Layer-local dataset.
            inherit (bool): Whether the plot's default mapping applies.

        Raises:
            UnknownColumn: A column of the layer's effective mapping (its own channels
                plus inherited defaults) is missing from the layer's dataset.
        """
        g = geom_from_value(geom)
        if g is Geom.MAP and self._spec.facet is not None:
            raise InvalidFacet("map layers cannot be faceted")
        style, params = _split_kwargs(kwargs)
        local = normalize_mapping(mapping)
        local.update({ch: AestheticRef(value=v) for ch, v in style.items()})
        datasets = dict(self._datasets)
        key: str | None = None
        target = self.data
        if data is not None:
            key, datasets = self._register(data)
            target = data
        _check_fields(target, merge_mappings(self._spec.mapping if inherit else {}, local))
        if self._spec.facet is not None:
            _check_facet_columns(target, self._spec.facet.facet_columns())
        new_layer = Layer(
            geom=g.value,
            stat=stat,
            mapping=local,
            params=params,
            data=key if key != self._spec.data else None,
            inherit=inherit,
        )
        spec = self._spec.model_copy(update={"layers": (*self._spec.layers, new_layer)})
        return Plot._derive(spec, datasets)

    def geom_point(self, mapping: Mapping[str, Any] | None = None, **kwargs: Any) -> Plot:
        return self.layer(Geom.POINT, mapping, **kwargs)

    def geom_line(self, mapping: Mapping[str, Any] | None = None, **kwargs: Any) -> Plot:
        return self.layer(Geom.LINE, mapping, **kwargs)

    def geom_area(self, mapping: Mapping[str, Any] | None = None, **kwargs: Any) -> Plot:
        return self.layer(Geom.AREA, mapping, **kwargs)

    def geom_bar(self, mapping: Mapping[str, Any] | None = None, **kwargs: Any) -> Plot:
        """Bar heights from a stat (count by default; ``stat="summary_mean"`` for means)."""
        return self.layer(Geom.BAR, mapping, **kwargs)

    def geom_col(self, mapping: Mapping[str, Any] | None = None, **kwargs: Any) -> Plot:
        """Bar heights taken directly from y."""
        return self.layer(Geom.COL, mapping, **kwargs)

    def geom_density(self, mapping: Mapping[str, Any] | None = None, **kwargs: Any) -> Plot:
        return self.layer(Geom.DENSITY, mapping, **kwargs)

    def geom_boxplot(self, mapping: Mapping[str, Any] | None = None, **kwargs: Any) -> Plot:
        return self.layer(Geom.BOXPLOT, mapping, **kwargs)

    def geom_violin(self, mapping: Mapping[str, Any] | None = None, **kwargs: Any) -> Plot:
        return self.layer(Geom.VIOLIN, mapping, **kwargs)

    def geom_raster(self, mapping: Mapping[str, Any] | None = None, **kwargs: Any) -> Plot:
        return self.layer(Geom.RASTER, mapping, **kwargs)

    geom_tile = geom_raster

    def geom_text(self, mapping: Mapping[str, Any] | None = None, **kwargs: Any) -> Plot:
        return self.layer(Geom.TEXT, mapping, **kwargs)

    def geom_segment(self, mapping: Mapping[str, Any] | None = None, **kwargs: Any) -> Plot:
        return self.layer(Geom.SEGMENT, mapping, **kwargs)

    def geom_smooth(self, mapping: Mapping[str, Any] | None = None, **kwargs: Any) -> Plot:
        return self.layer(Geom.SMOOTH, mapping, **kwargs)

    def geom_map(self, mapping: Mapping[str, Any] | None = None, **kwargs: Any) -> Plot:
        """US-states choropleth; ``map_id`` holds state names."""
        return self.layer(Geom.MAP, mapping, **kwargs)

    # ------------------------------------------------------------------
    # Facets
    # ------------------------------------------------------------------
    def _layer_datasets(self) -> list[Dataset]:
        out = [self.data]
        for layer in self._spec.layers:
            ds = self.dataset_for(layer)
            if all(ds is not d for d in out):
                out.append(ds)
        return out

    def _facet(self, facet: FacetSpec) -> Plot:
        if any(layer.geom == Geom.MAP.value for layer in self._spec.layers):
            raise InvalidFacet("map layers cannot be faceted")
        for ds in self._layer_datasets():
            _check_facet_columns(ds, facet.facet_columns())
        return self._with(facet=facet)

    def facet_wrap(self, *columns: str, ncol: int | None = None, scales: str = "fixed") -> Plot:
        """
        Split into panels by one or two categorical columns, wrapped into rows.

        Raises:
            InvalidFacet: Column is not categorical, or a map layer is present.
            UnknownColumn: Column missing from any layer's dataset.
        """
        return self._facet(FacetSpec(layout="wrap", columns=tuple(columns), ncol=ncol, scales=scales))

    def facet_grid(self, row: str | None = None, col: str | None = None, *, scales: str = "fixed") -> Plot:
        return self._facet(FacetSpec(layout="grid", row=row, col=col, scales=scales))

    # ------------------------------------------------------------------
    # Scales
    # ------------------------------------------------------------------
    def scale(
        self,
        channel: Channel | str,
        *,
        transform: str = "identity",
        palette: str | int | None = None,
        kind: PaletteKind | str = PaletteKind.SEQUENTIAL,
        values: list[Any] | None = None,
        low: str | None = None,
        mid: str | None = None,
        high: str | None = None,
        midpoint: float | None = None,
        domain: list[Any] | None = None,
        reverse: bool = False,
        title: str | None = None,
        zero: bool | None = None,
    ) -> Plot:
        """
        Set the scale for one channel, replacing any earlier scale for it.

        Args:
            channel: Channel the scale applies to.
            transform (str): "identity" | "log10" | "sqrt" | "reverse".
            palette (str | int | None): ColorBrewer name, or 1-based index within `kind`.
            kind: Palette family used for index lookup ("seq", "div", "qual").
            values: Manual range (colours, sizes, shapes).
            low/mid/high: Gradient endpoints.
            midpoint: Domain midpoint for diverging gradients.
            domain: Explicit domain.
            reverse (bool): Reverse the range.
            title (str | None): Axis or legend title.
            zero (bool | None): Include zero on a quantitative axis.

        Raises:
            InvalidPalette: Unknown palette name or index out of range for the kind.
        """
        pal = None
        if palette is not None:
            if isinstance(palette, str):
                pal = resolve_palette(palette)
            elif isinstance(palette, int) and not isinstance(palette, bool):
                pal = resolve_palette(index=palette, kind=kind)
            else:
                raise InvalidPalette(f"palette must be a name or an index (got {palette!r})")
        sc = ScaleSpec(
            channel=channel_from_value(channel).value,
            transform=transform,
            palette=pal.name if pal else None,
            palette_kind=pal.kind.value if pal else None,
            scheme=pal.scheme if pal else None,
            values=list(values) if values is not None else None,
            low=low,
            mid=mid,
            high=high,
            midpoint=midpoint,
            domain=list(domain) if domain is not None else None,
            reverse=reverse,
            title=title,
            zero=zero,
        )
        return self._with(scales={**self._spec.scales, sc.channel: sc})

    def scale_x_log10(self, **kwargs: Any) -> Plot:
        return self.scale("x", transform="log10", **kwargs)

    def scale_y_log10(self, **kwargs: Any) -> Plot:
        return self.scale("y", transform="log10", **kwargs)

    def scale_x_sqrt(self, **kwargs: Any) -> Plot:
        return self.scale("x", transform="sqrt", **kwargs)

    def scale_y_sqrt(self, **kwargs: Any) -> Plot:
        return self.scale("y", transform="sqrt", **kwargs)

    def scale_x_reverse(self, **kwargs: Any) -> Plot:
        return self.scale("x", transform="reverse", **kwargs)

    def scale_y_reverse(self, **kwargs: Any) -> Plot:
        return self.scale("y", transform="reverse", **kwargs)

    def scale_fill_brewer(self, palette: str | int = 1, *, type: str = "seq", direction: int = 1, **kwargs: Any) -> Plot:
        """ColorBrewer fill palette by name or by 1-based index within `type` ("seq", "div", "qual")."""
        return self.scale("fill", palette=palette, kind=type, reverse=direction < 0, **kwargs)

    def scale_color_brewer(self, palette: str | int = 1, *, type: str = "seq", direction: int = 1, **kwargs: Any) -> Plot:
        return self.scale("color", palette=palette, kind=type, reverse=direction < 0, **kwargs)

    scale_colour_brewer = scale_color_brewer

    def scale_fill_gradient(self, low: str = "#132B43", high: str = "#56B1F7", **kwargs: Any) -> Plot:
        return self.scale("fill", low=low, high=high, **kwargs)

    def scale_fill_gradient2(
        self, low: str = "#B2182B", mid: str = "#FFFFFF", high: str = "#2166AC", midpoint: float = 0.0, **kwargs: Any
    ) -> Plot:
        return self.scale("fill", low=low, mid=mid, high=high, midpoint=midpoint, **kwargs)

    def scale_color_gradient(self, low: str = "#132B43", high: str = "#56B1F7", **kwargs: Any) -> Plot:
        return self.scale("color", low=low, high=high, **kwargs)

    def scale_fill_manual(self, values: list[Any], **kwargs: Any) -> Plot:
        return self.scale("fill", values=values, **kwargs)

    def scale_color_manual(self, values: list[Any], **kwargs: Any) -> Plot:
        return self.scale("color", values=values, **kwargs)

    scale_colour_manual = scale_color_manual

    # ------------------------------------------------------------------
    # Labels and theme
    # ------------------------------------------------------------------
    def labs(
        self,
        *,
        title: str | None = None,
        subtitle: str | None = None,
        caption: str | None = None,
        **channels: str,
    ) -> Plot:
        """Set title/subtitle/caption and per-channel axis or legend titles; later keys win."""
        cur = self._spec.labels
        labels = Labels(
            title=title if title is not None else cur.title,
            subtitle=subtitle if subtitle is not None else cur.subtitle,
            caption=caption if caption is not None else cur.caption,
            channels={**cur.channels, **channels},
        )
        return self._with(labels=labels)

    def theme(self, name: str | None = None, **overrides: Any) -> Plot:
        """
        Select a base theme and/or override theme elements; overrides merge per key.

        Examples:
            >>> from plotgram.io import load_dataset
            >>> p = Plot(load_dataset("iris")).theme("bw").theme(base_size=14)
            >>> p.spec.theme.name, p.spec.theme.base_size
            ('bw', 14.0)
        """
        cur = self._spec.theme.model_dump() if self._spec.theme else {}
        if name is not None:
            cur["name"] = name
        cur.update(overrides)
        return self._with(theme=ThemeSpec(**cur))

    def theme_grey(self, **overrides: Any) -> Plot:
        return self.theme("grey", **overrides)

    def theme_bw(self, **overrides: Any) -> Plot:
        return self.theme("bw", **overrides)

    def theme_minimal(self, **overrides: Any) -> Plot:
        return self.theme("minimal", **overrides)

    def theme_classic(self, **overrides: Any) -> Plot:
        return self.theme("classic", **overrides)

    def size(self, width: int | None = None, height: int | None = None) -> Plot:
        """Override the panel size from PlotSettings."""
        return self._with(
            width=width if width is not None else self._spec.width,
            height=height if height is not None else self._spec.height,
        )


# ----------------------------------------------------------------------
# Additive directives
# ----------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class Directive:
    """
    A deferred builder call, applied with ``plot + directive``.

    Directives compare and hash by identity; their arguments may hold mappings.

    Attributes:
        method (str): Plot method name.
        args (tuple[Any, ...]): Positional arguments.
        kwargs (dict[str, Any]): Keyword arguments.
    """

    method: str
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)

    def apply(self, plot: Plot) -> Plot:
        return getattr(plot, self.method)(*self.args, **self.kwargs)


def aes(mapping: Mapping[str, Any] | None = None, **aesthetics: Any) -> Directive:
    return Directive("aes", (mapping,), aesthetics)


def geom(name: Geom | str, mapping: Mapping[str, Any] | None = None, **kwargs: Any) -> Directive:
    return Directive("layer", (name, mapping), kwargs)


def facet_wrap(*columns: str, ncol: int | None = None, scales: str = "fixed") -> Directive:
    return Directive("facet_wrap", columns, {"ncol": ncol, "scales": scales})


def facet_grid(row: str | None = None, col: str | None = None, *, scales: str = "fixed") -> Directive:
    return Directive("facet_grid", (row, col), {"scales": scales})


def scale(channel: Channel | str, **kwargs: Any) -> Directive:
    return Directive("scale", (channel,), kwargs)


def labs(**kwargs: Any) -> Directive:
    return Directive("labs", (), kwargs)


def theme(name: str | None = None, **overrides: Any) -> Directive:
    return Directive("theme", (name,), overrides)
