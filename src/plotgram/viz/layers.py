"""
Altair layer primitives: one function per geom, turning resolved encodings into marks.

Inputs
- enc: channel (or band edge) → encoding properties prepared by the renderer
  (field, type, title, scale, sort, axis, legend). Keys are plotgram channel
  names plus the stat band edges xmin/xmax/ymin/ymax.
- const: channel → constant value (style), turned into mark properties.
- params: layer parameters (position, coef, ...).

Charts are built without data; the renderer attaches the shared table and the
per-layer filter. Map layers are the exception and carry their own data.

Import DAG discipline
- Depends on stdlib, altair, and plotgram.core.*.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import altair as alt

from plotgram.core.constants import US_STATES_TOPOJSON
from plotgram.core.errors import SpecError
from plotgram.core.grammar import Geom

__all__ = ["draw", "draw_map", "violin_axis", "SMOOTH_COLOR"]

SMOOTH_COLOR = "#3366FF"

_XY = {"field", "type", "title", "scale", "sort", "axis", "stack"}
_LEGENDED = {"field", "type", "title", "scale", "sort", "legend"}

_KEYS: dict[type, set[str]] = {
    alt.X: _XY,
    alt.Y: _XY,
    alt.X2: {"field", "title"},
    alt.Y2: {"field", "title"},
    alt.Color: _LEGENDED,
    alt.Fill: _LEGENDED,
    alt.Stroke: _LEGENDED,
    alt.Size: _LEGENDED,
    alt.StrokeWidth: _LEGENDED,
    alt.Opacity: _LEGENDED,
    alt.Shape: _LEGENDED,
    alt.Detail: {"field", "type"},
    alt.Text: {"field", "type", "title"},
    alt.XOffset: {"field", "type", "sort", "scale"},
}

# Geoms drawn as filled areas; their "color" is the outline.
_FILLED = frozenset({Geom.BAR, Geom.COL, Geom.AREA, Geom.DENSITY, Geom.BOXPLOT, Geom.VIOLIN, Geom.RASTER, Geom.MAP})
_STROKED = frozenset({Geom.LINE, Geom.SEGMENT, Geom.SMOOTH})


def _channel(cls: type, props: Mapping[str, Any], **extra: Any) -> Any:
    kw = {k: v for k, v in props.items() if k in _KEYS[cls]}
    kw.update(extra)
    return cls(**kw)


def _mark_props(geom: Geom, const: Mapping[str, Any]) -> dict[str, Any]:
    mark: dict[str, Any] = {}
    for ch, v in const.items():
        if geom is Geom.BOXPLOT and ch in {"color", "fill"}:
            mark["color"] = v
        elif ch == "color":
            mark["stroke" if geom in _FILLED else "color"] = v
        elif ch == "fill":
            mark["fill"] = v
        elif ch == "alpha":
            mark["opacity"] = v
        elif ch == "size":
            mark["strokeWidth" if geom in _STROKED else "size"] = v
        elif ch == "shape":
            mark["shape"] = v
        elif ch == "label":
            mark["text"] = v
    return mark


def _aesthetics(geom: Geom, enc: Mapping[str, Mapping[str, Any]]) -> dict[str, Any]:
    """Encodings shared by every geom: colour, fill, size, alpha, shape, group."""
    out: dict[str, Any] = {}
    if geom is Geom.BOXPLOT:
        # Composite boxplot marks take a single colour channel.
        by = enc.get("fill") or enc.get("color")
        if by is not None:
            out["color"] = _channel(alt.Color, by)
        enc = {k: v for k, v in enc.items() if k not in {"color", "fill"}}
    if "color" in enc:
        key, cls = ("stroke", alt.Stroke) if geom in _FILLED else ("color", alt.Color)
        out[key] = _channel(cls, enc["color"])
    if "fill" in enc:
        out["fill"] = _channel(alt.Fill, enc["fill"])
    if "size" in enc:
        key, cls = ("strokeWidth", alt.StrokeWidth) if geom in _STROKED else ("size", alt.Size)
        out[key] = _channel(cls, enc["size"])
    if "alpha" in enc:
        out["opacity"] = _channel(alt.Opacity, enc["alpha"])
    if "shape" in enc:
        out["shape"] = _channel(alt.Shape, enc["shape"])
    if "group" in enc:
        out["detail"] = _channel(alt.Detail, enc["group"])
    return out


def _xy(enc: Mapping[str, Mapping[str, Any]], **y_extra: Any) -> dict[str, Any]:
    return {"x": _channel(alt.X, enc["x"]), "y": _channel(alt.Y, enc["y"], **y_extra)}


def _position(params: Mapping[str, Any], default: str) -> str:
    pos = str(params.get("position", default)).lower()
    if pos not in {"stack", "dodge", "fill", "identity"}:
        raise SpecError(f"unknown position {pos!r} (allowed: 'stack', 'dodge', 'fill', 'identity')")
    return pos


def _stack_for(pos: str) -> Any:
    return {"stack": "zero", "fill": "normalize"}.get(pos)


def _draw_bar(geom: Geom, enc, const, params) -> list[alt.Chart]:
    pos = _position(params, "stack")
    channels = {**_xy(enc, stack=_stack_for(pos)), **_aesthetics(geom, enc)}
    if pos == "dodge":
        by = enc.get("fill") or enc.get("color") or enc.get("group")
        if by is not None:
            channels["xOffset"] = _channel(alt.XOffset, by)
    return [alt.Chart().mark_bar(**_mark_props(geom, const)).encode(**channels)]


def _draw_area(geom: Geom, enc, const, params) -> list[alt.Chart]:
    pos = _position(params, "stack" if geom is Geom.AREA else "identity")
    channels = {**_xy(enc, stack=_stack_for(pos)), **_aesthetics(geom, enc)}
    mark = {"line": geom is Geom.DENSITY, **_mark_props(geom, const)}
    return [alt.Chart().mark_area(**mark).encode(**channels)]


def _draw_smooth(geom: Geom, enc, const, params) -> list[alt.Chart]:
    aes = _aesthetics(geom, enc)
    mark = _mark_props(geom, const)
    if "color" not in aes and "color" not in mark:
        mark["color"] = SMOOTH_COLOR
    charts: list[alt.Chart] = []
    if "ymin" in enc and "ymax" in enc:
        band_aes = {k: v for k, v in aes.items() if k in {"color", "detail"}}
        band = alt.Chart().mark_area(opacity=0.2, color="#999999").encode(
            x=_channel(alt.X, enc["x"]),
            y=_channel(alt.Y, enc["ymin"]),
            y2=_channel(alt.Y2, enc["ymax"]),
            **band_aes,
        )
        charts.append(band)
    charts.append(alt.Chart().mark_line(**mark).encode(**_xy(enc), **aes))
    return charts


def violin_axis(levels: tuple[str, ...], title: str | None) -> tuple[alt.Axis, alt.Scale]:
    """Axis and scale that label integer x positions with category names."""
    n = len(levels)
    axis = alt.Axis(
        values=list(range(n)),
        labelExpr=f"{json.dumps(list(levels))}[datum.value]",
        grid=False,
        title=title,
    )
    return axis, alt.Scale(domain=[-0.5, n - 0.5], zero=False, nice=False)


def _draw_violin(geom: Geom, enc, const, params) -> list[alt.Chart]:
    aes = _aesthetics(geom, enc)
    details = [_channel(alt.Detail, enc["x"])]
    if "detail" in aes:
        details.append(aes.pop("detail"))
    return [
        alt.Chart()
        .mark_area(orient="horizontal", **_mark_props(geom, const))
        .encode(
            x=_channel(alt.X, enc["xmin"]),
            x2=_channel(alt.X2, enc["xmax"]),
            y=_channel(alt.Y, enc["y"]),
            detail=details,
            **aes,
        )
    ]


def _draw_boxplot(geom: Geom, enc, const, params) -> list[alt.Chart]:
    mark = {"extent": float(params.get("coef", 1.5)), **_mark_props(geom, const)}
    return [alt.Chart().mark_boxplot(**mark).encode(**_xy(enc), **_aesthetics(geom, enc))]


def _draw_simple(geom: Geom, enc, const, params) -> list[alt.Chart]:
    mark = _mark_props(geom, const)
    channels: dict[str, Any] = {**_xy(enc), **_aesthetics(geom, enc)}
    if geom is Geom.POINT:
        base = alt.Chart().mark_point(filled=True, **mark)
    elif geom is Geom.LINE:
        base = alt.Chart().mark_line(**mark)
    elif geom is Geom.RASTER:
        base = alt.Chart().mark_rect(**mark)
    elif geom is Geom.TEXT:
        mark.update({k: params[k] for k in ("dx", "dy") if k in params})
        base = alt.Chart().mark_text(**mark)
        if "label" in enc:
            channels["text"] = _channel(alt.Text, enc["label"])
    else:
        base = alt.Chart().mark_rule(**mark)
        channels["x2"] = _channel(alt.X2, enc["xend"])
        channels["y2"] = _channel(alt.Y2, enc["yend"])
    return [base.encode(**channels)]


_DRAW = {
    Geom.POINT: _draw_simple,
    Geom.LINE: _draw_simple,
    Geom.RASTER: _draw_simple,
    Geom.TEXT: _draw_simple,
    Geom.SEGMENT: _draw_simple,
    Geom.AREA: _draw_area,
    Geom.DENSITY: _draw_area,
    Geom.BAR: _draw_bar,
    Geom.COL: _draw_bar,
    Geom.BOXPLOT: _draw_boxplot,
    Geom.VIOLIN: _draw_violin,
    Geom.SMOOTH: _draw_smooth,
}


def draw(
    geom: Geom,
    enc: Mapping[str, Mapping[str, Any]],
    const: Mapping[str, Any],
    params: Mapping[str, Any] | None = None,
) -> list[alt.Chart]:
    """
    Build the data-less chart(s) for one non-map layer.

    Returns:
        list[alt.Chart]: One chart per mark (smooth draws a band and a line).

    Raises:
        SpecError: Unknown position adjustment.
    """
    if geom is Geom.MAP:
        raise SpecError("map layers are drawn with draw_map()")
    return _DRAW[geom](geom, enc, const, dict(params or {}))


def draw_map(
    values: list[dict[str, Any]],
    enc: Mapping[str, Mapping[str, Any]],
    const: Mapping[str, Any],
    *,
    key: str,
    lookup_fields: list[str],
) -> alt.Chart:
    """
    Build a US-states choropleth layer.

    The state boundaries come from the us-10m TopoJSON; the layer's rows are
    joined onto them by numeric FIPS id through a lookup transform.

    Args:
        values: Layer rows, each carrying the FIPS id under `key`.
        enc: Encodings for fill/color/alpha.
        const: Constant style values.
        key (str): Name of the FIPS id field in `values`.
        lookup_fields (list[str]): Fields copied from `values` onto each state shape.
    """
    mark = {"stroke": "#FFFFFF", **_mark_props(Geom.MAP, const)}
    return (
        alt.Chart(alt.topo_feature(US_STATES_TOPOJSON, "states"))
        .mark_geoshape(**mark)
        .encode(**_aesthetics(Geom.MAP, enc))
        .transform_lookup(
            lookup="id",
            from_=alt.LookupData(data=alt.Data(values=values), key=key, fields=lookup_fields),
        )
        .project(type="albersUsa")
    )
