"""
Themes: non-data styling applied to a finished top-level chart.

Base themes follow the familiar grammar-of-graphics looks:
- grey: grey panel, white grid, no panel border.
- bw: white panel, light grid, dark panel border.
- minimal: white panel, light grid, no border, no ticks.
- classic: white panel, no grid, axis lines only.

ThemeSpec overrides (base_size, font, grid, title_anchor, legend_position)
are applied on top of the base. Themes only touch chart config, never data
encodings, and must be applied last.
"""

from __future__ import annotations

from typing import Any

import altair as alt

from plotgram.core.schema import ThemeSpec

__all__ = ["BASE_SIZE", "theme_config", "apply_theme"]

BASE_SIZE = 11.0

_BASES: dict[str, dict[str, dict[str, Any]]] = {
    "grey": {
        "view": {"fill": "#EBEBEB", "stroke": None},
        "axis": {
            "grid": True,
            "gridColor": "#FFFFFF",
            "domain": False,
            "tickColor": "#333333",
            "labelColor": "#4D4D4D",
        },
    },
    "bw": {
        "view": {"fill": "#FFFFFF", "stroke": "#333333"},
        "axis": {
            "grid": True,
            "gridColor": "#EBEBEB",
            "domain": False,
            "tickColor": "#333333",
            "labelColor": "#4D4D4D",
        },
    },
    "minimal": {
        "view": {"fill": "#FFFFFF", "stroke": None},
        "axis": {"grid": True, "gridColor": "#EBEBEB", "domain": False, "ticks": False},
    },
    "classic": {
        "view": {"fill": "#FFFFFF", "stroke": None},
        "axis": {"grid": False, "domain": True, "domainColor": "#000000", "tickColor": "#000000"},
    },
}


def theme_config(theme: ThemeSpec) -> dict[str, dict[str, Any]]:
    """
    Resolve a ThemeSpec into per-block config kwargs (view, axis, legend, title, header, top).

    Examples:
        >>> from plotgram.core.schema import ThemeSpec
        >>> cfg = theme_config(ThemeSpec(name="classic", grid=True, legend_position="none"))
        >>> cfg["axis"]["grid"], cfg["legend"]["disable"]
        (True, True)
    """
    base = _BASES[theme.name]
    size = theme.base_size or BASE_SIZE
    cfg: dict[str, dict[str, Any]] = {
        "view": dict(base["view"]),
        "axis": {
            **base["axis"],
            "labelFontSize": round(size * 0.8, 2),
            "titleFontSize": size,
            "titleFontWeight": "normal",
        },
        "legend": {"labelFontSize": round(size * 0.8, 2), "titleFontSize": size},
        "title": {"fontSize": round(size * 1.2, 2), "anchor": "start"},
        "header": {"labelFontSize": round(size * 0.8, 2), "titleFontSize": size},
        "top": {},
    }
    if theme.font is not None:
        cfg["top"]["font"] = theme.font
    if theme.grid is not None:
        cfg["axis"]["grid"] = theme.grid
    if theme.title_anchor is not None:
        cfg["title"]["anchor"] = theme.title_anchor
    if theme.legend_position == "none":
        cfg["legend"]["disable"] = True
    elif theme.legend_position is not None:
        cfg["legend"]["orient"] = theme.legend_position
    return cfg


def apply_theme(chart: alt.TopLevelMixin, theme: ThemeSpec) -> alt.TopLevelMixin:
    """Apply a resolved theme to a top-level chart and return the configured copy."""
    cfg = theme_config(theme)
    # configure() replaces the whole config, so it must run before the per-block calls.
    if cfg["top"]:
        chart = chart.configure(**cfg["top"])
    return (
        chart.configure_axis(**cfg["axis"])
        .configure_legend(**cfg["legend"])
        .configure_title(**cfg["title"])
        .configure_header(**cfg["header"])
        .configure_view(**cfg["view"])
    )
