"""
Configuration for plotgram.

Defines PlotSettings, a frozen dataclass carrying the options that a plotting
library would otherwise keep as process-wide mutable defaults (plot size, theme,
export resolution, network timeout, stat grid sizes). Settings are passed
explicitly to loaders, the renderer and the output sink.

Source of truth
- plotgram.core.constants for every default value.

Import DAG discipline
- Depends only on stdlib and plotgram.core.constants.
- Does not import higher layers (viz, lab).

Notes
- Precedence: environment (PLOTGRAM_*) > TOML > defaults.
- Unparseable values are ignored and the previous layer's value is kept.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from plotgram.core.constants import (
    DEFAULT_HEIGHT,
    DEFAULT_PPI,
    DEFAULT_THEME,
    DEFAULT_WIDTH,
    DENSITY_POINTS,
    SALES_SERIES_URL,
    SMOOTH_POINTS,
    THEME_NAMES,
)

__all__ = ["PlotSettings"]

_INT_FIELDS = ("width", "height", "ppi", "density_points", "smooth_points")
_FLOAT_FIELDS = ("scale_factor",)


@dataclass(frozen=True)
class PlotSettings:
    """
    Runtime settings for rendering and IO.

    Attributes:
        width (int): Default panel width in pixels.
        height (int): Default panel height in pixels.
        theme (str): Default theme name when a spec carries none.
        scale_factor (float): Raster/vector export scale.
        ppi (int): Pixels per inch for PNG export metadata.
        request_timeout (float | None): Seconds to wait on remote sources; None blocks.
        density_points (int): Grid size for density stats.
        smooth_points (int): Grid size for smoothing stats.
        sales_url (str): Location of the souvenir-sales series used by the gallery.

    Examples:
        >>> from plotgram.io import PlotSettings
        >>> PlotSettings(width=600).height
        300
    """

    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    theme: str = DEFAULT_THEME
    scale_factor: float = 1.0
    ppi: int = DEFAULT_PPI
    request_timeout: float | None = None
    density_points: int = DENSITY_POINTS
    smooth_points: int = SMOOTH_POINTS
    sales_url: str = SALES_SERIES_URL

    @classmethod
    def _apply_mapping(cls, base: PlotSettings, cfg: dict[str, Any] | None) -> PlotSettings:
        """Apply a loose config mapping onto PlotSettings, returning a new instance."""
        if not isinstance(cfg, dict):
            return base

        s = base

        for name in _INT_FIELDS:
            if name in cfg:
                try:
                    v = int(cfg[name])
                except (TypeError, ValueError):
                    continue
                if v > 0:
                    s = replace(s, **{name: v})

        for name in _FLOAT_FIELDS:
            if name in cfg:
                try:
                    f = float(cfg[name])
                except (TypeError, ValueError):
                    continue
                if f > 0:
                    s = replace(s, **{name: f})

        if "theme" in cfg and isinstance(cfg["theme"], str):
            theme = cfg["theme"].strip().lower()
            theme = "grey" if theme == "gray" else theme
            if theme in THEME_NAMES:
                s = replace(s, theme=theme)

        if "request_timeout" in cfg:
            raw = cfg["request_timeout"]
            if raw is None or (isinstance(raw, str) and raw.strip().lower() in {"", "none"}):
                s = replace(s, request_timeout=None)
            else:
                try:
                    s = replace(s, request_timeout=float(raw))
                except (TypeError, ValueError):
                    pass

        if "sales_url" in cfg and isinstance(cfg["sales_url"], str):
            s = replace(s, sales_url=cfg["sales_url"])

        return s

    @classmethod
    def from_env(cls, base: PlotSettings | None = None, prefix: str = "PLOTGRAM_") -> PlotSettings:
        """
        Build PlotSettings from environment variables. Precedence is env > base (if provided) > defaults.

        Recognized variables:
            - PLOTGRAM_WIDTH, PLOTGRAM_HEIGHT
            - PLOTGRAM_THEME
            - PLOTGRAM_SCALE_FACTOR, PLOTGRAM_PPI
            - PLOTGRAM_REQUEST_TIMEOUT ("none" disables the timeout)
            - PLOTGRAM_DENSITY_POINTS, PLOTGRAM_SMOOTH_POINTS
            - PLOTGRAM_SALES_URL
        """
        s = base or cls()
        mapping: dict[str, Any] = {}
        for name in (*_INT_FIELDS, *_FLOAT_FIELDS, "theme", "request_timeout", "sales_url"):
            v = os.getenv(prefix + name.upper())
            if v:
                mapping[name] = v
        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> PlotSettings:
        """
        Build PlotSettings from a TOML file.

        Search order when `path` is None:
            1) ./plotgram.toml (with either a [render] table or top-level keys)
            2) ./pyproject.toml under [tool.plotgram]

        Returns defaults if no file is present or none parses.
        """
        s = cls()

        def _load_toml(p: Path) -> dict[str, Any] | None:
            try:
                with p.open("rb") as fh:
                    return tomllib.load(fh)
            except (OSError, tomllib.TOMLDecodeError):
                return None

        cand: list[Path] = []
        if path is not None:
            cand.append(Path(path))
        else:
            cand.append(Path.cwd() / "plotgram.toml")
            cand.append(Path.cwd() / "pyproject.toml")

        cfg: dict[str, Any] | None = None
        for p in cand:
            if not p.exists():
                continue
            data = _load_toml(p)
            if not isinstance(data, dict):
                continue
            if p.name == "pyproject.toml":
                tool = data.get("tool", {})
                cfg = tool.get("plotgram") if isinstance(tool, dict) else None
            elif isinstance(data.get("render"), dict):
                cfg = data["render"]
            else:
                cfg = data
            if cfg:
                break

        return cls._apply_mapping(s, cfg)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> PlotSettings:
        """
        Load PlotSettings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search defaults (plotgram.toml, pyproject.toml).
        """
        s = cls.from_toml(path)
        return cls.from_env(base=s)
