"""
Output sink: inline display and file export for rendered artifacts.

Formats (inferred from the file extension)
- .pdf, .png, .svg — converted with vl-convert (Vega-Lite → image, no browser).
- .html — standalone page embedding the chart.
- .json — the Vega-Lite specification.

Write path
- The extension is checked first; an unsupported one raises UnsupportedFormat
  before anything touches the filesystem.
- The payload is produced in memory, then written tmp → fsync → atomic rename
  (plotgram.io.fs). Conversion or filesystem failures raise WriteError.

Notes
- vl-convert is imported lazily through importlib so that HTML/JSON export and
  the rest of the library work without it; a missing converter raises RuntimeError.
"""

from __future__ import annotations

import importlib
import logging
import os
from pathlib import Path
from typing import Any

from plotgram.core.grammar import OutputFormat, format_from_extension
from plotgram.io.config import PlotSettings
from plotgram.io.errors import UnsupportedFormat, WriteError
from plotgram.io.fs import write_bytes_atomic

from .render import Artifact

__all__ = ["save", "show", "to_bytes"]

logger = logging.getLogger(__name__)


def _vl_convert() -> Any:
    try:
        return importlib.import_module("vl_convert")
    except ImportError as exc:
        raise RuntimeError(
            "PDF/PNG/SVG export requires the 'vl-convert-python' package (pip install vl-convert-python)"
        ) from exc


def to_bytes(artifact: Artifact, fmt: OutputFormat, settings: PlotSettings | None = None) -> bytes:
    """
    Serialize an artifact into the bytes of one output format.

    Raises:
        RuntimeError: vl-convert is not installed (pdf/png/svg only).
        WriteError: Conversion failed.
    """
    settings = settings or PlotSettings()
    if fmt is OutputFormat.JSON:
        return (artifact.to_json() + "\n").encode("utf-8")
    if fmt is OutputFormat.HTML:
        return artifact.chart.to_html().encode("utf-8")

    vlc = _vl_convert()
    spec = artifact.to_dict()
    try:
        if fmt is OutputFormat.SVG:
            return vlc.vegalite_to_svg(vl_spec=spec).encode("utf-8")
        if fmt is OutputFormat.PNG:
            return vlc.vegalite_to_png(vl_spec=spec, scale=settings.scale_factor, ppi=settings.ppi)
        return vlc.vegalite_to_pdf(vl_spec=spec, scale=settings.scale_factor)
    except Exception as exc:
        raise WriteError(f"vl-convert failed to produce {fmt.value}: {exc}") from exc


def save(
    artifact: Artifact,
    path: str | os.PathLike[str],
    *,
    settings: PlotSettings | None = None,
) -> Path:
    """
    Write an artifact to `path`, choosing the format from its extension.

    Args:
        artifact (Artifact): Rendered chart.
        path (str | PathLike): Destination; parent directories are created.
        settings (PlotSettings | None): Export scale and ppi.

    Returns:
        Path: The written path.

    Raises:
        UnsupportedFormat: Extension is not pdf/png/svg/html/json (nothing is written).
        RuntimeError: vl-convert is missing for pdf/png/svg.
        WriteError: Conversion or filesystem failure.

    Examples:
        >>> from plotgram.io import load_dataset  # doctest: +SKIP
        >>> from plotgram.viz import Plot, render, save  # doctest: +SKIP
        >>> art = render(Plot(load_dataset("iris"), x="Species").geom_bar())  # doctest: +SKIP
        >>> save(art, "out/species.pdf")  # doctest: +SKIP
    """
    out = Path(path)
    fmt = format_from_extension(out.suffix)
    if fmt is None:
        raise UnsupportedFormat(
            f"cannot infer an output format from {out.name!r} "
            f"(supported: {[f.value for f in OutputFormat]!r})"
        )
    payload = to_bytes(artifact, fmt, settings)
    try:
        n = write_bytes_atomic(str(out), payload)
    except OSError as exc:
        raise WriteError(f"failed to write {str(out)!r}: {exc}") from exc
    logger.debug("wrote %s (%s, %d bytes)", out, fmt.value, n)
    return out


def show(artifact: Artifact) -> None:
    """Display an artifact inline in IPython/Jupyter."""
    from IPython.display import display

    display(artifact)
