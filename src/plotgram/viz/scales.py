"""
Scale resolution: ScaleSpec + column kind + dataset levels → Vega-Lite scale properties.

Responsibilities
- Keep categorical colour/fill/shape domains fixed to the dataset's levels, so a
  level keeps its colour across plots and subsets.
- Translate transforms (log10, sqrt, reverse), ColorBrewer schemes, manual
  ranges, gradients and explicit domains into alt.Scale keyword arguments.
- Warn when a palette's kind does not suit the variable it colours.

Import DAG discipline
- Depends on stdlib, altair, and plotgram.core.*.
"""

from __future__ import annotations

import logging
from typing import Any

import altair as alt

from plotgram.core.grammar import ColumnKind, PaletteKind, ScaleTransform
from plotgram.core.schema import ScaleSpec

__all__ = ["scale_properties", "to_scale", "check_palette_kind"]

logger = logging.getLogger(__name__)

# Channels whose categorical domain is pinned to the dataset levels.
_LEVEL_DOMAIN_CHANNELS = frozenset({"color", "fill", "shape"})


def scale_properties(
    channel: str,
    scale: ScaleSpec | None,
    *,
    kind: ColumnKind,
    levels: tuple[str, ...] = (),
) -> dict[str, Any]:
    """
    Resolve the alt.Scale keyword arguments for one encoded channel.

    Args:
        channel (str): Channel serialized value (x, y, color, fill, ...).
        scale (ScaleSpec | None): User override for the channel, if any.
        kind (ColumnKind): Kind of the encoded column.
        levels (tuple[str, ...]): Fixed levels of a categorical column.

    Returns:
        dict[str, Any]: Possibly empty mapping of Vega-Lite scale properties.

    Examples:
        >>> from plotgram.core.grammar import ColumnKind
        >>> scale_properties("fill", None, kind=ColumnKind.CATEGORICAL, levels=("a", "b"))
        {'domain': ['a', 'b']}
        >>> from plotgram.core.schema import ScaleSpec
        >>> scale_properties("y", ScaleSpec(channel="y", transform="log10"), kind=ColumnKind.NUMERIC)
        {'type': 'log'}
    """
    props: dict[str, Any] = {}
    if kind is ColumnKind.CATEGORICAL and channel in _LEVEL_DOMAIN_CHANNELS and levels:
        props["domain"] = list(levels)
    if scale is None:
        return props

    transform = ScaleTransform(scale.transform)
    if transform is ScaleTransform.LOG10:
        props["type"] = "log"
    elif transform is ScaleTransform.SQRT:
        props["type"] = "sqrt"
    elif transform is ScaleTransform.REVERSE:
        props["reverse"] = True
    if scale.reverse:
        props["reverse"] = True

    if scale.scheme is not None:
        props["scheme"] = scale.scheme
    if scale.values is not None:
        props["range"] = list(scale.values)
    elif scale.low is not None and scale.high is not None:
        props["range"] = [scale.low, scale.mid, scale.high] if scale.mid is not None else [scale.low, scale.high]
    if scale.midpoint is not None:
        props["domainMid"] = scale.midpoint
    if scale.domain is not None:
        props["domain"] = list(scale.domain)
    if scale.zero is not None:
        props["zero"] = scale.zero
    return props


def to_scale(props: dict[str, Any]) -> alt.Scale | None:
    return alt.Scale(**props) if props else None


def check_palette_kind(scale: ScaleSpec, kind: ColumnKind, column: str) -> bool:
    """
    Log a warning when a palette's kind does not match the variable's measurement type.

    Qualitative palettes suit categorical variables; sequential and diverging
    palettes suit ordered (numeric or date) variables. A mismatch never fails.

    Returns:
        bool: True when the palette suits the variable (or no palette is set).
    """
    if scale.palette_kind is None:
        return True
    pk = PaletteKind(scale.palette_kind)
    categorical = kind is ColumnKind.CATEGORICAL
    if categorical == (pk is PaletteKind.QUALITATIVE):
        return True
    logger.warning(
        "%s palette %r on %s column %r for channel %s",
        pk.value,
        scale.palette,
        kind.value,
        column,
        scale.channel,
    )
    return False
