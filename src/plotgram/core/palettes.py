"""
ColorBrewer palette registry.

Maps ColorBrewer palette names to the equivalent Vega color scheme names and
resolves palettes either by name or by (kind, 1-based index), mirroring how
brewer scales are addressed by number within a palette family.

Notes:
    - Index order within each kind follows the ColorBrewer listing (alphabetical).
    - Vega ships every ColorBrewer scheme under a lower-case, spelled-out name
      (e.g., "YlGnBu" -> "yellowgreenblue").
    - Zero-IO; stdlib only.

Examples:
    >>> from plotgram.core.palettes import resolve_palette
    >>> resolve_palette(index=1, kind="seq").scheme
    'blues'
    >>> resolve_palette("Set2").kind.value
    'qualitative'
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .errors import InvalidPalette, SpecError
from .grammar import PaletteKind, palette_kind_from_value

__all__ = [
    "Palette",
    "BREWER",
    "palette_names",
    "resolve_palette",
]


@dataclass(frozen=True, slots=True)
class Palette:
    """
    A resolved palette.

    Attributes:
        name (str): ColorBrewer name, e.g. "RdBu".
        kind (PaletteKind): Palette family.
        scheme (str): Vega scheme name used in the rendered spec.
    """

    name: str
    kind: PaletteKind
    scheme: str


BREWER: Final[dict[PaletteKind, tuple[tuple[str, str], ...]]] = {
    PaletteKind.SEQUENTIAL: (
        ("Blues", "blues"),
        ("BuGn", "bluegreen"),
        ("BuPu", "bluepurple"),
        ("GnBu", "greenblue"),
        ("Greens", "greens"),
        ("Greys", "greys"),
        ("Oranges", "oranges"),
        ("OrRd", "orangered"),
        ("PuBu", "purpleblue"),
        ("PuBuGn", "purplebluegreen"),
        ("PuRd", "purplered"),
        ("Purples", "purples"),
        ("RdPu", "redpurple"),
        ("Reds", "reds"),
        ("YlGn", "yellowgreen"),
        ("YlGnBu", "yellowgreenblue"),
        ("YlOrBr", "yelloworangebrown"),
        ("YlOrRd", "yelloworangered"),
    ),
    PaletteKind.DIVERGING: (
        ("BrBG", "brownbluegreen"),
        ("PiYG", "pinkyellowgreen"),
        ("PRGn", "purplegreen"),
        ("PuOr", "purpleorange"),
        ("RdBu", "redblue"),
        ("RdGy", "redgrey"),
        ("RdYlBu", "redyellowblue"),
        ("RdYlGn", "redyellowgreen"),
        ("Spectral", "spectral"),
    ),
    PaletteKind.QUALITATIVE: (
        ("Accent", "accent"),
        ("Dark2", "dark2"),
        ("Paired", "paired"),
        ("Pastel1", "pastel1"),
        ("Pastel2", "pastel2"),
        ("Set1", "set1"),
        ("Set2", "set2"),
        ("Set3", "set3"),
    ),
}

_BY_NAME: Final[dict[str, Palette]] = {
    name.lower(): Palette(name=name, kind=kind, scheme=scheme)
    for kind, entries in BREWER.items()
    for name, scheme in entries
}


def palette_names(kind: PaletteKind | str | None = None) -> list[str]:
    """Return ColorBrewer names, optionally restricted to one kind, in index order."""
    if kind is None:
        return [name for entries in BREWER.values() for name, _ in entries]
    k = palette_kind_from_value(kind)
    return [name for name, _ in BREWER[k]]


def resolve_palette(
    name: str | None = None,
    *,
    index: int | None = None,
    kind: PaletteKind | str = PaletteKind.SEQUENTIAL,
) -> Palette:
    """
    Resolve a palette by ColorBrewer name or by 1-based index within a kind.

    Args:
        name (str | None): ColorBrewer name (case-insensitive) or Vega scheme name.
        index (int | None): 1-based position in the kind's listing; used when name is None.
        kind (PaletteKind | str): Palette family for index lookup ("seq", "div", "qual").

    Returns:
        Palette: The resolved palette.

    Raises:
        InvalidPalette: Unknown name, unknown kind, or index outside [1, len(kind)].
    """
    if name is not None:
        key = name.strip().lower()
        if key in _BY_NAME:
            return _BY_NAME[key]
        for pal in _BY_NAME.values():
            if pal.scheme == key:
                return pal
        raise InvalidPalette(f"unknown palette {name!r}")

    if index is None:
        raise InvalidPalette("palette requires a name or an index")
    try:
        k = palette_kind_from_value(kind)
    except SpecError as exc:
        raise InvalidPalette(str(exc)) from exc
    entries = BREWER[k]
    if isinstance(index, bool) or not isinstance(index, int) or not 1 <= index <= len(entries):
        raise InvalidPalette(
            f"palette index {index!r} out of range for {k.value} palettes (1..{len(entries)})"
        )
    pname, scheme = entries[index - 1]
    return Palette(name=pname, kind=k, scheme=scheme)
