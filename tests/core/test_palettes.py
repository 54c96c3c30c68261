from __future__ import annotations

import pytest

from plotgram.core.errors import InvalidPalette
from plotgram.core.grammar import PaletteKind
from plotgram.core.palettes import palette_names, resolve_palette


def test_resolve_by_name_is_case_insensitive() -> None:
    p = resolve_palette("rdbu")
    assert p.name == "RdBu"
    assert p.kind is PaletteKind.DIVERGING
    assert p.scheme == "redblue"


def test_resolve_by_vega_scheme_name() -> None:
    assert resolve_palette("yellowgreenblue").name == "YlGnBu"


def test_resolve_by_index_within_kind() -> None:
    assert resolve_palette(index=1).name == "Blues"
    assert resolve_palette(index=2, kind="qual").name == "Dark2"
    names = palette_names("div")
    assert resolve_palette(index=len(names), kind="div").name == names[-1]


@pytest.mark.parametrize("index", [0, 10, -1])
def test_index_out_of_range_for_kind(index: int) -> None:
    with pytest.raises(InvalidPalette):
        resolve_palette(index=index, kind="diverging")


def test_unknown_name_and_kind() -> None:
    with pytest.raises(InvalidPalette, match="unknown palette"):
        resolve_palette("Rainbow")
    with pytest.raises(InvalidPalette):
        resolve_palette(index=1, kind="pastel")


def test_palette_names_are_unique() -> None:
    names = palette_names()
    assert len(names) == len(set(n.lower() for n in names))
