from __future__ import annotations

import pytest

from plotgram.core.errors import SpecError
from plotgram.core.grammar import (
    GEOM_DEFAULT_STAT,
    Channel,
    ColumnKind,
    FacetScales,
    Geom,
    OutputFormat,
    PaletteKind,
    ScaleTransform,
    Stat,
    channel_from_value,
    format_from_extension,
    geom_from_value,
    is_lower_snake,
    stat_from_value,
)


def test_all_enum_values_are_lower_snake() -> None:
    for enum_cls in (Channel, Geom, Stat, ColumnKind, PaletteKind, FacetScales, ScaleTransform, OutputFormat):
        for member in enum_cls:
            assert is_lower_snake(member.value), f"{enum_cls.__name__}.{member.name} = {member.value!r}"


def test_every_geom_has_a_default_stat() -> None:
    assert set(GEOM_DEFAULT_STAT) == set(Geom)
    assert GEOM_DEFAULT_STAT[Geom.BAR] is Stat.COUNT
    assert GEOM_DEFAULT_STAT[Geom.DENSITY] is Stat.DENSITY
    assert GEOM_DEFAULT_STAT[Geom.VIOLIN] is Stat.YDENSITY


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("colour", Channel.COLOR), ("Fill", Channel.FILL), ("map-id", Channel.MAP_ID)],
)
def test_channel_aliases(raw: str, expected: Channel) -> None:
    assert channel_from_value(raw) is expected


def test_geom_and_stat_aliases() -> None:
    assert geom_from_value("box") is Geom.BOXPLOT
    assert geom_from_value("tile") is Geom.RASTER
    assert stat_from_value("mean") is Stat.SUMMARY_MEAN


def test_unknown_names_raise_spec_error() -> None:
    with pytest.raises(SpecError, match="unknown geom"):
        geom_from_value("hexbin")
    with pytest.raises(SpecError):
        channel_from_value("linetype")
    with pytest.raises(SpecError):
        stat_from_value("Weird Stat")


def test_format_from_extension() -> None:
    assert format_from_extension("pdf") is OutputFormat.PDF
    assert format_from_extension(".SVG") is OutputFormat.SVG
    assert format_from_extension(".xyz") is None
