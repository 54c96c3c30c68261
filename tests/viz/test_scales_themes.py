from __future__ import annotations

import logging

import altair as alt

from plotgram.core.grammar import ColumnKind
from plotgram.core.schema import ScaleSpec, ThemeSpec
from plotgram.viz.scales import check_palette_kind, scale_properties, to_scale
from plotgram.viz.themes import BASE_SIZE, apply_theme, theme_config


def test_categorical_domain_is_pinned_to_levels() -> None:
    props = scale_properties("color", None, kind=ColumnKind.CATEGORICAL, levels=("b", "a"))
    assert props == {"domain": ["b", "a"]}
    assert scale_properties("x", None, kind=ColumnKind.CATEGORICAL, levels=("b", "a")) == {}
    assert to_scale({}) is None


def test_scale_spec_translation() -> None:
    spec = ScaleSpec(channel="fill", scheme="redblue", domain=[-1, 1], reverse=True)
    props = scale_properties("fill", spec, kind=ColumnKind.NUMERIC)
    assert props == {"scheme": "redblue", "domain": [-1, 1], "reverse": True}

    grad = ScaleSpec(channel="fill", low="#fff", mid="#ccc", high="#000", midpoint=0.5)
    assert scale_properties("fill", grad, kind=ColumnKind.NUMERIC) == {"range": ["#fff", "#ccc", "#000"], "domainMid": 0.5}

    manual = ScaleSpec(channel="fill", values=["red", "blue"])
    props = scale_properties("fill", manual, kind=ColumnKind.CATEGORICAL, levels=("x", "y"))
    assert props == {"domain": ["x", "y"], "range": ["red", "blue"]}
    assert isinstance(to_scale(props), alt.Scale)

    assert scale_properties("x", ScaleSpec(channel="x", transform="sqrt", zero=False), kind=ColumnKind.NUMERIC) == {
        "type": "sqrt",
        "zero": False,
    }
    assert scale_properties("y", ScaleSpec(channel="y", transform="reverse"), kind=ColumnKind.NUMERIC) == {"reverse": True}


def test_palette_kind_mismatch_only_warns(caplog) -> None:
    qual = ScaleSpec(channel="fill", palette="Set2", palette_kind="qualitative", scheme="set2")
    seq = ScaleSpec(channel="fill", palette="Blues", palette_kind="sequential", scheme="blues")
    with caplog.at_level(logging.WARNING, logger="plotgram.viz.scales"):
        assert check_palette_kind(qual, ColumnKind.CATEGORICAL, "Species")
        assert check_palette_kind(seq, ColumnKind.NUMERIC, "income")
        assert not check_palette_kind(qual, ColumnKind.NUMERIC, "income")
    assert len(caplog.records) == 1
    assert "income" in caplog.records[0].getMessage()


def test_theme_config_overrides() -> None:
    cfg = theme_config(ThemeSpec(name="grey"))
    assert cfg["view"]["fill"] == "#EBEBEB"
    assert cfg["axis"]["titleFontSize"] == BASE_SIZE
    assert cfg["top"] == {}

    cfg = theme_config(ThemeSpec(name="bw", base_size=20, grid=False, title_anchor="middle", legend_position="top"))
    assert cfg["axis"]["grid"] is False
    assert cfg["axis"]["labelFontSize"] == 16.0
    assert cfg["title"]["anchor"] == "middle"
    assert cfg["legend"]["orient"] == "top"


def test_apply_theme_keeps_font_with_blocks() -> None:
    chart = alt.Chart(alt.Data(values=[{"a": 1}])).mark_point().encode(x="a:Q")
    d = apply_theme(chart, ThemeSpec(name="minimal", font="Helvetica", legend_position="none")).to_dict()
    assert d["config"]["font"] == "Helvetica"
    assert d["config"]["legend"]["disable"] is True
    assert d["config"]["view"]["fill"] == "#FFFFFF"
