from __future__ import annotations

from typing import Any

import pytest

from plotgram.core.constants import LAYER_FIELD, PANEL_FIELD
from plotgram.core.errors import AestheticResolutionError, SpecError
from plotgram.io import PlotSettings, load_dataset
from plotgram.viz import Plot, Renderer, render


def find_in_spec(obj: Any, predicate) -> bool:
    """Recursively scan a chart spec dict for a predicate match."""
    if isinstance(obj, dict):
        if predicate(obj):
            return True
        return any(find_in_spec(v, predicate) for v in obj.values())
    if isinstance(obj, list):
        return any(find_in_spec(v, predicate) for v in obj)
    return False


def test_iris_density_facets_have_four_panels(iris_tall) -> None:
    p = Plot(iris_tall, x="value", fill="Species").geom_density(alpha=0.5).facet_wrap("variable", scales="free")
    art = render(p)
    assert len(art.panels) == 4
    d = art.to_dict()
    assert d["facet"]["field"] == "variable"
    assert d["resolve"]["scale"] == {"x": "independent", "y": "independent"}
    assert find_in_spec(d, lambda o: o.get("type") == "area" and o.get("opacity") == 0.5)


@pytest.mark.parametrize(
    ("scales", "expected"),
    [
        ("fixed", {"x": "shared", "y": "shared"}),
        ("free_x", {"x": "independent", "y": "shared"}),
        ("free_y", {"x": "shared", "y": "independent"}),
    ],
)
def test_facet_scale_resolution(iris_tall, scales, expected) -> None:
    p = Plot(iris_tall, x="Species", y="value").geom_boxplot().facet_wrap("variable", scales=scales)
    assert render(p).to_dict()["resolve"]["scale"] == expected


def test_two_column_wrap_uses_panel_field() -> None:
    mt = load_dataset("mtcars", categorical=("cyl", "am"))
    art = render(Plot(mt, x="wt", y="mpg").geom_point().facet_wrap("cyl", "am", ncol=3))
    d = art.to_dict()
    assert d["facet"]["field"] == PANEL_FIELD
    assert d["columns"] == 3
    assert ("4", "1") in art.panels
    assert all(PANEL_FIELD in row for row in d["data"]["values"])


def test_layers_share_tagged_data(small) -> None:
    art = render(Plot(small, x="x", y="y").geom_point().geom_line(color="red"))
    d = art.to_dict()
    tags = {row[LAYER_FIELD] for row in d["data"]["values"]}
    assert tags == {0, 1}
    assert find_in_spec(d, lambda o: o.get("filter") == {"field": LAYER_FIELD, "equal": 1})
    assert find_in_spec(d, lambda o: o.get("type") == "line" and o.get("color") == "red")


def test_categorical_colour_domain_uses_levels(iris) -> None:
    d = render(Plot(iris, x="Sepal.Length", y="Sepal.Width", color="Species").geom_point()).to_dict()
    assert find_in_spec(
        d, lambda o: o.get("field") == "Species" and o.get("scale", {}).get("domain") == ["setosa", "versicolor", "virginica"]
    )
    # Dots in column names are escaped so Vega-Lite does not read them as nested access.
    assert find_in_spec(d, lambda o: o.get("field") == "Sepal\\.Length")


def test_count_bar_encodes_count(small) -> None:
    d = render(Plot(small, x="g").geom_bar()).to_dict()
    assert find_in_spec(d, lambda o: o.get("field") == "count" and o.get("type") == "quantitative")
    rows = [r for r in d["data"]["values"]]
    assert sorted((r["g"], r["count"]) for r in rows) == [("a", 2), ("b", 3), ("c", 1)]


def test_log_scale_and_labels(small) -> None:
    p = Plot(small, x="x", y="y").geom_point().scale_y_log10().labs(title="T", subtitle="S", caption="C", y="why")
    d = render(p).to_dict()
    assert find_in_spec(d, lambda o: o.get("type") == "log")
    assert d["title"] == {"text": "T", "subtitle": "S"}
    assert d["description"] == "C"
    assert find_in_spec(d, lambda o: o.get("title") == "why")


def test_settings_size_and_theme(small) -> None:
    settings = PlotSettings(width=200, height=150, theme="classic")
    d = Renderer(settings).render(Plot(small, x="x", y="y").geom_point()).to_dict()
    assert d["width"] == 200
    assert d["height"] == 150
    assert d["config"]["axis"]["grid"] is False

    d2 = render(Plot(small, x="x", y="y").geom_point().size(width=120).theme("minimal", font="Fira Sans")).to_dict()
    assert d2["width"] == 120
    assert d2["config"]["font"] == "Fira Sans"
    assert d2["config"]["axis"]["ticks"] is False


def test_rendering_is_deterministic(iris_tall) -> None:
    p = Plot(iris_tall, x="value", fill="Species").geom_density().facet_wrap("variable", scales="free")
    a, b = render(p), render(p)
    assert a.fingerprint() == b.fingerprint()
    assert a.to_json() == b.to_json()


def test_missing_required_channel(small) -> None:
    with pytest.raises(AestheticResolutionError) as info:
        render(Plot(small, x="x").geom_point())
    assert info.value.missing == ("y",)
    with pytest.raises(SpecError, match="no layers"):
        render(Plot(small, x="x"))


def test_smooth_and_violin_layers(iris) -> None:
    mt = load_dataset("mtcars", categorical=("cyl",))
    d = render(Plot(mt, x="wt", y="mpg", color="cyl").geom_point().geom_smooth(method="lm")).to_dict()
    assert find_in_spec(d, lambda o: o.get("field") == "ymin")
    assert find_in_spec(d, lambda o: o.get("field") == "ymax")

    v = render(Plot(iris, x="Species", y="Petal.Length").geom_violin()).to_dict()
    assert find_in_spec(v, lambda o: o.get("type") == "area" and o.get("orient") == "horizontal")
    assert find_in_spec(v, lambda o: o.get("values") == [0, 1, 2] and "labelExpr" in o)


def test_map_layer_joins_states() -> None:
    income = load_dataset("state_income")
    d = render(Plot(income, map_id="state", fill="median_income").geom_map()).to_dict()
    assert find_in_spec(d, lambda o: o.get("type") == "geoshape")
    assert find_in_spec(d, lambda o: o.get("type") == "albersUsa")
    assert find_in_spec(d, lambda o: o.get("lookup") == "id")
    assert "data" not in d or "values" not in d.get("data", {})


def test_missing_category_values_are_not_drawn() -> None:
    import polars as pl

    from plotgram.io import Dataset

    ds = Dataset(
        pl.DataFrame(
            {
                "g": ["a", "a", "a", None, None, None],
                "f": ["p", "q", "p", "q", None, "p"],
                "v": [1.0, 2.0, 3.5, 2.0, 3.0, 4.0],
            }
        )
    )
    violin = render(Plot(ds, x="g", y="v").geom_violin()).to_dict()
    assert {row["g"] for row in violin["data"]["values"]} == {"a"}

    art = render(Plot(ds, x="v", y="v").geom_point().facet_wrap("f"))
    assert art.panels == (("p",), ("q",))
    assert all(row["f"] is not None for row in art.to_dict()["data"]["values"])
