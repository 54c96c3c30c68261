from __future__ import annotations

import numpy as np
import polars as pl
import pytest

from plotgram.core.errors import SpecError
from plotgram.io import Dataset, load_dataset
from plotgram.viz import correlation_matrix, corrplot, render


def _frame() -> Dataset:
    x = np.arange(20, dtype=float)
    return Dataset(
        pl.DataFrame({"a": x, "b": -2.0 * x, "c": x**3, "d": np.cos(x), "label": ["n"] * 20}),
        name="toy",
    )


def _mark_type(layer: dict) -> str:
    mark = layer["mark"]
    return mark if isinstance(mark, str) else mark["type"]


def test_matrix_shape_and_values() -> None:
    cm = correlation_matrix(_frame(), ["a", "b", "d"])
    assert cm.name == "toy_cor"
    assert cm.height == 9
    r = {(v1, v2): v for v1, v2, v in cm.frame.iter_rows()}
    assert r[("a", "a")] == pytest.approx(1.0)
    assert r[("a", "b")] == pytest.approx(-1.0)
    assert r[("a", "d")] == pytest.approx(r[("d", "a")])


def test_default_columns_are_numeric_only() -> None:
    cm = correlation_matrix(_frame())
    assert cm.levels("var1") == ("a", "b", "c", "d")


def test_spearman_sees_monotone_as_perfect() -> None:
    cm = correlation_matrix(_frame(), ["a", "c"], method="spearman")
    r = cm.frame.filter((pl.col("var1") == "a") & (pl.col("var2") == "c")).get_column("r").item()
    assert r == pytest.approx(1.0)


def test_hclust_groups_correlated_columns() -> None:
    mtcars = load_dataset("mtcars")
    cm = correlation_matrix(mtcars, ["mpg", "qsec", "wt", "drat", "disp", "hp"], order="hclust")
    order = cm.levels("var1")
    assert sorted(order) == sorted(["mpg", "qsec", "wt", "drat", "disp", "hp"])
    assert abs(order.index("wt") - order.index("disp")) == 1
    assert cm.levels("var2") == order


def test_errors() -> None:
    with pytest.raises(SpecError):
        correlation_matrix(_frame(), ["a"])
    with pytest.raises(SpecError):
        correlation_matrix(_frame(), ["a", "label"])
    with pytest.raises(SpecError):
        correlation_matrix(_frame(), method="kendall")
    with pytest.raises(SpecError):
        correlation_matrix(_frame(), order="alphabet")


def test_corrplot_renders_heatmap_with_labels() -> None:
    p = corrplot(load_dataset("mtcars"), ["mpg", "wt", "hp"])
    assert [layer.geom for layer in p.spec.layers] == ["raster", "text"]
    assert p.spec.scales["fill"].scheme == "redblue"
    d = render(p).to_dict()
    marks = [_mark_type(layer) for layer in d["layer"]]
    assert marks == ["rect", "text"]

    bare = corrplot(load_dataset("mtcars"), ["mpg", "wt"], labels=False)
    assert len(bare.spec.layers) == 1
