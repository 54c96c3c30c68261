from __future__ import annotations

import numpy as np
import polars as pl
import pytest
from scipy.integrate import trapezoid

from plotgram.core.errors import SpecError
from plotgram.core.grammar import Stat
from plotgram.io import Dataset, PlotSettings
from plotgram.viz.stats import VIOLIN_WIDTH, compute_stat


def test_count_by_category_and_group(small) -> None:
    res = compute_stat(Stat.COUNT, small, {"x": "g"})
    assert res.fields["y"] == "count"
    assert res.frame.rows() == [("a", 2), ("b", 3), ("c", 1)]

    grouped = Dataset(small.frame.with_columns(pl.col("k").cast(pl.String)), name="s")
    res = compute_stat(Stat.COUNT, grouped, {"x": "g", "fill": "k"}, group_columns=["k"])
    assert res.frame.filter(pl.col("g") == "b").sort("k").get_column("count").to_list() == [2, 1]


def test_count_with_bins(small) -> None:
    res = compute_stat(Stat.COUNT, small, {"x": "x"}, params={"bins": 2})
    assert res.frame.get_column("count").sum() == small.height
    assert res.frame.height == 2
    with pytest.raises(SpecError):
        compute_stat(Stat.COUNT, small, {"x": "g"}, params={"bins": 3})
    with pytest.raises(SpecError):
        compute_stat(Stat.COUNT, small, {"x": "x"}, params={"bins": 0})


def test_summary_mean(small) -> None:
    res = compute_stat(Stat.SUMMARY_MEAN, small, {"x": "g", "y": "y"})
    assert res.frame.get_column("y").to_list() == pytest.approx([3.0, 14.0 / 3.0, 7.0])
    with pytest.raises(SpecError):
        compute_stat(Stat.SUMMARY_MEAN, small, {"x": "g", "y": "g"})
    with pytest.raises(SpecError, match="needs a column"):
        compute_stat(Stat.SUMMARY_MEAN, small, {"x": "g"})


def test_linear_smooth_recovers_line() -> None:
    x = np.arange(10, dtype=float)
    ds = Dataset(pl.DataFrame({"x": x, "y": 2.0 * x + 1.0 + np.tile([0.1, -0.1], 5)}))
    res = compute_stat(Stat.SMOOTH, ds, {"x": "x", "y": "y"}, params={"n": 5})
    assert res.frame.height == 5
    assert res.frame.get_column("x").to_list() == pytest.approx([0.0, 2.25, 4.5, 6.75, 9.0])
    fit = res.frame.get_column("y").to_numpy()
    assert fit == pytest.approx(2.0 * res.frame.get_column("x").to_numpy() + 1.0, abs=0.1)
    assert (res.frame.get_column("ymin") <= res.frame.get_column("y")).all()
    assert (res.frame.get_column("ymax") >= res.frame.get_column("y")).all()
    assert res.fields["ymin"] == "ymin"


def test_smooth_without_band_and_bad_method(small) -> None:
    res = compute_stat(Stat.SMOOTH, small, {"x": "x", "y": "y"}, params={"se": False, "n": 7})
    assert "ymin" not in res.frame.columns
    assert "ymin" not in res.fields
    with pytest.raises(SpecError):
        compute_stat(Stat.SMOOTH, small, {"x": "x", "y": "y"}, params={"method": "loess"})
    with pytest.raises(SpecError):
        compute_stat(Stat.SMOOTH, small, {"x": "x", "y": "y"}, params={"method": "poly", "degree": 0})


def test_smooth_skips_tiny_groups(small) -> None:
    res = compute_stat(Stat.SMOOTH, small, {"x": "x", "y": "y", "color": "g"}, group_columns=["g"], params={"n": 4})
    # group "c" has one point and is skipped
    assert set(res.frame.get_column("g").unique().to_list()) == {"a", "b"}


def test_density_per_group_integrates_to_one(iris) -> None:
    settings = PlotSettings(density_points=256)
    res = compute_stat(
        Stat.DENSITY, iris, {"x": "Sepal.Length", "fill": "Species"}, group_columns=["Species"], settings=settings
    )
    assert res.fields["y"] == "density"
    assert res.frame.height == 3 * 256
    for _, part in res.frame.group_by("Species"):
        area = trapezoid(part.get_column("density").to_numpy(), part.get_column("Sepal.Length").to_numpy())
        assert 0.8 < area <= 1.0


def test_density_bandwidth_validation(iris) -> None:
    with pytest.raises(SpecError):
        compute_stat(Stat.DENSITY, iris, {"x": "Sepal.Length"}, params={"bw": "nrd0"})
    with pytest.raises(SpecError):
        compute_stat(Stat.DENSITY, iris, {"x": "Sepal.Length"}, params={"bw": -1})
    with pytest.raises(SpecError):
        compute_stat(Stat.DENSITY, iris, {"x": "Species"})


def test_density_skips_degenerate_groups() -> None:
    ds = Dataset(pl.DataFrame({"g": ["a", "a", "a", "b"], "v": [1.0, 2.0, 4.0, 3.0]}))
    res = compute_stat(Stat.DENSITY, ds, {"x": "v", "fill": "g"}, group_columns=["g"], params={"n": 10})
    assert res.frame.get_column("g").unique().to_list() == ["a"]


def test_ydensity_positions_and_width(iris) -> None:
    res = compute_stat(Stat.YDENSITY, iris, {"x": "Species", "y": "Petal.Length"}, params={"n": 64})
    assert res.axis_levels == ("setosa", "versicolor", "virginica")
    f = res.frame
    widths = (f.get_column("xmax") - f.get_column("xmin")).to_numpy()
    assert widths.max() == pytest.approx(VIOLIN_WIDTH)
    centres = f.group_by("Species").agg(((pl.col("xmin") + pl.col("xmax")) / 2).mean().alias("c")).sort("c")
    assert centres.get_column("c").to_list() == pytest.approx([0.0, 1.0, 2.0])
    with pytest.raises(SpecError, match="categorical x"):
        compute_stat(Stat.YDENSITY, iris, {"x": "Sepal.Width", "y": "Petal.Length"})


def test_stats_do_not_mutate_input(small) -> None:
    before = small.frame.clone()
    compute_stat(Stat.COUNT, small, {"x": "g"})
    compute_stat(Stat.SMOOTH, small, {"x": "x", "y": "y"})
    assert small.frame.equals(before)


def test_missing_categories_are_dropped_before_stats() -> None:
    ds = Dataset(
        pl.DataFrame(
            {
                "g": ["a", "a", "a", None, None, None, "b", "b", "b"],
                "v": [1.0, 2.0, 3.5, 2.0, 3.0, 4.0, 5.0, 6.0, 6.5],
            }
        )
    )
    res = compute_stat(Stat.YDENSITY, ds, {"x": "g", "y": "v"}, params={"n": 16})
    assert res.axis_levels == ("a", "b")
    assert sorted(res.frame.get_column("g").unique().to_list()) == ["a", "b"]

    counts = compute_stat(Stat.IDENTITY, ds, {"x": "v", "color": "g"}, group_columns=["g"])
    assert counts.frame.height == 6
    assert counts.frame.get_column("g").null_count() == 0
