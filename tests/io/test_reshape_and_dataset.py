from __future__ import annotations

import polars as pl
import pytest

from plotgram.core.errors import ReshapeError, UnknownColumn
from plotgram.io import Dataset, ReshapeDirective, melt


def _wide() -> Dataset:
    return Dataset(
        pl.DataFrame({"id": ["a", "b", "c"], "u": [1.0, 2.0, 3.0], "v": [4.0, 5.0, 6.0], "w": [7, 8, 9]}),
        name="wide",
    )


def test_melt_row_count_and_tags() -> None:
    ds = _wide()
    tall = melt(ds, ["id"], ["u", "v"])
    assert tall.height == ds.height * 2
    assert tall.levels("variable") == ("u", "v")
    counts = tall.frame.group_by("variable").len().sort("variable")
    assert counts.get_column("len").to_list() == [3, 3]
    assert tall.name == "wide"


def test_melt_defaults_to_all_non_id_columns() -> None:
    tall = ReshapeDirective(id_columns=("id",), variable_name="measure", value_name="x").apply(_wide())
    assert tall.columns == ["id", "measure", "x"]
    assert tall.height == 9
    assert tall.levels("measure") == ("u", "v", "w")


def test_melt_errors() -> None:
    ds = _wide()
    with pytest.raises(UnknownColumn):
        melt(ds, ["missing"])
    with pytest.raises(ReshapeError, match="no value columns"):
        melt(ds, ["id", "u", "v", "w"])
    with pytest.raises(ReshapeError, match="collides"):
        melt(ds, ["id"], ["u"], variable_name="id")


def test_dataset_kinds_and_levels() -> None:
    ds = Dataset(
        pl.DataFrame({"g": ["b", "a", "b"], "n": [3, 1, 2], "d": pl.Series([1, 2, 3]).cast(pl.Date)}),
        levels={"g": ["b", "a"]},
    )
    assert ds.kind("n").value == "numeric"
    assert ds.kind("d").value == "date"
    assert ds.levels("g") == ("b", "a")
    assert ds.levels("n") == ()
    with pytest.raises(UnknownColumn):
        ds.kind("zzz")


def test_as_factor_and_partition() -> None:
    ds = Dataset(pl.DataFrame({"cyl": [6, 4, 8, 4], "mpg": [21.0, 30.0, 15.0, 28.0]}))
    f = ds.as_factor("cyl", levels=["8", "6", "4"])
    assert f.levels("cyl") == ("8", "6", "4")
    assert not ds.is_categorical("cyl")

    parts = f.partition(["cyl"])
    assert set(parts) == {("4",), ("6",), ("8",)}
    assert parts[("4",)].height == 2
    assert f.partition([]) == {(): f}


def test_dataset_is_not_mutated_by_derivation() -> None:
    ds = _wide()
    before = ds.frame.clone()
    ds.as_factor("w")
    melt(ds, ["id"])
    assert ds.frame.equals(before)


def test_partition_leaves_out_rows_with_missing_keys() -> None:
    ds = Dataset(pl.DataFrame({"g": ["a", None, "b", "a", None], "v": [1.0, 2.0, 3.0, 4.0, 5.0]}))
    assert ds.levels("g") == ("a", "b")
    parts = ds.partition(["g"])
    assert set(parts) == {("a",), ("b",)}
    assert sum(p.height for p in parts.values()) == 3
