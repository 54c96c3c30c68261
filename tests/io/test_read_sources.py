from __future__ import annotations

import datetime as dt
from pathlib import Path

import polars as pl
import pytest
import requests

from plotgram.core.errors import SpecError, UnknownColumn
from plotgram.io import PlotSettings, ReshapeDirective, load_dataset, load_edges, load_series
from plotgram.io.errors import SourceUnavailable
from plotgram.io.read import bundled_names


class _FakeResponse:
    def __init__(self, content: bytes, status: int = 200) -> None:
        self.content = content
        self.status_code = status

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


def _fake_get(payload: bytes, status: int = 200, seen: dict | None = None):
    def _get(url, timeout=None, **_kw):
        if seen is not None:
            seen["url"] = url
            seen["timeout"] = timeout
        return _FakeResponse(payload, status)

    return _get


def test_bundled_iris() -> None:
    iris = load_dataset("iris")
    assert iris.name == "iris"
    assert iris.height == 150
    assert iris.is_categorical("Species")
    assert iris.levels("Species") == ("setosa", "versicolor", "virginica")
    assert set(bundled_names()) >= {"iris", "mtcars", "social_network", "state_income"}


def test_bundled_with_reshape_and_factor() -> None:
    tall = load_dataset("iris", reshape=ReshapeDirective(id_columns=("Species",)))
    assert tall.height == 600
    assert tall.columns == ["Species", "variable", "value"]

    mtcars = load_dataset("mtcars", categorical=("cyl",))
    assert mtcars.levels("cyl") == ("4", "6", "8")


def test_local_csv_and_missing_file(tmp_path: Path) -> None:
    p = tmp_path / "scores.csv"
    p.write_text("team,score\nb,2\na,5\n")
    ds = load_dataset(p)
    assert ds.name == "scores"
    assert ds.levels("team") == ("a", "b")

    with pytest.raises(SourceUnavailable, match="no such dataset"):
        load_dataset(tmp_path / "nope.csv")


def test_url_fetch_uses_timeout(monkeypatch) -> None:
    seen: dict = {}
    monkeypatch.setattr(requests, "get", _fake_get(b"x,y\n1,2\n3,4\n", seen=seen))
    ds = load_dataset("https://example.org/data/points.csv", settings=PlotSettings(request_timeout=3.0))
    assert ds.name == "points"
    assert ds.height == 2
    assert seen["timeout"] == 3.0


def test_url_errors_become_source_unavailable(monkeypatch) -> None:
    monkeypatch.setattr(requests, "get", _fake_get(b"", status=404))
    with pytest.raises(SourceUnavailable):
        load_dataset("https://example.org/missing.csv")

    def _boom(url, timeout=None, **_kw):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(requests, "get", _boom)
    with pytest.raises(SourceUnavailable, match="offline"):
        load_series("https://example.org/fancy.dat")


def test_series_calendar_positions(monkeypatch) -> None:
    monkeypatch.setattr(requests, "get", _fake_get(b"1664.81 2397.53\n2840.71\n 3547.29 3752.96"))
    s = load_series("https://example.org/fancy.dat", start=(1987, 11), frequency=12, value_name="sales")
    assert s.name == "fancy"
    assert s.columns == ["date", "year", "period", "sales"]
    assert s.frame.get_column("date").to_list() == [
        dt.date(1987, 11, 1),
        dt.date(1987, 12, 1),
        dt.date(1988, 1, 1),
        dt.date(1988, 2, 1),
        dt.date(1988, 3, 1),
    ]
    assert s.frame.get_column("period").to_list() == [11, 12, 1, 2, 3]
    assert s.kind("date").value == "date"


def test_quarterly_series(tmp_path: Path) -> None:
    p = tmp_path / "q.dat"
    p.write_text("1 2 3 4 5")
    s = load_series(p, start=(2000, 3), frequency=4)
    assert s.frame.get_column("date").to_list()[:3] == [dt.date(2000, 7, 1), dt.date(2000, 10, 1), dt.date(2001, 1, 1)]
    assert s.frame.get_column("period").to_list() == [3, 4, 1, 2, 3]


def test_series_rejects_bad_input(tmp_path: Path) -> None:
    bad = tmp_path / "bad.dat"
    bad.write_text("1 2 n/a 4")
    with pytest.raises(SourceUnavailable, match="non-numeric"):
        load_series(bad)
    empty = tmp_path / "empty.dat"
    empty.write_text("  \n")
    with pytest.raises(SourceUnavailable):
        load_series(empty)
    good = tmp_path / "good.dat"
    good.write_text("1 2")
    with pytest.raises(SpecError):
        load_series(good, frequency=5)
    with pytest.raises(SpecError):
        load_series(good, start=(2000, 13))


def test_edges_share_node_levels(tmp_path: Path) -> None:
    edges = load_edges("social_network")
    assert edges.levels("from") == edges.levels("to")
    assert edges.frame.schema["weight"] == pl.Int64

    p = tmp_path / "e.csv"
    p.write_text("src,dst\n1,2\n")
    with pytest.raises(UnknownColumn):
        load_edges(p)
    numeric = load_edges(p, source_col="src", target_col="dst")
    assert numeric.levels("src") == ("1", "2")
