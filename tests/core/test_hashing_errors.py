from __future__ import annotations

from plotgram.core.errors import (
    AestheticResolutionError,
    InvalidFacet,
    InvalidPalette,
    PlotgramError,
    ReshapeError,
    SpecError,
    UnknownColumn,
)
from plotgram.core.hashing import hash_mapping, json_dumps_canonical
from plotgram.io.errors import IoError, SourceUnavailable, UnsupportedFormat, WriteError


def test_canonical_json_is_key_order_independent() -> None:
    a = {"b": [1, 2], "a": {"y": 1, "x": "é"}}
    b = {"a": {"x": "é", "y": 1}, "b": [1, 2]}
    assert json_dumps_canonical(a) == json_dumps_canonical(b)
    assert "é" in json_dumps_canonical(a)
    assert hash_mapping(a) == hash_mapping(b)
    assert len(hash_mapping(a)) == 64


def test_hash_changes_with_content() -> None:
    assert hash_mapping({"a": 1}) != hash_mapping({"a": 2})


def test_error_hierarchy() -> None:
    for cls in (UnknownColumn, InvalidPalette, InvalidFacet, ReshapeError, AestheticResolutionError):
        assert issubclass(cls, SpecError)
    assert issubclass(SpecError, ValueError)
    for cls in (SourceUnavailable, UnsupportedFormat, WriteError):
        assert issubclass(cls, IoError)
    assert issubclass(IoError, PlotgramError)
    assert issubclass(UnsupportedFormat, ValueError)


def test_unknown_column_message_lists_available() -> None:
    err = UnknownColumn("Sepal", ["Sepal.Length", "Species"])
    assert "Sepal" in str(err)
    assert "Species" in str(err)
