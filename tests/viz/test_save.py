from __future__ import annotations

import importlib
import json
from pathlib import Path

import pytest

from plotgram.core.grammar import OutputFormat
from plotgram.io.errors import UnsupportedFormat, WriteError
from plotgram.viz import Plot, render, save
from plotgram.viz.save import to_bytes

# The package re-exports save(), which shadows the submodule attribute.
save_module = importlib.import_module("plotgram.viz.save")


@pytest.fixture()
def artifact(small):
    return render(Plot(small, x="x", y="y", color="g").geom_point().labs(title="small"))


def test_save_json_and_html(artifact, tmp_path: Path) -> None:
    out = save(artifact, tmp_path / "charts" / "small.json")
    spec = json.loads(out.read_text())
    assert spec == artifact.to_dict()
    assert spec["$schema"].startswith("https://vega.github.io/schema/vega-lite/")

    html = save(artifact, tmp_path / "small.html").read_text()
    assert "<html" in html.lower()
    assert "vega" in html


def test_unsupported_extension_writes_nothing(artifact, tmp_path: Path) -> None:
    target = tmp_path / "chart.xyz"
    with pytest.raises(UnsupportedFormat):
        save(artifact, target)
    assert not target.exists()
    assert list(tmp_path.iterdir()) == []
    with pytest.raises(UnsupportedFormat):
        save(artifact, tmp_path / "no_extension")


def test_pdf_export_is_non_empty(artifact, tmp_path: Path) -> None:
    pytest.importorskip("vl_convert")
    out = save(artifact, tmp_path / "small.pdf")
    data = out.read_bytes()
    assert data.startswith(b"%PDF")
    assert len(data) > 100


def test_svg_export_is_byte_identical_across_renders(small, tmp_path: Path) -> None:
    pytest.importorskip("vl_convert")
    p = Plot(small, x="g").geom_bar(fill="steelblue")
    a = save(render(p), tmp_path / "a.svg").read_bytes()
    b = save(render(p), tmp_path / "b.svg").read_bytes()
    assert a == b
    assert b"<svg" in a


def test_missing_converter_raises_runtime_error(artifact, monkeypatch, tmp_path: Path) -> None:
    real_import = importlib.import_module

    def fake_import(name: str, package=None):
        if name == "vl_convert":
            raise ImportError("no vl_convert")
        return real_import(name, package)

    monkeypatch.setattr(importlib, "import_module", fake_import)
    with pytest.raises(RuntimeError, match="vl-convert-python"):
        save(artifact, tmp_path / "chart.png")
    # json and html never need the converter
    assert to_bytes(artifact, OutputFormat.JSON).endswith(b"\n")


def test_converter_failure_becomes_write_error(artifact, monkeypatch, tmp_path: Path) -> None:
    class Broken:
        @staticmethod
        def vegalite_to_svg(vl_spec):
            raise ValueError("bad spec")

    monkeypatch.setattr(save_module, "_vl_convert", lambda: Broken)
    with pytest.raises(WriteError, match="bad spec"):
        save(artifact, tmp_path / "chart.svg")
    assert not (tmp_path / "chart.svg").exists()


def test_show_uses_ipython_display(artifact, monkeypatch) -> None:
    import IPython.display

    shown = []
    monkeypatch.setattr(IPython.display, "display", lambda obj: shown.append(obj))
    save_module.show(artifact)
    assert shown == [artifact]
