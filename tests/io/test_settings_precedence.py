from __future__ import annotations

from pathlib import Path

import pytest

from plotgram.io.config import PlotSettings

ENV_KEYS = [
    "PLOTGRAM_WIDTH",
    "PLOTGRAM_HEIGHT",
    "PLOTGRAM_THEME",
    "PLOTGRAM_SCALE_FACTOR",
    "PLOTGRAM_PPI",
    "PLOTGRAM_REQUEST_TIMEOUT",
    "PLOTGRAM_DENSITY_POINTS",
    "PLOTGRAM_SMOOTH_POINTS",
    "PLOTGRAM_SALES_URL",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def _write_toml(tmp: Path, name: str, content: str) -> Path:
    p = tmp / name
    p.write_text(content)
    return p


def test_env_overrides_toml(tmp_path: Path, monkeypatch) -> None:
    _write_toml(
        tmp_path,
        "plotgram.toml",
        """
        [render]
        width = 640
        theme = "bw"
        """.strip(),
    )
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PLOTGRAM_WIDTH", "800")

    s = PlotSettings.load()

    assert s.width == 800  # env
    assert s.theme == "bw"  # toml
    assert s.height == 300  # default


def test_toml_top_level_keys_and_pyproject_fallback(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    _write_toml(
        tmp_path,
        "pyproject.toml",
        """
        [tool.plotgram]
        height = 500
        request_timeout = 2.5
        """.strip(),
    )
    s = PlotSettings.load()
    assert s.height == 500
    assert s.request_timeout == 2.5

    _write_toml(tmp_path, "plotgram.toml", 'theme = "minimal"\nppi = 144\n')
    s = PlotSettings.load()
    assert s.theme == "minimal"
    assert s.ppi == 144
    assert s.height == 300  # plotgram.toml wins over pyproject.toml entirely


def test_invalid_values_fall_back(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    _write_toml(tmp_path, "plotgram.toml", 'width = -10\ntheme = "neon"\nscale_factor = "big"\n')
    monkeypatch.setenv("PLOTGRAM_HEIGHT", "tall")

    s = PlotSettings.load()

    assert s == PlotSettings()


def test_explicit_path(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    cfg = _write_toml(tmp_path, "custom.toml", "[render]\nsmooth_points = 20\n")
    assert PlotSettings.load(cfg).smooth_points == 20
    assert PlotSettings.load(tmp_path / "missing.toml") == PlotSettings()


def test_defaults_when_no_config(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    s = PlotSettings.load()
    assert (s.width, s.height, s.theme) == (400, 300, "grey")
    assert s.request_timeout is None
    assert s.density_points == 512
