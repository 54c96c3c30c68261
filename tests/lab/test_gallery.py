from __future__ import annotations

import pytest
import requests

from plotgram.core.schema import PlotSpec
from plotgram.io import PlotSettings
from plotgram.lab.gallery import GALLERY, build, recipe_names
from plotgram.viz import Plot, render


def test_offline_recipes_exclude_remote() -> None:
    offline = recipe_names(offline=True)
    assert "sales_series" not in offline
    assert "sales_series" in recipe_names()
    assert all(not GALLERY[n].remote for n in offline)


@pytest.mark.parametrize("name", recipe_names(offline=True))
def test_every_offline_recipe_renders(name: str) -> None:
    plot = build(name)
    assert isinstance(plot, Plot)
    art = render(plot)
    again = PlotSpec.model_validate_json(plot.spec.model_dump_json())
    assert again == plot.spec
    assert art.to_dict()["$schema"]


def test_iris_density_recipe_has_four_panels() -> None:
    assert len(render(build("iris_density")).panels) == 4


def test_sales_recipe_fetches_with_settings(monkeypatch) -> None:
    seen = {}

    class _Resp:
        content = b"1664.81 2397.53 2840.71 3547.29"

        def raise_for_status(self) -> None:
            return None

    def fake_get(url, timeout=None, **_kw):
        seen["url"], seen["timeout"] = url, timeout
        return _Resp()

    monkeypatch.setattr(requests, "get", fake_get)
    settings = PlotSettings(sales_url="https://example.org/fancy.dat", request_timeout=5.0)
    plot = build("sales_series", settings)
    assert seen == {"url": "https://example.org/fancy.dat", "timeout": 5.0}
    assert plot.data.height == 4
    assert plot.spec.scales["y"].transform == "log10"


def test_unknown_recipe() -> None:
    with pytest.raises(KeyError, match="unknown gallery recipe"):
        build("nope")
