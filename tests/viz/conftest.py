from __future__ import annotations

import polars as pl
import pytest

from plotgram.io import Dataset, ReshapeDirective, load_dataset


@pytest.fixture()
def iris() -> Dataset:
    return load_dataset("iris")


@pytest.fixture()
def iris_tall() -> Dataset:
    return load_dataset("iris", reshape=ReshapeDirective(id_columns=("Species",)))


@pytest.fixture()
def small() -> Dataset:
    return Dataset(
        pl.DataFrame(
            {
                "g": ["a", "a", "b", "b", "b", "c"],
                "x": [1.0, 2.0, 3.0, 4.0, 5.0, 6.0],
                "y": [2.0, 4.0, 5.0, 4.0, 5.0, 7.0],
                "k": [1, 2, 1, 2, 1, 2],
            }
        ),
        name="small",
    )
