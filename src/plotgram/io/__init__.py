"""
plotgram.io — Data access layer: settings, datasets, loaders, reshaping, file sink helpers.

## Responsibilities
- Load tabular data (bundled samples, local files, URLs) into typed, read-only Datasets.
- Reshape wide tables into tall form for faceting and grouping.
- Carry explicit PlotSettings instead of process-wide plotting defaults.
- Provide the atomic tmp → fsync → rename write path used by the output sink.

## Public API
- PlotSettings — Rendering/IO options (defaults sourced from plotgram.core.constants).
- Dataset — Polars frame plus column kinds and fixed categorical levels.
- load_dataset, load_series, load_edges — Source loaders.
- melt, ReshapeDirective — Wide-to-tall reshaping.

## Import DAG discipline
- Depends only on stdlib, polars, requests, and plotgram.core.*.
- MUST NOT import higher layers: viz or lab.

## Examples
```python
from plotgram.io import ReshapeDirective, load_dataset

tall = load_dataset("iris", reshape=ReshapeDirective(id_columns=("Species",)))
tall.height  # 600
tall.levels("variable")  # ('Sepal.Length', 'Sepal.Width', 'Petal.Length', 'Petal.Width')
```

## Notes
- Remote fetches block; PlotSettings.request_timeout bounds them.
- Loader failures raise SourceUnavailable; schema problems raise core SpecError subclasses.
"""

from __future__ import annotations

from .config import PlotSettings
from .dataset import Dataset
from .read import load_dataset, load_edges, load_series
from .reshape import ReshapeDirective, melt

__all__ = [
    "PlotSettings",
    "Dataset",
    "load_dataset",
    "load_series",
    "load_edges",
    "melt",
    "ReshapeDirective",
]
