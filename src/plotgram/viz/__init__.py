"""
plotgram.viz — Grammar-of-graphics builder, renderer, and output sink.

## Responsibilities
- Compose immutable plot specifications through additive directives.
- Resolve mappings, run statistical transforms in Polars/scipy, and emit Vega-Lite through Altair.
- Export rendered artifacts (pdf/png/svg via vl-convert, html, json) or display them inline.
- Never mutate datasets; read-only by contract.

## Public API
- builder — Plot and the additive directives (aes, geom, facet_wrap, facet_grid, scale, labs, theme).
- render — Renderer, Artifact, render().
- save — save(), show().
- stats, layers, scales, themes — Stat transforms, mark primitives, scale and theme resolution.
- correlation — Correlation matrices and heatmaps.
- networks — Graph layouts, centrality, communities, and network diagrams.

## Import DAG discipline
- Depends on: plotgram.core, plotgram.io, polars, altair, numpy, scipy, networkx (and stdlib).
- Must not import plotgram.lab.

## Examples
```python
from plotgram.io import ReshapeDirective, load_dataset
from plotgram.viz import Plot, render, save

iris = load_dataset("iris", reshape=ReshapeDirective(id_columns=("Species",)))
p = (
    Plot(iris, x="value", fill="Species")
    .geom_density(alpha=0.5)
    .facet_wrap("variable", scales="free")
    .labs(title="Iris measurements")
)
art = render(p)
save(art, "out/iris_density.pdf")  # doctest: +SKIP
```
"""

from __future__ import annotations

from .builder import Directive, Plot, aes, facet_grid, facet_wrap, geom, labs, scale, theme
from .correlation import correlation_matrix, corrplot
from .networks import network_plot, network_tables
from .render import Artifact, Renderer, render
from .save import save, show

__all__ = [
    "Plot",
    "Directive",
    "aes",
    "geom",
    "facet_wrap",
    "facet_grid",
    "scale",
    "labs",
    "theme",
    "Renderer",
    "Artifact",
    "render",
    "save",
    "show",
    "correlation_matrix",
    "corrplot",
    "network_tables",
    "network_plot",
]
