"""
plotgram.lab — Gallery recipes and the command-line entry point.

## Responsibilities
- Re-create the walk-through charts as named, reproducible recipes (GALLERY).
- Render recipes or stored PlotSpec JSON files to disk from the command line.
- Own process-level concerns the library never touches: logging configuration
  and settings discovery.

## Public API
- gallery — Recipe, GALLERY, recipe_names(), build().
- cli — `plotgram` console script (list, gallery, spec, render).

## Import DAG discipline
- Depends on: plotgram.core, plotgram.io, plotgram.viz (and stdlib).
- Nothing inside plotgram imports lab.

## Examples
```bash
plotgram list
plotgram gallery --only iris_density --out out --format pdf
plotgram spec mtcars_smooth > smooth.json
plotgram render smooth.json --data mtcars --factor cyl --out out/smooth.svg
```
"""

from __future__ import annotations

from .gallery import GALLERY, Recipe, build, recipe_names

__all__ = ["GALLERY", "Recipe", "build", "recipe_names"]
