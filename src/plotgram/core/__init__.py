"""
Core package for plotgram contracts (grammar, errors, palettes, spec models, hashing).

## Contracts (single source of truth)
- Grammar — channels, geoms, stats, column kinds, palette kinds, facet modes, output formats.
- Schemas — frozen pydantic models for the plot specification.
- Palettes — ColorBrewer registry addressed by name or (kind, index).
- Hashing — canonical JSON and SHA-256 fingerprints.
- Errors — specification-level exception taxonomy.

## Notes
- Zero-IO policy: stdlib + pydantic only; no file/network IO.
- Naming policy: enum `.value` and spec field names are lower_snake.

## Downstream usage
- plotgram.io — tags dataset columns with `ColumnKind`; raises `UnknownColumn`/`ReshapeError`.
- plotgram.viz — builds `PlotSpec` values and renders them.

## Examples
```python
from plotgram.core.schema import PlotSpec, Layer
spec = PlotSpec(mapping={"x": "value", "fill": "Species"}, layers=(Layer(geom="density"),))
spec.layer_mapping(spec.layers[0])["fill"].field  # 'Species'
```
"""
