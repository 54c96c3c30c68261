"""
plotgram — A layered grammar of graphics on Polars and Vega-Lite.

Layers (lower never imports higher):
- plotgram.core — grammar vocabulary, spec models, palettes, hashing, errors.
- plotgram.io — settings, datasets, loaders, reshaping, atomic writes.
- plotgram.viz — Plot builder, stats, renderer, output sink, analysis helpers.
- plotgram.lab — gallery recipes and CLI.
"""

__version__ = "0.1.0"
