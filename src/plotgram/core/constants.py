"""
plotgram defaults and lookup tables.

Defines rendering defaults consumed by plotgram.io.config.PlotSettings, the
remote resources the gallery relies on, and the US state FIPS table used to join
state-level data onto the us-10m TopoJSON boundaries. This module is zero-IO
and uses only the Python standard library.

Notes:
    - Change defaults here; PlotSettings only consumes them.
    - FIPS codes are numeric ids in the us-10m "states" feature collection.
"""

from __future__ import annotations

from typing import Final

__all__ = [
    "DEFAULT_WIDTH",
    "DEFAULT_HEIGHT",
    "DEFAULT_THEME",
    "THEME_NAMES",
    "DEFAULT_PPI",
    "DENSITY_POINTS",
    "SMOOTH_POINTS",
    "SMOOTH_LEVEL",
    "LAYER_FIELD",
    "PANEL_FIELD",
    "US_STATES_TOPOJSON",
    "SALES_SERIES_URL",
    "STATE_FIPS",
]

DEFAULT_WIDTH: Final[int] = 400
DEFAULT_HEIGHT: Final[int] = 300
DEFAULT_THEME: Final[str] = "grey"
THEME_NAMES: Final[tuple[str, ...]] = ("grey", "bw", "minimal", "classic")
DEFAULT_PPI: Final[int] = 72

# Evaluation grid sizes for density and smoothing stats.
DENSITY_POINTS: Final[int] = 512
SMOOTH_POINTS: Final[int] = 80
SMOOTH_LEVEL: Final[float] = 0.95

# Synthetic columns added to the shared render table.
LAYER_FIELD: Final[str] = "_layer"
PANEL_FIELD: Final[str] = "_panel"

US_STATES_TOPOJSON: Final[str] = "https://cdn.jsdelivr.net/npm/vega-datasets@v1.29.0/data/us-10m.json"

# Monthly sales of a beach-resort souvenir shop, Jan 1987 – Dec 1993.
SALES_SERIES_URL: Final[str] = "https://robjhyndman.com/tsdldata/data/fancy.dat"

STATE_FIPS: Final[dict[str, int]] = {
    "alabama": 1,
    "alaska": 2,
    "arizona": 4,
    "arkansas": 5,
    "california": 6,
    "colorado": 8,
    "connecticut": 9,
    "delaware": 10,
    "district of columbia": 11,
    "florida": 12,
    "georgia": 13,
    "hawaii": 15,
    "idaho": 16,
    "illinois": 17,
    "indiana": 18,
    "iowa": 19,
    "kansas": 20,
    "kentucky": 21,
    "louisiana": 22,
    "maine": 23,
    "maryland": 24,
    "massachusetts": 25,
    "michigan": 26,
    "minnesota": 27,
    "mississippi": 28,
    "missouri": 29,
    "montana": 30,
    "nebraska": 31,
    "nevada": 32,
    "new hampshire": 33,
    "new jersey": 34,
    "new mexico": 35,
    "new york": 36,
    "north carolina": 37,
    "north dakota": 38,
    "ohio": 39,
    "oklahoma": 40,
    "oregon": 41,
    "pennsylvania": 42,
    "rhode island": 44,
    "south carolina": 45,
    "south dakota": 46,
    "tennessee": 47,
    "texas": 48,
    "utah": 49,
    "vermont": 50,
    "virginia": 51,
    "washington": 53,
    "west virginia": 54,
    "wisconsin": 55,
    "wyoming": 56,
}
