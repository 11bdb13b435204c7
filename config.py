# config.py — transit map engine configuration
# Edit this file to change rendering offsets, level thresholds, geocoding, etc.

import os

# ── Rendering ────────────────────────────────────────────────────────
# Screen-space width of one line, in pixels.  Interlined lines are spread
# across the segment centreline in steps of this width.
LINE_WIDTH = 8

# Offsets are snapped to this grid so unchanged segments never jitter.
OFFSET_GRID = 0.5

# ── Track statistics ────────────────────────────────────────────────
# Average station spacing (miles) → system level.  Ordered; the first
# entry whose threshold exceeds the spacing wins.
LEVELS = [
    {"key": "LOCAL",    "label": "local",        "spacingThreshold": 1},
    {"key": "REGIONAL", "label": "regional",     "spacingThreshold": 10},
    {"key": "LONG",     "label": "long distance", "spacingThreshold": 100},
    {"key": "XLONG",    "label": "international", "spacingThreshold": float("inf")},
]

# Mean earth radius in statute miles
EARTH_RADIUS_MILES = 3958.7613

# Decimal places kept when normalizing station coordinates (None = keep all)
COORD_PRECISION = None

# ── Editing ──────────────────────────────────────────────────────────
# Number of past system snapshots kept for undo
MAX_HISTORY_SIZE = 25

DEFAULT_STATION_NAME = "Station Name"
DEFAULT_LINE_MODE = "RAPID"
FORK_SUFFIX = " - Fork"

# Transit modes affect animation speed and dwell, never geometry.
LINE_MODES = {
    "BUS":      {"label": "local bus",            "speed": 0.4, "acceleration": 2, "pause": 500},
    "TRAM":     {"label": "BRT/tram",             "speed": 0.6, "acceleration": 2, "pause": 500},
    "RAPID":    {"label": "metro/rapid transit",  "speed": 1,   "acceleration": 2, "pause": 500},
    "REGIONAL": {"label": "regional rail",        "speed": 2,   "acceleration": 1, "pause": 1500},
    "HSR":      {"label": "high speed rail",      "speed": 5,   "acceleration": 1, "pause": 2000},
}

# Palette handed out to new lines, in order, skipping colours already used
DEFAULT_LINES = [
    {"name": "Red Line",      "color": "#e6194b"},
    {"name": "Green Line",    "color": "#3cb44b"},
    {"name": "Yellow Line",   "color": "#ffe119"},
    {"name": "Blue Line",     "color": "#4363d8"},
    {"name": "Orange Line",   "color": "#f58231"},
    {"name": "Purple Line",   "color": "#911eb4"},
    {"name": "Cyan Line",     "color": "#42d4f4"},
    {"name": "Magenta Line",  "color": "#f032e6"},
    {"name": "Lime Line",     "color": "#bfef45"},
    {"name": "Pink Line",     "color": "#fabebe"},
    {"name": "Teal Line",     "color": "#469990"},
    {"name": "Lavender Line", "color": "#e6beff"},
    {"name": "Brown Line",    "color": "#9A6324"},
    {"name": "Beige Line",    "color": "#fffac8"},
    {"name": "Maroon Line",   "color": "#800000"},
    {"name": "Mint Line",     "color": "#aaffc3"},
    {"name": "Olive Line",    "color": "#808000"},
    {"name": "Apricot Line",  "color": "#ffd8b1"},
    {"name": "Navy Line",     "color": "#000075"},
    {"name": "Grey Line",     "color": "#a9a9a9"},
    {"name": "Black Line",    "color": "#191919"},
]

INITIAL_SYSTEM = {
    "title": "Map",
    "stations": {},
    "lines": {
        "0": {"id": "0", "name": "Red Line", "color": "#e6194b", "stationIds": []},
    },
    "editSeq": 0,
}

INITIAL_META = {
    "nextStationId": "0",
    "nextLineId": "1",
}

# ── Geocoding ────────────────────────────────────────────────────────
GEOCODE_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places/{lng},{lat}.json"
MAPBOX_ACCESS_TOKEN = os.environ.get("MAPBOX_ACCESS_TOKEN", "")
GEOCODE_TIMEOUT = 10
GEOCODE_MAX_RETRIES = 3
GEOCODE_RETRY_DELAY = 2
GEOCODE_WORKERS = 2

# maxDist (miles) thresholds → Mapbox place type used for keywords
WORLD_KEYWORDS = ["world", "worldwide", "global", "earth", "international"]
WORLD_DIST = 3000
INTERNATIONAL_DIST = 1500
COUNTRY_DIST = 500
REGION_DIST = 60

# ── Logging ──────────────────────────────────────────────────────────
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

# ── Output files ─────────────────────────────────────────────────────
SEGMENTS_FILE = "segments.geojson"
SUMMARY_FILE = "summary.json"
