"""
interlining.py — shared-track segments and their parallel-line offsets.

A segment is an adjacent station pair run over by two or more line colours.
Each colour gets a screen-space translation perpendicular to the segment so
parallel lines sit side by side instead of on top of each other:

    colours [red, green, blue]  →  units [-1, 0, +1]  × LINE_WIDTH × normal

Offsets depend only on the segment's ordered colours and its two station
coordinates, so rebuilding after an unrelated edit reproduces them exactly.
"""

import logging
import math

from shapely.geometry import LineString, mapping

from config import LINE_WIDTH, OFFSET_GRID
from geometry import station_coord

logger = logging.getLogger(__name__)


# ── Keys and ordering ────────────────────────────────────────────────

def segment_key(station_id_a: str, station_id_b: str) -> str:
    """Canonical "a|b" key for an unordered station pair."""
    first, second = sorted((station_id_a, station_id_b))
    return f"{first}|{second}"


def _line_sort_key(line_id: str):
    try:
        return (0, int(line_id), line_id)
    except (TypeError, ValueError):
        return (1, 0, str(line_id))


def ordered_line_ids(system: dict) -> list[str]:
    """Line ids in creation order (numeric ids first, then the rest by name)."""
    return sorted((system.get("lines") or {}).keys(), key=_line_sort_key)


# ── Offsets ──────────────────────────────────────────────────────────

def offset_units(colors: list[str]) -> dict[str, float]:
    """Evenly spaced offsets centred on zero, in line widths."""
    n = len(colors)
    return {color: i - (n - 1) / 2 for i, color in enumerate(colors)}


def _round_to_grid(value: float, grid: float = OFFSET_GRID) -> float:
    # half-up, and never -0.0
    return math.floor(value / grid + 0.5) * grid + 0.0


def _screen_normal(coord_a: tuple[float, float], coord_b: tuple[float, float]) -> tuple[float, float]:
    """Unit normal to the a→b bearing in screen space (x east, y south)."""
    mid_lat = math.radians((coord_a[0] + coord_b[0]) / 2)
    dx = (coord_b[1] - coord_a[1]) * math.cos(mid_lat)
    dy = -(coord_b[0] - coord_a[0])
    length = math.hypot(dx, dy)
    if length == 0:
        return (0.0, 1.0)
    return (-dy / length, dx / length)


def calculate_offsets(colors: list[str], coord_a: tuple[float, float],
                      coord_b: tuple[float, float], line_width: float = LINE_WIDTH) -> dict[str, list[float]]:
    """Per-colour [dx, dy] pixel translation for a segment from a to b."""
    nx, ny = _screen_normal(coord_a, coord_b)
    offsets = {}
    for color, units in offset_units(colors).items():
        distance = units * line_width
        offsets[color] = [_round_to_grid(distance * nx), _round_to_grid(distance * ny)]
    return offsets


# ── Builder ──────────────────────────────────────────────────────────

def build_interline_segments(system: dict, line_ids: list[str] | None = None,
                             line_width: float = LINE_WIDTH) -> dict[str, dict]:
    """Map "a|b" → {"stationIds", "colors", "offsets"} for every interlined pair.

    Colours are ordered by first appearance while walking *line_ids* in the
    order given (creation order when omitted).  Pairs with fewer than two
    distinct colours are left out, as are pairs touching a missing station.
    """
    stations = system.get("stations") or {}
    lines = system.get("lines") or {}
    if line_ids is None:
        line_ids = ordered_line_ids(system)

    colors_by_key: dict[str, list[str]] = {}
    for line_id in line_ids:
        line = lines.get(line_id)
        if not line:
            continue
        color = line.get("color")
        station_ids = line.get("stationIds") or []
        for i in range(len(station_ids) - 1):
            a, b = station_ids[i], station_ids[i + 1]
            if a == b:
                continue
            key = segment_key(a, b)
            key_colors = colors_by_key.setdefault(key, [])
            if color not in key_colors:
                key_colors.append(color)

    segments = {}
    for key, colors in colors_by_key.items():
        if len(colors) < 2:
            continue
        first, second = key.split("|", 1)
        coord_a = station_coord(stations, first)
        coord_b = station_coord(stations, second)
        if coord_a is None or coord_b is None:
            logger.debug(f"Skipping segment {key}: unresolved station")
            continue
        segments[key] = {
            "stationIds": [first, second],
            "colors": colors,
            "offsets": calculate_offsets(colors, coord_a, coord_b, line_width),
        }
    return segments


# ── Differ ───────────────────────────────────────────────────────────

def diff_interline_segments(prev_segments: dict, new_segments: dict) -> list[str]:
    """Keys added, removed, or whose colour set changed between two snapshots."""
    changed = []
    for key in set(prev_segments) | set(new_segments):
        prev = prev_segments.get(key)
        new = new_segments.get(key)
        if prev is None or new is None:
            changed.append(key)
        elif set(prev.get("colors", [])) != set(new.get("colors", [])):
            changed.append(key)
    return sorted(changed)


def refresh_interline_segments(prev_segments: dict, system: dict,
                               line_ids: list[str] | None = None) -> tuple[dict, list[str]]:
    """Rebuild all segments for *system*, then diff against the previous snapshot."""
    new_segments = build_interline_segments(system, line_ids)
    changed = diff_interline_segments(prev_segments, new_segments)
    logger.info(f"{len(new_segments)} interlined segments, {len(changed)} changed")
    return new_segments, changed


# ── Export ───────────────────────────────────────────────────────────

def segments_to_geojson(segments: dict, stations: dict, keys: list[str] | None = None) -> dict:
    """One LineString feature per (segment, colour), carrying its translation.

    GeoJSON coordinates are [lng, lat].
    """
    features = []
    for key in (keys if keys is not None else sorted(segments)):
        segment = segments.get(key)
        if segment is None:
            continue
        coords = [station_coord(stations, sid) for sid in segment["stationIds"]]
        if None in coords:
            continue
        geometry = mapping(LineString([(lng, lat) for lat, lng in coords]))
        for color in segment["colors"]:
            dx, dy = segment["offsets"][color]
            features.append({
                "type": "Feature",
                "properties": {
                    "segment-longkey": f"{key}|{color}",
                    "color": color,
                    "translation-x": dx,
                    "translation-y": dy,
                },
                "geometry": {
                    "type": geometry["type"],
                    "coordinates": [list(c) for c in geometry["coordinates"]],
                },
            })
    return {"type": "FeatureCollection", "features": features}
