"""
track_stats.py — system-wide track length, spacing, level and geo summary.

Everything here is a pure function of the station/line graph.  Place-name
keywords need the network and live in geocoder.py instead.
"""

import logging

from shapely.geometry import MultiPoint

from config import LEVELS
from geometry import get_distance, path_length, station_coord, station_ids_to_coords
from sections import canonical_section, partition_sections

logger = logging.getLogger(__name__)


def _iter_lines(lines):
    return lines.values() if isinstance(lines, dict) else lines


def get_level(avg_spacing: float | None, levels: list[dict] = LEVELS) -> dict | None:
    """Return the first level whose spacing threshold exceeds avg_spacing."""
    if not avg_spacing:
        return None
    for level in levels:
        if avg_spacing < level["spacingThreshold"]:
            return level
    return None


def compute_track_statistics(lines, stations: dict, levels: list[dict] = LEVELS) -> dict:
    """Total unique track length (miles), average spacing and level.

    Each canonical section counts once no matter how many lines run over
    it or in which direction.  Sections that reference a missing station
    are left out of the total.
    """
    track_length = 0.0
    num_sections = 0
    seen = set()

    for line in _iter_lines(lines):
        for section in partition_sections(line, stations):
            if len(section) < 2:
                continue
            canonical = canonical_section(section)
            key = "|".join(canonical)
            if key in seen:
                continue
            seen.add(key)

            coords = station_ids_to_coords(stations, canonical)
            if coords is None:
                logger.debug(f"Skipping section {key}: unresolved station")
                continue
            track_length += path_length(coords)
            num_sections += 1

    avg_spacing = None
    level = None
    if track_length and num_sections:
        avg_spacing = track_length / num_sections
        found = get_level(avg_spacing, levels)
        level = found["key"] if found else None

    return {"trackLength": track_length, "avgSpacing": avg_spacing, "level": level}


def compute_geo_data(stations: dict) -> dict:
    """Centroid of real stations, plus max (to bbox corner) and mean distance to it."""
    coords = []
    for station_id, station in stations.items():
        if station.get("isWaypoint"):
            continue
        coord = station_coord(stations, station_id)
        if coord is not None:
            coords.append(coord)
    if not coords:
        return {}

    points = MultiPoint([(lng, lat) for lat, lng in coords])
    centroid = {"lat": points.centroid.y, "lng": points.centroid.x}
    min_lng, min_lat, max_lng, max_lat = points.bounds
    corners = [
        {"lat": max_lat, "lng": min_lng},
        {"lat": max_lat, "lng": max_lng},
        {"lat": min_lat, "lng": max_lng},
        {"lat": min_lat, "lng": min_lng},
    ]
    max_dist = max(get_distance(centroid, corner) for corner in corners)
    avg_dist = sum(get_distance(centroid, {"lat": lat, "lng": lng})
                   for lat, lng in coords) / len(coords)

    return {"centroid": centroid, "maxDist": max_dist, "avgDist": avg_dist}


def summarize_system(system: dict, levels: list[dict] = LEVELS) -> dict:
    """Derived fields stored alongside a system: counts, geo data and track info."""
    stations = system.get("stations") or {}
    lines = system.get("lines") or {}

    num_waypoints = sum(1 for s in stations.values() if s.get("isWaypoint"))
    geo = compute_geo_data(stations)
    track = compute_track_statistics(lines, stations, levels)

    return {
        "title": system.get("title") or "Map",
        "numStations": len(stations) - num_waypoints,
        "numWaypoints": num_waypoints,
        "numLines": len(lines),
        "centroid": geo.get("centroid"),
        "maxDist": geo.get("maxDist"),
        "avgDist": geo.get("avgDist"),
        "trackLength": track["trackLength"] or None,
        "avgSpacing": track["avgSpacing"],
        "level": track["level"],
    }
