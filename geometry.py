"""
geometry.py — distance and coordinate primitives shared by the engine.

Station coordinates arrive from stored documents as numbers or strings;
everything downstream works on floats produced by normalize_station().
"""

import math

from config import COORD_PRECISION, EARTH_RADIUS_MILES


class InvalidCoordinateError(ValueError):
    """A latitude or longitude could not be turned into a usable float."""


def normalize_coordinate(value, precision: int | None = COORD_PRECISION,
                         limit: float | None = None) -> float:
    """Convert a stored coordinate (str, int or float) to a rounded float.

    Raises InvalidCoordinateError for non-numeric, non-finite or
    out-of-range values rather than letting NaN reach the distance math.
    """
    if isinstance(value, bool):
        raise InvalidCoordinateError(f"not a coordinate: {value!r}")
    try:
        coord = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidCoordinateError(f"not a coordinate: {value!r}") from exc

    if not math.isfinite(coord):
        raise InvalidCoordinateError(f"non-finite coordinate: {value!r}")
    if limit is not None and abs(coord) > limit:
        raise InvalidCoordinateError(f"coordinate {coord} outside ±{limit}")

    if precision is not None:
        coord = round(coord, precision)
    return coord


def normalize_station(station: dict, precision: int | None = COORD_PRECISION) -> dict:
    """Return a copy of *station* with float lat/lng."""
    cleaned = dict(station)
    cleaned["lat"] = normalize_coordinate(station.get("lat"), precision, limit=90.0)
    cleaned["lng"] = normalize_coordinate(station.get("lng"), precision, limit=180.0)
    return cleaned


def station_coord(stations: dict, station_id: str) -> tuple[float, float] | None:
    """(lat, lng) for a station id, or None if missing or unusable."""
    station = stations.get(station_id)
    if not station:
        return None
    try:
        return (normalize_coordinate(station.get("lat"), None, limit=90.0),
                normalize_coordinate(station.get("lng"), None, limit=180.0))
    except InvalidCoordinateError:
        return None


def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the great-circle distance in statute miles between two points."""
    if lat1 == lat2 and lon1 == lon2:
        return 0.0
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (math.sin(dlat / 2) ** 2 +
         math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) *
         math.sin(dlon / 2) ** 2)
    # rounding can push a just past 1 for near-antipodal points
    a = min(1.0, max(0.0, a))
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def get_distance(coord1: dict, coord2: dict) -> float:
    """Distance in miles between two {"lat", "lng"} mappings."""
    return haversine_miles(
        normalize_coordinate(coord1["lat"], None),
        normalize_coordinate(coord1["lng"], None),
        normalize_coordinate(coord2["lat"], None),
        normalize_coordinate(coord2["lng"], None),
    )


def path_length(coords: list[tuple[float, float]]) -> float:
    """Sum of great-circle legs along a list of (lat, lng) points."""
    return sum(
        haversine_miles(coords[i][0], coords[i][1], coords[i + 1][0], coords[i + 1][1])
        for i in range(len(coords) - 1)
    )


def station_ids_to_coords(stations: dict, station_ids: list[str]) -> list[tuple[float, float]] | None:
    """Coordinates for each id in order, or None if any station is unusable."""
    coords = []
    for station_id in station_ids:
        coord = station_coord(stations, station_id)
        if coord is None:
            return None
        coords.append(coord)
    return coords
