"""
insertion.py — where does a newly added station go in a line?

Finds the line's station nearest to the candidate, then decides whether
the candidate belongs just before or just after it by comparing the
detour either placement would create.

Ties: the nearest search keeps the earliest index, and any equal-distance
comparison falls through to inserting after the nearest station.
"""

import math

from geometry import haversine_miles, normalize_coordinate, station_coord


def _distance(coord_a, coord_b) -> float:
    if coord_a is None or coord_b is None:
        return math.inf
    return haversine_miles(coord_a[0], coord_a[1], coord_b[0], coord_b[1])


def is_circular(line: dict) -> bool:
    station_ids = line.get("stationIds") or []
    return len(station_ids) > 1 and station_ids[0] == station_ids[-1]


def resolve_insertion_index(line: dict, stations: dict, candidate: dict) -> int:
    """Index in line["stationIds"] at which *candidate* should be inserted."""
    station_ids = line.get("stationIds") or []
    if len(station_ids) < 2:
        return 0

    target = (normalize_coordinate(candidate["lat"], None), normalize_coordinate(candidate["lng"], None))
    coords = [station_coord(stations, sid) for sid in station_ids]

    nearest_index = 0
    nearest_dist = math.inf
    for i, coord in enumerate(coords):
        dist = _distance(target, coord)
        if dist < nearest_dist:
            nearest_index = i
            nearest_dist = dist

    last = len(station_ids) - 1

    if is_circular(line) and station_ids[nearest_index] == station_ids[0]:
        # extend from the loop point instead of splitting the loop
        return 0 if nearest_index == 0 else len(station_ids)

    if nearest_index == 0:
        near, neighbor = coords[0], coords[1]
        if _distance(target, neighbor) > _distance(near, neighbor):
            return 0
        return 1

    if nearest_index == last:
        near, neighbor = coords[last], coords[last - 1]
        if _distance(target, neighbor) > _distance(near, neighbor):
            return len(station_ids)
        return last

    near = coords[nearest_index]
    prev_coord = coords[nearest_index - 1]
    next_coord = coords[nearest_index + 1]
    prev_dist = _distance(target, prev_coord)
    next_dist = _distance(target, next_coord)
    if prev_dist < next_dist:
        if _distance(near, prev_coord) < prev_dist:
            return nearest_index + 1
        return nearest_index
    if _distance(near, next_coord) < next_dist:
        return nearest_index
    return nearest_index + 1
