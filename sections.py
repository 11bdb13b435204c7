"""
sections.py — split lines into track sections between real stations.

A section runs from one non-waypoint station to the next, carrying any
waypoints in between.  Sections are what track length and spacing are
measured over, so each one is also given a direction-agnostic key.
"""


def _is_waypoint(stations: dict, station_id: str) -> bool:
    return bool(stations.get(station_id, {}).get("isWaypoint"))


def partition_sections(line: dict, stations: dict) -> list[list[str]]:
    """Split a line's stationIds into maximal runs bounded by real stations.

    Missing stations are treated as boundaries; the length pass skips any
    section it cannot resolve to coordinates.
    """
    station_ids = line.get("stationIds") or []
    if len(station_ids) < 2:
        return []

    sections = []
    section = [station_ids[0]]
    last = len(station_ids) - 1
    for i in range(1, len(station_ids)):
        station_id = station_ids[i]
        section.append(station_id)
        if i == last or not _is_waypoint(stations, station_id):
            sections.append(section)
            section = [station_id]
    return sections


def canonical_section(section: list[str]) -> list[str]:
    """Orient a section so its smaller endpoint comes first.

    Comparing the whole sequence with its reverse also settles sections
    whose endpoints are equal (a loop between one station).
    """
    backward = section[::-1]
    return backward if backward < section else list(section)


def section_key(section: list[str]) -> str:
    return "|".join(canonical_section(section))
