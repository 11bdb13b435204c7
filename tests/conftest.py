"""Shared fixtures: small systems laid out along the equator and a meridian."""

import pytest


def make_station(station_id, lat, lng, waypoint=False):
    station = {"id": station_id, "lat": lat, "lng": lng}
    if waypoint:
        station["isWaypoint"] = True
    else:
        station["name"] = f"Station {station_id}"
    return station


def make_line(line_id, color, station_ids, name=None):
    return {
        "id": line_id,
        "name": name or f"Line {line_id}",
        "color": color,
        "stationIds": list(station_ids),
    }


@pytest.fixture
def equator_stations():
    # one degree of longitude apart on the equator
    return {
        "1": make_station("1", 0.0, 0.0),
        "2": make_station("2", 0.0, 1.0),
        "3": make_station("3", 0.0, 2.0),
        "4": make_station("4", 0.0, 3.0),
    }


@pytest.fixture
def shared_system(equator_stations):
    """Red, green and blue all run 1–2; red and green continue to 3."""
    return {
        "title": "Equator Metro",
        "stations": equator_stations,
        "lines": {
            "0": make_line("0", "red", ["1", "2", "3"]),
            "1": make_line("1", "green", ["3", "2", "1"]),
            "2": make_line("2", "blue", ["1", "2"]),
        },
        "editSeq": 1,
    }
