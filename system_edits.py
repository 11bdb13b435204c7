"""
system_edits.py — edit operations on a transit system document.

Every operation takes the current system (and meta, when it allocates ids)
and returns new values; inputs are never modified.  A meaningful edit
bumps system["editSeq"], which EditHistory uses to decide when to take an
undo snapshot.  Id counters in meta only ever grow.
"""

import copy
import logging

from config import (
    DEFAULT_LINE_MODE, DEFAULT_LINES, DEFAULT_STATION_NAME, FORK_SUFFIX,
    INITIAL_META, MAX_HISTORY_SIZE,
)
from geometry import InvalidCoordinateError, normalize_coordinate, normalize_station
from insertion import resolve_insertion_index

logger = logging.getLogger(__name__)


# ── Helpers ───────────────────────────────────────────────────────────

def _copy(value: dict) -> dict:
    return copy.deepcopy(value)


def _bump(system: dict) -> dict:
    system["editSeq"] = system.get("editSeq", 0) + 1
    return system


def _next_id(current: str) -> str:
    return str(int(current) + 1)


def _require_line(system: dict, line_id: str) -> dict:
    if line_id not in system.get("lines", {}):
        raise KeyError(f"unknown line {line_id!r}")
    return system["lines"][line_id]


def _require_station(system: dict, station_id: str) -> dict:
    if station_id not in system.get("stations", {}):
        raise KeyError(f"unknown station {station_id!r}")
    return system["stations"][station_id]


def lines_containing(system: dict, station_id: str) -> list[str]:
    """Ids of lines whose stationIds include station_id."""
    return [lid for lid, line in system.get("lines", {}).items()
            if station_id in line.get("stationIds", [])]


# ── Loading ───────────────────────────────────────────────────────────

def sanitize_system(doc: dict) -> dict:
    """Normalize a stored system document before any computation.

    Stations with unusable coordinates are dropped (with a warning) and
    every line loses ids that no longer resolve to a station.  Legacy
    documents carrying manualUpdate are moved over to editSeq.
    """
    system = _copy(doc)
    stations = {}
    for station_id, station in (system.get("stations") or {}).items():
        try:
            cleaned = normalize_station(station)
        except InvalidCoordinateError as exc:
            logger.warning(f"Dropping station {station_id}: {exc}")
            continue
        cleaned["id"] = station_id
        stations[station_id] = cleaned
    system["stations"] = stations

    lines = {}
    for line_id, line in (system.get("lines") or {}).items():
        line["id"] = line_id
        ids = line.get("stationIds") or []
        kept = [sid for sid in ids if sid in stations]
        if len(kept) != len(ids):
            logger.warning(f"Line {line_id}: removed {len(ids) - len(kept)} dangling station reference(s)")
        line["stationIds"] = kept
        lines[line_id] = line
    system["lines"] = lines

    legacy = system.pop("manualUpdate", None)
    system["editSeq"] = system.get("editSeq", legacy or 0)
    system.setdefault("title", "Map")
    return system


def sanitize_meta(meta: dict | None, system: dict) -> dict:
    """Make sure the id counters are ahead of every id already in use."""
    result = dict(INITIAL_META)
    result.update(meta or {})
    for field, ids in (("nextStationId", system.get("stations", {})),
                       ("nextLineId", system.get("lines", {}))):
        used = [int(i) for i in ids if str(i).isdigit()]
        floor = max(used) + 1 if used else 0
        stored = str(result.get(field, ""))
        current = int(stored) if stored.isdigit() else 0
        result[field] = str(max(current, floor))
    return result


# ── System ────────────────────────────────────────────────────────────

def set_title(system: dict, title: str) -> dict:
    system = _copy(system)
    system["title"] = title
    return _bump(system)


# ── Stations ──────────────────────────────────────────────────────────

def add_station(system: dict, meta: dict, lat, lng, name: str = DEFAULT_STATION_NAME,
                is_waypoint: bool = False) -> tuple[dict, dict, dict]:
    """Create a station from a map click.  Returns (system, meta, station)."""
    system, meta = _copy(system), _copy(meta)
    station = {
        "id": meta["nextStationId"],
        "lat": normalize_coordinate(lat, limit=90.0),
        "lng": normalize_coordinate(lng, limit=180.0),
    }
    if is_waypoint:
        station["isWaypoint"] = True
    else:
        station["name"] = name
    meta["nextStationId"] = _next_id(meta["nextStationId"])
    system.setdefault("stations", {})[station["id"]] = station
    return _bump(system), meta, copy.deepcopy(station)


def update_station_info(system: dict, station_id: str, info: dict, replace: bool = False) -> dict:
    """Merge info into a station.

    Deleted stations and waypoints are left alone.  With replace=True the
    change (typically a geocoded name arriving late) is folded into the
    current state without counting as a new edit.
    """
    station = system.get("stations", {}).get(station_id)
    if station is None or station.get("isWaypoint"):
        return system
    system = _copy(system)
    system["stations"][station_id] = {**station, **info, "id": station_id}
    return system if replace else _bump(system)


def delete_station(system: dict, station_id: str) -> dict:
    """Remove a station and every reference to it."""
    _require_station(system, station_id)
    system = _copy(system)
    del system["stations"][station_id]
    for line_id in lines_containing(system, station_id):
        line = system["lines"][line_id]
        line["stationIds"] = [sid for sid in line["stationIds"] if sid != station_id]
    return _bump(system)


def convert_to_waypoint(system: dict, station_id: str) -> dict:
    _require_station(system, station_id)
    system = _copy(system)
    station = system["stations"][station_id]
    station["isWaypoint"] = True
    station.pop("name", None)
    station.pop("info", None)
    return _bump(system)


def convert_to_station(system: dict, station_id: str, name: str = DEFAULT_STATION_NAME) -> dict:
    _require_station(system, station_id)
    system = _copy(system)
    station = system["stations"][station_id]
    station.pop("isWaypoint", None)
    station["name"] = name
    return _bump(system)


# ── Lines ─────────────────────────────────────────────────────────────

def _closes_loop(station_ids: list[str], station_id: str, position: int | None) -> bool:
    if position is None:
        return False
    if position >= len(station_ids):
        return station_id == station_ids[0]
    if position <= 0:
        return station_id == station_ids[-1]
    return False


def add_station_to_line(system: dict, line_id: str, station_id: str, position: int | None = None) -> dict:
    """Insert a station into a line, at *position* or wherever it fits best.

    A station already on the line is only accepted when it closes a loop:
    one endpoint added again at the opposite end.  Without a position the
    loop is closed at whichever end is free.
    """
    _require_line(system, line_id)
    station = _require_station(system, station_id)
    system = _copy(system)
    line = system["lines"][line_id]
    station_ids = line.get("stationIds") or []

    if station_id in station_ids:
        closable = len(station_ids) >= 2 and station_ids[0] != station_ids[-1]
        if closable and position is None:
            position = len(station_ids) if station_id == station_ids[0] else 0
        if not closable or not _closes_loop(station_ids, station_id, position):
            raise ValueError(f"station {station_id!r} is already on line {line_id!r}")

    if position is None:
        position = resolve_insertion_index(line, system["stations"], station)
    position = max(0, min(position, len(station_ids)))

    line["stationIds"] = station_ids[:position] + [station_id] + station_ids[position:]
    return _bump(system)


def remove_station_from_line(system: dict, line_id: str, station_id: str) -> dict:
    _require_line(system, line_id)
    system = _copy(system)
    line = system["lines"][line_id]
    line["stationIds"] = [sid for sid in line["stationIds"] if sid != station_id]
    return _bump(system)


def remove_waypoints_from_line(system: dict, line_id: str, waypoint_ids: list[str]) -> dict:
    _require_line(system, line_id)
    system = _copy(system)
    drop = set(waypoint_ids)
    line = system["lines"][line_id]
    line["stationIds"] = [sid for sid in line["stationIds"] if sid not in drop]
    return _bump(system)


def reverse_station_order(system: dict, line_id: str) -> dict:
    _require_line(system, line_id)
    system = _copy(system)
    line = system["lines"][line_id]
    line["stationIds"] = line["stationIds"][::-1]
    return _bump(system)


def _pick_default_line(system: dict) -> dict:
    used = {line.get("color") for line in system.get("lines", {}).values()}
    for default in DEFAULT_LINES:
        if default["color"] not in used:
            return default
    # every palette colour is taken; cycle through it
    return DEFAULT_LINES[len(system.get("lines", {})) % len(DEFAULT_LINES)]


def add_line(system: dict, meta: dict) -> tuple[dict, dict, dict]:
    """Create an empty line with the next unused palette colour."""
    system, meta = _copy(system), _copy(meta)
    default = _pick_default_line(system)
    line = {
        "id": meta["nextLineId"],
        "name": default["name"],
        "color": default["color"],
        "mode": DEFAULT_LINE_MODE,
        "stationIds": [],
    }
    meta["nextLineId"] = _next_id(meta["nextLineId"])
    system.setdefault("lines", {})[line["id"]] = line
    return _bump(system), meta, copy.deepcopy(line)


def update_line_info(system: dict, line_id: str, info: dict) -> dict:
    """Change a line's name, colour or mode (or replace its stationIds)."""
    _require_line(system, line_id)
    system = _copy(system)
    system["lines"][line_id] = {**system["lines"][line_id], **copy.deepcopy(info), "id": line_id}
    return _bump(system)


def delete_line(system: dict, line_id: str) -> dict:
    _require_line(system, line_id)
    system = _copy(system)
    del system["lines"][line_id]
    return _bump(system)


def duplicate_line(system: dict, meta: dict, line_id: str) -> tuple[dict, dict, dict]:
    """Fork a line under a new id, keeping its stations and colour."""
    original = _require_line(system, line_id)
    system, meta = _copy(system), _copy(meta)
    forked = copy.deepcopy(original)
    forked["id"] = meta["nextLineId"]
    forked["name"] = original.get("name", "") + FORK_SUFFIX
    meta["nextLineId"] = _next_id(meta["nextLineId"])
    system["lines"][forked["id"]] = forked
    return _bump(system), meta, copy.deepcopy(forked)


# ── Undo ──────────────────────────────────────────────────────────────

class EditHistory:
    """Bounded stack of system snapshots, one per editSeq."""

    def __init__(self, max_size: int = MAX_HISTORY_SIZE):
        self.max_size = max_size
        self._entries: list[dict] = []

    def __len__(self):
        return len(self._entries)

    def record(self, system: dict) -> bool:
        """Snapshot *system* if its editSeq differs from the latest entry's."""
        if self._entries and self._entries[-1].get("editSeq") == system.get("editSeq"):
            return False
        self._entries.append(copy.deepcopy(system))
        # the newest entry is the current state; keep max_size entries behind it
        if len(self._entries) > self.max_size + 1:
            self._entries = self._entries[-(self.max_size + 1):]
        return True

    def can_undo(self) -> bool:
        return len(self._entries) >= 2

    def undo(self) -> dict | None:
        """Drop the current snapshot and return the one before it."""
        if not self.can_undo():
            logger.info("Undo history is empty")
            return None
        self._entries.pop()
        return copy.deepcopy(self._entries[-1])
