"""Tests for track_stats.py"""

import pytest

from conftest import make_line, make_station
from geometry import haversine_miles
from track_stats import compute_geo_data, compute_track_statistics, get_level, summarize_system

ONE_DEGREE = haversine_miles(0, 0, 0, 1)


class TestGetLevel:
    def test_thresholds(self):
        assert get_level(0.5)["key"] == "LOCAL"
        assert get_level(5)["key"] == "REGIONAL"
        assert get_level(50)["key"] == "LONG"
        assert get_level(5000)["key"] == "XLONG"

    def test_no_spacing(self):
        assert get_level(None) is None
        assert get_level(0) is None

    def test_custom_table(self):
        table = [{"key": "SHORT", "spacingThreshold": 2}]
        assert get_level(1, table)["key"] == "SHORT"
        assert get_level(3, table) is None


class TestTrackStatistics:
    def test_single_line(self, equator_stations):
        lines = {"0": make_line("0", "red", ["1", "2", "3"])}
        stats = compute_track_statistics(lines, equator_stations)
        assert stats["trackLength"] == pytest.approx(2 * ONE_DEGREE)
        assert stats["avgSpacing"] == pytest.approx(ONE_DEGREE)
        assert stats["level"] == "LONG"

    def test_shared_path_counted_once(self, equator_stations):
        lines = {
            "0": make_line("0", "red", ["1", "2", "3"]),
            "1": make_line("1", "blue", ["3", "2", "1"]),
        }
        stats = compute_track_statistics(lines, equator_stations)
        assert stats["trackLength"] == pytest.approx(2 * ONE_DEGREE)

    def test_reversal_does_not_change_length(self, equator_stations):
        forward = compute_track_statistics([make_line("0", "red", ["1", "2", "4"])], equator_stations)
        backward = compute_track_statistics([make_line("0", "red", ["4", "2", "1"])], equator_stations)
        assert forward == backward

    def test_waypoints_merge_sections(self):
        stations = {
            "1": make_station("1", 0.0, 0.0),
            "2": make_station("2", 0.0, 1.0, waypoint=True),
            "3": make_station("3", 0.0, 2.0),
        }
        stats = compute_track_statistics([make_line("0", "red", ["1", "2", "3"])], stations)
        assert stats["trackLength"] == pytest.approx(2 * ONE_DEGREE)
        # one section, so spacing equals the whole length
        assert stats["avgSpacing"] == pytest.approx(2 * ONE_DEGREE)

    def test_missing_station_skips_only_that_section(self, equator_stations):
        lines = [make_line("0", "red", ["1", "2", "99"])]
        stats = compute_track_statistics(lines, equator_stations)
        assert stats["trackLength"] == pytest.approx(ONE_DEGREE)

    def test_no_track(self, equator_stations):
        stats = compute_track_statistics({"0": make_line("0", "red", ["1"])}, equator_stations)
        assert stats == {"trackLength": 0.0, "avgSpacing": None, "level": None}

    def test_antipodal_section(self):
        stations = {"1": make_station("1", -0.08, 0.0), "2": make_station("2", 0.08, 180.0)}
        stats = compute_track_statistics([make_line("0", "red", ["1", "2"])], stations)
        assert stats["trackLength"] == pytest.approx(haversine_miles(-0.08, 0.0, 0.08, 180.0))
        assert stats["level"] == "XLONG"

    def test_local_level_for_dense_system(self):
        stations = {str(i): make_station(str(i), 0.0, i * 0.005) for i in range(4)}
        stats = compute_track_statistics([make_line("0", "red", ["0", "1", "2", "3"])], stations)
        assert stats["level"] == "LOCAL"


class TestGeoData:
    def test_empty(self):
        assert compute_geo_data({}) == {}

    def test_waypoints_ignored(self):
        stations = {
            "1": make_station("1", 0.0, 0.0),
            "2": make_station("2", 0.0, 2.0),
            "3": make_station("3", 10.0, 10.0, waypoint=True),
        }
        geo = compute_geo_data(stations)
        assert geo["centroid"]["lat"] == pytest.approx(0.0)
        assert geo["centroid"]["lng"] == pytest.approx(1.0)
        assert geo["avgDist"] == pytest.approx(ONE_DEGREE)
        assert geo["maxDist"] == pytest.approx(ONE_DEGREE)


class TestSummarizeSystem:
    def test_counts_and_fields(self, shared_system):
        shared_system["stations"]["5"] = make_station("5", 0.0, 5.0, waypoint=True)
        summary = summarize_system(shared_system)
        assert summary["title"] == "Equator Metro"
        assert summary["numStations"] == 4
        assert summary["numWaypoints"] == 1
        assert summary["numLines"] == 3
        assert summary["trackLength"] == pytest.approx(2 * ONE_DEGREE)
        assert summary["level"] == "LONG"
        assert summary["centroid"]["lng"] == pytest.approx(1.5)

    def test_empty_system(self):
        summary = summarize_system({"stations": {}, "lines": {}})
        assert summary["trackLength"] is None
        assert summary["centroid"] is None
        assert summary["title"] == "Map"
