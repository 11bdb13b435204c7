"""Tests for metro_map.py"""

import json
from unittest.mock import patch

import pytest

import metro_map
from config import SEGMENTS_FILE, SUMMARY_FILE


@pytest.fixture
def system_file(tmp_path, shared_system):
    doc = {"map": shared_system, "meta": {"nextStationId": "5", "nextLineId": "3"}}
    path = tmp_path / "system.json"
    path.write_text(json.dumps(doc))
    return path


def _read(path):
    return json.loads(path.read_text())


class TestLoadDocument:
    def test_wrapped_document(self, system_file, shared_system):
        system, meta = metro_map.load_document(str(system_file))
        assert system == shared_system
        assert meta["nextLineId"] == "3"

    def test_bare_system(self, tmp_path, shared_system):
        path = tmp_path / "bare.json"
        path.write_text(json.dumps(shared_system))
        system, meta = metro_map.load_document(str(path))
        assert system["title"] == "Equator Metro"
        assert meta == {}


class TestMain:
    def test_writes_outputs(self, system_file, tmp_path):
        out = tmp_path / "out"
        assert metro_map.main([str(system_file), "--out", str(out)]) == 0

        geojson = _read(out / SEGMENTS_FILE)
        assert geojson["type"] == "FeatureCollection"
        assert len(geojson["features"]) == 5

        summary = _read(out / SUMMARY_FILE)
        assert summary["numLines"] == 3
        assert summary["level"] == "LONG"
        assert summary["meta"] == {"nextStationId": "5", "nextLineId": "3"}
        assert "keywords" not in summary

    def test_missing_file(self, tmp_path):
        assert metro_map.main([str(tmp_path / "nope.json"), "--out", str(tmp_path)]) == 1

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        assert metro_map.main([str(path), "--out", str(tmp_path)]) == 1

    def test_diff_against_previous(self, system_file, shared_system, tmp_path):
        previous = tmp_path / "previous.geojson"
        previous.write_text(json.dumps({
            "type": "FeatureCollection",
            "features": [
                {"properties": {"segment-longkey": "1|2|red"}},
                {"properties": {"segment-longkey": "1|2|green"}},
                {"properties": {"segment-longkey": "1|2|blue"}},
                {"properties": {"segment-longkey": "3|4|pink"}},
                {"properties": {"segment-longkey": "3|4|teal"}},
            ],
        }))
        out = tmp_path / "out"
        assert metro_map.main([str(system_file), "--previous", str(previous), "--out", str(out)]) == 0
        summary = _read(out / SUMMARY_FILE)
        assert summary["changedSegments"] == ["2|3", "3|4"]

    def test_keywords(self, system_file, tmp_path):
        out = tmp_path / "out"
        with patch("geocoder.ReverseGeocoder.reverse", return_value=[]):
            assert metro_map.main([str(system_file), "--keywords", "--out", str(out)]) == 0
        summary = _read(out / SUMMARY_FILE)
        assert summary["keywords"] == ["equator", "metro"]

    @pytest.mark.parametrize("content", [
        "[1, 2]", "{\"map\": null}", "\"text\"", "{\"map\": {}, \"meta\": [1]}",
    ])
    def test_document_not_an_object(self, tmp_path, content):
        path = tmp_path / "odd.json"
        path.write_text(content)
        assert metro_map.main([str(path), "--out", str(tmp_path)]) == 1


class TestSegmentsFromGeojson:
    def test_groups_colors_by_pair(self):
        data = {"features": [
            {"properties": {"segment-longkey": "1|2|red"}},
            {"properties": {"segment-longkey": "1|2|blue"}},
            {"properties": {"segment-longkey": "bad"}},
        ]}
        segments = metro_map.segments_from_geojson(data)
        assert list(segments) == ["1|2"]
        assert segments["1|2"]["colors"] == ["red", "blue"]
