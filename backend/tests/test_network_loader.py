from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

import pytest

import campus_router.network_loader as network_loader
from campus_fixtures import at
from campus_router.campus_graph import LineFeature, PointFeature
from campus_router.data_errors import CampusDataError
from campus_router.network_loader import (
    campus_graph_status,
    load_campus_graph,
    load_network_features,
    parse_feature,
    parse_feature_collection,
)
from campus_router.settings import settings


def _collection() -> dict:
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": {"type": "LineString", "coordinates": [list(at(0, 0)), list(at(0, 60)), list(at(40, 60))]},
                "properties": {"mode": ["W", "4"], "surface": "asphalt", "name": "Main Road"},
            },
            {
                "type": "Feature",
                "geometry": {"type": "LineString", "coordinates": [list(at(40, 60)), list(at(90, 60))]},
                "properties": {},
            },
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": list(at(0, 0))},
                "properties": {"name": "Gate 1"},
            },
            {"type": "Feature", "geometry": {"type": "Polygon", "coordinates": []}, "properties": {}},
            {"type": "Feature", "geometry": {"type": "LineString", "coordinates": [list(at(0, 0))]}},
            "garbage",
        ],
    }


def test_parse_feature_defaults_and_decimal_coordinates() -> None:
    parsed = parse_feature(
        {
            "geometry": {
                "type": "LineString",
                "coordinates": [[Decimal("77.43"), Decimal("12.86")], [Decimal("77.431"), Decimal("12.86")]],
            },
            "properties": {"name": "  "},
        }
    )
    assert isinstance(parsed, LineFeature)
    assert parsed.coordinates == ((77.43, 12.86), (77.431, 12.86))
    assert parsed.modes == ("W",)
    assert parsed.surface == "unknown"
    assert parsed.name is None

    point = parse_feature({"geometry": {"type": "Point", "coordinates": [77.43, 12.86]}, "properties": {"name": "Gate"}})
    assert point == PointFeature(coordinates=(77.43, 12.86), name="Gate")
    assert parse_feature({"geometry": {"type": "Point", "coordinates": ["x", 1]}}) is None


def test_parse_feature_strips_mode_tags() -> None:
    parsed = parse_feature(
        {
            "geometry": {"type": "LineString", "coordinates": [[77.43, 12.86], [77.431, 12.86]]},
            "properties": {"mode": [" 4", "W ", "  ", " if Girls Hostel -> 4PI "]},
        }
    )
    assert isinstance(parsed, LineFeature)
    assert parsed.modes == ("4", "W", "if Girls Hostel -> 4PI")


def test_parse_feature_collection_counts_skipped() -> None:
    features = parse_feature_collection(_collection())
    assert len(features.lines) == 2
    assert len(features.points) == 1
    assert features.skipped == 3
    assert features.lines[0].modes == ("W", "4")
    assert features.lines[0].surface == "asphalt"

    with pytest.raises(CampusDataError) as excinfo:
        parse_feature_collection({"type": "FeatureCollection"})
    assert excinfo.value.reason_code == "network_invalid"


def test_streaming_loader_matches_in_memory_parse(tmp_path: Path) -> None:
    path = tmp_path / "campus.geojson"
    path.write_text(json.dumps(_collection()), encoding="utf-8")
    streamed = load_network_features(path)
    in_memory = parse_feature_collection(_collection())
    assert streamed.lines == in_memory.lines
    assert streamed.points == in_memory.points
    assert streamed.skipped == in_memory.skipped
    assert streamed.source == str(path)


def test_streaming_loader_reports_missing_and_invalid_files(tmp_path: Path) -> None:
    with pytest.raises(CampusDataError) as excinfo:
        load_network_features(tmp_path / "absent.geojson")
    assert excinfo.value.reason_code == "network_unavailable"

    broken = tmp_path / "broken.geojson"
    broken.write_text('{"features": [{"geometry": ', encoding="utf-8")
    with pytest.raises(CampusDataError) as excinfo:
        load_network_features(broken)
    assert excinfo.value.reason_code == "network_invalid"


def test_cached_campus_graph_and_status(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "campus.geojson"
    path.write_text(json.dumps(_collection()), encoding="utf-8")
    monkeypatch.setattr(settings, "campus_network_path", str(path))
    network_loader.load_campus_network.cache_clear()
    try:
        graph = load_campus_graph()
        assert graph is load_campus_graph()
        assert graph.diagnostics.node_count == 4
        assert graph.diagnostics.edge_count == 6
        assert campus_graph_status() == (True, "ok")
    finally:
        network_loader.load_campus_network.cache_clear()

    monkeypatch.setattr(settings, "campus_network_path", str(tmp_path / "missing.geojson"))
    try:
        assert campus_graph_status() == (False, "network_unavailable")
    finally:
        network_loader.load_campus_network.cache_clear()


def test_network_without_lines_is_invalid(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "points.geojson"
    path.write_text(
        json.dumps({"features": [{"geometry": {"type": "Point", "coordinates": [77.43, 12.86]}, "properties": {}}]}),
        encoding="utf-8",
    )
    monkeypatch.setattr(settings, "campus_network_path", str(path))
    network_loader.load_campus_network.cache_clear()
    try:
        with pytest.raises(CampusDataError) as excinfo:
            load_campus_graph()
        assert excinfo.value.reason_code == "network_invalid"
    finally:
        network_loader.load_campus_network.cache_clear()
