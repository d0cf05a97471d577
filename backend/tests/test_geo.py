from __future__ import annotations

import math

import pytest

from campus_router.geo import bearing_deg, grid_key, grid_neighbourhood, haversine_m, offset_m


def test_haversine_known_distances() -> None:
    # One degree of latitude on a 6,371 km sphere.
    assert haversine_m(0.0, 0.0, 1.0, 0.0) == pytest.approx(111_194.93, abs=0.01)
    assert haversine_m(12.86, 77.43, 12.86, 77.43) == 0.0
    a = haversine_m(12.8638, 77.4348, 12.8647, 77.4354)
    b = haversine_m(12.8647, 77.4354, 12.8638, 77.4348)
    assert a == pytest.approx(b)
    assert 100.0 < a < 130.0


def test_haversine_propagates_nan() -> None:
    assert math.isnan(haversine_m(float("nan"), 77.43, 12.86, 77.43))


def test_bearing_cardinal_directions() -> None:
    assert bearing_deg(0.0, 0.0, 1.0, 0.0) == pytest.approx(0.0, abs=1e-9)
    assert bearing_deg(0.0, 0.0, 0.0, 1.0) == pytest.approx(90.0)
    assert bearing_deg(0.0, 0.0, -1.0, 0.0) == pytest.approx(180.0)
    assert bearing_deg(0.0, 0.0, 0.0, -1.0) == pytest.approx(270.0)
    assert 0.0 <= bearing_deg(12.86, 77.43, 12.85, 77.42) < 360.0


def test_offset_matches_haversine_at_campus_scale() -> None:
    lat, lng = offset_m(12.86, 77.43, north_m=30.0, east_m=40.0)
    assert haversine_m(12.86, 77.43, lat, lng) == pytest.approx(50.0, abs=0.01)


def test_grid_neighbourhood_covers_tolerance_ring() -> None:
    bucket = 0.0005
    keys = grid_neighbourhood(12.86, 77.43, radius_m=2.0, bucket_deg=bucket)
    assert grid_key(12.86, 77.43, bucket) in keys
    # A point just across a bucket edge must be searched.
    lat, lng = offset_m(12.86, 77.43, north_m=1.5, east_m=-1.5)
    assert grid_key(lat, lng, bucket) in keys
    wide = grid_neighbourhood(12.86, 77.43, radius_m=200.0, bucket_deg=bucket)
    assert len(wide) > len(keys)
