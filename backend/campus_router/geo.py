from __future__ import annotations

import math

EARTH_RADIUS_M = 6_371_000.0
# Length of one degree of latitude on the spherical earth.
METERS_PER_DEGREE = EARTH_RADIUS_M * math.pi / 180.0


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = phi2 - phi1
    dlambda = math.radians(lon2 - lon1)
    a = (
        math.sin(dphi / 2.0) ** 2
        + (math.cos(phi1) * math.cos(phi2) * (math.sin(dlambda / 2.0) ** 2))
    )
    # NaN inputs must propagate, so no clamping of `a` here.
    return 2.0 * EARTH_RADIUS_M * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))


def bearing_deg(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial great-circle bearing from the first point to the second, in [0, 360)."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dlambda = math.radians(lon2 - lon1)
    y = math.sin(dlambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dlambda)
    return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0


def grid_key(lat: float, lon: float, bucket_deg: float) -> tuple[int, int]:
    return (int(math.floor(lat / bucket_deg)), int(math.floor(lon / bucket_deg)))


def grid_neighbourhood(
    lat: float,
    lon: float,
    *,
    radius_m: float,
    bucket_deg: float,
) -> tuple[tuple[int, int], ...]:
    """Grid buckets that can hold a point within ``radius_m`` of (lat, lon)."""
    center_lat, center_lon = grid_key(lat, lon, bucket_deg)
    lat_rings = max(1, int(math.ceil((radius_m / METERS_PER_DEGREE) / bucket_deg)))
    cos_lat = max(1e-6, math.cos(math.radians(lat)))
    lon_rings = max(1, int(math.ceil((radius_m / (METERS_PER_DEGREE * cos_lat)) / bucket_deg)))
    return tuple(
        (center_lat + dy, center_lon + dx)
        for dy in range(-lat_rings, lat_rings + 1)
        for dx in range(-lon_rings, lon_rings + 1)
    )


def grid_ring(center: tuple[int, int], radius: int) -> tuple[tuple[int, int], ...]:
    """Bucket keys at Chebyshev distance exactly ``radius`` from ``center``."""
    if radius <= 0:
        return (center,)
    row, col = center
    keys: list[tuple[int, int]] = []
    for dx in range(-radius, radius + 1):
        keys.append((row - radius, col + dx))
        keys.append((row + radius, col + dx))
    for dy in range(-radius + 1, radius):
        keys.append((row + dy, col - radius))
        keys.append((row + dy, col + radius))
    return tuple(keys)


def offset_m(lat: float, lon: float, *, north_m: float = 0.0, east_m: float = 0.0) -> tuple[float, float]:
    """Shift a coordinate by local north/east distances (equirectangular approximation)."""
    dlat = north_m / METERS_PER_DEGREE
    dlon = east_m / (METERS_PER_DEGREE * max(1e-12, math.cos(math.radians(lat))))
    return lat + dlat, lon + dlon
