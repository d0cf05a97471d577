from __future__ import annotations

from collections.abc import Sequence

from campus_router.campus_graph import LineFeature, PointFeature
from campus_router.destinations import Destination
from campus_router.geo import offset_m

LAT0 = 12.86
LNG0 = 77.43

# id -> (name, type, category, north_m, east_m)
CAMPUS_LAYOUT: dict[str, tuple[str, str, str, float, float]] = {
    "gate1": ("Gate 1", "entrance", "entrance", 0.0, 0.0),
    "gate2": ("Gate 2", "entrance", "entrance", 0.0, 200.0),
    "parking-4wheeler": ("4-Wheeler parking", "parking", "parking", 100.0, 0.0),
    "parking-2wheeler": ("2-Wheeler square parking", "parking", "parking", 100.0, 200.0),
    "devadan-parking": ("Devadan Block Parking", "parking", "parking", 300.0, 100.0),
    "architecture-parking": ("Architecture Block Parking", "parking", "parking", 300.0, 300.0),
    "block1-ent1": ("Block 1 Entrance 1", "entrance", "academic", 200.0, 0.0),
    "girls-hostel": ("Girls Hostel", "building", "hostel", -100.0, 0.0),
    "tennis-court": ("Tennis Court", "facility", "sports", 2000.0, 2000.0),
}

CAMPUS_ROADS: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    ("gate1", "parking-4wheeler", ("W", "4")),
    ("gate2", "parking-2wheeler", ("W", "2")),
    ("parking-2wheeler", "devadan-parking", ("W", "2", "4")),
    ("devadan-parking", "architecture-parking", ("2", "4", "W")),
    ("parking-4wheeler", "devadan-parking", ("4",)),
    ("parking-4wheeler", "block1-ent1", ("W",)),
    ("girls-hostel", "gate1", ("W",)),
)


def at(north_m: float = 0.0, east_m: float = 0.0) -> tuple[float, float]:
    """(lng, lat) of a point offset from the fixture origin."""
    lat, lng = offset_m(LAT0, LNG0, north_m=north_m, east_m=east_m)
    return (lng, lat)


def line(*points: tuple[float, float], modes: Sequence[str] = ("W",), name: str | None = None) -> LineFeature:
    return LineFeature(coordinates=tuple(points), modes=tuple(modes), name=name)


def campus_destinations() -> list[Destination]:
    return [
        Destination(id=dest_id, name=name, coordinates=at(north, east), type=kind, category=category)
        for dest_id, (name, kind, category, north, east) in CAMPUS_LAYOUT.items()
    ]


def campus_features() -> tuple[list[LineFeature], list[PointFeature]]:
    dests = {dest.id: dest for dest in campus_destinations()}
    lines = [
        line(dests[a].coordinates, dests[b].coordinates, modes=modes)
        for a, b, modes in CAMPUS_ROADS
    ]
    points = [PointFeature(coordinates=dest.coordinates, name=dest.name) for dest in dests.values()]
    return lines, points
