from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .data_errors import CampusDataError
from .geo import haversine_m
from .settings import settings

DestinationType = Literal["building", "parking", "entrance", "facility"]
DestinationCategory = Literal["entrance", "parking", "academic", "hostel", "dining", "sports", "facility"]

DESTINATION_CATEGORIES: tuple[dict[str, str], ...] = (
    {"id": "all", "name": "All Destinations"},
    {"id": "entrance", "name": "Gates & Entrances"},
    {"id": "academic", "name": "Academic Buildings"},
    {"id": "hostel", "name": "Hostels"},
    {"id": "dining", "name": "Dining"},
    {"id": "sports", "name": "Sports Facilities"},
    {"id": "parking", "name": "Parking"},
    {"id": "facility", "name": "Facilities"},
)

_BUILTIN_CATALOG_PATH = Path(__file__).resolve().parent / "assets" / "destinations.json"


class Destination(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    # GeoJSON order: (lng, lat).
    coordinates: tuple[float, float]
    type: DestinationType
    category: DestinationCategory

    @property
    def lat(self) -> float:
        return float(self.coordinates[1])

    @property
    def lng(self) -> float:
        return float(self.coordinates[0])


class DestinationCatalog:
    """Read-only, ordered registry of named campus points."""

    def __init__(self, destinations: Iterable[Destination]) -> None:
        self._items: tuple[Destination, ...] = tuple(destinations)
        by_id: dict[str, Destination] = {}
        for dest in self._items:
            by_id.setdefault(dest.id, dest)
        self._by_id = by_id

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Destination]:
        return iter(self._items)

    def __contains__(self, destination_id: object) -> bool:
        return destination_id in self._by_id

    def all(self) -> list[Destination]:
        return list(self._items)

    def get(self, destination_id: str | None) -> Destination | None:
        if not destination_id:
            return None
        return self._by_id.get(str(destination_id).strip())

    def require(self, destination_id: str | None) -> Destination:
        dest = self.get(destination_id)
        if dest is None:
            raise CampusDataError(
                reason_code="destination_unknown",
                message=f"Unknown destination '{destination_id}'.",
                details={"destination_id": destination_id},
            )
        return dest

    def find_by_name(self, name: str) -> Destination | None:
        wanted = str(name or "").strip().lower()
        if not wanted:
            return None
        for dest in self._items:
            if dest.name.lower() == wanted:
                return dest
        return None

    def filter_by_category(self, category: str | None = None) -> list[Destination]:
        if not category or category == "all":
            return list(self._items)
        return [dest for dest in self._items if dest.category == category]

    def search(self, query: str | None) -> list[Destination]:
        text = str(query or "")
        if not text.strip():
            return list(self._items)
        needle = text.lower()
        return [
            dest
            for dest in self._items
            if needle in dest.name.lower() or needle in dest.category.lower() or needle in dest.type.lower()
        ]

    def nearest(self, lat: float, lng: float) -> tuple[Destination | None, float]:
        best: Destination | None = None
        best_distance = float("inf")
        for dest in self._items:
            distance = haversine_m(lat, lng, dest.lat, dest.lng)
            if distance < best_distance:
                best = dest
                best_distance = distance
        return best, best_distance

    def gates(self) -> list[Destination]:
        return [dest for dest in self._items if dest.category == "entrance" and dest.type == "entrance"]


def parse_destinations(raw: object) -> list[Destination]:
    if isinstance(raw, dict):
        raw = raw.get("destinations")
    if not isinstance(raw, list):
        raise CampusDataError(
            reason_code="destination_catalog_unavailable",
            message="Destination catalog must be a list of destination records.",
        )
    try:
        return [Destination.model_validate(item) for item in raw]
    except ValidationError as exc:
        raise CampusDataError(
            reason_code="destination_catalog_unavailable",
            message="Destination catalog contains an invalid record.",
            details={"errors": exc.errors(include_url=False)},
        ) from exc


def _catalog_path() -> Path:
    configured = settings.destination_catalog_path
    return Path(configured) if configured else _BUILTIN_CATALOG_PATH


@lru_cache(maxsize=1)
def load_destination_catalog() -> DestinationCatalog:
    path = _catalog_path()
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise CampusDataError(
            reason_code="destination_catalog_unavailable",
            message=f"Destination catalog could not be read from {path}.",
            details={"path": str(path)},
        ) from exc
    return DestinationCatalog(parse_destinations(raw))
