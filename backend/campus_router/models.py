from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .destinations import Destination
from .modes import Mode, parse_mode

RouteStrategy = Literal[
    "gate_rejected",
    "direct_access",
    "multi_hop",
    "hybrid",
    "direct",
    "walking_rescue",
    "none",
]


class LatLng(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class RouteLeg(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: Mode
    path: tuple[str, ...]
    # (lat, lng) for each node on the path.
    coordinates: tuple[tuple[float, float], ...]
    distance_m: float = Field(..., ge=0)
    travel_time_s: float = Field(..., ge=0)
    color: str
    description: str
    fallback: bool = False


class HybridRoute(BaseModel):
    model_config = ConfigDict(frozen=True)

    legs: tuple[RouteLeg, ...] = ()
    total_distance_m: float = 0.0
    total_travel_time_s: float = 0.0
    found: bool = False
    instructions: tuple[str, ...] = ()
    requested_mode: Mode
    strategy: RouteStrategy = "none"


class RouteRequest(BaseModel):
    destination_id: str = Field(..., min_length=1)
    mode: Literal["W", "2", "4"] = "W"
    origin: LatLng | None = None
    start_destination_id: str | None = None

    @field_validator("mode", mode="before")
    @classmethod
    def accept_mode_aliases(cls, value: object) -> object:
        if isinstance(value, str):
            parsed = parse_mode(value)
            if parsed is not None:
                return parsed.value
        return value


class RouteResponse(BaseModel):
    route: HybridRoute
    total_distance_text: str
    total_travel_time_text: str


class ModeInfo(BaseModel):
    id: str
    name: str
    icon: str
    color: str
    speed_mps: float


class ModeListResponse(BaseModel):
    modes: list[ModeInfo]


class CategoryInfo(BaseModel):
    id: str
    name: str


class CategoryListResponse(BaseModel):
    categories: list[CategoryInfo]


class DestinationListResponse(BaseModel):
    destinations: list[Destination]
    count: int


class GraphStatusResponse(BaseModel):
    available: bool
    reason: str
    source: str | None = None
    node_count: int = 0
    edge_count: int = 0
    connected_nodes: int = 0
    isolated_nodes: int = 0
    component_count: int = 0
    largest_component_nodes: int = 0
    snapped_vertices: int = 0
    merged_hops: int = 0
    skipped_features: int = 0
