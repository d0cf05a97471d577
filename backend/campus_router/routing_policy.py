from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .data_errors import CampusDataError
from .modes import Mode
from .settings import settings


class MultiHopOverride(BaseModel):
    """Trips in ``mode`` to ``destination_id`` must pass through ``via_id`` first."""

    model_config = ConfigDict(frozen=True)

    mode: Mode
    destination_id: str = Field(..., min_length=1)
    via_id: str = Field(..., min_length=1)


class RoutingPolicy(BaseModel):
    """Named-destination routing rules: entry gates, parking access and forced waypoints."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    gate_restrictions: dict[Mode, tuple[str, ...]] = Field(
        default_factory=lambda: {
            Mode.FOUR_WHEELER: ("gate1",),
            Mode.TWO_WHEELER: ("gate2",),
            Mode.WALKING: ("gate1", "gate2"),
        }
    )
    direct_access: dict[Mode, tuple[str, ...]] = Field(
        default_factory=lambda: {
            Mode.FOUR_WHEELER: ("devadan-parking", "architecture-parking"),
            Mode.TWO_WHEELER: ("devadan-parking",),
        }
    )
    multi_hop_overrides: tuple[MultiHopOverride, ...] = Field(
        default_factory=lambda: (
            MultiHopOverride(
                mode=Mode.TWO_WHEELER,
                destination_id="architecture-parking",
                via_id="devadan-parking",
            ),
        )
    )
    hybrid_parking: dict[Mode, str] = Field(
        default_factory=lambda: {
            Mode.FOUR_WHEELER: "parking-4wheeler",
            Mode.TWO_WHEELER: "parking-2wheeler",
        }
    )

    def allowed_gates(self, mode: Mode) -> tuple[str, ...]:
        return tuple(self.gate_restrictions.get(mode, ()))

    def is_permitted_gate(self, mode: Mode, start_id: str) -> bool:
        return start_id in self.allowed_gates(mode)

    def allows_direct_access(self, mode: Mode, destination_id: str) -> bool:
        return destination_id in self.direct_access.get(mode, ())

    def multi_hop_via(self, mode: Mode, destination_id: str) -> str | None:
        for override in self.multi_hop_overrides:
            if override.mode is mode and override.destination_id == destination_id:
                return override.via_id
        return None

    def parking_for(self, mode: Mode) -> str | None:
        return self.hybrid_parking.get(mode)


def parse_routing_policy(raw: object) -> RoutingPolicy:
    try:
        return RoutingPolicy.model_validate(raw)
    except ValidationError as exc:
        raise CampusDataError(
            reason_code="routing_policy_invalid",
            message="Routing policy failed validation.",
            details={"errors": exc.errors(include_url=False)},
        ) from exc


@lru_cache(maxsize=1)
def load_routing_policy() -> RoutingPolicy:
    configured = settings.routing_policy_path
    if not configured:
        return RoutingPolicy()
    path = Path(configured)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise CampusDataError(
            reason_code="routing_policy_invalid",
            message=f"Routing policy could not be read from {path}.",
            details={"path": str(path)},
        ) from exc
    return parse_routing_policy(raw)
