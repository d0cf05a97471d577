from __future__ import annotations

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_out_dir() -> str:
    # Keep logs and generated artifacts in backend/out by default.
    return str(Path(__file__).resolve().parents[1] / "out")


def _default_network_path() -> str:
    return str(Path(_default_out_dir()) / "campus_network.geojson")


class Settings(BaseSettings):
    """Validated settings (env-driven), keeping campus routing knobs out of code."""

    model_config = SettingsConfigDict(
        # Support both "repo root/.env" and "backend/.env" (local dev)
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    out_dir: str = Field(default_factory=_default_out_dir, alias="OUT_DIR")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    campus_network_path: str = Field(default_factory=_default_network_path, alias="CAMPUS_NETWORK_PATH")
    destination_catalog_path: str = Field(default="", alias="DESTINATION_CATALOG_PATH")
    routing_policy_path: str = Field(default="", alias="ROUTING_POLICY_PATH")

    # Coordinates closer than this resolve to the same graph node.
    graph_snap_tolerance_m: float = Field(default=2.0, ge=0.5, le=25.0, alias="GRAPH_SNAP_TOLERANCE_M")
    # ~55 m latitude buckets; snapping scans as many rings as the tolerance needs.
    graph_grid_bucket_deg: float = Field(default=0.0005, gt=0.0, le=1.0, alias="GRAPH_GRID_BUCKET_DEG")

    astar_max_iterations: int = Field(default=10_000, ge=1, le=5_000_000, alias="ASTAR_MAX_ITERATIONS")

    speed_walking_mps: float = Field(default=1.4, gt=0.0, le=10.0, alias="SPEED_WALKING_MPS")
    speed_two_wheeler_mps: float = Field(default=5.0, gt=0.0, le=40.0, alias="SPEED_TWO_WHEELER_MPS")
    speed_four_wheeler_mps: float = Field(default=8.0, gt=0.0, le=40.0, alias="SPEED_FOUR_WHEELER_MPS")
    speed_four_wheeler_parking_mps: float = Field(
        default=4.0,
        gt=0.0,
        le=40.0,
        alias="SPEED_FOUR_WHEELER_PARKING_MPS",
    )
    speed_four_wheeler_pickup_mps: float = Field(
        default=6.0,
        gt=0.0,
        le=40.0,
        alias="SPEED_FOUR_WHEELER_PICKUP_MPS",
    )

    walking_rescue_enabled: bool = Field(default=True, alias="WALKING_RESCUE_ENABLED")

    @model_validator(mode="after")
    def _normalize_paths(self) -> "Settings":
        self.campus_network_path = str(self.campus_network_path or "").strip()
        self.destination_catalog_path = str(self.destination_catalog_path or "").strip()
        self.routing_policy_path = str(self.routing_policy_path or "").strip()
        self.log_level = str(self.log_level or "INFO").strip().upper() or "INFO"
        return self


settings = Settings()
