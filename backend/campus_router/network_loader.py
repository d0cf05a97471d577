from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

import ijson

from .campus_graph import DEFAULT_LINE_MODES, DEFAULT_SURFACE, CampusGraph, LineFeature, PointFeature, build_campus_graph
from .data_errors import CampusDataError
from .logging_utils import log_event
from .settings import settings


@dataclass(frozen=True)
class NetworkFeatures:
    lines: tuple[LineFeature, ...]
    points: tuple[PointFeature, ...]
    skipped: int = 0
    source: str = ""


def _coerce_position(raw: object) -> tuple[float, float] | None:
    if not isinstance(raw, (list, tuple)) or len(raw) < 2:
        return None
    try:
        # ijson hands numbers back as Decimal.
        lng = float(raw[0])
        lat = float(raw[1])
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(lng) and math.isfinite(lat)):
        return None
    return lng, lat


def _coerce_modes(raw: object) -> tuple[str, ...]:
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, (list, tuple)):
        return DEFAULT_LINE_MODES
    # An explicit empty list leaves the segment open to every mode.
    return tuple(str(item).strip() for item in raw if str(item).strip())


def _optional_text(raw: object) -> str | None:
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None


def parse_feature(raw: object) -> LineFeature | PointFeature | None:
    if not isinstance(raw, Mapping):
        return None
    geometry = raw.get("geometry")
    if not isinstance(geometry, Mapping):
        return None
    props = raw.get("properties")
    if not isinstance(props, Mapping):
        props = {}
    geom_type = geometry.get("type")
    coords = geometry.get("coordinates")
    if geom_type == "LineString":
        if not isinstance(coords, (list, tuple)):
            return None
        positions = [_coerce_position(item) for item in coords]
        if len(positions) < 2 or any(pos is None for pos in positions):
            return None
        return LineFeature(
            coordinates=tuple(pos for pos in positions if pos is not None),
            modes=_coerce_modes(props.get("mode")),
            surface=_optional_text(props.get("surface")) or DEFAULT_SURFACE,
            name=_optional_text(props.get("name")),
        )
    if geom_type == "Point":
        position = _coerce_position(coords)
        if position is None:
            return None
        return PointFeature(coordinates=position, name=_optional_text(props.get("name")))
    return None


def _collect(raw_features: Iterable[Any], *, source: str) -> NetworkFeatures:
    lines: list[LineFeature] = []
    points: list[PointFeature] = []
    skipped = 0
    for raw in raw_features:
        feature = parse_feature(raw)
        if isinstance(feature, LineFeature):
            lines.append(feature)
        elif isinstance(feature, PointFeature):
            points.append(feature)
        else:
            skipped += 1
    log_event(
        "network_features_loaded",
        source=source,
        line_features=len(lines),
        point_features=len(points),
        skipped_features=skipped,
    )
    return NetworkFeatures(lines=tuple(lines), points=tuple(points), skipped=skipped, source=source)


def parse_feature_collection(collection: Mapping[str, Any], *, source: str = "<memory>") -> NetworkFeatures:
    features = collection.get("features") if isinstance(collection, Mapping) else None
    if not isinstance(features, list):
        raise CampusDataError(
            reason_code="network_invalid",
            message="Network must be a GeoJSON FeatureCollection with a 'features' list.",
            details={"source": source},
        )
    return _collect(features, source=source)


def load_network_features(path: str | Path) -> NetworkFeatures:
    """Stream features from a GeoJSON FeatureCollection on disk."""
    network_path = Path(path)
    if not network_path.exists():
        raise CampusDataError(
            reason_code="network_unavailable",
            message=f"Campus network not found at {network_path}.",
            details={"path": str(network_path)},
        )
    try:
        with network_path.open("rb") as fh:
            return _collect(ijson.items(fh, "features.item"), source=str(network_path))
    except ijson.JSONError as exc:
        raise CampusDataError(
            reason_code="network_invalid",
            message=f"Campus network at {network_path} is not valid JSON.",
            details={"path": str(network_path), "error": str(exc)},
        ) from exc
    except OSError as exc:
        raise CampusDataError(
            reason_code="network_unavailable",
            message=f"Campus network at {network_path} could not be read.",
            details={"path": str(network_path), "error": str(exc)},
        ) from exc


def build_graph_from_features(features: NetworkFeatures, snap_tolerance_m: float | None = None) -> CampusGraph:
    return build_campus_graph(features.lines, features.points, snap_tolerance_m)


@dataclass(frozen=True)
class LoadedNetwork:
    graph: CampusGraph
    features: NetworkFeatures


@lru_cache(maxsize=1)
def load_campus_network() -> LoadedNetwork:
    path = settings.campus_network_path
    if not path:
        raise CampusDataError(
            reason_code="network_unavailable",
            message="CAMPUS_NETWORK_PATH is not configured.",
        )
    features = load_network_features(path)
    if not features.lines:
        raise CampusDataError(
            reason_code="network_invalid",
            message="Campus network contains no usable LineString features.",
            details={"path": path, "skipped_features": features.skipped},
        )
    return LoadedNetwork(graph=build_graph_from_features(features), features=features)


def load_campus_graph() -> CampusGraph:
    return load_campus_network().graph


def campus_graph_status() -> tuple[bool, str]:
    try:
        load_campus_network()
    except CampusDataError as exc:
        return False, exc.reason_code
    return True, "ok"
