from __future__ import annotations

# ruff: noqa: E402
import argparse
import json
import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from campus_router.data_errors import CampusDataError
from campus_router.destinations import load_destination_catalog
from campus_router.formatting import format_distance, format_travel_time
from campus_router.hybrid_planner import HybridRoutePlanner
from campus_router.network_loader import build_graph_from_features, load_network_features
from campus_router.routing_policy import load_routing_policy


def _parse_origin(raw: str) -> tuple[float, float]:
    parts = [part.strip() for part in raw.split(",")]
    if len(parts) != 2:
        raise argparse.ArgumentTypeError("origin must be LAT,LNG")
    try:
        return float(parts[0]), float(parts[1])
    except ValueError as exc:
        raise argparse.ArgumentTypeError("origin must be LAT,LNG") from exc


def plan(
    *,
    network_path: Path,
    destination_id: str,
    mode: str,
    start_destination_id: str | None = None,
    origin: tuple[float, float] | None = None,
) -> dict[str, Any]:
    catalog = load_destination_catalog()
    destination = catalog.require(destination_id)
    start_destination = catalog.require(start_destination_id) if start_destination_id else None
    if origin is None:
        if start_destination is None:
            raise CampusDataError(
                reason_code="origin_missing",
                message="Provide --from or --origin.",
            )
        origin = (start_destination.lat, start_destination.lng)
    graph = build_graph_from_features(load_network_features(network_path))
    planner = HybridRoutePlanner(graph, load_routing_policy(), catalog=catalog)
    route = planner.plan(origin, destination, mode, start_destination)
    payload = route.model_dump(mode="json")
    payload["total_distance_text"] = format_distance(route.total_distance_m)
    payload["total_travel_time_text"] = format_travel_time(route.total_travel_time_s)
    return payload


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Plan a campus route and print it as JSON.")
    parser.add_argument("--network", type=Path, required=True, help="GeoJSON FeatureCollection of the campus network.")
    parser.add_argument("--to", dest="destination_id", required=True, help="Destination id.")
    origin = parser.add_mutually_exclusive_group()
    origin.add_argument("--from", dest="start_destination_id", default=None, help="Start destination id (e.g. gate1).")
    origin.add_argument("--origin", type=_parse_origin, default=None, help="Start coordinate as LAT,LNG.")
    parser.add_argument("--mode", choices=["W", "2", "4"], default="W")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        payload = plan(
            network_path=args.network,
            destination_id=args.destination_id,
            mode=args.mode,
            start_destination_id=args.start_destination_id,
            origin=args.origin,
        )
    except CampusDataError as exc:
        print(json.dumps({"reason_code": exc.reason_code, "message": exc.message}, indent=2))
        return 2
    print(json.dumps(payload, indent=2))
    return 0 if payload.get("found") else 1


if __name__ == "__main__":
    raise SystemExit(main())
