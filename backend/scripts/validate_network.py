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

from campus_router.campus_graph import nearest_node
from campus_router.data_errors import CampusDataError
from campus_router.destinations import load_destination_catalog
from campus_router.network_loader import build_graph_from_features, load_network_features


def validate(
    *,
    network_path: Path,
    snap_tolerance_m: float | None = None,
    max_destination_dist_m: float = 25.0,
) -> dict[str, Any]:
    features = load_network_features(network_path)
    graph = build_graph_from_features(features, snap_tolerance_m)
    diagnostics = graph.diagnostics.as_dict()

    far_destinations: list[dict[str, Any]] = []
    for dest in load_destination_catalog():
        node_id, dist = nearest_node(graph, dest.lat, dest.lng)
        if node_id is None or dist > max_destination_dist_m:
            far_destinations.append({"id": dest.id, "nearest_node_m": round(dist, 2)})

    return {
        "network_path": str(network_path),
        "line_features": len(features.lines),
        "point_features": len(features.points),
        "skipped_features": features.skipped,
        **diagnostics,
        "far_destinations": far_destinations,
        "fully_connected": diagnostics["isolated_nodes"] == 0 and diagnostics["component_count"] <= 1,
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Build the campus graph and report its connectivity.")
    parser.add_argument("--network", type=Path, required=True, help="GeoJSON FeatureCollection of the campus network.")
    parser.add_argument(
        "--snap-tolerance-m",
        type=float,
        default=None,
        help="Override GRAPH_SNAP_TOLERANCE_M for this run.",
    )
    parser.add_argument(
        "--max-destination-dist-m",
        type=float,
        default=25.0,
        help="Report destinations farther than this from their nearest graph node.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit non-zero when the graph has isolated nodes or more than one component.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        report = validate(
            network_path=args.network,
            snap_tolerance_m=args.snap_tolerance_m,
            max_destination_dist_m=max(0.0, float(args.max_destination_dist_m)),
        )
    except CampusDataError as exc:
        print(json.dumps({"reason_code": exc.reason_code, "message": exc.message}, indent=2))
        return 2
    print(json.dumps(report, indent=2))
    if args.strict and not report["fully_connected"]:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
