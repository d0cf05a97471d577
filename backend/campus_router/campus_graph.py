from __future__ import annotations

import math
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Literal

from .access_rules import AccessRule, parse_mode_tags
from .geo import METERS_PER_DEGREE, grid_key, grid_neighbourhood, grid_ring, haversine_m
from .logging_utils import log_event
from .settings import settings

NodeRole = Literal["intersection", "endpoint", "destination"]

DEFAULT_LINE_MODES: tuple[str, ...] = ("W",)
DEFAULT_SURFACE = "unknown"
# Ring scans that visit more cells than this per occupied bucket fall back to a node scan.
_RING_SCAN_CELL_FACTOR = 4


@dataclass(frozen=True)
class LineFeature:
    # (lng, lat) pairs, GeoJSON order.
    coordinates: tuple[tuple[float, float], ...]
    modes: tuple[str, ...] = DEFAULT_LINE_MODES
    surface: str = DEFAULT_SURFACE
    name: str | None = None


@dataclass(frozen=True)
class PointFeature:
    coordinates: tuple[float, float]
    name: str | None = None


@dataclass(frozen=True)
class Node:
    id: str
    lat: float
    lng: float
    role: NodeRole
    index: int
    name: str | None = None


@dataclass(frozen=True)
class Edge:
    id: str
    source: str
    target: str
    length_m: float
    modes: tuple[str, ...]
    access: tuple[AccessRule, ...]
    surface: str
    geometry: tuple[tuple[float, float], tuple[float, float]]
    name: str | None = None


@dataclass(frozen=True)
class GraphDiagnostics:
    node_count: int
    edge_count: int
    connected_nodes: int
    isolated_nodes: int
    component_count: int
    largest_component_nodes: int
    snapped_vertices: int
    merged_hops: int

    def as_dict(self) -> dict[str, int]:
        return {
            "node_count": self.node_count,
            "edge_count": self.edge_count,
            "connected_nodes": self.connected_nodes,
            "isolated_nodes": self.isolated_nodes,
            "component_count": self.component_count,
            "largest_component_nodes": self.largest_component_nodes,
            "snapped_vertices": self.snapped_vertices,
            "merged_hops": self.merged_hops,
        }


@dataclass(frozen=True)
class CampusGraph:
    nodes: dict[str, Node]
    edges: tuple[Edge, ...]
    adjacency: dict[str, tuple[str, ...]]
    edge_index: dict[tuple[str, str], Edge]
    grid_index: dict[tuple[int, int], tuple[str, ...]]
    component_by_node: dict[str, int]
    component_sizes: dict[int, int]
    diagnostics: GraphDiagnostics
    snap_tolerance_m: float = 2.0
    grid_bucket_deg: float = 0.0005

    def edge(self, source: str, target: str) -> Edge | None:
        return self.edge_index.get((source, target))

    def same_component(self, a: str, b: str) -> bool:
        comp_a = self.component_by_node.get(a)
        return comp_a is not None and comp_a == self.component_by_node.get(b)

    def coordinates_for(self, path: Iterable[str]) -> list[tuple[float, float]]:
        """(lat, lng) for each node id in ``path``."""
        out: list[tuple[float, float]] = []
        for node_id in path:
            node = self.nodes[node_id]
            out.append((node.lat, node.lng))
        return out


def node_id_for(lat: float, lng: float) -> str:
    return f"node_{lat:.8f}_{lng:.8f}"


def edge_id_for(source: str, target: str) -> str:
    return f"edge_{source}_{target}"


@dataclass
class _HopRecord:
    source: str
    target: str
    modes: list[str]
    surface: str
    name: str | None
    geometry: tuple[tuple[float, float], tuple[float, float]]


@dataclass
class _GraphAccumulator:
    snap_tolerance_m: float
    bucket_deg: float
    nodes: dict[str, Node] = field(default_factory=dict)
    adjacency: dict[str, list[str]] = field(default_factory=dict)
    grid: dict[tuple[int, int], list[str]] = field(default_factory=dict)
    hops: dict[tuple[str, str], _HopRecord] = field(default_factory=dict)
    snapped_vertices: int = 0
    merged_hops: int = 0

    def _insert(self, lat: float, lng: float, role: NodeRole, name: str | None) -> Node:
        node = Node(
            id=node_id_for(lat, lng),
            lat=lat,
            lng=lng,
            role=role,
            index=len(self.nodes),
            name=name,
        )
        self.nodes[node.id] = node
        self.adjacency[node.id] = []
        self.grid.setdefault(grid_key(lat, lng, self.bucket_deg), []).append(node.id)
        return node

    def _nearest_within_tolerance(self, lat: float, lng: float) -> Node | None:
        best: Node | None = None
        best_distance = float("inf")
        for key in grid_neighbourhood(lat, lng, radius_m=self.snap_tolerance_m, bucket_deg=self.bucket_deg):
            for node_id in self.grid.get(key, ()):
                node = self.nodes[node_id]
                distance = haversine_m(lat, lng, node.lat, node.lng)
                if distance > self.snap_tolerance_m:
                    continue
                if (
                    best is None
                    or distance < best_distance
                    or (distance == best_distance and node.index < best.index)
                ):
                    best = node
                    best_distance = distance
        return best

    def add_destination(self, point: PointFeature) -> None:
        lng, lat = float(point.coordinates[0]), float(point.coordinates[1])
        if node_id_for(lat, lng) in self.nodes:
            return
        self._insert(lat, lng, "destination", point.name)

    def resolve(self, lat: float, lng: float, role: NodeRole) -> str:
        existing = self._nearest_within_tolerance(lat, lng)
        if existing is not None:
            self.snapped_vertices += 1
            return existing.id
        node_id = node_id_for(lat, lng)
        if node_id in self.nodes:
            # Only reachable with a zero tolerance and sub-millimetre differences.
            self.snapped_vertices += 1
            return node_id
        return self._insert(lat, lng, role, None).id

    def add_line(self, line: LineFeature) -> None:
        coords = line.coordinates
        last = len(coords) - 1
        resolved: list[str] = []
        for i, (lng, lat) in enumerate(coords):
            role: NodeRole = "endpoint" if i in (0, last) else "intersection"
            resolved.append(self.resolve(float(lat), float(lng), role))
        modes = list(line.modes)
        for i in range(last):
            a, b = resolved[i], resolved[i + 1]
            if a == b:
                continue
            geometry = (
                (float(coords[i][0]), float(coords[i][1])),
                (float(coords[i + 1][0]), float(coords[i + 1][1])),
            )
            record = self.hops.get((a, b)) or self.hops.get((b, a))
            if record is not None:
                if not modes or not record.modes:
                    # An untagged hop is open to every mode.
                    record.modes.clear()
                else:
                    for tag in modes:
                        if tag not in record.modes:
                            record.modes.append(tag)
                self.merged_hops += 1
                continue
            self.hops[(a, b)] = _HopRecord(
                source=a,
                target=b,
                modes=list(dict.fromkeys(modes)),
                surface=line.surface or DEFAULT_SURFACE,
                name=line.name,
                geometry=geometry,
            )
            self.adjacency[a].append(b)
            self.adjacency[b].append(a)


def _compute_component_index(
    nodes: dict[str, Node],
    adjacency: dict[str, tuple[str, ...]],
) -> tuple[dict[str, int], dict[int, int]]:
    component_by_node: dict[str, int] = {}
    component_sizes: dict[int, int] = {}
    component_idx = 0
    for node_id in nodes:
        if node_id in component_by_node:
            continue
        component_idx += 1
        q: deque[str] = deque([node_id])
        size = 0
        while q:
            current = q.popleft()
            if current in component_by_node:
                continue
            component_by_node[current] = component_idx
            size += 1
            for nxt in adjacency.get(current, ()):
                if nxt not in component_by_node:
                    q.append(nxt)
        component_sizes[component_idx] = size
    return component_by_node, component_sizes


def _finalize_graph(acc: _GraphAccumulator) -> CampusGraph:
    nodes = acc.nodes
    edges: list[Edge] = []
    edge_index: dict[tuple[str, str], Edge] = {}
    for record in acc.hops.values():
        a = nodes[record.source]
        b = nodes[record.target]
        length_m = haversine_m(a.lat, a.lng, b.lat, b.lng)
        modes = tuple(record.modes)
        access = parse_mode_tags(modes)
        forward = Edge(
            id=edge_id_for(a.id, b.id),
            source=a.id,
            target=b.id,
            length_m=length_m,
            modes=modes,
            access=access,
            surface=record.surface,
            geometry=record.geometry,
            name=record.name,
        )
        backward = Edge(
            id=edge_id_for(b.id, a.id),
            source=b.id,
            target=a.id,
            length_m=length_m,
            modes=modes,
            access=access,
            surface=record.surface,
            geometry=(record.geometry[1], record.geometry[0]),
            name=record.name,
        )
        for edge in (forward, backward):
            edges.append(edge)
            edge_index[(edge.source, edge.target)] = edge

    adjacency = {node_id: tuple(neighbours) for node_id, neighbours in acc.adjacency.items()}
    grid_index = {key: tuple(values) for key, values in acc.grid.items()}
    component_by_node, component_sizes = _compute_component_index(nodes, adjacency)
    isolated = sum(1 for neighbours in adjacency.values() if not neighbours)
    diagnostics = GraphDiagnostics(
        node_count=len(nodes),
        edge_count=len(edges),
        connected_nodes=len(nodes) - isolated,
        isolated_nodes=isolated,
        component_count=len(component_sizes),
        largest_component_nodes=max(component_sizes.values(), default=0),
        snapped_vertices=acc.snapped_vertices,
        merged_hops=acc.merged_hops,
    )
    return CampusGraph(
        nodes=nodes,
        edges=tuple(edges),
        adjacency=adjacency,
        edge_index=edge_index,
        grid_index=grid_index,
        component_by_node=component_by_node,
        component_sizes=component_sizes,
        diagnostics=diagnostics,
        snap_tolerance_m=acc.snap_tolerance_m,
        grid_bucket_deg=acc.bucket_deg,
    )


def build_campus_graph(
    lines: Iterable[LineFeature],
    points: Iterable[PointFeature] = (),
    snap_tolerance_m: float | None = None,
) -> CampusGraph:
    """Build the routing graph.

    Destination points become nodes first and are never merged with each other.
    Line vertices then snap to the nearest existing node within the tolerance
    (lowest insertion index on exact ties); every distinct hop yields a forward
    and a backward edge, and repeated hops only widen the mode tags.
    """
    tolerance = float(settings.graph_snap_tolerance_m if snap_tolerance_m is None else snap_tolerance_m)
    acc = _GraphAccumulator(
        snap_tolerance_m=max(0.0, tolerance),
        bucket_deg=float(settings.graph_grid_bucket_deg),
    )
    for point in points:
        acc.add_destination(point)
    for line in lines:
        if len(line.coordinates) < 2:
            continue
        acc.add_line(line)
    graph = _finalize_graph(acc)
    log_event("campus_graph_built", snap_tolerance_m=acc.snap_tolerance_m, **graph.diagnostics.as_dict())
    return graph


def _closer(candidate: Node, distance: float, best: Node | None, best_distance: float) -> bool:
    if distance < best_distance:
        return True
    return distance == best_distance and best is not None and candidate.index < best.index


def _closest_by_scan(graph: CampusGraph, lat: float, lng: float) -> tuple[Node | None, float]:
    best: Node | None = None
    best_distance = math.inf
    for node in graph.nodes.values():
        distance = haversine_m(lat, lng, node.lat, node.lng)
        if _closer(node, distance, best, best_distance):
            best, best_distance = node, distance
    return best, best_distance


def nearest_node(graph: CampusGraph, lat: float, lng: float) -> tuple[str | None, float]:
    """Closest node by great-circle distance; the earliest inserted node wins ties.

    Grid buckets are scanned ring by ring around the query until no unvisited
    ring can hold a closer node. Queries far outside the indexed area exhaust the
    ring budget and compare every node directly.
    """
    if not graph.nodes or not (math.isfinite(lat) and math.isfinite(lng)):
        return None, math.inf
    bucket = graph.grid_bucket_deg
    center = grid_key(lat, lng, bucket)
    max_radius = max(max(abs(key[0] - center[0]), abs(key[1] - center[1])) for key in graph.grid_index)
    cell_budget = _RING_SCAN_CELL_FACTOR * len(graph.grid_index) + 9
    # Half a bucket's east-west width bounds the extra distance each ring adds.
    ring_floor_m = 0.5 * bucket * METERS_PER_DEGREE * max(1e-6, math.cos(math.radians(lat)))

    best: Node | None = None
    best_distance = math.inf
    cells = 0
    for radius in range(max_radius + 1):
        if best is not None and (radius - 1) * ring_floor_m > best_distance:
            break
        ring = grid_ring(center, radius)
        cells += len(ring)
        if cells > cell_budget:
            best, best_distance = _closest_by_scan(graph, lat, lng)
            break
        for key in ring:
            for node_id in graph.grid_index.get(key, ()):
                node = graph.nodes[node_id]
                distance = haversine_m(lat, lng, node.lat, node.lng)
                if _closer(node, distance, best, best_distance):
                    best, best_distance = node, distance
    return (best.id if best is not None else None), best_distance
