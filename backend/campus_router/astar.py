from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass
from math import inf
from typing import Literal

from .access_rules import TripContext, is_allowed
from .campus_graph import CampusGraph, nearest_node
from .geo import haversine_m
from .logging_utils import log_event
from .modes import Mode, mode_speed_mps
from .settings import settings

SearchReason = Literal["ok", "missing_node", "disconnected", "no_path", "iteration_cap"]


@dataclass(frozen=True)
class SearchResult:
    path: tuple[str, ...]
    distance_m: float
    time_s: float
    found: bool
    iterations: int = 0
    reason: SearchReason = "ok"


def _not_found(reason: SearchReason, iterations: int = 0) -> SearchResult:
    return SearchResult(path=(), distance_m=0.0, time_s=0.0, found=False, iterations=iterations, reason=reason)


def _reconstruct(parents: dict[str, str], goal_id: str) -> tuple[str, ...]:
    path = [goal_id]
    while path[-1] in parents:
        path.append(parents[path[-1]])
    path.reverse()
    return tuple(path)


def path_distance_m(graph: CampusGraph, path: tuple[str, ...]) -> float:
    return sum([graph.edge_index[(a, b)].length_m for a, b in zip(path, path[1:])])


def astar_search(
    graph: CampusGraph,
    start_id: str,
    goal_id: str,
    mode: Mode,
    trip: TripContext | None = None,
    *,
    max_iterations: int | None = None,
) -> SearchResult:
    """Time-cost A* from ``start_id`` to ``goal_id`` over edges ``mode`` may use.

    Edges refused by the access rules are treated as absent. The heuristic is the
    great-circle distance to the goal at the mode's speed. Among equal-priority
    entries the node discovered first is expanded first.
    """
    if start_id not in graph.nodes or goal_id not in graph.nodes:
        return _not_found("missing_node")
    if start_id == goal_id:
        return SearchResult(path=(start_id,), distance_m=0.0, time_s=0.0, found=True)
    if not graph.same_component(start_id, goal_id):
        return _not_found("disconnected")

    trip = trip or TripContext()
    speed = mode_speed_mps(mode)
    limit = max(1, int(max_iterations if max_iterations is not None else settings.astar_max_iterations))
    goal = graph.nodes[goal_id]

    def heuristic(node_id: str) -> float:
        node = graph.nodes[node_id]
        return haversine_m(node.lat, node.lng, goal.lat, goal.lng) / speed

    counter = 0
    heap: list[tuple[float, int, str]] = [(heuristic(start_id), counter, start_id)]
    g_score: dict[str, float] = {start_id: 0.0}
    parents: dict[str, str] = {}
    closed: set[str] = set()
    iterations = 0

    while heap:
        _, _, current = heapq.heappop(heap)
        if current in closed:
            continue
        if iterations >= limit:
            log_event(
                "astar_iteration_cap_reached",
                level=logging.WARNING,
                start_id=start_id,
                goal_id=goal_id,
                mode=mode.value,
                iterations=iterations,
            )
            return _not_found("iteration_cap", iterations)
        iterations += 1
        if current == goal_id:
            path = _reconstruct(parents, goal_id)
            return SearchResult(
                path=path,
                distance_m=path_distance_m(graph, path),
                time_s=g_score[goal_id],
                found=True,
                iterations=iterations,
            )
        closed.add(current)
        base = g_score[current]
        for neighbour in graph.adjacency.get(current, ()):
            if neighbour in closed:
                continue
            edge = graph.edge_index.get((current, neighbour))
            if edge is None or not is_allowed(edge.access, mode, trip):
                continue
            tentative = base + edge.length_m / speed
            if tentative < g_score.get(neighbour, inf):
                g_score[neighbour] = tentative
                parents[neighbour] = current
                counter += 1
                heapq.heappush(heap, (tentative + heuristic(neighbour), counter, neighbour))

    return _not_found("no_path", iterations)


def search_between(
    graph: CampusGraph,
    start_lat: float,
    start_lng: float,
    goal_lat: float,
    goal_lng: float,
    mode: Mode,
    trip: TripContext | None = None,
    *,
    max_iterations: int | None = None,
) -> SearchResult:
    start_id, _ = nearest_node(graph, start_lat, start_lng)
    goal_id, _ = nearest_node(graph, goal_lat, goal_lng)
    if start_id is None or goal_id is None:
        return _not_found("missing_node")
    return astar_search(graph, start_id, goal_id, mode, trip, max_iterations=max_iterations)
