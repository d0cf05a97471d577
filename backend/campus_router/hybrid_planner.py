from __future__ import annotations

from dataclasses import dataclass

from .access_rules import TripContext
from .astar import SearchResult, astar_search
from .campus_graph import CampusGraph, nearest_node
from .data_errors import CampusDataError
from .destinations import Destination, DestinationCatalog, load_destination_catalog
from .logging_utils import log_event
from .models import HybridRoute, LatLng, RouteLeg, RouteStrategy
from .modes import FALLBACK_COLOR, REQUESTABLE_MODES, Mode, is_vehicle_mode, mode_color, mode_label, parse_mode
from .routing_policy import RoutingPolicy, load_routing_policy
from .settings import settings

_INSTRUCTION_VERBS: dict[Mode, str] = {
    Mode.WALKING: "Walk",
    Mode.TWO_WHEELER: "Ride 2-wheeler",
    Mode.FOUR_WHEELER: "Drive 4-wheeler",
}

_SearchKey = tuple[str, str, Mode, str | None, str | None]


@dataclass(frozen=True)
class _Endpoint:
    lat: float
    lng: float
    destination: Destination | None = None

    @property
    def label(self) -> str:
        return self.destination.name if self.destination is not None else "your location"


def _as_lat_lng(start: LatLng | tuple[float, float]) -> tuple[float, float]:
    if isinstance(start, LatLng):
        return start.lat, start.lng
    return float(start[0]), float(start[1])


def _endpoint_for(destination: Destination) -> _Endpoint:
    return _Endpoint(lat=destination.lat, lng=destination.lng, destination=destination)


def _instruction(mode: Mode, origin: _Endpoint, target: _Endpoint) -> str:
    verb = _INSTRUCTION_VERBS.get(mode, "Travel")
    return f"{verb} from {origin.label} to {target.label}"


class _PlanRun:
    """State for one ``plan`` call; identical searches are answered from the memo."""

    def __init__(self, graph: CampusGraph) -> None:
        self.graph = graph
        self._memo: dict[_SearchKey, SearchResult] = {}
        self._snaps: dict[tuple[float, float], str | None] = {}

    def _snap(self, point: _Endpoint) -> str | None:
        key = (point.lat, point.lng)
        if key not in self._snaps:
            self._snaps[key] = nearest_node(self.graph, point.lat, point.lng)[0]
        return self._snaps[key]

    def search(self, origin: _Endpoint, target: _Endpoint, mode: Mode) -> SearchResult:
        start_id = self._snap(origin)
        goal_id = self._snap(target)
        if start_id is None or goal_id is None:
            return SearchResult(path=(), distance_m=0.0, time_s=0.0, found=False, reason="missing_node")
        key: _SearchKey = (
            start_id,
            goal_id,
            mode,
            origin.destination.id if origin.destination is not None else None,
            target.destination.id if target.destination is not None else None,
        )
        cached = self._memo.get(key)
        if cached is not None:
            return cached
        trip = TripContext(start=origin.destination, end=target.destination)
        result = astar_search(self.graph, start_id, goal_id, mode, trip)
        self._memo[key] = result
        return result

    @property
    def searches_run(self) -> int:
        return len(self._memo)

    def leg(
        self,
        result: SearchResult,
        mode: Mode,
        description: str,
        *,
        fallback: bool = False,
    ) -> RouteLeg:
        return RouteLeg(
            mode=mode,
            path=result.path,
            coordinates=tuple(self.graph.coordinates_for(result.path)),
            distance_m=result.distance_m,
            travel_time_s=result.time_s,
            color=FALLBACK_COLOR if fallback else mode_color(mode),
            description=description,
            fallback=fallback,
        )


def _compose(
    legs: list[RouteLeg],
    instructions: list[str],
    *,
    requested_mode: Mode,
    strategy: RouteStrategy,
) -> HybridRoute:
    found = bool(legs) and all(leg.path for leg in legs)
    return HybridRoute(
        legs=tuple(legs),
        total_distance_m=sum([leg.distance_m for leg in legs]),
        total_travel_time_s=sum([leg.travel_time_s for leg in legs]),
        found=found,
        instructions=tuple(instructions),
        requested_mode=requested_mode,
        strategy=strategy if found else "none",
    )


def _not_found(requested_mode: Mode, instructions: tuple[str, ...] = (), strategy: RouteStrategy = "none") -> HybridRoute:
    return HybridRoute(requested_mode=requested_mode, instructions=instructions, strategy=strategy)


class HybridRoutePlanner:
    """Composes vehicle and walking legs across the campus graph.

    Strategies run in a fixed order and the first success is returned: gate
    check, direct vehicle access, forced multi-hop waypoint, vehicle-to-parking
    then walk, a direct search in the requested mode, and finally a walking
    rescue marked as a fallback. A failed multi-leg strategy never leaks a
    partial route.
    """

    def __init__(
        self,
        graph: CampusGraph,
        policy: RoutingPolicy | None = None,
        *,
        catalog: DestinationCatalog | None = None,
    ) -> None:
        self.graph = graph
        self.policy = policy if policy is not None else load_routing_policy()
        self.catalog = catalog if catalog is not None else load_destination_catalog()

    def _gate_rejection(self, mode: Mode, start_destination: Destination) -> HybridRoute:
        allowed = self.policy.allowed_gates(mode)
        names = [self.catalog.get(gate_id).name if gate_id in self.catalog else gate_id for gate_id in allowed]
        if names:
            message = (
                f"{mode_label(mode)} trips cannot start from {start_destination.name}; "
                f"use {' or '.join(names)}."
            )
        else:
            message = f"{mode_label(mode)} trips cannot enter the campus from {start_destination.name}."
        log_event(
            "route_gate_rejected",
            mode=mode.value,
            start_destination_id=start_destination.id,
            allowed_gates=list(allowed),
        )
        return _not_found(mode, (message,), "gate_rejected")

    def _single_leg(
        self,
        run: _PlanRun,
        origin: _Endpoint,
        target: _Endpoint,
        mode: Mode,
        description: str,
        strategy: RouteStrategy,
        requested_mode: Mode,
    ) -> HybridRoute | None:
        result = run.search(origin, target, mode)
        if not result.found:
            return None
        return _compose(
            [run.leg(result, mode, description)],
            [_instruction(mode, origin, target)],
            requested_mode=requested_mode,
            strategy=strategy,
        )

    def _two_legs(
        self,
        run: _PlanRun,
        origin: _Endpoint,
        waypoint: _Endpoint,
        target: _Endpoint,
        first_mode: Mode,
        second_mode: Mode,
        descriptions: tuple[str, str],
        strategy: RouteStrategy,
        requested_mode: Mode,
    ) -> HybridRoute | None:
        first = run.search(origin, waypoint, first_mode)
        if not first.found:
            return None
        second = run.search(waypoint, target, second_mode)
        if not second.found:
            return None
        return _compose(
            [
                run.leg(first, first_mode, descriptions[0]),
                run.leg(second, second_mode, descriptions[1]),
            ],
            [
                _instruction(first_mode, origin, waypoint),
                _instruction(second_mode, waypoint, target),
            ],
            requested_mode=requested_mode,
            strategy=strategy,
        )

    def _plan(
        self,
        run: _PlanRun,
        origin: _Endpoint,
        destination: Destination,
        mode: Mode,
    ) -> HybridRoute | None:
        target = _endpoint_for(destination)
        label = mode_label(mode)
        vehicle = is_vehicle_mode(mode)

        if vehicle and self.policy.allows_direct_access(mode, destination.id):
            route = self._single_leg(
                run, origin, target, mode, f"{label} route to {destination.name}", "direct_access", mode
            )
            if route is not None:
                return route

        via_id = self.policy.multi_hop_via(mode, destination.id) if vehicle else None
        via = self.catalog.get(via_id) if via_id else None
        if via is not None:
            route = self._two_legs(
                run,
                origin,
                _endpoint_for(via),
                target,
                mode,
                mode,
                (
                    f"{label} route from {origin.label} to {via.name}",
                    f"{label} route from {via.name} to {destination.name}",
                ),
                "multi_hop",
                mode,
            )
            if route is not None:
                return route

        parking_id = self.policy.parking_for(mode) if vehicle else None
        parking = self.catalog.get(parking_id) if parking_id else None
        if parking is not None and parking.id != destination.id:
            route = self._two_legs(
                run,
                origin,
                _endpoint_for(parking),
                target,
                mode,
                Mode.WALKING,
                (
                    f"{label} route to {parking.name}",
                    f"Walking route from {parking.name} to {destination.name}",
                ),
                "hybrid",
                mode,
            )
            if route is not None:
                return route

        route = self._single_leg(run, origin, target, mode, f"{label} route to {destination.name}", "direct", mode)
        if route is not None:
            return route

        if mode is not Mode.WALKING and settings.walking_rescue_enabled:
            rescue = run.search(origin, target, Mode.WALKING)
            if rescue.found:
                return _compose(
                    [run.leg(rescue, Mode.WALKING, f"Walking route to {destination.name} (fallback)", fallback=True)],
                    [f"Walk directly to {destination.name} (fallback route)"],
                    requested_mode=mode,
                    strategy="walking_rescue",
                )
        return None

    def plan(
        self,
        start: LatLng | tuple[float, float],
        destination: Destination,
        mode: Mode | str,
        start_destination: Destination | None = None,
    ) -> HybridRoute:
        resolved_mode = parse_mode(mode)
        # 4PA and 4PI only tag edges; a trip is requested as W, 2 or 4.
        if resolved_mode not in REQUESTABLE_MODES:
            raise CampusDataError(
                reason_code="mode_unsupported",
                message=f"Unsupported trip mode {mode!r}; use W, 2 or 4.",
                details={"mode": str(mode)},
            )

        if is_vehicle_mode(resolved_mode) and start_destination is not None:
            if not self.policy.is_permitted_gate(resolved_mode, start_destination.id):
                return self._gate_rejection(resolved_mode, start_destination)

        lat, lng = _as_lat_lng(start)
        origin = _Endpoint(lat=lat, lng=lng, destination=start_destination)
        run = _PlanRun(self.graph)
        route = self._plan(run, origin, destination, resolved_mode)
        if route is None:
            log_event(
                "route_not_found",
                mode=resolved_mode.value,
                destination_id=destination.id,
                searches=run.searches_run,
            )
            return _not_found(resolved_mode)
        log_event(
            "route_planned",
            mode=resolved_mode.value,
            destination_id=destination.id,
            strategy=route.strategy,
            legs=len(route.legs),
            total_distance_m=round(route.total_distance_m, 2),
            total_travel_time_s=round(route.total_travel_time_s, 2),
            searches=run.searches_run,
        )
        return route


def plan_route(
    graph: CampusGraph,
    start: LatLng | tuple[float, float],
    destination: Destination,
    mode: Mode | str,
    start_destination: Destination | None = None,
    policy: RoutingPolicy | None = None,
    *,
    catalog: DestinationCatalog | None = None,
) -> HybridRoute:
    return HybridRoutePlanner(graph, policy, catalog=catalog).plan(start, destination, mode, start_destination)
