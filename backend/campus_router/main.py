from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .data_errors import CampusDataError, http_status_for, normalize_reason_code
from .destinations import DESTINATION_CATEGORIES, load_destination_catalog
from .formatting import format_distance, format_travel_time
from .hybrid_planner import HybridRoutePlanner
from .logging_utils import log_event
from .models import (
    CategoryInfo,
    CategoryListResponse,
    DestinationListResponse,
    GraphStatusResponse,
    ModeInfo,
    ModeListResponse,
    RouteRequest,
    RouteResponse,
)
from .modes import Mode, mode_catalog
from .network_loader import load_campus_network
from .routing_policy import load_routing_policy


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Warm the caches; a missing network is reported by /graph/status rather than failing startup.
    try:
        load_campus_network()
    except CampusDataError as exc:
        log_event("campus_network_unavailable", reason_code=exc.reason_code, detail=exc.message)
    yield


app = FastAPI(title="Campus Router", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _http_error(exc: CampusDataError) -> HTTPException:
    code = normalize_reason_code(exc.reason_code)
    return HTTPException(
        status_code=http_status_for(code),
        detail={"reason_code": code, "message": exc.message},
    )


@app.get("/")
async def root() -> dict[str, str]:
    return {"message": "Campus router is running. Visit /docs for the API UI.", "docs": "/docs"}


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/modes", response_model=ModeListResponse)
async def list_modes() -> ModeListResponse:
    return ModeListResponse(modes=[ModeInfo(**item) for item in mode_catalog()])


@app.get("/destinations", response_model=DestinationListResponse)
def list_destinations(category: str | None = None, q: str | None = None) -> DestinationListResponse:
    try:
        catalog = load_destination_catalog()
    except CampusDataError as exc:
        raise _http_error(exc) from exc
    items = catalog.filter_by_category(category)
    if q:
        matches = {dest.id for dest in catalog.search(q)}
        items = [dest for dest in items if dest.id in matches]
    return DestinationListResponse(destinations=items, count=len(items))


@app.get("/destinations/categories", response_model=CategoryListResponse)
async def list_categories() -> CategoryListResponse:
    return CategoryListResponse(categories=[CategoryInfo(**item) for item in DESTINATION_CATEGORIES])


@app.get("/graph/status", response_model=GraphStatusResponse)
def graph_status() -> GraphStatusResponse:
    try:
        network = load_campus_network()
    except CampusDataError as exc:
        return GraphStatusResponse(available=False, reason=normalize_reason_code(exc.reason_code))
    return GraphStatusResponse(
        available=True,
        reason="ok",
        source=network.features.source,
        skipped_features=network.features.skipped,
        **network.graph.diagnostics.as_dict(),
    )


@app.post("/route", response_model=RouteResponse)
def compute_route(req: RouteRequest) -> RouteResponse:
    try:
        catalog = load_destination_catalog()
        destination = catalog.require(req.destination_id)
        start_destination = catalog.require(req.start_destination_id) if req.start_destination_id else None
        if req.origin is not None:
            start = (req.origin.lat, req.origin.lng)
        elif start_destination is not None:
            start = (start_destination.lat, start_destination.lng)
        else:
            raise CampusDataError(
                reason_code="origin_missing",
                message="Provide either an origin coordinate or a start destination.",
            )
        graph = load_campus_network().graph
        policy = load_routing_policy()
    except CampusDataError as exc:
        raise _http_error(exc) from exc

    mode = Mode(req.mode)
    log_event(
        "api_route_request",
        destination_id=destination.id,
        mode=mode.value,
        start_destination_id=start_destination.id if start_destination is not None else None,
        has_origin=req.origin is not None,
    )
    route = HybridRoutePlanner(graph, policy, catalog=catalog).plan(start, destination, mode, start_destination)
    return RouteResponse(
        route=route,
        total_distance_text=format_distance(route.total_distance_m),
        total_travel_time_text=format_travel_time(route.total_travel_time_s),
    )
