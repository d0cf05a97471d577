from __future__ import annotations

import pytest

from campus_fixtures import campus_destinations, campus_features
from campus_router.campus_graph import CampusGraph, build_campus_graph
from campus_router.destinations import DestinationCatalog
from campus_router.routing_policy import RoutingPolicy


@pytest.fixture
def campus_catalog() -> DestinationCatalog:
    return DestinationCatalog(campus_destinations())


@pytest.fixture
def campus_graph() -> CampusGraph:
    lines, points = campus_features()
    return build_campus_graph(lines, points, snap_tolerance_m=2.0)


@pytest.fixture
def campus_policy() -> RoutingPolicy:
    return RoutingPolicy()
