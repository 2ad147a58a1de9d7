"""Routing engine, request coordinator and metrics providers."""

from .coordinator import RequestCoordinator, RequestState, RoutingOutcome
from .engine import RoutingEngine, rank_routes
from .metrics import (
    HaversineRouteMetricsProvider,
    OSRMRouteMetricsProvider,
    RouteMetricsProvider,
    StaticRouteMetricsProvider,
    get_metrics_provider,
)

__all__ = [
    "RequestCoordinator",
    "RequestState",
    "RoutingOutcome",
    "RoutingEngine",
    "rank_routes",
    "RouteMetricsProvider",
    "StaticRouteMetricsProvider",
    "HaversineRouteMetricsProvider",
    "OSRMRouteMetricsProvider",
    "get_metrics_provider",
]
