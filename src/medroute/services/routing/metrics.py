"""Route metrics providers: fixed demo data, straight-line estimates and live OSRM."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping

import httpx

from ...config import settings
from ...errors import LookupFailed
from ...models.domain import Facility, Location, RouteMetrics, TrafficState
from ..geospatial import distance_km
from .osrm_client import OSRMClient


# Straight-line distance understates road distance; typical urban detour ratio.
ROAD_DETOUR_FACTOR = 1.3

LIGHT_TRAFFIC_MIN_KMH = 40.0
MODERATE_TRAFFIC_MIN_KMH = 20.0


def classify_traffic(distance_meters: float, duration_seconds: float) -> TrafficState:
    """Map average speed over the route to a coarse traffic state."""

    if duration_seconds <= 0 or distance_meters <= 0:
        return TrafficState.UNKNOWN
    speed_kmh = (distance_meters / 1000.0) / (duration_seconds / 3600.0)
    if speed_kmh >= LIGHT_TRAFFIC_MIN_KMH:
        return TrafficState.LIGHT
    if speed_kmh >= MODERATE_TRAFFIC_MIN_KMH:
        return TrafficState.MODERATE
    return TrafficState.HEAVY


class RouteMetricsProvider(ABC):
    """Contract for per-facility route metrics lookups.

    ``measure`` must be safe to call from several threads at once and raises
    ``LookupFailed`` (or any transport error) when metrics cannot be produced.
    """

    @abstractmethod
    def measure(self, origin: Location, destination: Facility) -> RouteMetrics:
        raise NotImplementedError


class StaticRouteMetricsProvider(RouteMetricsProvider):
    """Deterministic provider returning pre-computed metrics keyed by facility id."""

    def __init__(self, table: Mapping[str, RouteMetrics]) -> None:
        self.table = dict(table)

    def measure(self, origin: Location, destination: Facility) -> RouteMetrics:
        metrics = self.table.get(destination.id)
        if metrics is None:
            raise LookupFailed(f"No route metrics recorded for facility '{destination.id}'.")
        return metrics


SIMULATED_METRICS: dict[str, RouteMetrics] = {
    "hosp1": RouteMetrics("hosp1", distance_meters=3200.0, duration_seconds=480.0, traffic_state=TrafficState.LIGHT),
    "hosp2": RouteMetrics("hosp2", distance_meters=4100.0, duration_seconds=600.0, traffic_state=TrafficState.MODERATE),
    "hosp3": RouteMetrics("hosp3", distance_meters=5500.0, duration_seconds=720.0, traffic_state=TrafficState.LIGHT),
}


class HaversineRouteMetricsProvider(RouteMetricsProvider):
    """Offline estimate: detour-scaled great-circle distance at a fixed average speed."""

    def __init__(self, average_speed_kmh: float | None = None, detour_factor: float = ROAD_DETOUR_FACTOR) -> None:
        self.average_speed_kmh = average_speed_kmh or settings.average_speed_kmh
        self.detour_factor = detour_factor

    def measure(self, origin: Location, destination: Facility) -> RouteMetrics:
        if origin.coordinates is None:
            raise LookupFailed("Distance estimate requires origin coordinates.")
        if destination.coordinates is None:
            raise LookupFailed(f"Facility '{destination.id}' has no coordinates.")

        road_km = distance_km(origin.coordinates, destination.coordinates) * self.detour_factor
        duration_seconds = (road_km / self.average_speed_kmh) * 3600.0
        return RouteMetrics(
            facility_id=destination.id,
            distance_meters=road_km * 1000.0,
            duration_seconds=duration_seconds,
            traffic_state=TrafficState.UNKNOWN,
        )


class OSRMRouteMetricsProvider(RouteMetricsProvider):
    def __init__(self, client: OSRMClient | None = None) -> None:
        self.client = client or OSRMClient()

    def measure(self, origin: Location, destination: Facility) -> RouteMetrics:
        if origin.coordinates is None:
            raise LookupFailed("OSRM routing requires origin coordinates.")
        if destination.coordinates is None:
            raise LookupFailed(f"Facility '{destination.id}' has no coordinates.")

        try:
            data = self.client.route(origin.coordinates, destination.coordinates)
        except (httpx.HTTPError, ConnectionError, ValueError) as exc:
            raise LookupFailed(f"OSRM lookup failed for facility '{destination.id}': {exc}") from exc

        routes = data.get("routes") or []
        if not routes:
            raise LookupFailed(f"OSRM returned no route to facility '{destination.id}'.")
        best = routes[0]
        try:
            distance_meters = float(best["distance"])
            duration_seconds = float(best["duration"])
        except (KeyError, TypeError, ValueError) as exc:
            raise LookupFailed(f"Malformed OSRM route for facility '{destination.id}': {exc}") from exc

        return RouteMetrics(
            facility_id=destination.id,
            distance_meters=distance_meters,
            duration_seconds=duration_seconds,
            traffic_state=classify_traffic(distance_meters, duration_seconds),
        )


def get_metrics_provider(name: str | None = None) -> RouteMetricsProvider:
    match name or settings.metrics_provider:
        case "simulated":
            return StaticRouteMetricsProvider(SIMULATED_METRICS)
        case "haversine":
            return HaversineRouteMetricsProvider()
        case "osrm":
            return OSRMRouteMetricsProvider()
        case other:
            raise ValueError(f"Unknown metrics provider '{other}'.")
