"""Rendering of routing outcomes into presentation units."""

from __future__ import annotations

import math

from ...models.domain import RankedRoute, TrafficState
from ...schemas.routing import EmergencyRouteResponse, FacilityModel, RankedRouteModel
from ..routing.coordinator import RequestState, RoutingOutcome

TRAFFIC_LABELS = {
    TrafficState.LIGHT: "Light traffic",
    TrafficState.MODERATE: "Moderate traffic",
    TrafficState.HEAVY: "Heavy traffic",
    TrafficState.UNKNOWN: "Not available",
}


def format_distance(distance_meters: float) -> str:
    return f"{distance_meters / 1000.0:.1f} km"


def format_duration(duration_seconds: float) -> str:
    minutes = max(1, math.ceil(duration_seconds / 60.0))
    return "1 min" if minutes == 1 else f"{minutes} mins"


def route_to_model(route: RankedRoute) -> RankedRouteModel:
    facility = route.facility
    metrics = route.metrics
    lat, lon = facility.coordinates if facility.coordinates else (None, None)
    return RankedRouteModel(
        facility=FacilityModel(
            id=facility.id,
            name=facility.name,
            address=facility.address,
            phone=facility.phone,
            latitude=lat,
            longitude=lon,
        ),
        is_primary=route.is_primary,
        distance_meters=metrics.distance_meters,
        duration_seconds=metrics.duration_seconds,
        traffic_state=metrics.traffic_state.value,
        distance_km=round(metrics.distance_meters / 1000.0, 2),
        duration_min=round(metrics.duration_seconds / 60.0, 1),
        distance=format_distance(metrics.distance_meters),
        time=format_duration(metrics.duration_seconds),
        traffic_status=TRAFFIC_LABELS[metrics.traffic_state],
    )


def outcome_to_response(outcome: RoutingOutcome) -> EmergencyRouteResponse:
    if outcome.state not in (RequestState.SUCCESS, RequestState.EMPTY, RequestState.FAILED):
        raise ValueError(f"Outcome in non-terminal state '{outcome.state.value}' cannot be rendered.")
    result = outcome.result
    return EmergencyRouteResponse(
        status=outcome.state.value,
        routes=[route_to_model(route) for route in outcome.routes],
        reason=outcome.reason,
        error_code=outcome.error_code,
        request_id=outcome.request_id,
        emergency_type=outcome.category,
        location_label=outcome.location.label if outcome.location else None,
        dropped_count=len(result.dropped_facility_ids) if result else 0,
    )
