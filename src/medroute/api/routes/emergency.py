"""Emergency facility routing endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from ...dependencies import get_coordinator
from ...errors import CatalogUnavailable, InvalidLocation, MissingCategory
from ...schemas.routing import EmergencyRouteRequest, EmergencyRouteResponse
from ...services.outputs.formatter import outcome_to_response
from ...services.routing.coordinator import RequestCoordinator, RoutingOutcome

router = APIRouter(prefix="/emergency", tags=["emergency"])

_FAILURE_STATUS = {
    MissingCategory.code: status.HTTP_400_BAD_REQUEST,
    InvalidLocation.code: status.HTTP_400_BAD_REQUEST,
    CatalogUnavailable.code: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _to_json_response(outcome: RoutingOutcome) -> JSONResponse:
    response = outcome_to_response(outcome)
    status_code = status.HTTP_200_OK
    if response.status == "failed":
        status_code = _FAILURE_STATUS.get(response.error_code or "", status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))


@router.post("/routes", response_model=EmergencyRouteResponse, status_code=status.HTTP_200_OK)
def find_routes(
    payload: EmergencyRouteRequest,
    coordinator: RequestCoordinator = Depends(get_coordinator),
) -> JSONResponse:
    """Rank the fastest reachable emergency facilities for a location."""
    outcome = coordinator.submit(
        latitude=payload.latitude,
        longitude=payload.longitude,
        address=payload.address,
        emergency_type=payload.emergency_type,
    )
    return _to_json_response(outcome)


@router.get("/routes", response_model=EmergencyRouteResponse, status_code=status.HTTP_200_OK)
def find_routes_from_query(
    lat: str | None = Query(default=None, description="User latitude"),
    lng: str | None = Query(default=None, description="User longitude"),
    address: str | None = Query(default=None, description="User address when coordinates are unknown"),
    emergency_type: str | None = Query(default=None, alias="emergencyType", description="Emergency category"),
    coordinator: RequestCoordinator = Depends(get_coordinator),
) -> JSONResponse:
    """Same as the POST endpoint, driven by URL query parameters.

    Raw strings are passed through so unparseable coordinates fall back to the address
    instead of being rejected by request validation.
    """
    outcome = coordinator.submit(latitude=lat, longitude=lng, address=address, emergency_type=emergency_type)
    return _to_json_response(outcome)
