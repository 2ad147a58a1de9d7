"""Emergency routing request/response schemas."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class EmergencyRouteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    latitude: Optional[float] = Field(default=None, description="User latitude in decimal degrees.")
    longitude: Optional[float] = Field(default=None, description="User longitude in decimal degrees.")
    address: Optional[str] = Field(default=None, description="Free-text address, used when coordinates are absent.")
    emergency_type: Optional[str] = Field(
        default=None,
        alias="emergencyType",
        description="Emergency category (e.g. cardiac, trauma, general).",
    )


class FacilityModel(BaseModel):
    id: str
    name: str
    address: str
    phone: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class RankedRouteModel(BaseModel):
    facility: FacilityModel
    is_primary: bool
    distance_meters: float
    duration_seconds: float
    traffic_state: str
    distance_km: float
    duration_min: float
    distance: str = Field(..., description="Display distance, e.g. '3.2 km'.")
    time: str = Field(..., description="Display travel time, e.g. '8 mins'.")
    traffic_status: str = Field(..., description="Display traffic label, e.g. 'Light traffic'.")


class EmergencyRouteResponse(BaseModel):
    status: Literal["success", "empty", "failed"]
    routes: List[RankedRouteModel] = Field(default_factory=list)
    reason: Optional[str] = None
    error_code: Optional[str] = None
    request_id: str
    emergency_type: Optional[str] = None
    location_label: Optional[str] = None
    dropped_count: int = 0
