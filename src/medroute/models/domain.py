"""Domain models for locations, facilities and ranked routes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

# (latitude, longitude)
Coordinates = tuple[float, float]


class TrafficState(str, Enum):
    LIGHT = "Light"
    MODERATE = "Moderate"
    HEAVY = "Heavy"
    UNKNOWN = "Unknown"


@dataclass(slots=True, frozen=True)
class Location:
    """Resolved origin of a routing request.

    At least one of ``coordinates`` or ``address`` is set. ``address`` doubles as the
    human-readable label; coordinate-only locations get a synthesized one.
    """

    coordinates: Optional[Coordinates] = None
    address: Optional[str] = None

    def __post_init__(self) -> None:
        if self.coordinates is None and not self.address:
            raise ValueError("Location requires coordinates or an address.")
        if self.coordinates is not None:
            lat, lon = self.coordinates
            if not -90.0 <= lat <= 90.0 or not -180.0 <= lon <= 180.0:
                raise ValueError(f"Coordinates out of range: {self.coordinates}")

    @property
    def latitude(self) -> Optional[float]:
        return self.coordinates[0] if self.coordinates else None

    @property
    def longitude(self) -> Optional[float]:
        return self.coordinates[1] if self.coordinates else None

    @property
    def label(self) -> str:
        if self.address:
            return self.address
        lat, lon = self.coordinates  # type: ignore[misc]
        return f"Coords: {lat:.4f}, {lon:.4f}"


@dataclass(slots=True, frozen=True)
class Facility:
    """Emergency medical facility as supplied by a catalog."""

    id: str
    name: str
    address: str
    phone: Optional[str] = None
    coordinates: Optional[Coordinates] = None


@dataclass(slots=True, frozen=True)
class RouteMetrics:
    facility_id: str
    distance_meters: float
    duration_seconds: float
    traffic_state: TrafficState = TrafficState.UNKNOWN

    def __post_init__(self) -> None:
        if self.distance_meters < 0 or self.duration_seconds < 0:
            raise ValueError(
                f"Route metrics for '{self.facility_id}' must be non-negative "
                f"(distance={self.distance_meters}, duration={self.duration_seconds})."
            )


@dataclass(slots=True, frozen=True)
class RankedRoute:
    facility: Facility
    metrics: RouteMetrics
    is_primary: bool


@dataclass(slots=True, frozen=True)
class RoutingResult:
    """Ranked snapshot for one request: primary first, then ascending duration."""

    request_id: str
    routes: tuple[RankedRoute, ...] = ()
    dropped_facility_ids: tuple[str, ...] = field(default_factory=tuple)

    @property
    def primary(self) -> Optional[RankedRoute]:
        return self.routes[0] if self.routes else None

    @property
    def alternatives(self) -> tuple[RankedRoute, ...]:
        return self.routes[1:]

    @property
    def is_empty(self) -> bool:
        return not self.routes
