"""In-memory facility catalogs (static sample data and directory files)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Sequence

from ...data.facility_repository import load_facilities
from ...errors import CatalogUnavailable
from ...models.domain import Facility, Location
from ..geospatial import distance_km
from .base import FacilityCatalog

logger = logging.getLogger(__name__)

SAMPLE_FACILITIES: tuple[Facility, ...] = (
    Facility(
        id="hosp1",
        name="City General Hospital",
        address="123 Main St, Cityville",
        phone="555-1234",
        coordinates=(34.0522, -118.2437),
    ),
    Facility(
        id="hosp2",
        name="St. Luke's Medical Center",
        address="456 Oak Ave, Cityville",
        phone="555-5678",
        coordinates=(34.0580, -118.2500),
    ),
    Facility(
        id="hosp3",
        name="County Urgent Care",
        address="789 Pine Rd, Suburbia",
        phone="555-9101",
        coordinates=(34.0450, -118.2300),
    ),
)


def select_nearby(
    facilities: Iterable[Facility],
    location: Location,
    max_results: int,
    search_radius_km: float | None = None,
) -> list[Facility]:
    """Pick up to ``max_results`` facilities for a location.

    With coordinates, facilities are filtered to the radius and ordered by straight-line
    distance (ties by id). Address-only locations carry no distance, so order is by id.
    """

    if max_results < 1:
        return []

    if location.coordinates is None:
        return sorted(facilities, key=lambda facility: facility.id)[:max_results]

    scored: list[tuple[float, str, Facility]] = []
    for facility in facilities:
        if facility.coordinates is None:
            continue
        km = distance_km(location.coordinates, facility.coordinates)
        if search_radius_km is not None and km > search_radius_km:
            continue
        scored.append((km, facility.id, facility))
    scored.sort(key=lambda item: (item[0], item[1]))
    return [facility for _, _, facility in scored[:max_results]]


class InMemoryFacilityCatalog(FacilityCatalog):
    def __init__(self, facilities: Iterable[Facility], search_radius_km: float | None = None) -> None:
        self.facilities = tuple(facilities)
        self.search_radius_km = search_radius_km

    def nearby(self, location: Location, max_results: int) -> Sequence[Facility]:
        return select_nearby(self.facilities, location, max_results, self.search_radius_km)


class FileFacilityCatalog(FacilityCatalog):
    """Catalog backed by an Excel/CSV facility directory, loaded on first use."""

    def __init__(self, source: Path | None = None, search_radius_km: float | None = None) -> None:
        self.source = source
        self.search_radius_km = search_radius_km

    def nearby(self, location: Location, max_results: int) -> Sequence[Facility]:
        try:
            facilities = load_facilities(self.source)
        except (OSError, ValueError) as exc:
            logger.error(f"Failed to load facility directory: {exc}")
            raise CatalogUnavailable(f"Facility directory could not be loaded: {exc}") from exc
        return select_nearby(facilities, location, max_results, self.search_radius_km)


def sample_catalog(search_radius_km: float | None = None) -> InMemoryFacilityCatalog:
    return InMemoryFacilityCatalog(SAMPLE_FACILITIES, search_radius_km=search_radius_km)
