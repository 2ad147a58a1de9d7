"""Live facility catalog backed by the OpenStreetMap Overpass API."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from ...config import settings
from ...errors import CatalogUnavailable
from ...models.domain import Facility, Location
from .base import FacilityCatalog
from .memory import select_nearby

logger = logging.getLogger(__name__)

USER_AGENT = "medroute/0.1 (emergency facility routing)"


def build_query(lat: float, lon: float, radius_m: int, timeout_seconds: int) -> str:
    return f"""
    [out:json][timeout:{timeout_seconds}];
    (
      node["amenity"="hospital"](around:{radius_m},{lat},{lon});
      way["amenity"="hospital"](around:{radius_m},{lat},{lon});
      relation["amenity"="hospital"](around:{radius_m},{lat},{lon});
      node["healthcare"="hospital"](around:{radius_m},{lat},{lon});
      way["healthcare"="hospital"](around:{radius_m},{lat},{lon});
      relation["healthcare"="hospital"](around:{radius_m},{lat},{lon});
    );
    out center tags;
    """


def parse_elements(payload: dict) -> list[Facility]:
    """Convert Overpass elements into facilities, skipping ones without a position."""

    facilities: dict[str, Facility] = {}
    for element in payload.get("elements", []):
        tags = element.get("tags", {})
        lat = element.get("lat")
        lon = element.get("lon")
        if lat is None or lon is None:
            center = element.get("center", {})
            lat = center.get("lat")
            lon = center.get("lon")
        if lat is None or lon is None:
            continue

        facility_id = f"osm-{element.get('type', 'node')}-{element.get('id')}"
        if facility_id in facilities:
            continue
        street = " ".join(part for part in [tags.get("addr:housenumber"), tags.get("addr:street")] if part)
        address = ", ".join(part for part in [street, tags.get("addr:city"), tags.get("addr:state")] if part)
        facilities[facility_id] = Facility(
            id=facility_id,
            name=tags.get("name") or "Nearby Hospital",
            address=address or "Address not available",
            phone=tags.get("phone") or tags.get("contact:phone"),
            coordinates=(float(lat), float(lon)),
        )
    return list(facilities.values())


class OverpassFacilityCatalog(FacilityCatalog):
    def __init__(
        self,
        endpoints: Sequence[str] | None = None,
        search_radius_km: float | None = None,
        timeout: float | None = None,
    ) -> None:
        self.endpoints = tuple(endpoints or settings.overpass_endpoints)
        if not self.endpoints:
            raise ValueError("No Overpass endpoints configured.")
        self.search_radius_km = search_radius_km or settings.catalog_search_radius_km
        self.timeout = timeout or settings.overpass_timeout_seconds

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=5.0),
            headers={"User-Agent": USER_AGENT, "Content-Type": "text/plain; charset=utf-8"},
        )

    def _run_query(self, query: str) -> dict:
        errors: list[str] = []
        client = self._get_client()
        try:
            for endpoint in self.endpoints:
                try:
                    response = client.post(endpoint, content=query.encode("utf-8"))
                    response.raise_for_status()
                    payload = response.json()
                    if isinstance(payload, dict):
                        return payload
                    errors.append(f"{endpoint}: unexpected payload type {type(payload).__name__}")
                except (httpx.HTTPError, ValueError) as exc:
                    logger.warning(f"Overpass endpoint {endpoint} failed: {exc}")
                    errors.append(f"{endpoint}: {exc}")
        finally:
            client.close()
        raise CatalogUnavailable(f"All Overpass endpoints failed: {'; '.join(errors)}")

    def nearby(self, location: Location, max_results: int) -> Sequence[Facility]:
        if location.coordinates is None:
            raise CatalogUnavailable("Facility search by address requires geocoding, which is not available.")
        lat, lon = location.coordinates
        radius_m = int(self.search_radius_km * 1000)
        query = build_query(lat, lon, radius_m, int(self.timeout))
        facilities = parse_elements(self._run_query(query))
        logger.info(f"Overpass returned {len(facilities)} facilities within {radius_m} m of {location.label}")
        return select_nearby(facilities, location, max_results, self.search_radius_km)
