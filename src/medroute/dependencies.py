"""Construction of the process-wide routing collaborators from settings."""

from __future__ import annotations

import logging
from functools import lru_cache

from .config import settings
from .services.catalog import (
    FacilityCatalog,
    FileFacilityCatalog,
    OverpassFacilityCatalog,
    sample_catalog,
)
from .services.routing.coordinator import RequestCoordinator
from .services.routing.engine import RoutingEngine
from .services.routing.metrics import get_metrics_provider

logger = logging.getLogger(__name__)


def build_catalog(backend: str | None = None) -> FacilityCatalog:
    match backend or settings.catalog_backend:
        case "sample":
            return sample_catalog(search_radius_km=settings.catalog_search_radius_km)
        case "file":
            return FileFacilityCatalog(
                source=settings.facilities_file,
                search_radius_km=settings.catalog_search_radius_km,
            )
        case "overpass":
            return OverpassFacilityCatalog()
        case other:
            raise ValueError(f"Unknown catalog backend '{other}'.")


def build_coordinator() -> RequestCoordinator:
    engine = RoutingEngine(
        metrics_provider=get_metrics_provider(),
        max_parallel_lookups=settings.max_parallel_lookups,
        lookup_timeout_seconds=settings.lookup_timeout_seconds,
    )
    logger.info(
        f"Routing configured: catalog={settings.catalog_backend}, metrics={settings.metrics_provider}, "
        f"parallel={engine.max_parallel_lookups}, timeout={engine.lookup_timeout_seconds}s"
    )
    return RequestCoordinator(
        catalog=build_catalog(),
        engine=engine,
        max_results=settings.catalog_max_results,
    )


@lru_cache()
def get_coordinator() -> RequestCoordinator:
    """Cached coordinator shared by API requests (FastAPI dependency)."""
    return build_coordinator()
