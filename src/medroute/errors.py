"""Error taxonomy for emergency routing requests."""

from __future__ import annotations


class MedRouteError(Exception):
    """Base class for request-scoped routing errors."""

    code = "routing_error"
    message = "Failed to calculate routes. Please try again later."

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.message)
        self.detail = detail or self.message


class MissingCategory(MedRouteError):
    code = "missing_category"
    message = "Please specify the emergency type."


class InvalidLocation(MedRouteError):
    code = "invalid_location"
    message = "User location is missing or invalid."


class CatalogUnavailable(MedRouteError):
    """Facility lookup failed at the transport level (not the same as zero results)."""

    code = "catalog_unavailable"
    message = "Routing computation failed: facility directory is unavailable."


class LookupFailed(MedRouteError):
    """A single facility's route metrics could not be obtained."""

    code = "lookup_failed"
    message = "Route metrics unavailable for facility."


# Outcome codes without an exception class.
NO_ROUTES_FOUND = "no_routes_found"
ROUTING_FAILED = "routing_failed"
