"""Validation of raw request input into a resolved location and emergency category."""

from __future__ import annotations

from typing import Any, Optional

from ..errors import InvalidLocation, MissingCategory
from ..models.domain import Location
from .geospatial import is_valid_coordinate


def _coerce_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def resolve_location(raw_lat: Any, raw_lng: Any, raw_address: Any = None) -> Location:
    """Build a ``Location`` from raw latitude/longitude/address input.

    Coordinates win when both parse as finite, in-range numbers; otherwise a non-blank
    address yields an address-only location. Anything else raises ``InvalidLocation``.
    """

    address = raw_address.strip() if isinstance(raw_address, str) else None
    lat = _coerce_float(raw_lat)
    lon = _coerce_float(raw_lng)

    if lat is not None and lon is not None and is_valid_coordinate(lat, lon):
        return Location(coordinates=(lat, lon), address=address or None)
    if address:
        return Location(coordinates=None, address=address)
    raise InvalidLocation()


def resolve_category(raw_category: Any) -> str:
    """Return the normalized emergency category or raise ``MissingCategory``."""

    if raw_category is None:
        raise MissingCategory()
    category = str(raw_category).strip().lower()
    if not category:
        raise MissingCategory()
    return category
