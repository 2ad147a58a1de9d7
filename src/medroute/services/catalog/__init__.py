"""Facility catalog implementations."""

from .base import FacilityCatalog
from .memory import (
    SAMPLE_FACILITIES,
    FileFacilityCatalog,
    InMemoryFacilityCatalog,
    sample_catalog,
    select_nearby,
)
from .overpass import OverpassFacilityCatalog

__all__ = [
    "FacilityCatalog",
    "InMemoryFacilityCatalog",
    "FileFacilityCatalog",
    "OverpassFacilityCatalog",
    "SAMPLE_FACILITIES",
    "sample_catalog",
    "select_nearby",
]
