"""Contract for facility catalog implementations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from ...models.domain import Facility, Location


class FacilityCatalog(ABC):
    """Supplies candidate facilities near a location.

    Implementations raise ``CatalogUnavailable`` on transport failures and return an
    empty sequence when the lookup succeeded but nothing matched.
    """

    @abstractmethod
    def nearby(self, location: Location, max_results: int) -> Sequence[Facility]:
        raise NotImplementedError
