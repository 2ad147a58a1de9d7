"""Request lifecycle for emergency routing: Idle -> Loading -> Success | Empty | Failed."""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Optional

from ...config import settings
from ...errors import (
    NO_ROUTES_FOUND,
    ROUTING_FAILED,
    CatalogUnavailable,
    InvalidLocation,
    MedRouteError,
    MissingCategory,
)
from ...models.domain import Location, RankedRoute, RoutingResult
from ..catalog.base import FacilityCatalog
from ..location import resolve_category, resolve_location
from .engine import RoutingEngine

logger = logging.getLogger(__name__)

NO_FACILITIES_FOUND_REASON = "No nearby medical facilities found. Try widening the search or checking your location."
NO_FACILITIES_REACHABLE_REASON = "No facilities reachable. Please try again or widen the search."
COMPUTATION_FAILED_REASON = "Routing computation failed. Please try again later."


class RequestState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class RoutingOutcome:
    request_id: str
    sequence: int
    state: RequestState
    category: Optional[str] = None
    location: Optional[Location] = None
    result: Optional[RoutingResult] = None
    reason: Optional[str] = None
    error_code: Optional[str] = None
    superseded: bool = False

    @property
    def routes(self) -> tuple[RankedRoute, ...]:
        return self.result.routes if self.result else ()


Listener = Callable[[RequestState, Optional[RoutingOutcome]], None]


class RequestCoordinator:
    """Drives one routing request at a time through resolution, catalog lookup and ranking.

    Every ``submit`` takes a new sequence number. Only the outcome of the highest sequence
    number updates ``state``/``latest_outcome`` and reaches listeners; older requests still
    finish and return their outcome to their own caller, flagged ``superseded``.
    """

    def __init__(
        self,
        catalog: FacilityCatalog,
        engine: RoutingEngine,
        max_results: int | None = None,
    ) -> None:
        self.catalog = catalog
        self.engine = engine
        self.max_results = max_results or settings.catalog_max_results
        self._lock = threading.Lock()
        # Held from a state change until its listeners have run, so they see transitions in order.
        self._notify_lock = threading.RLock()
        self._sequence = 0
        self._state = RequestState.IDLE
        self._latest_outcome: Optional[RoutingOutcome] = None
        self._listeners: list[Listener] = []

    @property
    def state(self) -> RequestState:
        return self._state

    @property
    def latest_outcome(self) -> Optional[RoutingOutcome]:
        return self._latest_outcome

    @property
    def sequence(self) -> int:
        return self._sequence

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a state-transition callback; returns a function that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, state: RequestState, outcome: Optional[RoutingOutcome]) -> None:
        for listener in list(self._listeners):
            try:
                listener(state, outcome)
            except Exception:
                logger.exception("Routing state listener raised")

    def _begin(self) -> int:
        with self._notify_lock:
            with self._lock:
                self._sequence += 1
                sequence = self._sequence
                self._state = RequestState.LOADING
                self._latest_outcome = None
            self._notify(RequestState.LOADING, None)
        return sequence

    def _complete(self, outcome: RoutingOutcome) -> RoutingOutcome:
        with self._notify_lock:
            with self._lock:
                stale = outcome.sequence != self._sequence
                if not stale:
                    self._state = outcome.state
                    self._latest_outcome = outcome
            if not stale:
                self._notify(outcome.state, outcome)
                return outcome
        logger.info(
            f"Discarding outcome of superseded request {outcome.request_id} "
            f"(sequence {outcome.sequence}, latest {self._sequence})"
        )
        return replace(outcome, superseded=True)

    def submit(
        self,
        latitude: Any = None,
        longitude: Any = None,
        address: Any = None,
        emergency_type: Any = None,
    ) -> RoutingOutcome:
        sequence = self._begin()
        request_id = uuid.uuid4().hex
        outcome = self._run(request_id, sequence, latitude, longitude, address, emergency_type)
        logger.info(
            f"Routing request {request_id} finished: {outcome.state.value} "
            f"({len(outcome.routes)} routes{', ' + outcome.error_code if outcome.error_code else ''})"
        )
        return self._complete(outcome)

    def _run(
        self,
        request_id: str,
        sequence: int,
        latitude: Any,
        longitude: Any,
        address: Any,
        emergency_type: Any,
    ) -> RoutingOutcome:
        def failed(error: MedRouteError, **extra: Any) -> RoutingOutcome:
            return RoutingOutcome(
                request_id=request_id,
                sequence=sequence,
                state=RequestState.FAILED,
                reason=error.message,
                error_code=error.code,
                **extra,
            )

        try:
            category = resolve_category(emergency_type)
            location = resolve_location(latitude, longitude, address)
        except (MissingCategory, InvalidLocation) as exc:
            return failed(exc)

        try:
            candidates = list(self.catalog.nearby(location, self.max_results))
        except CatalogUnavailable as exc:
            logger.warning(f"Facility catalog unavailable for request {request_id}: {exc.detail}")
            return failed(exc, category=category, location=location)
        except Exception as exc:
            logger.exception(f"Facility catalog lookup raised for request {request_id}")
            return failed(CatalogUnavailable(str(exc)), category=category, location=location)

        if not candidates:
            return RoutingOutcome(
                request_id=request_id,
                sequence=sequence,
                state=RequestState.EMPTY,
                category=category,
                location=location,
                result=RoutingResult(request_id=request_id),
                reason=NO_FACILITIES_FOUND_REASON,
                error_code=NO_ROUTES_FOUND,
            )

        try:
            result = self.engine.route(location, category, candidates, request_id=request_id)
        except Exception:
            logger.exception(f"Routing engine raised for request {request_id}")
            return RoutingOutcome(
                request_id=request_id,
                sequence=sequence,
                state=RequestState.FAILED,
                category=category,
                location=location,
                reason=COMPUTATION_FAILED_REASON,
                error_code=ROUTING_FAILED,
            )

        if result.is_empty:
            return RoutingOutcome(
                request_id=request_id,
                sequence=sequence,
                state=RequestState.EMPTY,
                category=category,
                location=location,
                result=result,
                reason=NO_FACILITIES_REACHABLE_REASON,
                error_code=NO_ROUTES_FOUND,
            )
        return RoutingOutcome(
            request_id=request_id,
            sequence=sequence,
            state=RequestState.SUCCESS,
            category=category,
            location=location,
            result=result,
        )
