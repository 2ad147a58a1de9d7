"""Concurrent route metrics lookup and ranking of candidate facilities."""

from __future__ import annotations

import logging
import time
import uuid
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Sequence

from ...config import settings
from ...models.domain import Facility, Location, RankedRoute, RouteMetrics, RoutingResult
from .metrics import RouteMetricsProvider

logger = logging.getLogger(__name__)

# Hard ceiling on concurrent lookups regardless of configuration.
MAX_PARALLEL_LOOKUPS_CEILING = 16


def ranking_key(facility: Facility, metrics: RouteMetrics) -> tuple[float, float, str]:
    """Sort key: fastest first, then shortest, then facility id."""
    return (metrics.duration_seconds, metrics.distance_meters, facility.id)


def rank_routes(measured: Sequence[tuple[Facility, RouteMetrics]]) -> tuple[RankedRoute, ...]:
    ordered = sorted(measured, key=lambda pair: ranking_key(*pair))
    return tuple(
        RankedRoute(facility=facility, metrics=metrics, is_primary=index == 0)
        for index, (facility, metrics) in enumerate(ordered)
    )


class RoutingEngine:
    """Measures every candidate facility in parallel and ranks the reachable ones.

    Lookups that raise, return anything but metrics for the requested facility, or run
    longer than the per-lookup timeout (measured from their own start) are dropped; the
    result lists them in ``dropped_facility_ids``. Output order
    depends only on the ranking key, never on completion order.
    """

    def __init__(
        self,
        metrics_provider: RouteMetricsProvider,
        max_parallel_lookups: int | None = None,
        lookup_timeout_seconds: float | None = None,
    ) -> None:
        configured = max_parallel_lookups if max_parallel_lookups is not None else settings.max_parallel_lookups
        if configured < 1:
            raise ValueError("max_parallel_lookups must be at least 1.")
        self.metrics_provider = metrics_provider
        self.max_parallel_lookups = min(configured, MAX_PARALLEL_LOOKUPS_CEILING)
        self.lookup_timeout_seconds = (
            lookup_timeout_seconds if lookup_timeout_seconds is not None else settings.lookup_timeout_seconds
        )
        if self.lookup_timeout_seconds <= 0:
            raise ValueError("lookup_timeout_seconds must be positive.")

    def _lookup(self, origin: Location, facility: Facility) -> RouteMetrics | None:
        started = time.monotonic()
        try:
            metrics = self.metrics_provider.measure(origin, facility)
        except Exception as exc:
            logger.warning(f"Route metrics lookup failed for facility '{facility.id}': {exc}")
            return None

        elapsed = time.monotonic() - started
        if elapsed > self.lookup_timeout_seconds:
            logger.warning(
                f"Route metrics lookup for facility '{facility.id}' took {elapsed:.2f}s "
                f"(timeout {self.lookup_timeout_seconds:.2f}s); dropping"
            )
            return None
        if not isinstance(metrics, RouteMetrics):
            logger.warning(
                f"Metrics provider returned {type(metrics).__name__} for facility '{facility.id}'; dropping"
            )
            return None
        if metrics.facility_id != facility.id:
            logger.warning(
                f"Metrics provider answered for '{metrics.facility_id}' when asked for '{facility.id}'; dropping"
            )
            return None
        return metrics

    def route(
        self,
        location: Location,
        category: str,
        candidates: Sequence[Facility],
        request_id: str | None = None,
    ) -> RoutingResult:
        request_id = request_id or uuid.uuid4().hex

        unique: dict[str, Facility] = {}
        for facility in candidates:
            unique.setdefault(facility.id, facility)
        facilities = list(unique.values())
        if not facilities:
            return RoutingResult(request_id=request_id)

        workers = min(len(facilities), self.max_parallel_lookups)
        queue = deque(facilities)
        in_flight: dict[Future, tuple[Facility, float]] = {}
        measured: list[tuple[Facility, RouteMetrics]] = []
        dropped: list[str] = []
        start_time = time.monotonic()

        # One thread per candidate so an abandoned lookup never blocks a queued one;
        # dispatch alone keeps at most ``workers`` live lookups in flight.
        executor = ThreadPoolExecutor(max_workers=len(facilities), thread_name_prefix="route-lookup")
        try:
            while queue or in_flight:
                while queue and len(in_flight) < workers:
                    facility = queue.popleft()
                    future = executor.submit(self._lookup, location, facility)
                    in_flight[future] = (facility, time.monotonic())

                next_expiry = min(started for _, started in in_flight.values()) + self.lookup_timeout_seconds
                done, _ = wait(
                    in_flight,
                    timeout=max(0.0, next_expiry - time.monotonic()),
                    return_when=FIRST_COMPLETED,
                )

                for future in done:
                    facility, _ = in_flight.pop(future)
                    metrics = future.result()
                    if metrics is None:
                        dropped.append(facility.id)
                    else:
                        measured.append((facility, metrics))

                now = time.monotonic()
                for future, (facility, started) in list(in_flight.items()):
                    if now - started >= self.lookup_timeout_seconds:
                        logger.warning(f"Route metrics lookup for facility '{facility.id}' timed out; dropping")
                        del in_flight[future]
                        dropped.append(facility.id)
        finally:
            # Abandoned lookups keep running in the background but cannot affect this result.
            executor.shutdown(wait=False, cancel_futures=True)

        routes = rank_routes(measured)
        elapsed = time.monotonic() - start_time
        logger.info(
            f"Ranked {len(routes)}/{len(facilities)} facilities for '{category}' request {request_id} "
            f"in {elapsed:.2f}s ({len(dropped)} dropped)"
        )
        return RoutingResult(
            request_id=request_id,
            routes=routes,
            dropped_facility_ids=tuple(sorted(dropped)),
        )
