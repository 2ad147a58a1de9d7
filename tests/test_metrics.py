import httpx
import pytest

from medroute.errors import LookupFailed
from medroute.models.domain import Facility, Location, RouteMetrics, TrafficState
from medroute.services.geospatial import haversine_km
from medroute.services.routing.metrics import (
    SIMULATED_METRICS,
    HaversineRouteMetricsProvider,
    OSRMRouteMetricsProvider,
    StaticRouteMetricsProvider,
    classify_traffic,
    get_metrics_provider,
)
from medroute.services.routing.osrm_client import OSRMClient

ORIGIN = Location(coordinates=(34.0522, -118.2437))
DESTINATION = Facility(id="hosp2", name="St. Luke's", address="456 Oak Ave", coordinates=(34.0580, -118.2500))


@pytest.mark.parametrize(
    "distance, duration, expected",
    [
        (10_000, 600, TrafficState.LIGHT),  # 60 km/h
        (3_200, 480, TrafficState.MODERATE),  # 24 km/h
        (1_000, 600, TrafficState.HEAVY),  # 6 km/h
        (0, 0, TrafficState.UNKNOWN),
    ],
)
def test_classify_traffic(distance, duration, expected):
    assert classify_traffic(distance, duration) is expected


def test_route_metrics_reject_negative_values():
    with pytest.raises(ValueError):
        RouteMetrics("x", distance_meters=-1.0, duration_seconds=10.0)


def test_haversine_provider_estimates_road_distance():
    provider = HaversineRouteMetricsProvider(average_speed_kmh=40.0, detour_factor=1.3)

    metrics = provider.measure(ORIGIN, DESTINATION)

    straight_km = haversine_km(34.0522, -118.2437, 34.0580, -118.2500)
    assert metrics.facility_id == "hosp2"
    assert metrics.distance_meters == pytest.approx(straight_km * 1.3 * 1000)
    assert metrics.duration_seconds == pytest.approx(straight_km * 1.3 / 40.0 * 3600)
    assert metrics.traffic_state is TrafficState.UNKNOWN


def test_haversine_provider_needs_coordinates():
    provider = HaversineRouteMetricsProvider()

    with pytest.raises(LookupFailed):
        provider.measure(Location(address="123 Main St"), DESTINATION)
    with pytest.raises(LookupFailed):
        provider.measure(ORIGIN, Facility(id="x", name="X", address="Somewhere"))


def test_static_provider_returns_recorded_metrics():
    provider = StaticRouteMetricsProvider(SIMULATED_METRICS)

    assert provider.measure(ORIGIN, DESTINATION).duration_seconds == 600.0
    with pytest.raises(LookupFailed):
        provider.measure(ORIGIN, Facility(id="unknown", name="U", address=""))


def test_get_metrics_provider_by_name():
    assert isinstance(get_metrics_provider("simulated"), StaticRouteMetricsProvider)
    assert isinstance(get_metrics_provider("haversine"), HaversineRouteMetricsProvider)
    with pytest.raises(ValueError):
        get_metrics_provider("teleport")


def _osrm(monkeypatch: pytest.MonkeyPatch, handler, max_retries: int = 0) -> OSRMRouteMetricsProvider:
    client = OSRMClient(base_url="http://osrm.test/", profile="driving", max_retries=max_retries, backoff_seconds=0.0)
    monkeypatch.setattr(client, "_get_client", lambda: httpx.Client(transport=httpx.MockTransport(handler)))
    return OSRMRouteMetricsProvider(client)


def test_osrm_provider_reads_first_route(monkeypatch: pytest.MonkeyPatch):
    requested = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(request.url.path)
        return httpx.Response(200, json={"code": "Ok", "routes": [{"distance": 4100.0, "duration": 600.0}]})

    metrics = _osrm(monkeypatch, handler).measure(ORIGIN, DESTINATION)

    assert requested == ["/route/v1/driving/-118.2437,34.0522;-118.25,34.058"]
    assert metrics.distance_meters == 4100.0
    assert metrics.duration_seconds == 600.0
    assert metrics.traffic_state is TrafficState.MODERATE


def test_osrm_provider_no_route_is_lookup_failure(monkeypatch: pytest.MonkeyPatch):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"code": "NoRoute", "message": "Impossible route"})

    with pytest.raises(LookupFailed):
        _osrm(monkeypatch, handler).measure(ORIGIN, DESTINATION)


def test_osrm_client_retries_server_errors(monkeypatch: pytest.MonkeyPatch):
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        if len(attempts) == 1:
            return httpx.Response(503, text="busy")
        return httpx.Response(200, json={"code": "Ok", "routes": [{"distance": 1000.0, "duration": 60.0}]})

    metrics = _osrm(monkeypatch, handler, max_retries=2).measure(ORIGIN, DESTINATION)

    assert len(attempts) == 2
    assert metrics.traffic_state is TrafficState.LIGHT


def test_osrm_client_does_not_retry_client_errors(monkeypatch: pytest.MonkeyPatch):
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        return httpx.Response(400, json={"code": "InvalidQuery"})

    with pytest.raises(LookupFailed):
        _osrm(monkeypatch, handler, max_retries=3).measure(ORIGIN, DESTINATION)
    assert len(attempts) == 1


def test_osrm_client_requires_base_url(monkeypatch: pytest.MonkeyPatch):
    from medroute.services.routing import osrm_client

    monkeypatch.setattr(osrm_client.settings, "osrm_base_url", None)

    with pytest.raises(ValueError):
        OSRMClient()
