import pytest

from medroute.models.domain import Facility, RankedRoute, RouteMetrics, TrafficState
from medroute.services.outputs.formatter import format_distance, format_duration, outcome_to_response, route_to_model
from medroute.services.routing.coordinator import RequestState, RoutingOutcome


@pytest.mark.parametrize(
    "seconds, expected",
    [(480, "8 mins"), (481, "9 mins"), (59, "1 min"), (0, "1 min"), (3600, "60 mins")],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_format_distance():
    assert format_distance(5500) == "5.5 km"
    assert format_distance(0) == "0.0 km"


def test_route_without_coordinates_or_phone():
    route = RankedRoute(
        facility=Facility(id="f1", name="Walk-in Clinic", address="9 Elm St"),
        metrics=RouteMetrics("f1", 1500.0, 300.0, TrafficState.HEAVY),
        is_primary=True,
    )

    model = route_to_model(route)

    assert model.facility.latitude is None
    assert model.facility.phone is None
    assert model.traffic_status == "Heavy traffic"


def test_loading_outcome_cannot_be_rendered():
    outcome = RoutingOutcome(request_id="r", sequence=1, state=RequestState.LOADING)

    with pytest.raises(ValueError):
        outcome_to_response(outcome)
