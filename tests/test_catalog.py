from pathlib import Path

import httpx
import pytest
from openpyxl import Workbook

from medroute.data.facility_repository import load_facilities
from medroute.errors import CatalogUnavailable
from medroute.models.domain import Facility, Location
from medroute.services.catalog import (
    SAMPLE_FACILITIES,
    FileFacilityCatalog,
    InMemoryFacilityCatalog,
    OverpassFacilityCatalog,
    sample_catalog,
)
from medroute.services.catalog.overpass import parse_elements

DOWNTOWN_LA = Location(coordinates=(34.0522, -118.2437))


def _facility(fid: str, coordinates=None) -> Facility:
    return Facility(id=fid, name=f"Hospital {fid}", address="", coordinates=coordinates)


@pytest.fixture(autouse=True)
def clear_facility_cache():
    load_facilities.cache_clear()
    yield
    load_facilities.cache_clear()


def test_sample_catalog_orders_by_straight_line_distance():
    facilities = sample_catalog().nearby(DOWNTOWN_LA, max_results=10)

    assert [facility.id for facility in facilities] == ["hosp1", "hosp2", "hosp3"]
    assert len(SAMPLE_FACILITIES) == 3


def test_in_memory_catalog_filters_radius_and_skips_unlocated():
    catalog = InMemoryFacilityCatalog(
        [
            _facility("far", (36.1699, -115.1398)),  # Las Vegas
            _facility("near", (34.0530, -118.2440)),
            _facility("unlocated"),
        ],
        search_radius_km=25.0,
    )

    assert [facility.id for facility in catalog.nearby(DOWNTOWN_LA, max_results=10)] == ["near"]


def test_in_memory_catalog_truncates_and_breaks_ties_by_id():
    same_spot = (34.06, -118.25)
    catalog = InMemoryFacilityCatalog([_facility("z", same_spot), _facility("m", same_spot), _facility("a", same_spot)])

    assert [facility.id for facility in catalog.nearby(DOWNTOWN_LA, max_results=2)] == ["a", "m"]


def test_in_memory_catalog_address_only_returns_all_by_id():
    catalog = InMemoryFacilityCatalog([_facility("b", (34.0, -118.0)), _facility("a"), _facility("c")])

    facilities = catalog.nearby(Location(address="123 Main St"), max_results=5)

    assert [facility.id for facility in facilities] == ["a", "b", "c"]


def test_file_catalog_reads_csv(tmp_path: Path):
    path = tmp_path / "facilities.csv"
    path.write_text(
        "Id,Name,Address,Phone,Latitude,Longitude\n"
        "F1,Harbor Medical,1 Harbor Rd,555-0101,34.0530,-118.2440\n"
        "F2,Mission ER,2 Mission St,,34.0600,-118.2600\n"
        "F1,Duplicate,3 Other Rd,,34.0,-118.0\n"
        ",Nameless Row,4 Nowhere,,34.0,-118.0\n"
        "F3,No Coordinates,5 Unknown Ave,555-0303,,\n",
        encoding="utf-8",
    )

    catalog = FileFacilityCatalog(source=path)
    located = catalog.nearby(DOWNTOWN_LA, max_results=10)
    everything = catalog.nearby(Location(address="Downtown"), max_results=10)

    assert [facility.id for facility in located] == ["F1", "F2"]
    assert located[0].name == "Harbor Medical"
    assert located[0].phone == "555-0101"
    assert located[1].phone is None
    assert [facility.id for facility in everything] == ["F1", "F2", "F3"]


def test_file_catalog_keeps_rows_with_bad_coordinates(tmp_path: Path):
    path = tmp_path / "facilities.csv"
    path.write_text(
        "Id,Name,Address,Latitude,Longitude\n"
        "h1,Harbor Medical,1 Harbor Rd,34.0530,-118.2440\n"
        "h2,Mission ER,2 Mission St,n/a,-118.2600\n"
        "h3,Offshore Clinic,3 Sea Ln,134.0,-118.2600\n",
        encoding="utf-8",
    )

    facilities = load_facilities(path)
    located = FileFacilityCatalog(source=path).nearby(DOWNTOWN_LA, max_results=10)

    assert [facility.id for facility in facilities] == ["h1", "h2", "h3"]
    assert facilities[0].coordinates == (34.0530, -118.2440)
    assert facilities[1].coordinates is None
    assert facilities[2].coordinates is None
    assert [facility.id for facility in located] == ["h1"]


def test_file_catalog_reads_workbook(tmp_path: Path):
    path = tmp_path / "facilities.xlsx"
    wb = Workbook()
    sheet = wb.active
    sheet.append(["ID", "Name", "Address", "Phone", "Latitude", "Longitude"])
    sheet.append(["W1", "Westside Hospital", "10 West Blvd", "555-1000", 34.0580, -118.2500])
    sheet.append(["W2", "Eastside Clinic", "20 East Blvd", None, 34.0450, -118.2300])
    wb.save(path)

    facilities = FileFacilityCatalog(source=path).nearby(DOWNTOWN_LA, max_results=10)

    assert {facility.id for facility in facilities} == {"W1", "W2"}
    assert facilities[0].coordinates is not None


def test_file_catalog_missing_file_is_unavailable(tmp_path: Path):
    catalog = FileFacilityCatalog(source=tmp_path / "missing.csv")

    with pytest.raises(CatalogUnavailable):
        catalog.nearby(DOWNTOWN_LA, max_results=5)


def test_file_catalog_missing_columns_is_unavailable(tmp_path: Path):
    path = tmp_path / "facilities.csv"
    path.write_text("Code,Latitude,Longitude\nX,34.0,-118.0\n", encoding="utf-8")

    with pytest.raises(CatalogUnavailable):
        FileFacilityCatalog(source=path).nearby(DOWNTOWN_LA, max_results=5)


OVERPASS_PAYLOAD = {
    "elements": [
        {
            "type": "node",
            "id": 101,
            "lat": 34.0530,
            "lon": -118.2440,
            "tags": {
                "name": "Good Samaritan",
                "addr:housenumber": "1225",
                "addr:street": "Wilshire Blvd",
                "addr:city": "Los Angeles",
                "phone": "+1 213-555-0100",
            },
        },
        {"type": "way", "id": 202, "center": {"lat": 34.0600, "lon": -118.2500}, "tags": {}},
        {"type": "relation", "id": 303, "tags": {"name": "No Position"}},
    ]
}


def test_parse_overpass_elements():
    facilities = parse_elements(OVERPASS_PAYLOAD)

    assert [facility.id for facility in facilities] == ["osm-node-101", "osm-way-202"]
    assert facilities[0].address == "1225 Wilshire Blvd, Los Angeles"
    assert facilities[0].phone == "+1 213-555-0100"
    assert facilities[1].name == "Nearby Hospital"
    assert facilities[1].coordinates == (34.06, -118.25)


def _mock_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_overpass_catalog_falls_back_to_next_endpoint(monkeypatch: pytest.MonkeyPatch):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.host)
        if request.url.host == "primary.test":
            return httpx.Response(504, text="gateway timeout")
        assert b"around:25000,34.0522,-118.2437" in request.content
        return httpx.Response(200, json=OVERPASS_PAYLOAD)

    catalog = OverpassFacilityCatalog(
        endpoints=["https://primary.test/api/interpreter", "https://secondary.test/api/interpreter"],
        search_radius_km=25.0,
    )
    monkeypatch.setattr(catalog, "_get_client", lambda: _mock_client(handler))

    facilities = catalog.nearby(DOWNTOWN_LA, max_results=1)

    assert seen == ["primary.test", "secondary.test"]
    assert [facility.id for facility in facilities] == ["osm-node-101"]


def test_overpass_catalog_all_endpoints_failing(monkeypatch: pytest.MonkeyPatch):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    catalog = OverpassFacilityCatalog(endpoints=["https://a.test", "https://b.test"])
    monkeypatch.setattr(catalog, "_get_client", lambda: _mock_client(handler))

    with pytest.raises(CatalogUnavailable):
        catalog.nearby(DOWNTOWN_LA, max_results=5)


def test_overpass_catalog_zero_results_is_not_an_error(monkeypatch: pytest.MonkeyPatch):
    catalog = OverpassFacilityCatalog(endpoints=["https://a.test"])
    monkeypatch.setattr(
        catalog, "_get_client", lambda: _mock_client(lambda request: httpx.Response(200, json={"elements": []}))
    )

    assert list(catalog.nearby(DOWNTOWN_LA, max_results=5)) == []


def test_overpass_catalog_requires_coordinates():
    catalog = OverpassFacilityCatalog(endpoints=["https://a.test"])

    with pytest.raises(CatalogUnavailable):
        catalog.nearby(Location(address="123 Main St"), max_results=5)
