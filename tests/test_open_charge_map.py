from __future__ import annotations

import pytest
import requests

import open_charge_map
from open_charge_map import ChargingStationLookupError, search_charging_stations

POI = {
    "ID": 1234,
    "UsageCost": "0.45 EUR/kWh",
    "AddressInfo": {
        "Title": "Ionity Aire de Nemours",
        "AddressLine1": "A6",
        "Town": "Nemours",
        "Postcode": "77140",
        "Country": {"Title": "France"},
        "Latitude": 48.25,
        "Longitude": 2.70,
    },
    "OperatorInfo": {"Title": "Ionity"},
    "StatusType": {"IsOperational": True},
    "Connections": [
        {"ConnectionType": {"Title": "CCS (Type 2)"}, "PowerKW": 350},
        {"ConnectionType": None, "PowerKW": None},
    ],
}


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        return self.payload


@pytest.fixture()
def calls(monkeypatch):
    recorded = []

    def install(response):
        def fake_get(url, params=None, headers=None, timeout=None):
            recorded.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
            if isinstance(response, Exception):
                raise response
            return response
        monkeypatch.setattr(open_charge_map.requests, "get", fake_get)
        return recorded

    return install


def test_radius_search_maps_stations(calls):
    recorded = calls(FakeResponse([POI]))

    stations = search_charging_stations(latitude=48.2, longitude=2.7, distance=10, max_results=5)

    params = recorded[0]["params"]
    assert params["latitude"] == 48.2
    assert params["distance"] == 10
    assert params["distanceunit"] == "KM"
    assert params["maxresults"] == 5

    [station] = stations
    assert station.external_id == "ocm-1234"
    assert station.name == "Ionity Aire de Nemours"
    assert station.address == "A6, Nemours, 77140, France"
    assert station.provider == "Ionity"
    assert station.availability == "AVAILABLE"
    assert [(c.type, c.power_kw) for c in station.connectors] == [("CCS (Type 2)", 350), ("Unknown", 0)]


def test_country_search_uses_defaults(calls):
    recorded = calls(FakeResponse([]))

    assert search_charging_stations(country_code="NO") == []

    params = recorded[0]["params"]
    assert params["countrycode"] == "NO"
    assert params["maxresults"] == open_charge_map.DEFAULT_MAX_RESULTS
    assert "latitude" not in params


def test_http_error_raises_lookup_error(calls):
    calls(FakeResponse({"error": "nope"}, status_code=503))
    with pytest.raises(ChargingStationLookupError):
        search_charging_stations(latitude=1, longitude=2)


def test_network_error_raises_lookup_error(calls):
    calls(requests.ConnectionError("unreachable"))
    with pytest.raises(ChargingStationLookupError):
        search_charging_stations(country_code="DE")


def test_bad_payload_raises_lookup_error(calls):
    calls(FakeResponse([{"AddressInfo": {}}]))
    with pytest.raises(ChargingStationLookupError):
        search_charging_stations(country_code="DE")
