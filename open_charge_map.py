import logging
import requests
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from config import OPEN_CHARGE_MAP_API_KEY, OPEN_CHARGE_MAP_URL, OPEN_CHARGE_MAP_TIMEOUT
from models import Connector, Coords

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 50
DEFAULT_DISTANCE_KM = 25


class ChargingStationLookupError(Exception):
    """Open Charge Map could not be reached or returned an error"""


class ChargingStation(BaseModel):
    external_id: str
    name: str
    coords: Coords
    address: str
    connectors: List[Connector] = []
    provider: Optional[str] = None
    pricing: Optional[str] = None
    availability: str = "UNKNOWN"


def _to_station(poi: Dict[str, Any]) -> ChargingStation:
    info = poi.get("AddressInfo") or {}
    country = info.get("Country") or {}
    address_parts = [
        info.get("AddressLine1"),
        info.get("Town"),
        info.get("StateOrProvince"),
        info.get("Postcode"),
        country.get("Title"),
    ]
    connectors = [
        Connector(
            type=(conn.get("ConnectionType") or {}).get("Title") or "Unknown",
            power_kw=conn.get("PowerKW") or 0,
        )
        for conn in poi.get("Connections") or []
    ]
    operational = (poi.get("StatusType") or {}).get("IsOperational")
    return ChargingStation(
        external_id=f"ocm-{poi['ID']}",
        name=info.get("Title") or "Charging Station",
        coords=Coords(lat=info.get("Latitude"), lng=info.get("Longitude")),
        address=", ".join(str(part) for part in address_parts if part),
        connectors=connectors,
        provider=(poi.get("OperatorInfo") or {}).get("Title"),
        pricing=poi.get("UsageCost"),
        availability="AVAILABLE" if operational else "UNKNOWN",
    )

def search_charging_stations(
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    distance: Optional[float] = None,
    country_code: Optional[str] = None,
    max_results: Optional[int] = None,
) -> List[ChargingStation]:
    """
    Look up charging stations on Open Charge Map.

    Args:
        latitude, longitude: Centre of a radius search; both are needed
        distance: Radius in km, 25 when omitted
        country_code: ISO country code filter
        max_results: Upper bound on returned stations, 50 when omitted

    Returns:
        Stations translated into the local station shape

    Raises:
        ChargingStationLookupError: on network failure, HTTP error or a bad payload
    """
    params = {
        "output": "json",
        "compact": "true",
        "maxresults": max_results or DEFAULT_MAX_RESULTS,
    }
    if latitude is not None and longitude is not None:
        params["latitude"] = latitude
        params["longitude"] = longitude
        params["distance"] = distance or DEFAULT_DISTANCE_KM
        params["distanceunit"] = "KM"
    if country_code:
        params["countrycode"] = country_code

    headers = {}
    if OPEN_CHARGE_MAP_API_KEY:
        params["key"] = OPEN_CHARGE_MAP_API_KEY
        headers["X-API-Key"] = OPEN_CHARGE_MAP_API_KEY

    try:
        response = requests.get(OPEN_CHARGE_MAP_URL, params=params, headers=headers, timeout=OPEN_CHARGE_MAP_TIMEOUT)
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.error("Error fetching from Open Charge Map: %s", e)
        raise ChargingStationLookupError(str(e)) from e

    try:
        return [_to_station(poi) for poi in data]
    except (KeyError, TypeError, ValueError) as e:
        logger.error("Unexpected Open Charge Map payload: %s", e)
        raise ChargingStationLookupError("Unexpected response from Open Charge Map") from e
