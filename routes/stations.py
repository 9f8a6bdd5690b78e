from fastapi import APIRouter, HTTPException, Depends, Query
from typing import List, Optional

from models import InsertStation, Station, User, TargetType
from open_charge_map import ChargingStation, ChargingStationLookupError, search_charging_stations
from schemas.stations import StationCreate
from storage import IStorage
from utils.route_helpers import get_storage, get_current_user, audit

router = APIRouter(prefix="/api", tags=["stations"])

def _search(lat, lng, distance, country_code, max_results) -> List[ChargingStation]:
    try:
        return search_charging_stations(
            latitude=lat,
            longitude=lng,
            distance=distance,
            country_code=country_code,
            max_results=max_results,
        )
    except ChargingStationLookupError:
        raise HTTPException(status_code=502, detail="Failed to search charging stations")

@router.get("/stations", response_model=List[Station])
def list_stations(
    verified: Optional[bool] = None,
    limit: int = Query(100, ge=1, le=500),
    storage: IStorage = Depends(get_storage),
):
    return storage.get_stations(verified=verified, limit=limit)

@router.get("/stations/search", response_model=List[ChargingStation])
def search_stations(
    lat: Optional[float] = None,
    lng: Optional[float] = None,
    distance: Optional[float] = Query(None, gt=0),
    country_code: Optional[str] = Query(None, alias="countryCode"),
    max_results: Optional[int] = Query(None, alias="maxResults", ge=1, le=500),
):
    """Live lookup against Open Charge Map"""
    return _search(lat, lng, distance, country_code, max_results)

@router.get("/charging-stations", response_model=List[ChargingStation])
def charging_stations(
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    distance: Optional[float] = Query(None, gt=0),
    country_code: Optional[str] = Query(None, alias="countryCode"),
    max_results: Optional[int] = Query(None, alias="maxResults", ge=1, le=500),
):
    return _search(latitude, longitude, distance, country_code, max_results)

@router.get("/stations/{station_id}", response_model=Station)
def get_station(station_id: str, storage: IStorage = Depends(get_storage)):
    station = storage.get_station(station_id)
    if not station:
        raise HTTPException(status_code=404, detail="Station not found")
    return station

@router.post("/stations", response_model=Station, status_code=201)
def create_station(data: StationCreate, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    station = storage.create_station(InsertStation(**data.model_dump(), added_by=current_user.id))
    audit(storage, "STATION_ADDED", current_user.id, TargetType.STATION, station.id)
    return station
