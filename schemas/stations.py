from pydantic import BaseModel, validator
from typing import List, Optional

from models import Coords, Connector, TargetType

class StationCreate(BaseModel):
    name: str
    coords: Coords
    address: str
    connectors: List[Connector] = []
    external_id: Optional[str] = None
    provider: Optional[str] = None
    pricing: Optional[str] = None
    availability: Optional[str] = None

    @validator('name', 'address')
    def validate_not_blank(cls, v):
        if not v.strip():
            raise ValueError('Field cannot be empty')
        return v

    @validator('coords')
    def validate_coords(cls, v):
        if not -90 <= v.lat <= 90 or not -180 <= v.lng <= 180:
            raise ValueError('Coordinates out of range')
        return v

class BookmarkCreate(BaseModel):
    target_type: TargetType
    target_id: str

class BookmarkCheck(BaseModel):
    bookmarked: bool
    bookmark_id: Optional[str] = None
