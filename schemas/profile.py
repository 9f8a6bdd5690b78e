from pydantic import BaseModel, validator
from typing import Optional, List

from models import Location, Vehicle, NotificationPrefs, Profile, UserFollow, UserBlock

class ProfileUpdateRequest(BaseModel):
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[Location] = None
    vehicle: Optional[Vehicle] = None
    interests: Optional[List[str]] = None
    notification_prefs: Optional[NotificationPrefs] = None
    accepts_messages: Optional[bool] = None

    @validator('display_name')
    def validate_display_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Display name cannot be empty')
        return v

    @validator('bio')
    def validate_bio(cls, v):
        if v is not None and len(v) > 500:
            raise ValueError('Bio must be at most 500 characters long')
        return v

class FollowEntry(UserFollow):
    profile: Optional[Profile] = None

class BlockEntry(UserBlock):
    profile: Optional[Profile] = None

class RelationshipStatus(BaseModel):
    is_following: bool
    is_followed_by: bool
    is_blocked: bool
    has_blocked_you: bool
