import re
from pydantic import BaseModel, validator
from typing import Optional, List

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

def _validate_slug(v):
    if v is not None and not SLUG_PATTERN.match(v):
        raise ValueError('Slug may only contain lowercase letters, digits and single dashes')
    return v

class CommunityCreate(BaseModel):
    name: str
    slug: str
    type: str
    description: Optional[str] = None
    cover_image_url: Optional[str] = None
    moderators: Optional[List[str]] = None

    @validator('name')
    def validate_name(cls, v):
        if len(v.strip()) < 3:
            raise ValueError('Community name must be at least 3 characters long')
        if len(v) > 80:
            raise ValueError('Community name must be at most 80 characters long')
        return v

    @validator('slug')
    def validate_slug(cls, v):
        return _validate_slug(v)

    @validator('type')
    def validate_type(cls, v):
        if not v.strip():
            raise ValueError('Community type cannot be empty')
        return v

class CommunityUpdateRequest(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None
    cover_image_url: Optional[str] = None
    moderators: Optional[List[str]] = None

    @validator('name')
    def validate_name(cls, v):
        if v is not None and len(v.strip()) < 3:
            raise ValueError('Community name must be at least 3 characters long')
        return v

    @validator('slug')
    def validate_slug(cls, v):
        return _validate_slug(v)

class MembershipStatus(BaseModel):
    is_member: bool
