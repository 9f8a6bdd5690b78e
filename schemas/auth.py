import re
from pydantic import BaseModel, validator
from typing import Optional

from models import Profile, UserRole

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

def _validate_email(v: str) -> str:
    v = v.strip().lower()
    if not EMAIL_PATTERN.match(v):
        raise ValueError('Invalid email address')
    return v

class RegisterRequest(BaseModel):
    email: str
    password: str
    display_name: str

    @validator('email')
    def validate_email(cls, v):
        return _validate_email(v)

    @validator('password')
    def validate_password(cls, v):
        if len(v) < 6:
            raise ValueError('Password must be at least 6 characters long')
        return v

    @validator('display_name')
    def validate_display_name(cls, v):
        if not v.strip():
            raise ValueError('Display name cannot be empty')
        return v.strip()

class LoginRequest(BaseModel):
    email: str
    password: str

    @validator('email')
    def validate_email(cls, v):
        return _validate_email(v)

class UserResponse(BaseModel):
    id: str
    email: str
    role: UserRole

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse

class MeResponse(BaseModel):
    user: UserResponse
    profile: Optional[Profile] = None
