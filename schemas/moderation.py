from pydantic import BaseModel, validator
from typing import Optional

from models import ReportStatus, TargetType, UserRole, UserStatus

class ReportCreate(BaseModel):
    target_type: TargetType
    target_id: str
    reason: str

    @validator('reason')
    def validate_reason(cls, v):
        if not v.strip():
            raise ValueError('A reason is required')
        if len(v) > 1000:
            raise ValueError('Reason must be at most 1000 characters long')
        return v

class ReportUpdateRequest(BaseModel):
    status: ReportStatus

class AdminUserUpdate(BaseModel):
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None

class AdminUserResponse(BaseModel):
    id: str
    email: str
    role: UserRole
    status: UserStatus

class RecountResponse(BaseModel):
    corrected: int
