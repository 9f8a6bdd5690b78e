from fastapi import APIRouter, HTTPException, Depends, Query
from typing import List

from models import AuditLog, User, UserUpdate, TargetType
from schemas.moderation import AdminUserUpdate, AdminUserResponse, RecountResponse
from storage import IStorage
from utils.route_helpers import get_storage, require_admin, audit

router = APIRouter(prefix="/api/admin", tags=["admin"])

def _to_response(user: User) -> AdminUserResponse:
    return AdminUserResponse(id=user.id, email=user.email, role=user.role, status=user.status)

@router.get("/audit-logs", response_model=List[AuditLog])
def list_audit_logs(limit: int = Query(100, ge=1, le=1000), current_user: User = Depends(require_admin), storage: IStorage = Depends(get_storage)):
    return storage.get_audit_logs(limit)

@router.get("/users", response_model=List[AdminUserResponse])
def list_users(current_user: User = Depends(require_admin), storage: IStorage = Depends(get_storage)):
    return [_to_response(user) for user in storage.get_users()]

@router.put("/users/{user_id}", response_model=AdminUserResponse)
def update_user(user_id: str, data: AdminUserUpdate, current_user: User = Depends(require_admin), storage: IStorage = Depends(get_storage)):
    """Change a user's role or status (suspend, ban, reinstate)"""
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="Nothing to update")
    if user_id == current_user.id:
        raise HTTPException(status_code=400, detail="Admins cannot change their own role or status")
    user = storage.update_user(user_id, UserUpdate(**changes))
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    audit(storage, "USER_UPDATED", current_user.id, TargetType.USER, user_id,
          metadata={key: value.value for key, value in changes.items()})
    return _to_response(user)

@router.post("/recount", response_model=RecountResponse)
def recount(current_user: User = Depends(require_admin), storage: IStorage = Depends(get_storage)):
    """Rebuild derived counters from the relationship records"""
    corrected = storage.recount_counters()
    audit(storage, "COUNTERS_RECOUNTED", current_user.id, metadata={"corrected": corrected})
    return {"corrected": corrected}
