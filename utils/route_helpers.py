import logging
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import OAuth2PasswordBearer

from auth import verify_token
from models import (
    User, UserRole, UserStatus, Profile,
    InsertAuditLog, InsertNotification, Notification, NotificationType, TargetType,
)
from storage import IStorage

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

# Notification types a recipient can switch off in their profile
NOTIFICATION_PREF_FIELDS = {
    NotificationType.LIKE: "like",
    NotificationType.COMMENT: "comment",
    NotificationType.ANSWER: "comment",
}


def get_storage(request: Request) -> IStorage:
    """The storage backend the app was built with"""
    return request.app.state.storage

def get_current_user(token: str = Depends(oauth2_scheme), storage: IStorage = Depends(get_storage)) -> User:
    """Resolve the bearer token to an active user"""
    user_id = verify_token(token)
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token")
    user = storage.get_user(user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    if user.status != UserStatus.ACTIVE:
        raise HTTPException(status_code=403, detail="Account is not active")
    return user

def require_role(*roles: UserRole):
    def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return current_user
    return checker

require_moderator = require_role(UserRole.MODERATOR, UserRole.ADMIN)
require_admin = require_role(UserRole.ADMIN)

def is_staff(user: User) -> bool:
    return user.role in (UserRole.MODERATOR, UserRole.ADMIN)

def ensure_not_blocked(storage: IStorage, user_id: str, other_user_id: str):
    """Reject an interaction when either user has blocked the other"""
    if storage.is_blocked(user_id, other_user_id):
        raise HTTPException(status_code=403, detail="Unblock this user to continue")
    if storage.is_blocked(other_user_id, user_id):
        raise HTTPException(status_code=403, detail="You are blocked by this user")

def get_user_profile(storage: IStorage, user_id: str) -> Optional[Profile]:
    return storage.get_profile(user_id)

def with_author(storage: IStorage, entity, author_id: str) -> Dict[str, Any]:
    """Serialize an entity with its author's profile embedded"""
    return {**entity.model_dump(), "author": get_user_profile(storage, author_id)}

def notify(
    storage: IStorage,
    user_id: str,
    type: NotificationType,
    actor_id: Optional[str] = None,
    target_type: Optional[TargetType] = None,
    target_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Optional[Notification]:
    """Create a notification unless the recipient is the actor or opted out"""
    if actor_id == user_id:
        return None
    pref = NOTIFICATION_PREF_FIELDS.get(type)
    if pref:
        profile = storage.get_profile(user_id)
        if profile and not getattr(profile.notification_prefs, pref):
            return None
    return storage.create_notification(InsertNotification(
        user_id=user_id,
        type=type,
        actor_id=actor_id,
        target_type=target_type,
        target_id=target_id,
        metadata=metadata,
    ))

def audit(
    storage: IStorage,
    action: str,
    actor_id: str,
    target_type: Optional[TargetType] = None,
    target_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
):
    logger.info("%s by %s on %s %s", action, actor_id, target_type.value if target_type else "-", target_id or "-")
    return storage.create_audit_log(InsertAuditLog(
        action=action,
        actor_id=actor_id,
        target_type=target_type,
        target_id=target_id,
        metadata=metadata,
    ))
