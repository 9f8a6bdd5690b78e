from fastapi import APIRouter, HTTPException, Depends, Query
from typing import List

from models import Notification, User
from schemas.messages import NotificationsReadResponse
from storage import IStorage
from utils.route_helpers import get_storage, get_current_user

router = APIRouter(prefix="/api/notifications", tags=["notifications"])

@router.get("", response_model=List[Notification])
def list_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    storage: IStorage = Depends(get_storage),
):
    return storage.get_notifications(current_user.id, unread_only=unread_only, limit=limit)

@router.post("/read-all", response_model=NotificationsReadResponse)
def mark_all_read(current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    return {"updated": storage.mark_all_notifications_read(current_user.id)}

@router.post("/{notification_id}/read", response_model=Notification)
def mark_read(notification_id: str, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    notification = storage.mark_notification_read(current_user.id, notification_id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification
