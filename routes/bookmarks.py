from fastapi import APIRouter, HTTPException, Depends
from typing import List, Optional

from models import Bookmark, InsertBookmark, TargetType, User
from schemas.stations import BookmarkCreate, BookmarkCheck
from schemas.shared import SuccessResponse
from storage import IStorage
from utils.route_helpers import get_storage, get_current_user

router = APIRouter(prefix="/api/bookmarks", tags=["bookmarks"])

@router.get("", response_model=List[Bookmark])
def list_bookmarks(target_type: Optional[TargetType] = None, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    return storage.get_bookmarks(current_user.id, target_type)

@router.post("", response_model=Bookmark)
def create_bookmark(data: BookmarkCreate, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    # Bookmarking the same target twice hands back the first bookmark
    existing = storage.get_bookmark(current_user.id, data.target_id)
    if existing:
        return existing
    return storage.create_bookmark(InsertBookmark(user_id=current_user.id, **data.model_dump()))

@router.get("/check/{target_id}", response_model=BookmarkCheck)
def check_bookmark(target_id: str, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    bookmark = storage.get_bookmark(current_user.id, target_id)
    return BookmarkCheck(bookmarked=bookmark is not None, bookmark_id=bookmark.id if bookmark else None)

@router.delete("/{bookmark_id}", response_model=SuccessResponse)
def delete_bookmark(bookmark_id: str, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    owned = [b for b in storage.get_bookmarks(current_user.id) if b.id == bookmark_id]
    if not owned:
        raise HTTPException(status_code=404, detail="Bookmark not found")
    return {"success": storage.delete_bookmark(bookmark_id)}
