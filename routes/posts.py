from fastapi import APIRouter, HTTPException, Depends, Query
from typing import List, Optional

from models import InsertPost, PostUpdate, PostVisibility, User, NotificationType, TargetType
from schemas.posts import PostCreate, PostUpdateRequest, PostResponse
from schemas.shared import SuccessResponse
from storage import IStorage
from utils.route_helpers import get_storage, get_current_user, is_staff, notify, audit, with_author

router = APIRouter(prefix="/api/posts", tags=["posts"])

def _get_post_or_404(storage: IStorage, post_id: str):
    post = storage.get_post(post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post

@router.get("", response_model=List[PostResponse])
def list_posts(
    community_id: Optional[str] = None,
    author_id: Optional[str] = None,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    storage: IStorage = Depends(get_storage),
):
    """Public feed, newest first"""
    posts = storage.get_posts(
        community_id=community_id,
        author_id=author_id,
        visibility=PostVisibility.PUBLIC,
        limit=limit,
        offset=offset,
    )
    return [with_author(storage, post, post.author_id) for post in posts]

@router.post("", response_model=PostResponse, status_code=201)
def create_post(data: PostCreate, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    if data.community_id and not storage.get_community(data.community_id):
        raise HTTPException(status_code=404, detail="Community not found")
    post = storage.create_post(InsertPost(author_id=current_user.id, **data.model_dump()))
    audit(storage, "POST_CREATED", current_user.id, TargetType.POST, post.id)
    return with_author(storage, post, post.author_id)

@router.get("/{post_id}", response_model=PostResponse)
def get_post(post_id: str, storage: IStorage = Depends(get_storage)):
    post = _get_post_or_404(storage, post_id)
    return with_author(storage, post, post.author_id)

@router.put("/{post_id}", response_model=PostResponse)
def update_post(post_id: str, data: PostUpdateRequest, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    post = _get_post_or_404(storage, post_id)
    if post.author_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not authorized")
    updated = storage.update_post(post_id, PostUpdate(**data.model_dump(exclude_unset=True)))
    return with_author(storage, updated, updated.author_id)

@router.post("/{post_id}/like", response_model=PostResponse)
def toggle_like(post_id: str, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    post = storage.toggle_post_like(post_id, current_user.id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    if current_user.id in post.likes:
        notify(storage, post.author_id, NotificationType.LIKE, actor_id=current_user.id,
               target_type=TargetType.POST, target_id=post.id)
    return with_author(storage, post, post.author_id)

@router.delete("/{post_id}", response_model=SuccessResponse)
def delete_post(post_id: str, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    post = _get_post_or_404(storage, post_id)
    if post.author_id != current_user.id and not is_staff(current_user):
        raise HTTPException(status_code=403, detail="Not authorized")
    storage.delete_post(post_id)
    audit(storage, "POST_DELETED", current_user.id, TargetType.POST, post_id)
    return {"success": True}
