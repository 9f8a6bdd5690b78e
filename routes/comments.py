from fastapi import APIRouter, HTTPException, Depends
from typing import List

from models import InsertComment, User, NotificationType, TargetType
from schemas.posts import CommentCreate, CommentResponse
from schemas.shared import SuccessResponse
from storage import IStorage
from utils.route_helpers import get_storage, get_current_user, is_staff, notify, with_author

router = APIRouter(prefix="/api", tags=["comments"])

@router.get("/posts/{post_id}/comments", response_model=List[CommentResponse])
def list_comments(post_id: str, storage: IStorage = Depends(get_storage)):
    """Comments on a post, oldest first"""
    return [with_author(storage, c, c.author_id) for c in storage.get_comments(post_id)]

@router.post("/posts/{post_id}/comments", response_model=CommentResponse, status_code=201)
def create_comment(post_id: str, data: CommentCreate, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    post = storage.get_post(post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    comment = storage.create_comment(InsertComment(post_id=post_id, author_id=current_user.id, text=data.text))
    notify(storage, post.author_id, NotificationType.COMMENT, actor_id=current_user.id,
           target_type=TargetType.POST, target_id=post_id, metadata={"comment_id": comment.id})
    return with_author(storage, comment, comment.author_id)

@router.delete("/comments/{comment_id}", response_model=SuccessResponse)
def delete_comment(comment_id: str, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    comment = storage.get_comment(comment_id)
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")
    if comment.author_id != current_user.id and not is_staff(current_user):
        raise HTTPException(status_code=403, detail="Not authorized")
    storage.delete_comment(comment_id)
    return {"success": True}
