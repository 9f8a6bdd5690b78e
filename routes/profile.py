from fastapi import APIRouter, HTTPException, Depends
from typing import List

from models import Profile, ProfileUpdate, User, NotificationType, TargetType
from schemas.profile import ProfileUpdateRequest, FollowEntry, BlockEntry, RelationshipStatus
from schemas.shared import SuccessResponse
from storage import IStorage
from utils.route_helpers import get_storage, get_current_user, ensure_not_blocked, notify

router = APIRouter(prefix="/api/profiles", tags=["profiles"])

def _require_other_user(storage: IStorage, current_user: User, user_id: str):
    if user_id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot do this to yourself")
    if not storage.get_user(user_id):
        raise HTTPException(status_code=404, detail="User not found")

@router.put("", response_model=Profile)
def update_my_profile(data: ProfileUpdateRequest, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    updates = ProfileUpdate(**data.model_dump(exclude_unset=True))
    profile = storage.update_profile(current_user.id, updates)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile

@router.get("/me/blocked", response_model=List[BlockEntry])
def list_blocked(current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    return [
        BlockEntry(**block.model_dump(), profile=storage.get_profile(block.blocked_id))
        for block in storage.get_blocked_users(current_user.id)
    ]

@router.get("/{user_id}", response_model=Profile)
def get_profile(user_id: str, storage: IStorage = Depends(get_storage)):
    profile = storage.get_profile(user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile

@router.get("/{user_id}/followers", response_model=List[FollowEntry])
def list_followers(user_id: str, storage: IStorage = Depends(get_storage)):
    return [
        FollowEntry(**follow.model_dump(), profile=storage.get_profile(follow.follower_id))
        for follow in storage.get_followers(user_id)
    ]

@router.get("/{user_id}/following", response_model=List[FollowEntry])
def list_following(user_id: str, storage: IStorage = Depends(get_storage)):
    return [
        FollowEntry(**follow.model_dump(), profile=storage.get_profile(follow.following_id))
        for follow in storage.get_following(user_id)
    ]

@router.get("/{user_id}/relationship", response_model=RelationshipStatus)
def relationship(user_id: str, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    return RelationshipStatus(
        is_following=storage.is_following(current_user.id, user_id),
        is_followed_by=storage.is_following(user_id, current_user.id),
        is_blocked=storage.is_blocked(current_user.id, user_id),
        has_blocked_you=storage.is_blocked(user_id, current_user.id),
    )

@router.post("/{user_id}/follow")
def follow(user_id: str, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    _require_other_user(storage, current_user, user_id)
    ensure_not_blocked(storage, current_user.id, user_id)
    already_following = storage.is_following(current_user.id, user_id)
    result = storage.follow_user(current_user.id, user_id)
    if not already_following:
        notify(storage, user_id, NotificationType.FOLLOW, actor_id=current_user.id,
               target_type=TargetType.USER, target_id=current_user.id)
    return result

@router.delete("/{user_id}/follow", response_model=SuccessResponse)
def unfollow(user_id: str, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    return {"success": storage.unfollow_user(current_user.id, user_id)}

@router.post("/{user_id}/block")
def block(user_id: str, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    _require_other_user(storage, current_user, user_id)
    return storage.block_user(current_user.id, user_id)

@router.delete("/{user_id}/block", response_model=SuccessResponse)
def unblock(user_id: str, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    return {"success": storage.unblock_user(current_user.id, user_id)}
