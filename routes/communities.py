from fastapi import APIRouter, HTTPException, Depends
from typing import List, Optional

from models import Community, CommunityMember, CommunityUpdate, InsertCommunity, User, TargetType
from schemas.communities import CommunityCreate, CommunityUpdateRequest, MembershipStatus
from schemas.shared import SuccessResponse
from storage import IStorage, DuplicateKeyError
from utils.route_helpers import get_storage, get_current_user, require_admin, is_staff, audit

router = APIRouter(prefix="/api/communities", tags=["communities"])

def _get_community_or_404(storage: IStorage, community_id: str) -> Community:
    community = storage.get_community(community_id)
    if not community:
        raise HTTPException(status_code=404, detail="Community not found")
    return community

def _can_manage(user: User, community: Community) -> bool:
    return is_staff(user) or user.id in (community.moderators or [])

@router.get("", response_model=List[Community])
def list_communities(search: Optional[str] = None, type: Optional[str] = None, storage: IStorage = Depends(get_storage)):
    """All communities, largest first"""
    return storage.get_communities(search=search, type=type)

@router.post("", response_model=Community, status_code=201)
def create_community(data: CommunityCreate, current_user: User = Depends(require_admin), storage: IStorage = Depends(get_storage)):
    try:
        community = storage.create_community(InsertCommunity(**data.model_dump()))
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Community slug already in use")
    audit(storage, "COMMUNITY_CREATED", current_user.id, TargetType.COMMUNITY, community.id)
    return community

@router.get("/slug/{slug}", response_model=Community)
def get_community_by_slug(slug: str, storage: IStorage = Depends(get_storage)):
    community = storage.get_community_by_slug(slug)
    if not community:
        raise HTTPException(status_code=404, detail="Community not found")
    return community

@router.get("/{community_id}", response_model=Community)
def get_community(community_id: str, storage: IStorage = Depends(get_storage)):
    return _get_community_or_404(storage, community_id)

@router.put("/{community_id}", response_model=Community)
def update_community(community_id: str, data: CommunityUpdateRequest, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    community = _get_community_or_404(storage, community_id)
    if not _can_manage(current_user, community):
        raise HTTPException(status_code=403, detail="Only moderators can edit this community")
    try:
        return storage.update_community(community_id, CommunityUpdate(**data.model_dump(exclude_unset=True)))
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Community slug already in use")

@router.delete("/{community_id}", response_model=SuccessResponse)
def delete_community(community_id: str, current_user: User = Depends(require_admin), storage: IStorage = Depends(get_storage)):
    if not storage.delete_community(community_id):
        raise HTTPException(status_code=404, detail="Community not found")
    audit(storage, "COMMUNITY_DELETED", current_user.id, TargetType.COMMUNITY, community_id)
    return {"success": True}

@router.post("/{community_id}/join", response_model=CommunityMember)
def join_community(community_id: str, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    _get_community_or_404(storage, community_id)
    return storage.join_community(community_id, current_user.id)

@router.post("/{community_id}/leave", response_model=SuccessResponse)
def leave_community(community_id: str, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    return {"success": storage.leave_community(community_id, current_user.id)}

@router.get("/{community_id}/is-member", response_model=MembershipStatus)
def is_member(community_id: str, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    return {"is_member": storage.is_community_member(community_id, current_user.id)}

@router.get("/{community_id}/members", response_model=List[CommunityMember])
def list_members(community_id: str, storage: IStorage = Depends(get_storage)):
    _get_community_or_404(storage, community_id)
    return storage.get_community_members(community_id)
