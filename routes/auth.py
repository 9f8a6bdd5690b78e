import logging
from fastapi import APIRouter, HTTPException, Depends

from schemas.auth import RegisterRequest, LoginRequest, Token, UserResponse, MeResponse
from schemas.shared import SuccessResponse
from auth import hash_password, verify_password, create_access_token
from models import InsertUser, InsertProfile, User, UserStatus
from storage import IStorage, DuplicateKeyError
from utils.route_helpers import get_storage, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["authentication"])

def _token_for(user: User) -> Token:
    return Token(
        access_token=create_access_token(user.id),
        user=UserResponse(id=user.id, email=user.email, role=user.role),
    )

@router.post("/register", response_model=Token, status_code=201)
def register(data: RegisterRequest, storage: IStorage = Depends(get_storage)):
    if storage.get_user_by_email(data.email):
        raise HTTPException(status_code=400, detail="Email already registered")
    try:
        user = storage.create_user(InsertUser(email=data.email, password_hash=hash_password(data.password)))
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Email already registered")
    # Auto-create default profile
    storage.create_profile(InsertProfile(user_id=user.id, display_name=data.display_name))
    logger.info("Registered user %s", user.id)
    return _token_for(user)

@router.post("/login", response_model=Token)
def login(data: LoginRequest, storage: IStorage = Depends(get_storage)):
    user = storage.get_user_by_email(data.email)
    if not user or not verify_password(data.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if user.status != UserStatus.ACTIVE:
        raise HTTPException(status_code=403, detail="Account is not active")
    return _token_for(user)

@router.post("/logout", response_model=SuccessResponse)
def logout():
    # Tokens are stateless; the client discards its copy
    return {"success": True}

@router.get("/me", response_model=MeResponse)
def me(current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    return MeResponse(
        user=UserResponse(id=current_user.id, email=current_user.email, role=current_user.role),
        profile=storage.get_profile(current_user.id),
    )
