# mentorlink/routers/profile_router.py
from typing import Optional
from fastapi import APIRouter, Depends, Path

from ..services import ProfileService
from ..dependencies.auth_dependencies import ensure_acting_as
from ..dependencies.service_dependencies import get_profile_service
from ..schemas import ApiResponse, UserCreate, UserUpdate, UserResponse
from ..security import CallerIdentity, get_current_identity

router = APIRouter(prefix="/api", tags=["profiles"])

@router.post("/users", response_model=ApiResponse[UserResponse], status_code=201)
def create_user(
    user_data: UserCreate,
    identity: Optional[CallerIdentity] = Depends(get_current_identity),
    profile_service: ProfileService = Depends(get_profile_service)
):
    """Register a student or mentor profile"""
    ensure_acting_as(identity, user_data.uid)
    user = profile_service.create_user(user_data)
    return ApiResponse(success=True, data=UserResponse.model_validate(user))

@router.get("/users/{uid}", response_model=ApiResponse[UserResponse])
def get_user(
    uid: str = Path(..., description="The uid of the user to fetch"),
    profile_service: ProfileService = Depends(get_profile_service)
):
    """Fetch a profile"""
    user = profile_service.get_user(uid)
    return ApiResponse(success=True, data=UserResponse.model_validate(user))

@router.patch("/users/{uid}", response_model=ApiResponse[UserResponse])
def update_user(
    uid: str = Path(..., description="The uid of the user to update"),
    user_data: UserUpdate = ...,
    identity: Optional[CallerIdentity] = Depends(get_current_identity),
    profile_service: ProfileService = Depends(get_profile_service)
):
    """Update a profile; counters are never written here"""
    ensure_acting_as(identity, uid)
    user = profile_service.update_user(uid, user_data)
    return ApiResponse(success=True, data=UserResponse.model_validate(user))
