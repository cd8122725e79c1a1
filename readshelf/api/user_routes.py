"""User profile API routes."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from readshelf.api.schemas import ProfileCreateRequest, ProfileUpdateRequest, UserResponse
from readshelf.core.dependencies import get_current_user_id, get_profile_service
from readshelf.domain.services import IProfileService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_profile(
    body: ProfileCreateRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    profile_service: Annotated[IProfileService, Depends(get_profile_service)],
) -> UserResponse:
    """Register the caller's profile.

    The user id comes from the verified token.  The user's default shelf is
    created along with the profile.
    """
    user = await profile_service.create_profile(
        user_id=user_id,
        username=body.username,
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        profile_photo=body.profile_photo,
    )
    return UserResponse.model_validate(user)


@router.get("/me", response_model=UserResponse)
async def get_my_profile(
    user_id: Annotated[str, Depends(get_current_user_id)],
    profile_service: Annotated[IProfileService, Depends(get_profile_service)],
) -> UserResponse:
    return UserResponse.model_validate(await profile_service.get_profile(user_id))


@router.put("/me", response_model=UserResponse)
async def update_my_profile(
    body: ProfileUpdateRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    profile_service: Annotated[IProfileService, Depends(get_profile_service)],
) -> UserResponse:
    """Change the fields sent in the body; the rest are left as they are."""
    user = await profile_service.update_profile(
        user_id=user_id,
        username=body.username,
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        profile_photo=body.profile_photo,
    )
    return UserResponse.model_validate(user)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_my_profile(
    user_id: Annotated[str, Depends(get_current_user_id)],
    profile_service: Annotated[IProfileService, Depends(get_profile_service)],
) -> None:
    """Delete the caller's profile along with their shelves and library."""
    await profile_service.delete_profile(user_id)


@router.get("/{target_user_id}", response_model=UserResponse)
async def get_profile(
    target_user_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    profile_service: Annotated[IProfileService, Depends(get_profile_service)],
) -> UserResponse:
    """Get any user's public profile."""
    return UserResponse.model_validate(await profile_service.get_profile(target_user_id))
