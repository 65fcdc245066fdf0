"""User profile API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from warranty_api.config.logger import app_logger
from warranty_api.db.db import get_session
from warranty_api.models.user import User
from warranty_api.services import file_storage, user_service
from warranty_api.utils.auth import get_current_user, require_admin
from warranty_api.utils.errors import ServiceError, to_http_exception
from warranty_api.utils.responses import SuccessResponse, success_response
from warranty_api.api.users.schemas import ProfileUpdateRequest, UserResponse

router = APIRouter(prefix="/v1/users", tags=["users"])


@router.get("/profile", response_model=SuccessResponse[UserResponse])
async def get_profile(user: User = Depends(get_current_user)):
    return success_response(data=UserResponse.from_user(user), message="Profile retrieved successfully")


@router.put("/profile", response_model=SuccessResponse[UserResponse])
async def update_profile(
    request: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Update name, bio and social links. Omitted fields are left unchanged."""
    try:
        user = await user_service.update_profile(
            session,
            user,
            name=request.name,
            bio=request.bio,
            social_links=request.social_links.model_dump() if request.social_links else None,
        )
        return success_response(data=UserResponse.from_user(user), message="Profile updated successfully")

    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        app_logger.error(f"Profile update failed for user {user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Profile update failed: {str(e)}"
        )


@router.post("/profile/picture", response_model=SuccessResponse[UserResponse])
async def upload_profile_picture(
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    stored = None
    try:
        stored = await file_storage.save_upload(file, file_storage.PROFILE_PICTURES_SUBDIR)
        user = await user_service.set_profile_picture(session, user, stored)
        return success_response(data=UserResponse.from_user(user), message="Profile picture updated successfully")

    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        if stored:
            file_storage.remove_file(stored.path)
        app_logger.error(f"Profile picture upload failed for user {user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Profile picture upload failed: {str(e)}"
        )


@router.get("/{user_id}", response_model=SuccessResponse[UserResponse])
async def get_user(
    user_id: UUID,
    admin: User = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    try:
        user = await user_service.get_user(session, user_id)
        return success_response(data=UserResponse.from_user(user), message="User retrieved successfully")

    except ServiceError as e:
        raise to_http_exception(e)
