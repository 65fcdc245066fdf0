"""Authentication API routes."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from warranty_api.config.logger import app_logger
from warranty_api.config.settings import settings
from warranty_api.db.db import get_session
from warranty_api.models.user import User
from warranty_api.services import admin_service, user_service
from warranty_api.utils.auth import get_current_user
from warranty_api.utils.errors import ServiceError, to_http_exception
from warranty_api.utils.local_tokens import create_local_token
from warranty_api.utils.responses import SuccessResponse, success_response
from warranty_api.api.auth.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    TokenResponse,
)
from warranty_api.api.users.schemas import UserResponse

router = APIRouter(prefix="/v1/auth", tags=["auth"])


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_local_token(str(user.id), user.email, user.role),
        token_type="bearer",
        expires_in=settings.LOCAL_AUTH_TOKEN_EXP_SECONDS,
        user=UserResponse.from_user(user),
    )


@router.post("/register", response_model=SuccessResponse[TokenResponse], status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest, session: AsyncSession = Depends(get_session)):
    """Register a new user account.

    Returns an access token for immediate use.
    """
    try:
        system_settings = await admin_service.get_settings(session)
        if not system_settings["systemSettings"].get("allowRegistration", True):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Registration is currently disabled"
            )

        user = await user_service.register_user(
            session,
            name=request.name,
            email=request.email,
            password=request.password,
        )
        return success_response(data=_token_response(user), message="User registered successfully")

    except HTTPException:
        raise
    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        app_logger.error(f"Registration failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Registration failed: {str(e)}"
        )


@router.post("/login", response_model=SuccessResponse[TokenResponse])
async def login(request: LoginRequest, session: AsyncSession = Depends(get_session)):
    """Authenticate user and return access token."""
    try:
        user = await user_service.authenticate(session, request.email, request.password)
        app_logger.info(f"User logged in: {user.email} (ID: {user.id})")
        return success_response(data=_token_response(user), message="Login successful")

    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        app_logger.error(f"Login failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Login failed: {str(e)}"
        )


@router.get("/me", response_model=SuccessResponse[UserResponse])
async def get_me(user: User = Depends(get_current_user)):
    """Get current authenticated user information."""
    return success_response(
        data=UserResponse.from_user(user),
        message="User information retrieved successfully"
    )


@router.post("/change-password", response_model=SuccessResponse[UserResponse])
async def change_password(
    request: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        user = await user_service.change_password(
            session, user, request.current_password, request.new_password
        )
        return success_response(data=UserResponse.from_user(user), message="Password changed successfully")

    except ServiceError as e:
        raise to_http_exception(e)
    except Exception as e:
        app_logger.error(f"Change password failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to change password: {str(e)}"
        )
