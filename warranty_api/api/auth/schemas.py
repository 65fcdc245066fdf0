"""Authentication request and response schemas."""

from pydantic import BaseModel, EmailStr, Field

from warranty_api.api.users.schemas import UserResponse


class RegisterRequest(BaseModel):
    """Request schema for user registration."""

    name: str = Field(..., min_length=1, max_length=255, description="Full name")
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=8, max_length=72, description="User password (8-72 characters)")

    model_config = {"json_schema_extra": {"example": {
        "name": "John Doe",
        "email": "user@example.com",
        "password": "securepassword123"
    }}}


class LoginRequest(BaseModel):
    """Request schema for user login."""

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., max_length=72, description="User password")

    model_config = {"json_schema_extra": {"example": {
        "email": "user@example.com",
        "password": "securepassword123"
    }}}


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., max_length=72)
    new_password: str = Field(..., min_length=8, max_length=72)


class TokenResponse(BaseModel):
    """Response schema for authentication tokens."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Token expiration time in seconds")
    user: UserResponse
