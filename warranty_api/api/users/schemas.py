"""User profile request and response schemas."""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from warranty_api.models.user import User
from warranty_api.utils.responses import UTCDateTime


class SocialLinks(BaseModel):
    twitter: str = ""
    linkedin: str = ""
    github: str = ""
    instagram: str = ""


class SocialLinksUpdate(BaseModel):
    twitter: Optional[str] = Field(default=None, max_length=255)
    linkedin: Optional[str] = Field(default=None, max_length=255)
    github: Optional[str] = Field(default=None, max_length=255)
    instagram: Optional[str] = Field(default=None, max_length=255)


class UserResponse(BaseModel):
    """Public representation of an account. Never carries the password hash."""

    id: UUID = Field(..., description="User ID")
    name: str
    email: str
    role: str
    profile_picture: Optional[str] = None
    bio: str = ""
    social_links: SocialLinks = Field(default_factory=SocialLinks)
    created_at: UTCDateTime
    updated_at: UTCDateTime

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            profile_picture=user.profile_picture,
            bio=user.bio or "",
            social_links=SocialLinks(**user.social_links),
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserSummary(BaseModel):
    id: UUID
    name: str
    email: str

    model_config = {"from_attributes": True}


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    bio: Optional[str] = Field(default=None, max_length=2000)
    social_links: Optional[SocialLinksUpdate] = None

    model_config = {"json_schema_extra": {"example": {
        "name": "Jane Doe",
        "bio": "Keeps every receipt.",
        "social_links": {"github": "janedoe"}
    }}}
