"""User model."""

from datetime import datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import Column, DateTime, Text
from sqlmodel import Field, SQLModel

from warranty_api.utils.passwords import hash_password, verify_password


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class User(SQLModel, table=True):
    """User account model.

    ``hashed_password`` is only ever written through ``set_password`` and is
    never declared on any response schema.
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=255)
    email: str = Field(unique=True, index=True, max_length=255)
    hashed_password: str = Field(max_length=255)
    role: str = Field(default=UserRole.USER.value, max_length=20, index=True)
    profile_picture: str | None = Field(default=None, max_length=512)
    bio: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))

    # Social links
    twitter: str = Field(default="", max_length=255)
    linkedin: str = Field(default="", max_length=255)
    github: str = Field(default="", max_length=255)
    instagram: str = Field(default="", max_length=255)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), index=True)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True))
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def social_links(self) -> dict:
        return {
            "twitter": self.twitter,
            "linkedin": self.linkedin,
            "github": self.github,
            "instagram": self.instagram,
        }

    def set_password(self, password: str) -> None:
        """Store a salted hash of ``password``."""
        self.hashed_password = hash_password(password)

    def check_password(self, password: str) -> bool:
        return verify_password(password, self.hashed_password)
