"""User accounts: registration, login, profile."""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from warranty_api.config.logger import app_logger
from warranty_api.models.user import User, UserRole
from warranty_api.services import file_storage
from warranty_api.services.file_storage import StoredFile
from warranty_api.utils.errors import AuthenticationError, ConflictError, NotFoundError

SOCIAL_LINK_FIELDS = ("twitter", "linkedin", "github", "instagram")


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    result = await session.execute(
        select(User).where(col(User.email) == normalize_email(email))
    )
    return result.scalars().first()


async def get_user(session: AsyncSession, user_id: UUID) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def register_user(
    session: AsyncSession,
    name: str,
    email: str,
    password: str,
    role: UserRole = UserRole.USER,
) -> User:
    """Create a new account. Raises ConflictError when the email is taken."""
    if await get_user_by_email(session, email):
        raise ConflictError("User with this email already exists")

    user = User(
        name=name.strip(),
        email=normalize_email(email),
        role=UserRole(role).value,
        hashed_password="",
    )
    user.set_password(password)
    session.add(user)
    await session.commit()

    app_logger.info(f"User registered: {user.email} (ID: {user.id})")
    return user


async def authenticate(session: AsyncSession, email: str, password: str) -> User:
    user = await get_user_by_email(session, email)
    if user is None or not user.check_password(password):
        raise AuthenticationError("Invalid email or password")
    return user


async def change_password(
    session: AsyncSession,
    user: User,
    current_password: str,
    new_password: str,
) -> User:
    if not user.check_password(current_password):
        raise AuthenticationError("Current password is incorrect")

    user.set_password(new_password)
    user.updated_at = datetime.now(timezone.utc)
    session.add(user)
    await session.commit()

    app_logger.info(f"Password changed for user {user.id}")
    return user


async def update_profile(
    session: AsyncSession,
    user: User,
    name: Optional[str] = None,
    bio: Optional[str] = None,
    social_links: Optional[dict] = None,
) -> User:
    """Partial profile update; only supplied values change."""
    if name:
        user.name = name.strip()
    if bio is not None:
        user.bio = bio
    for key in SOCIAL_LINK_FIELDS:
        if social_links and social_links.get(key) is not None:
            setattr(user, key, social_links[key])

    user.updated_at = datetime.now(timezone.utc)
    session.add(user)
    await session.commit()
    return user


async def set_profile_picture(session: AsyncSession, user: User, stored: StoredFile) -> User:
    """Point the profile picture at ``stored`` and delete the previous file."""
    previous = user.profile_picture
    user.profile_picture = file_storage.public_url(stored, file_storage.PROFILE_PICTURES_SUBDIR)
    user.updated_at = datetime.now(timezone.utc)
    session.add(user)
    await session.commit()

    if previous:
        file_storage.remove_file(file_storage.resolve_public_url(previous))
    return user
