"""Default account seeding.

Seeding is an explicit, opt-in step: it runs at startup only when
``SEED_DEFAULT_USERS`` is enabled, or on demand through
``scripts/seed_users.py``. Importing models never creates accounts.
"""

from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from warranty_api.config.logger import app_logger
from warranty_api.models.user import User, UserRole
from warranty_api.services import user_service

DEFAULT_USERS = [
    {
        "name": "Admin User",
        "email": "admin@example.com",
        "password": "admin123",
        "role": UserRole.ADMIN,
    },
    {
        "name": "Test User",
        "email": "user@example.com",
        "password": "user123",
        "role": UserRole.USER,
    },
]


async def seed_default_users(session: AsyncSession) -> List[User]:
    """Create the default admin and user accounts if they don't exist.

    Returns the accounts that were created by this call.
    """
    created = []
    for account in DEFAULT_USERS:
        try:
            existing = await user_service.get_user_by_email(session, account["email"])
            if existing:
                app_logger.info(f"Seed user already exists: {account['email']}")
                continue

            user = await user_service.register_user(
                session,
                name=account["name"],
                email=account["email"],
                password=account["password"],
                role=account["role"],
            )
            created.append(user)
            app_logger.info(f"Seeded default {user.role} user: {user.email}")
        except Exception as e:
            await session.rollback()
            app_logger.warning(f"Failed to seed user {account['email']}: {e}")
    return created
