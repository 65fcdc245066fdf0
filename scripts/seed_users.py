"""Script to seed the default admin and test accounts into the database."""

import asyncio
import sys
from pathlib import Path

# Add the parent directory to the path so we can import from warranty_api
sys.path.insert(0, str(Path(__file__).parent.parent))

from warranty_api.db.db import init_db, close_db, db_session
from warranty_api.db.seed import DEFAULT_USERS, seed_default_users


async def main():
    """Main entry point."""
    print("Seeding default users...")
    await init_db()
    try:
        async with db_session() as session:
            created = await seed_default_users(session)
    finally:
        await close_db()

    print("=" * 50)
    if not created:
        print("All default users already exist.")
    for user in created:
        password = next(a["password"] for a in DEFAULT_USERS if a["email"] == user.email)
        print(f"Created {user.role}: {user.email} / {password} (ID: {user.id})")
    print("=" * 50)
    print("Done!")


if __name__ == "__main__":
    asyncio.run(main())
