"""
Seed Superadmin User

Creates the first superadmin account so the platform can be administered.
Credentials come from the environment:

    SUPERADMIN_USERNAME (default: superadmin)
    SUPERADMIN_EMAIL    (required)
    SUPERADMIN_PASSWORD (required)

Usage:
    cd apps/api
    SUPERADMIN_EMAIL=... SUPERADMIN_PASSWORD=... python scripts/seed_superadmin.py
"""

import asyncio
import logging
import os
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from schoolhub.core.database import async_session_maker, close_db  # noqa: E402
from schoolhub.core.security import hash_password  # noqa: E402
from schoolhub.modules.users import UserRepository, UserRole  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
logger = logging.getLogger("seed_superadmin")


async def seed_superadmin() -> int:
    """Create the superadmin if no superadmin exists yet."""
    username = os.environ.get("SUPERADMIN_USERNAME", "superadmin").strip().lower()
    email = os.environ.get("SUPERADMIN_EMAIL", "").strip().lower()
    password = os.environ.get("SUPERADMIN_PASSWORD", "")

    if not email or not password:
        logger.error("SUPERADMIN_EMAIL and SUPERADMIN_PASSWORD must be set")
        return 1

    try:
        async with async_session_maker() as db:
            existing = await UserRepository.count_by_role(db, UserRole.SUPERADMIN)
            if existing:
                logger.info("Superadmin already exists (%d found), nothing to do", existing)
                return 0

            if await UserRepository.find_by_username_or_email(db, username, email):
                logger.error("A user with username %r or email %r already exists", username, email)
                return 1

            user = await UserRepository.create(
                db,
                username=username,
                email=email,
                password_hash=hash_password(password),
                role=UserRole.SUPERADMIN,
            )
            logger.info("Superadmin created: %s (%s)", user.username, user.id)
            return 0
    finally:
        await close_db()


if __name__ == "__main__":
    sys.exit(asyncio.run(seed_superadmin()))
