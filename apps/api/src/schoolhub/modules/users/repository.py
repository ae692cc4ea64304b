"""
User Repository

Database operations for user management.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.modules.users.models import User, UserRole, UserSchool

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        username: str,
        email: str,
        password_hash: str,
        role: UserRole,
        school_ids: list[str] | None = None,
    ) -> User:
        """
        Create a new user record.

        Args:
            db: Database session
            username: Lower-cased username (unique)
            email: Lower-cased email address (unique)
            password_hash: Hashed password
            role: User's role
            school_ids: Schools the user may administer, in order

        Returns:
            Created User instance
        """
        user = User(
            username=username,
            email=email,
            password_hash=password_hash,
            role=role,
            school_links=[UserSchool(school_id=school_id) for school_id in school_ids or []],
        )

        db.add(user)
        await db.commit()
        await db.refresh(user)

        logger.info(f"Created user: {user.id} - {user.username} ({user.role.value})")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: str) -> User | None:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_ids(db: AsyncSession, user_ids: list[str]) -> dict[str, User]:
        """Users keyed by id; missing ids are absent from the result."""
        if not user_ids:
            return {}
        result = await db.execute(select(User).where(User.id.in_(set(user_ids))))
        return {user.id: user for user in result.scalars().all()}

    @staticmethod
    async def get_by_username(db: AsyncSession, username: str) -> User | None:
        result = await db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    @staticmethod
    async def find_by_username_or_email(
        db: AsyncSession,
        username: str,
        email: str,
    ) -> User | None:
        """
        Find any user holding either the username or the email.

        Returns:
            First matching User or None
        """
        result = await db.execute(
            select(User).where(or_(User.username == username, User.email == email)).limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def add_schools(db: AsyncSession, user: User, school_ids: list[str]) -> User:
        """Append school assignments after the existing ones."""
        # Reassign the collection so the new links are flushed in order
        user.school_links = [
            *user.school_links,
            *(UserSchool(school_id=school_id) for school_id in school_ids),
        ]

        await db.commit()
        await db.refresh(user)

        logger.info(f"Assigned schools {school_ids} to user {user.id}")
        return user

    @staticmethod
    async def update_role(db: AsyncSession, user: User, role: UserRole) -> User:
        user.role = role

        await db.commit()
        await db.refresh(user)

        logger.info(f"Updated user {user.id} role to {role.value}")
        return user

    @staticmethod
    async def update_password(db: AsyncSession, user: User, password_hash: str) -> User:
        """Store a new password hash and stamp the reset time."""
        user.password_hash = password_hash
        user.last_password_reset = datetime.now(UTC)

        await db.commit()
        await db.refresh(user)

        logger.info(f"Password reset for user {user.id}")
        return user

    @staticmethod
    async def unassign_school(db: AsyncSession, school_id: str) -> int:
        """
        Remove a school from every user's assignments.

        Returns:
            Number of users that lost the assignment
        """
        count = await db.scalar(
            select(func.count()).select_from(UserSchool).where(UserSchool.school_id == school_id)
        )
        await db.execute(delete(UserSchool).where(UserSchool.school_id == school_id))
        await db.commit()

        logger.info(f"Unassigned school {school_id} from {count} user(s)")
        return count or 0

    @staticmethod
    async def count_by_role(db: AsyncSession, role: UserRole) -> int:
        return await db.scalar(select(func.count()).select_from(User).where(User.role == role)) or 0
