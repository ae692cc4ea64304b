"""
User Service Layer

Business rules for user management:
1. Creation (superadmin): unique username/email, every school must exist
2. School assignment (superadmin): append schools not yet assigned
3. Role change (superadmin): never on the acting account
4. Password reset: identity taken from a verified reset token

Authentication flows (login, token exchange) live in the auth module.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.core.auth import ResetTokenContext, TokenContext
from schoolhub.core.errors import (
    BusinessRuleError,
    ConflictError,
    NotFoundError,
    service_operation,
)
from schoolhub.core.security import hash_password
from schoolhub.core.validators import require_object_id
from schoolhub.modules.schools.repository import SchoolRepository
from schoolhub.modules.users.models import User, UserRole
from schoolhub.modules.users.repository import UserRepository
from schoolhub.modules.users.schemas import UserCreate

logger = logging.getLogger(__name__)

DUPLICATE_USER_MESSAGE = "User with this email or username already exists"
INVALID_SCHOOLS_MESSAGE = "One or more school IDs are invalid"


async def _require_schools_exist(db: AsyncSession, school_ids: list[str]) -> None:
    """
    Raises:
        BusinessRuleError: If any id does not name an existing school
    """
    if not school_ids:
        return
    found = await SchoolRepository.get_by_ids(db, school_ids)
    if len(found) != len(set(school_ids)):
        logger.warning(f"Unknown school ids in {school_ids}")
        raise BusinessRuleError(INVALID_SCHOOLS_MESSAGE)


async def _get_user_or_404(db: AsyncSession, user_id: str) -> User:
    user = await UserRepository.get_by_id(db, require_object_id(user_id, "userId"))
    if not user:
        raise NotFoundError("User not found")
    return user


@service_operation
async def create_user(db: AsyncSession, data: UserCreate) -> User:
    """
    Create a user with a hashed password.

    Raises:
        ConflictError: Username or email already taken
        BusinessRuleError: A school id does not exist
    """
    if await UserRepository.find_by_username_or_email(db, data.username, data.email):
        logger.warning(f"Duplicate user rejected: {data.username} / {data.email}")
        raise ConflictError(DUPLICATE_USER_MESSAGE)

    await _require_schools_exist(db, data.school_ids)

    try:
        return await UserRepository.create(
            db,
            username=data.username,
            email=data.email,
            password_hash=hash_password(data.password),
            role=data.role,
            school_ids=data.school_ids,
        )
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"Concurrent duplicate user rejected: {data.username}")
        raise ConflictError(DUPLICATE_USER_MESSAGE) from e


@service_operation
async def assign_schools(
    db: AsyncSession,
    user_id: str,
    school_ids: list[str],
) -> tuple[User, int]:
    """
    Append schools to a user's assignments.

    Returns:
        Tuple of (updated user, number of schools added)

    Raises:
        NotFoundError: User does not exist
        BusinessRuleError: Unknown school, or every school already assigned
    """
    user = await _get_user_or_404(db, user_id)
    await _require_schools_exist(db, school_ids)

    current = set(user.school_ids)
    new_school_ids = [school_id for school_id in school_ids if school_id not in current]
    if not new_school_ids:
        raise BusinessRuleError("All provided schools are already assigned to this user")

    try:
        user = await UserRepository.add_schools(db, user, new_school_ids)
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("School already assigned to this user") from e

    return user, len(new_school_ids)


@service_operation
async def update_role(
    db: AsyncSession,
    token: TokenContext,
    user_id: str,
    role: UserRole,
) -> User:
    """
    Change another user's role.

    Raises:
        NotFoundError: User does not exist
        BusinessRuleError: Target is the acting user
    """
    user = await _get_user_or_404(db, user_id)

    if user.id == token.user_id:
        logger.warning(f"User {token.user_id} attempted to change their own role")
        raise BusinessRuleError("Cannot change your own role")

    return await UserRepository.update_role(db, user, role)


@service_operation
async def reset_password(
    db: AsyncSession,
    reset: ResetTokenContext,
    password: str,
) -> User:
    """
    Set a new password for the user named by a reset token.

    The token's email must still match the account, so a token issued before
    an email change cannot be used.

    Raises:
        NotFoundError: User no longer exists
        BusinessRuleError: Token email does not match the account
    """
    user = await UserRepository.get_by_id(db, reset.user_id)
    if not user:
        raise NotFoundError("User not found")

    if user.email != reset.email:
        logger.warning(f"Reset token email mismatch for user {user.id}")
        raise BusinessRuleError("Invalid reset token")

    return await UserRepository.update_password(db, user, hash_password(password))
