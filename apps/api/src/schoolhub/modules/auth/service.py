"""
Authentication Service Layer

Login, token exchange and password reset.

Flow:
1. login(username, password) -> long token (identity, 3 years)
2. create_short_token(long token, device) -> short token (session, 1 year),
   sent in the ``token`` header on every protected call
3. request_password_reset(email) -> reset token (1 hour), emailed and
   returned; reset_password(reset token, password) in the users service
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.core.auth import TokenContext
from schoolhub.core.email import send_password_reset_email
from schoolhub.core.errors import AuthenticationError, NotFoundError, service_operation
from schoolhub.core.security import (
    derive_short_token,
    issue_long_token,
    issue_reset_token,
    verify_password,
)
from schoolhub.modules.auth.schemas import (
    LoginResponse,
    PasswordResetRequestResponse,
    ShortTokenResponse,
)
from schoolhub.modules.users.repository import UserRepository
from schoolhub.modules.users.schemas import UserResponse

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid username or password"


@service_operation
async def login(db: AsyncSession, username: str, password: str) -> LoginResponse:
    """
    Authenticate a user and issue a long token.

    Raises:
        AuthenticationError: Unknown username or wrong password (same message)
    """
    user = await UserRepository.get_by_username(db, username)

    if not user:
        logger.warning(f"Login attempt for non-existent username: {username}")
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

    if not verify_password(password, user.password_hash):
        logger.warning(f"Invalid password for user: {username}")
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

    long_token = issue_long_token(
        user_id=user.id,
        user_key=user.id,
        role=user.role.value,
        school_ids=user.school_ids,
    )

    logger.info(f"User logged in: {user.username} (role: {user.role.value})")
    return LoginResponse(user=UserResponse.model_validate(user), long_token=long_token)


@service_operation
async def create_short_token(long_token: TokenContext, device: str) -> ShortTokenResponse:
    """Mint a device-bound short token from a verified long token."""
    short_token = derive_short_token(
        {
            "userId": long_token.user_id,
            "userKey": long_token.user_key,
            "role": long_token.role_claim,
            "schoolIds": list(long_token.school_ids),
        },
        device,
    )
    logger.info(f"Short token issued for user {long_token.user_id}")
    return ShortTokenResponse(short_token=short_token)


@service_operation
async def request_password_reset(db: AsyncSession, email: str) -> PasswordResetRequestResponse:
    """
    Issue a reset token for the account with this email and mail it.

    Email delivery is best effort; the token is also returned.

    Raises:
        NotFoundError: No account has this email
    """
    user = await UserRepository.get_by_email(db, email)
    if not user:
        logger.warning(f"Password reset requested for unknown email: {email}")
        raise NotFoundError("The email does not match any account in our records.")

    reset_token = issue_reset_token(user_id=user.id, email=user.email)

    if not await send_password_reset_email(user.email, user.username, reset_token):
        logger.warning(f"Password reset email to user {user.id} was not delivered")

    return PasswordResetRequestResponse(
        message="Password reset token sent to your email.",
        reset_token=reset_token,
    )
