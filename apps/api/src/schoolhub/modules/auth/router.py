"""
Authentication Router

Endpoints:
- POST /auth/login - Username/password login, returns a long token
- POST /auth/short-token - Exchange a long token for a short token
- POST /auth/password-reset/request - Issue a password reset token
- POST /auth/password-reset - Set a new password with a reset token
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.core.auth import (
    ResetTokenContext,
    TokenContext,
    get_device,
    get_long_token,
    require_reset_token,
)
from schoolhub.core.database import get_db
from schoolhub.core.responses import ok
from schoolhub.modules.auth import service
from schoolhub.modules.auth.schemas import (
    LoginRequest,
    PasswordResetRequest,
    ResetPasswordRequest,
    ResetPasswordResponse,
)
from schoolhub.modules.users import service as user_service
from schoolhub.modules.users.schemas import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/login",
    summary="Login",
    description="""
Authenticate with username and password. The returned `longToken` is only
used to mint short tokens via `/auth/short-token`.
""",
    responses={
        400: {"description": "Validation error"},
        401: {"description": "Invalid username or password"},
    },
)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    result = await service.login(db, credentials.username, credentials.password)
    return ok(result)


@router.post(
    "/short-token",
    summary="Create Short Token",
    description="""
Exchange a long token (sent in the `token` header) for a short token bound
to the calling device. The short token carries the role and schools of the
long token; changes made after login apply from the next login.
""",
    responses={
        401: {"description": "Missing, invalid or expired long token"},
    },
)
async def create_short_token(
    long_token: TokenContext = Depends(get_long_token),
    device: str = Depends(get_device),
):
    result = await service.create_short_token(long_token, device)
    return ok(result)


@router.post(
    "/password-reset/request",
    summary="Request Password Reset",
    description="""
Issue a one-hour password reset token for the account with this email. The
token is emailed to the account and also returned in the response.
""",
    responses={
        400: {"description": "Validation error"},
        404: {"description": "No account with this email"},
    },
)
async def request_password_reset(
    data: PasswordResetRequest,
    db: AsyncSession = Depends(get_db),
):
    result = await service.request_password_reset(db, data.email)
    return ok(result)


@router.post(
    "/password-reset",
    summary="Reset Password",
    description="""
Set a new password. The reset token is read from the `token` header, then
the `token` query parameter, then the `token` body field.
""",
    responses={
        400: {"description": "Validation error or token no longer matches the account"},
        401: {"description": "Missing, invalid or expired reset token"},
        404: {"description": "User not found"},
    },
)
async def reset_password(
    data: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
    reset: ResetTokenContext = Depends(require_reset_token),
):
    user = await user_service.reset_password(db, reset, data.password)
    return ok(
        ResetPasswordResponse(
            user=UserResponse.model_validate(user),
            message="Password reset successfully",
        )
    )
