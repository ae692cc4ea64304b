"""
Authentication and Authorization Gates

FastAPI dependencies that run before every protected endpoint. Each gate
reads the raw request plus the context produced by the gate before it, and
either returns a narrower context or raises a ServiceError that terminates
the request with the failure envelope.

Chain:
1. get_current_token  - short token from the ``token`` header (401)
2. require_admin_scope - schoolId from query/body, tenant check (401/403)
   require_superadmin  - superadmin-only endpoints (401/403)
3. require_reset_token - reset token from header/query/body (401)

get_long_token is the entry gate for the short-token exchange.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from fastapi import Depends, Request

from schoolhub.core.errors import AuthenticationError, AuthorizationError
from schoolhub.core.security import RESET_PASSWORD_PURPOSE, TokenKind, verify_token
from schoolhub.modules.users.models import UserRole

logger = logging.getLogger(__name__)

TOKEN_HEADER = "token"


@dataclass(frozen=True)
class TokenContext:
    """
    Decoded claims of a verified long or short token.

    Attributes:
        user_id: Id of the authenticated user
        user_key: Stable user key
        role_claim: Raw role string from the token
        school_ids: Schools the token is scoped to (empty for superadmin)
        session_id: Session id (short tokens only)
        device_id: Device fingerprint (short tokens only)
    """

    user_id: str | None
    user_key: str | None
    role_claim: str | None
    school_ids: tuple[str, ...] = field(default_factory=tuple)
    session_id: str | None = None
    device_id: str | None = None

    @property
    def role(self) -> UserRole | None:
        """Role as the closed enum; None when missing or unrecognised."""
        try:
            return UserRole(self.role_claim)
        except ValueError:
            return None

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "TokenContext":
        return cls(
            user_id=claims.get("userId"),
            user_key=claims.get("userKey"),
            role_claim=claims.get("role"),
            school_ids=tuple(str(school_id) for school_id in claims.get("schoolIds") or []),
            session_id=claims.get("sessionId"),
            device_id=claims.get("deviceId"),
        )

    def __str__(self) -> str:
        return f"TokenContext(user_id={self.user_id}, role={self.role_claim})"


@dataclass(frozen=True)
class AdminScope:
    """A token authorised to act on one school."""

    school_id: str
    token: TokenContext


@dataclass(frozen=True)
class ResetTokenContext:
    """Decoded claims of a verified password reset token."""

    user_id: str
    email: str


# ============================================
# Request helpers
# ============================================


async def _read_json_body(request: Request) -> dict[str, Any]:
    """Return the JSON object body, or an empty dict when there is none."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def get_device(request: Request) -> str:
    """Device fingerprint source for short tokens."""
    return request.headers.get("user-agent", "")


# ============================================
# Pure gate checks
# ============================================


def authorize_admin_scope(token: TokenContext | None, school_id: str | None) -> AdminScope:
    """
    Check that a token may act on a school.

    Superadmins may act on any school; admins only on schools listed in
    their token.

    Raises:
        AuthenticationError: No token, or no schoolId supplied
        AuthorizationError: Role is not allowed or school is out of scope
    """
    if token is None:
        raise AuthenticationError("Unauthorized")

    if not school_id:
        raise AuthenticationError("Unauthorized: schoolId is required for admin access")

    school_id = school_id.lower()
    role = token.role
    if role is UserRole.SUPERADMIN:
        return AdminScope(school_id=school_id, token=token)

    if role is UserRole.ADMIN:
        if school_id not in token.school_ids:
            logger.warning(f"Admin {token.user_id} denied access to school {school_id}")
            raise AuthorizationError("Forbidden: school access denied")
        return AdminScope(school_id=school_id, token=token)

    logger.warning(f"Role '{token.role_claim}' denied admin access")
    raise AuthorizationError("Forbidden: resource access denied")


def authorize_superadmin(token: TokenContext | None) -> TokenContext:
    """
    Check that a token belongs to a superadmin.

    Raises:
        AuthenticationError: Token missing or lacks identity claims
        AuthorizationError: Token is not a superadmin token
    """
    if token is None or not token.user_id or not token.role_claim:
        raise AuthenticationError("Unauthorized")

    if token.role is not UserRole.SUPERADMIN:
        logger.warning(f"User {token.user_id} ({token.role_claim}) denied superadmin access")
        raise AuthorizationError("Forbidden: superadmin access required")

    return token


def authorize_reset_token(token: str | None) -> ResetTokenContext:
    """
    Verify a password reset token.

    Raises:
        AuthenticationError: Token missing, invalid, expired or wrong purpose
    """
    if not token:
        raise AuthenticationError("Reset password token not provided")

    claims = verify_token(token, TokenKind.RESET)
    if (
        not claims
        or claims.get("purpose") != RESET_PASSWORD_PURPOSE
        or not claims.get("userId")
        or not claims.get("email")
    ):
        raise AuthenticationError("Invalid or expired reset password token")

    return ResetTokenContext(user_id=claims["userId"], email=claims["email"])


# ============================================
# FastAPI dependencies
# ============================================


async def get_current_token(request: Request) -> TokenContext:
    """
    Token gate: verify the short token sent in the ``token`` header.

    Raises:
        AuthenticationError: Header missing or token invalid/expired
    """
    token = request.headers.get(TOKEN_HEADER)
    if not token:
        raise AuthenticationError("Unauthorized")

    claims = verify_token(token, TokenKind.SHORT)
    if claims is None:
        raise AuthenticationError("Unauthorized: invalid or expired token")

    return TokenContext.from_claims(claims)


async def get_long_token(request: Request) -> TokenContext:
    """
    Long token gate used by the short-token exchange.

    Raises:
        AuthenticationError: Header missing or not a valid long token
    """
    token = request.headers.get(TOKEN_HEADER)
    if not token:
        raise AuthenticationError("Unauthorized")

    claims = verify_token(token, TokenKind.LONG)
    if claims is None or not claims.get("userId"):
        raise AuthenticationError("Unauthorized: invalid or expired long token")

    return TokenContext.from_claims(claims)


async def require_admin_scope(
    request: Request,
    token: TokenContext = Depends(get_current_token),
) -> AdminScope:
    """Admin-scope gate: schoolId from the query string, else the JSON body."""
    school_id = request.query_params.get("schoolId")
    if not school_id:
        body = await _read_json_body(request)
        school_id = body.get("schoolId")

    scope = authorize_admin_scope(token, str(school_id) if school_id else None)
    logger.debug(f"Admin access granted: {token} -> school {scope.school_id}")
    return scope


async def require_superadmin(
    token: TokenContext = Depends(get_current_token),
) -> TokenContext:
    """Superadmin gate."""
    return authorize_superadmin(token)


async def require_reset_token(request: Request) -> ResetTokenContext:
    """Reset-token gate: header first, then query string, then JSON body."""
    token = request.headers.get(TOKEN_HEADER) or request.query_params.get("token")
    if not token:
        body = await _read_json_body(request)
        token = body.get("token")

    return authorize_reset_token(token if isinstance(token, str) else None)


__all__ = [
    "AdminScope",
    "ResetTokenContext",
    "TokenContext",
    "authorize_admin_scope",
    "authorize_reset_token",
    "authorize_superadmin",
    "get_current_token",
    "get_device",
    "get_long_token",
    "require_admin_scope",
    "require_reset_token",
    "require_superadmin",
]
