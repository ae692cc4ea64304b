"""
Security Utilities

Password hashing and the token service.

Three token kinds, each signed with its own secret:
- long token: identity, issued at login, lives 3 years. Carries userId,
  userKey, role and schoolIds. Only used to mint short tokens.
- short token: one per device/session, lives 1 year. Adds sessionId and a
  deviceId derived from the user-agent. Sent on every protected call.
- reset token: single purpose (password reset), lives 1 hour. Carries
  userId, email and a purpose discriminator.

Tokens are stateless: there is no server-side revocation list and a short
token keeps no link to the long token it came from.
"""

import hashlib
import logging
import secrets
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from schoolhub.core.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

RESET_PASSWORD_PURPOSE = "reset_password"
SESSION_ID_BYTES = 16


class TokenKind(str, Enum):
    """Kinds of tokens issued by the API."""

    LONG = "long"
    SHORT = "short"
    RESET = "reset"


# ============================================
# Passwords
# ============================================


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Check a plain password against a stored bcrypt hash."""
    return pwd_context.verify(plain_password, password_hash)


# ============================================
# Token issuance
# ============================================


def _secret_for(kind: TokenKind) -> str:
    if kind is TokenKind.LONG:
        return settings.long_token_secret
    if kind is TokenKind.SHORT:
        return settings.short_token_secret
    return settings.reset_password_token_secret


def _expiry_for(kind: TokenKind) -> timedelta:
    if kind is TokenKind.LONG:
        return timedelta(days=settings.long_token_expire_days)
    if kind is TokenKind.SHORT:
        return timedelta(days=settings.short_token_expire_days)
    return timedelta(minutes=settings.reset_token_expire_minutes)


def _encode(claims: dict[str, Any], kind: TokenKind) -> str:
    now = datetime.now(UTC)
    payload = {**claims, "iat": now, "exp": now + _expiry_for(kind)}
    return jwt.encode(payload, _secret_for(kind), algorithm=settings.jwt_algorithm)


def issue_long_token(
    *,
    user_id: str,
    user_key: str,
    role: str,
    school_ids: list[str] | None = None,
) -> str:
    """Issue the long-lived identity token returned at login."""
    return _encode(
        {
            "userKey": user_key,
            "userId": user_id,
            "role": role,
            "schoolIds": list(school_ids or []),
        },
        TokenKind.LONG,
    )


def issue_short_token(
    *,
    user_id: str,
    user_key: str,
    session_id: str,
    device_id: str,
    role: str,
    school_ids: list[str] | None = None,
) -> str:
    """Issue a session token bound to one device."""
    return _encode(
        {
            "userKey": user_key,
            "userId": user_id,
            "sessionId": session_id,
            "deviceId": device_id,
            "role": role,
            "schoolIds": list(school_ids or []),
        },
        TokenKind.SHORT,
    )


def issue_reset_token(*, user_id: str, email: str) -> str:
    """Issue a one-hour password reset token."""
    return _encode(
        {
            "userId": user_id,
            "email": email,
            "purpose": RESET_PASSWORD_PURPOSE,
        },
        TokenKind.RESET,
    )


# ============================================
# Verification
# ============================================


def verify_token(token: str, kind: TokenKind) -> dict[str, Any] | None:
    """
    Verify a token's signature and expiry against the secret for its kind.

    Never raises. Malformed, expired and wrongly-signed tokens all return
    None, so callers treat None as "unauthenticated" without distinguishing
    the cause.
    """
    try:
        return jwt.decode(token, _secret_for(kind), algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.warning(f"Rejected {kind.value} token: {e}")
        return None


def fingerprint_device(device: str) -> str:
    """Stable device id for a user-agent string."""
    return hashlib.md5(device.encode()).hexdigest()


def derive_short_token(long_claims: dict[str, Any], device: str) -> str:
    """
    Mint a short token from verified long token claims.

    Role and schoolIds are copied from the long token as-is; they are not
    re-read from the user record, so a privilege change only takes effect
    once the user logs in again.
    """
    return issue_short_token(
        user_id=long_claims["userId"],
        user_key=long_claims["userKey"],
        session_id=secrets.token_urlsafe(SESSION_ID_BYTES),
        device_id=fingerprint_device(device),
        role=long_claims["role"],
        school_ids=long_claims.get("schoolIds") or [],
    )
