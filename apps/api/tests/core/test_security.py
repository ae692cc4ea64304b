"""
Unit tests for password hashing and the token service.
"""

import hashlib

from jose import jwt

from schoolhub.core.config import settings
from schoolhub.core.security import (
    RESET_PASSWORD_PURPOSE,
    TokenKind,
    derive_short_token,
    fingerprint_device,
    hash_password,
    issue_long_token,
    issue_reset_token,
    issue_short_token,
    verify_password,
    verify_token,
)

USER_ID = "65a1b2c3d4e5f60718293a4b"
SCHOOL_ID = "65a1b2c3d4e5f60718293a4c"


class TestPasswords:
    def test_hash_is_not_plain_text(self):
        hashed = hash_password("Password123!")
        assert hashed != "Password123!"
        assert hashed.startswith("$2")

    def test_verify_matches_only_original(self):
        hashed = hash_password("Password123!")
        assert verify_password("Password123!", hashed)
        assert not verify_password("password123!", hashed)


class TestTokenKinds:
    """Each kind is signed with its own secret."""

    def test_long_token_round_trip(self):
        token = issue_long_token(
            user_id=USER_ID, user_key=USER_ID, role="admin", school_ids=[SCHOOL_ID]
        )
        claims = verify_token(token, TokenKind.LONG)

        assert claims["userId"] == USER_ID
        assert claims["userKey"] == USER_ID
        assert claims["role"] == "admin"
        assert claims["schoolIds"] == [SCHOOL_ID]
        assert "sessionId" not in claims

    def test_long_token_is_not_a_short_token(self):
        token = issue_long_token(user_id=USER_ID, user_key=USER_ID, role="superadmin")
        assert verify_token(token, TokenKind.SHORT) is None
        assert verify_token(token, TokenKind.RESET) is None

    def test_short_token_carries_session_and_device(self):
        token = issue_short_token(
            user_id=USER_ID,
            user_key=USER_ID,
            session_id="s1",
            device_id="d1",
            role="admin",
            school_ids=[SCHOOL_ID],
        )
        claims = verify_token(token, TokenKind.SHORT)

        assert claims["sessionId"] == "s1"
        assert claims["deviceId"] == "d1"
        assert verify_token(token, TokenKind.LONG) is None

    def test_reset_token_has_purpose(self):
        token = issue_reset_token(user_id=USER_ID, email="a@b.dev")
        claims = verify_token(token, TokenKind.RESET)

        assert claims["purpose"] == RESET_PASSWORD_PURPOSE
        assert claims["email"] == "a@b.dev"

    def test_short_token_expiry_is_one_year(self):
        token = issue_short_token(
            user_id=USER_ID, user_key=USER_ID, session_id="s", device_id="d", role="admin"
        )
        claims = verify_token(token, TokenKind.SHORT)
        assert claims["exp"] - claims["iat"] == 365 * 24 * 3600


class TestVerifyToken:
    def test_expired_token_returns_none(self, monkeypatch):
        monkeypatch.setattr(settings, "reset_token_expire_minutes", -1)
        token = issue_reset_token(user_id=USER_ID, email="a@b.dev")
        assert verify_token(token, TokenKind.RESET) is None

    def test_tampered_token_returns_none(self):
        token = issue_long_token(user_id=USER_ID, user_key=USER_ID, role="admin")
        forged = jwt.encode(
            {"userId": USER_ID, "role": "superadmin"}, "wrong-secret", algorithm="HS256"
        )
        assert verify_token(token[:-2] + "xx", TokenKind.LONG) is None
        assert verify_token(forged, TokenKind.LONG) is None

    def test_garbage_returns_none(self):
        assert verify_token("not-a-token", TokenKind.SHORT) is None


class TestDeriveShortToken:
    def test_copies_role_and_schools_from_long_claims(self):
        claims = {
            "userId": USER_ID,
            "userKey": USER_ID,
            "role": "admin",
            "schoolIds": [SCHOOL_ID],
        }
        short = verify_token(derive_short_token(claims, "Mozilla/5.0"), TokenKind.SHORT)

        assert short["userId"] == USER_ID
        assert short["role"] == "admin"
        assert short["schoolIds"] == [SCHOOL_ID]
        assert short["deviceId"] == hashlib.md5(b"Mozilla/5.0").hexdigest()
        assert short["sessionId"]

    def test_each_exchange_gets_a_new_session(self):
        claims = {"userId": USER_ID, "userKey": USER_ID, "role": "superadmin"}
        first = verify_token(derive_short_token(claims, "ua"), TokenKind.SHORT)
        second = verify_token(derive_short_token(claims, "ua"), TokenKind.SHORT)

        assert first["sessionId"] != second["sessionId"]
        assert first["deviceId"] == second["deviceId"]
        assert first["schoolIds"] == []

    def test_fingerprint_is_stable(self):
        assert fingerprint_device("ua") == fingerprint_device("ua")
        assert fingerprint_device("ua") != fingerprint_device("other")
