"""
Tests for the authentication service layer.
"""

from unittest.mock import AsyncMock, patch

import pytest

from schoolhub.core.auth import TokenContext
from schoolhub.core.errors import AuthenticationError, NotFoundError
from schoolhub.core.security import TokenKind, verify_token
from schoolhub.modules.auth.service import create_short_token, login, request_password_reset


class TestLogin:
    @pytest.mark.asyncio
    async def test_unknown_username(self, mock_db):
        with patch("schoolhub.modules.auth.service.UserRepository") as mock_repo:
            mock_repo.get_by_username = AsyncMock(return_value=None)

            with pytest.raises(AuthenticationError) as exc_info:
                await login(mock_db, "ghost", "whatever")

        assert exc_info.value.message == "Invalid username or password"

    @pytest.mark.asyncio
    async def test_wrong_password_same_message(self, db_session, admin):
        with pytest.raises(AuthenticationError) as exc_info:
            await login(db_session, "alice", "wrong-password")
        assert exc_info.value.message == "Invalid username or password"

    @pytest.mark.asyncio
    async def test_issues_long_token(self, db_session, admin, school):
        result = await login(db_session, "alice", "Password123!")

        claims = verify_token(result.long_token, TokenKind.LONG)
        assert claims["userId"] == admin.id
        assert claims["role"] == "admin"
        assert claims["schoolIds"] == [school.id]
        assert result.user.username == "alice"


class TestCreateShortToken:
    @pytest.mark.asyncio
    async def test_copies_long_token_scope(self):
        long_token = TokenContext(
            user_id="65a1b2c3d4e5f60718293a4b",
            user_key="65a1b2c3d4e5f60718293a4b",
            role_claim="admin",
            school_ids=("65a1b2c3d4e5f60718293a4c",),
        )
        result = await create_short_token(long_token, "pytest-agent")

        claims = verify_token(result.short_token, TokenKind.SHORT)
        assert claims["role"] == "admin"
        assert claims["schoolIds"] == ["65a1b2c3d4e5f60718293a4c"]
        assert claims["deviceId"]


class TestRequestPasswordReset:
    @pytest.mark.asyncio
    async def test_unknown_email(self, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            await request_password_reset(db_session, "nobody@schoolhub.dev")
        assert exc_info.value.message == "The email does not match any account in our records."

    @pytest.mark.asyncio
    async def test_returns_token_and_sends_email(self, db_session, admin):
        with patch(
            "schoolhub.modules.auth.service.send_password_reset_email",
            AsyncMock(return_value=True),
        ) as mock_email:
            result = await request_password_reset(db_session, admin.email)

        claims = verify_token(result.reset_token, TokenKind.RESET)
        assert claims["userId"] == admin.id
        assert claims["email"] == admin.email
        mock_email.assert_called_once_with(admin.email, admin.username, result.reset_token)

    @pytest.mark.asyncio
    async def test_email_failure_still_returns_token(self, db_session, admin):
        with patch(
            "schoolhub.modules.auth.service.send_password_reset_email",
            AsyncMock(return_value=False),
        ):
            result = await request_password_reset(db_session, admin.email)

        assert result.reset_token
