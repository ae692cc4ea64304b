"""
Unit tests for the fixed-window IP rate limiter.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from schoolhub.core.config import settings
from schoolhub.core import rate_limit
from schoolhub.core.errors import RateLimitExceededError
from schoolhub.core.rate_limit import check_rate_limit, client_ip, enforce_ip_rate_limit


def make_request(ip: str = "10.0.0.1", forwarded: str | None = None) -> MagicMock:
    request = MagicMock()
    request.headers = {"x-forwarded-for": forwarded} if forwarded else {}
    request.client.host = ip
    return request


class TestCheckRateLimitMemory:
    @pytest.mark.asyncio
    async def test_allows_up_to_limit(self):
        with patch("schoolhub.core.rate_limit.get_redis", AsyncMock(return_value=None)):
            results = [await check_rate_limit("k", 3, 60) for _ in range(4)]

        assert [allowed for allowed, _ in results] == [True, True, True, False]
        assert 0 < results[-1][1] <= 60

    @pytest.mark.asyncio
    async def test_keys_are_independent(self):
        with patch("schoolhub.core.rate_limit.get_redis", AsyncMock(return_value=None)):
            await check_rate_limit("a", 1, 60)
            allowed, _ = await check_rate_limit("b", 1, 60)
        assert allowed

    @pytest.mark.asyncio
    async def test_expired_windows_are_pruned(self):
        with patch("schoolhub.core.rate_limit.get_redis", AsyncMock(return_value=None)):
            with patch("schoolhub.core.rate_limit.time.time", return_value=1000.0):
                for n in range(5):
                    await check_rate_limit(f"old:{n}", 10, 60)
            assert len(rate_limit._memory_store) == 5

            with patch("schoolhub.core.rate_limit.time.time", return_value=1100.0):
                await check_rate_limit("new", 10, 60)

        assert list(rate_limit._memory_store) == ["new"]


class TestCheckRateLimitRedis:
    @pytest.mark.asyncio
    async def test_first_hit_sets_expiry(self, mock_redis):
        with patch("schoolhub.core.rate_limit.get_redis", AsyncMock(return_value=mock_redis)):
            allowed, retry_after = await check_rate_limit("k", 5, 300)

        assert allowed
        assert retry_after == 300
        mock_redis.expire.assert_called_once_with("k", 300)

    @pytest.mark.asyncio
    async def test_over_limit_reports_ttl(self, mock_redis):
        mock_redis.incr = AsyncMock(return_value=6)
        mock_redis.ttl = AsyncMock(return_value=42)

        with patch("schoolhub.core.rate_limit.get_redis", AsyncMock(return_value=mock_redis)):
            allowed, retry_after = await check_rate_limit("k", 5, 300)

        assert not allowed
        assert retry_after == 42
        mock_redis.expire.assert_not_called()

    @pytest.mark.asyncio
    async def test_redis_failure_falls_back_to_memory(self, mock_redis):
        mock_redis.incr = AsyncMock(side_effect=ConnectionError("down"))

        with patch("schoolhub.core.rate_limit.get_redis", AsyncMock(return_value=mock_redis)):
            allowed, _ = await check_rate_limit("k", 1, 60)
            blocked, _ = await check_rate_limit("k", 1, 60)

        assert allowed
        assert not blocked


class TestEnforceIpRateLimit:
    def test_client_ip_ignores_forwarded_for(self):
        assert client_ip(make_request(ip="10.0.0.9", forwarded="1.2.3.4, 10.0.0.2")) == "10.0.0.9"
        assert client_ip(make_request(ip="10.0.0.9")) == "10.0.0.9"

    @pytest.mark.asyncio
    async def test_rotating_forwarded_for_shares_one_window(self, monkeypatch):
        monkeypatch.setattr(settings, "python_env", "development")
        monkeypatch.setattr(settings, "rate_limit_max_requests", 2)

        allowed = 0
        with patch("schoolhub.core.rate_limit.get_redis", AsyncMock(return_value=None)):
            for n in range(10):
                try:
                    await enforce_ip_rate_limit(make_request(ip="1.2.3.4", forwarded=f"9.9.9.{n}"))
                    allowed += 1
                except RateLimitExceededError:
                    pass

        assert allowed == 2

    @pytest.mark.asyncio
    async def test_skipped_in_test_environment(self, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_max_requests", 0)
        await enforce_ip_rate_limit(make_request())

    @pytest.mark.asyncio
    async def test_raises_when_exceeded(self, monkeypatch):
        monkeypatch.setattr(settings, "python_env", "development")
        monkeypatch.setattr(settings, "rate_limit_max_requests", 2)

        with patch("schoolhub.core.rate_limit.get_redis", AsyncMock(return_value=None)):
            await enforce_ip_rate_limit(make_request())
            await enforce_ip_rate_limit(make_request())
            with pytest.raises(RateLimitExceededError) as exc_info:
                await enforce_ip_rate_limit(make_request())

        assert exc_info.value.status_code == 429
        assert int(exc_info.value.headers["Retry-After"]) > 0
