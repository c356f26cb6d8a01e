"""Tests for authentication rate limiting."""

from datetime import timedelta

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.config import settings
from app.core.errors import RateLimitError
from app.services.rate_limit import check_auth_rate_limit, check_password_reset_rate_limit


@pytest.mark.unit
class TestCheckAuthRateLimit:
    """Tests for check_auth_rate_limit (mock_redis comes from conftest)."""

    async def test_allows_request_under_limit(self, mock_redis):
        """First request (count=None) should be allowed."""
        mock_redis.get.return_value = None

        # Should not raise
        await check_auth_rate_limit("10.0.0.1", mock_redis)

    async def test_allows_request_at_limit_minus_one(self, mock_redis):
        mock_redis.get.return_value = str(settings.AUTH_RATE_LIMIT - 1).encode()

        await check_auth_rate_limit("10.0.0.1", mock_redis)

    async def test_rejects_request_at_limit(self, mock_redis):
        """Request at the limit should raise 429 with a retry hint."""
        mock_redis.get.return_value = str(settings.AUTH_RATE_LIMIT).encode()

        with pytest.raises(RateLimitError) as exc_info:
            await check_auth_rate_limit("10.0.0.1", mock_redis)

        assert exc_info.value.status_code == 429
        assert exc_info.value.retry_after == settings.AUTH_RATE_WINDOW_MINUTES * 60
        mock_redis.pipeline.assert_not_called()

    async def test_sets_expiry_on_first_request(self, mock_redis):
        mock_redis.get.return_value = None
        mock_pipe = mock_redis.pipeline.return_value

        await check_auth_rate_limit("10.0.0.1", mock_redis)

        mock_pipe.incr.assert_called_once_with("auth_rate:10.0.0.1")
        mock_pipe.expire.assert_called_once()
        args = mock_pipe.expire.call_args[0]
        assert args[1] == timedelta(minutes=settings.AUTH_RATE_WINDOW_MINUTES)

    async def test_does_not_set_expiry_on_subsequent_requests(self, mock_redis):
        mock_redis.get.return_value = b"2"
        mock_pipe = mock_redis.pipeline.return_value

        await check_auth_rate_limit("10.0.0.1", mock_redis)

        mock_pipe.incr.assert_called_once()
        mock_pipe.expire.assert_not_called()

    async def test_redis_failure_allows_request(self, mock_redis):
        """Redis being down must not lock everyone out."""
        mock_redis.get.side_effect = RedisConnectionError("Connection refused")

        # Should not raise
        await check_auth_rate_limit("10.0.0.1", mock_redis)


@pytest.mark.unit
class TestCheckPasswordResetRateLimit:
    async def test_uses_its_own_key_and_limit(self, mock_redis):
        mock_redis.get.return_value = str(settings.PASSWORD_RESET_RATE_LIMIT).encode()

        with pytest.raises(RateLimitError):
            await check_password_reset_rate_limit("10.0.0.1", mock_redis)

        mock_redis.get.assert_called_once_with("password_reset_rate:10.0.0.1")
