"""
Tests for admin action rate limiting.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.core import rate_limit


@pytest.fixture(autouse=True)
def clear_memory_store():
    rate_limit._memory_store.clear()
    yield
    rate_limit._memory_store.clear()


@pytest.mark.asyncio
async def test_memory_fallback_enforces_limit():
    with patch("app.core.redis.redis_client", None):
        results = [await rate_limit.check_rate_limit("admin:approve:1", 3, 60) for _ in range(4)]

    assert results == [True, True, True, False]


@pytest.mark.asyncio
async def test_keys_are_independent():
    with patch("app.core.redis.redis_client", None):
        assert await rate_limit.check_rate_limit("admin:approve:1", 1, 60)
        assert await rate_limit.check_rate_limit("admin:approve:2", 1, 60)
        assert not await rate_limit.check_rate_limit("admin:approve:1", 1, 60)


@pytest.mark.asyncio
async def test_redis_window_count_decides():
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[0, 10, 1, True])
    client = MagicMock()
    client.pipeline.return_value = pipe

    with patch("app.core.redis.redis_client", client):
        allowed = await rate_limit.check_rate_limit("admin:reject:1", 10, 60)

    assert allowed is False
    pipe.zcard.assert_called_once_with("admin:reject:1")


@pytest.mark.asyncio
async def test_redis_failure_falls_back_to_memory():
    pipe = MagicMock()
    pipe.execute = AsyncMock(side_effect=ConnectionError("redis down"))
    client = MagicMock()
    client.pipeline.return_value = pipe

    with patch("app.core.redis.redis_client", client):
        allowed = await rate_limit.check_rate_limit("admin:approve:1", 5, 60)

    assert allowed is True
    assert "admin:approve:1" in rate_limit._memory_store


def test_rate_limit_exceeded_detail():
    error = rate_limit.RateLimitExceeded(10, 60)

    assert error.status_code == 429
    assert error.detail["error"] == "RATE_LIMIT_EXCEEDED"
    assert error.headers["Retry-After"] == "60"
