"""
Tests for the pending review cache.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.modules.enrollment import cache
from app.modules.enrollment.models import EnrollmentStatus
from app.modules.enrollment.schemas import EnrollmentListItem


@pytest.fixture
def items():
    return [
        EnrollmentListItem(
            id=uuid4(),
            first_name="Ana",
            last_name="Lima",
            email="ana.lima@example.com",
            national_id="987.654.321-00",
            education_level="ensino_medio",
            status=EnrollmentStatus.PENDING,
            created_at=datetime(2026, 3, 2, 9, 30, tzinfo=UTC),
        )
    ]


@pytest.fixture
def redis_client():
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock()
    client.delete = AsyncMock()
    with patch("app.core.redis.redis_client", client):
        yield client


@pytest.mark.asyncio
async def test_no_redis_is_a_miss(items):
    with patch("app.core.redis.redis_client", None):
        assert await cache.get_pending() is None
        await cache.store_pending(items)
        await cache.invalidate_pending()


@pytest.mark.asyncio
async def test_store_then_read(redis_client, items):
    await cache.store_pending(items)

    key, payload = redis_client.set.await_args.args
    assert key == cache.PENDING_CACHE_KEY
    assert redis_client.set.await_args.kwargs["ex"] > 0

    redis_client.get = AsyncMock(return_value=payload)
    assert await cache.get_pending() == items


@pytest.mark.asyncio
async def test_empty_key_is_a_miss(redis_client):
    assert await cache.get_pending() is None


@pytest.mark.asyncio
async def test_malformed_entry_is_a_miss(redis_client):
    redis_client.get = AsyncMock(return_value='[{"id": "not-a-uuid"}]')

    assert await cache.get_pending() is None


@pytest.mark.asyncio
async def test_read_failure_is_a_miss(redis_client):
    redis_client.get = AsyncMock(side_effect=RedisConnectionError("redis down"))

    assert await cache.get_pending() is None


@pytest.mark.asyncio
async def test_invalidate_deletes_key(redis_client):
    await cache.invalidate_pending()

    redis_client.delete.assert_awaited_once_with(cache.PENDING_CACHE_KEY)


@pytest.mark.asyncio
async def test_invalidate_failure_is_swallowed(redis_client):
    redis_client.delete = AsyncMock(side_effect=RedisConnectionError("redis down"))

    await cache.invalidate_pending()
