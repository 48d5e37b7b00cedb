"""
Pending Review Cache

Redis copy of the pending enrollment list shown on the admin review screen.

Ownership rule: the admission service deletes the key after every approve
or reject that changed a status; readers re-fetch from the database on a
miss. Redis is optional and every cache failure is treated as a miss, so
the database stays the source of truth.
"""

import logging

from pydantic import TypeAdapter, ValidationError
from redis.exceptions import RedisError

from app.core import redis as redis_module
from app.core.config import settings
from app.modules.enrollment.schemas import EnrollmentListItem

logger = logging.getLogger(__name__)

PENDING_CACHE_KEY = "enrollment:pending_review"

_pending_adapter = TypeAdapter(list[EnrollmentListItem])


async def get_pending() -> list[EnrollmentListItem] | None:
    """Return the cached pending list, or None on a miss."""
    client = redis_module.redis_client
    if client is None:
        return None

    try:
        raw = await client.get(PENDING_CACHE_KEY)
    except RedisError as e:
        logger.error(f"Pending review cache read failed: {e}", exc_info=True)
        return None

    if raw is None:
        return None

    try:
        return _pending_adapter.validate_json(raw)
    except ValidationError:
        logger.warning("Discarding malformed pending review cache entry")
        return None


async def store_pending(items: list[EnrollmentListItem]) -> None:
    """Cache the pending list for `pending_cache_ttl_seconds`."""
    client = redis_module.redis_client
    if client is None:
        return

    try:
        await client.set(
            PENDING_CACHE_KEY,
            _pending_adapter.dump_json(items).decode(),
            ex=settings.pending_cache_ttl_seconds,
        )
    except RedisError as e:
        logger.error(f"Pending review cache write failed: {e}", exc_info=True)


async def invalidate_pending() -> None:
    """Drop the cached pending list."""
    client = redis_module.redis_client
    if client is None:
        return

    try:
        await client.delete(PENDING_CACHE_KEY)
        logger.debug("Pending review cache invalidated")
    except RedisError as e:
        # The TTL bounds how long a stale list can survive
        logger.error(f"Pending review cache invalidation failed: {e}", exc_info=True)
