"""Redis connection backing the achievement catalog cache.

The cache is optional: with an empty URL or an unreachable server the
engine reads the catalog straight from PostgreSQL.
"""

from __future__ import annotations

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

logger = structlog.get_logger()

_client: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 10) -> redis.Redis | None:
    """Connect the catalog cache. Returns None when caching is unavailable."""
    global _client  # noqa: PLW0603
    if not url:
        logger.info("catalog_cache_disabled")
        return None

    client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )
    try:
        await client.ping()
    except RedisError:
        logger.warning("catalog_cache_unreachable", exc_info=True)
        await client.aclose()
        return None

    _client = client
    return client


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis | None:
    """The connected cache client, or None when running without one."""
    return _client
