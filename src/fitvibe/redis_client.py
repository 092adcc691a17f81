"""Shared Redis client for rate limiting, login lockout, leaderboards and live notifications.

Redis is optional for FitnessVibe: when it cannot be reached at startup the
client stays unset and each feature degrades on its own (no rate limit, no
lockout counter, uncached leaderboards, no pub/sub push).
"""

import redis.asyncio as redis
import structlog

logger = structlog.get_logger()

_pool: redis.Redis | None = None


async def init_redis(url: str) -> None:
    """Create the client. Connections are opened lazily."""
    global _pool  # noqa: PLW0603
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
        health_check_interval=30,
    )


async def connect_redis(url: str) -> bool:
    """Create the client and check it answers; drop it again when it does not."""
    await init_redis(url)
    try:
        await get_redis().ping()
    except (redis.RedisError, OSError):
        logger.warning("redis_unavailable", url=url.rsplit("@", 1)[-1], exc_info=True)
        await close_redis()
        return False
    logger.info("redis_connected")
    return True


async def close_redis() -> None:
    global _pool  # noqa: PLW0603
    if _pool:
        await _pool.aclose()
        _pool = None


def get_redis() -> redis.Redis:
    """Get the client, failing loudly when Redis was never connected."""
    if _pool is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _pool


def get_optional_redis() -> redis.Redis | None:
    return _pool
