"""Redis connection pool and small key helpers shared by the cache users."""

import redis.asyncio as redis

_pool: redis.Redis | None = None

DELETE_BATCH_SIZE = 500


async def init_redis(url: str) -> None:
    """Initialize the Redis connection pool."""
    global _pool  # noqa: PLW0603
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
    )


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _pool  # noqa: PLW0603
    if _pool:
        await _pool.aclose()
        _pool = None


def get_redis() -> redis.Redis:
    """Get the Redis client (FastAPI dependency).

    Raises RuntimeError before init_redis() has run; the rate limiter relies on
    that to let requests through when Redis is not configured.
    """
    if _pool is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _pool


async def delete_by_prefix(client: redis.Redis, prefix: str) -> int:
    """Delete every key starting with ``prefix``. Returns the number removed."""
    removed = 0
    batch: list[str] = []
    async for key in client.scan_iter(match=f"{prefix}*", count=DELETE_BATCH_SIZE):
        batch.append(key if isinstance(key, str) else key.decode())
        if len(batch) >= DELETE_BATCH_SIZE:
            removed += int(await client.delete(*batch))
            batch.clear()
    if batch:
        removed += int(await client.delete(*batch))
    return removed
