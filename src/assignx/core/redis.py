"""Redis connection backing the Idempotency-Key response cache.

Lifecycle routes store each successful action response here so a retried
request replays it (see core.idempotency); /health reports the connection.
slowapi talks to the same REDIS_URL through its own storage backend.

Redis is optional. Without it get_redis() returns None, retries reach the
state machine again, and a repeated transition is refused as invalid.
"""

from redis.asyncio import ConnectionPool, Redis

from src.assignx.core.config import get_settings
from src.assignx.core.logging import get_logger

logger = get_logger(__name__)

_pool: ConnectionPool | None = None
_redis: Redis | None = None
# Set after the first connection attempt, successful or not
_attempted: bool = False


async def _discard() -> None:
    global _pool, _redis
    if _redis is not None:
        await _redis.aclose()
    if _pool is not None:
        await _pool.disconnect()
    _redis = None
    _pool = None


async def get_redis() -> Redis | None:
    """The shared client, or None when idempotent replay is unavailable.

    Only the first call connects. After a failure, replay stays off until
    close_redis() or reset_redis_state() clears the attempt.
    """
    global _pool, _redis, _attempted

    if _redis is not None or _attempted:
        return _redis
    _attempted = True

    settings = get_settings()
    if not settings.redis_url:
        logger.info("REDIS_URL not set, Idempotency-Key replay disabled")
        return None

    _pool = ConnectionPool.from_url(
        settings.redis_url,
        max_connections=settings.redis_pool_size,
        decode_responses=True,
    )
    _redis = Redis(connection_pool=_pool)
    try:
        await _redis.ping()  # type: ignore[misc]
    except Exception as e:
        logger.warning("Redis unreachable, Idempotency-Key replay disabled", error=str(e))
        await _discard()
        return None
    logger.info("Redis connected for idempotent replay")
    return _redis


async def close_redis() -> None:
    """Release the pool on shutdown."""
    global _attempted
    if _redis is not None:
        logger.info("Closing Redis connection")
    await _discard()
    _attempted = False


def reset_redis_state() -> None:
    """Forget the client without closing it, for tests that swap in fakeredis."""
    global _pool, _redis, _attempted
    _redis = None
    _pool = None
    _attempted = False
