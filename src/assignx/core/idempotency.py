"""Idempotency-Key response cache with Redis backend and graceful fallback.

A retried lifecycle action carrying the same Idempotency-Key replays the
stored response instead of failing with an invalid transition. Keys are
scoped per user and route so one caller can never replay another's result.
When Redis is unavailable nothing is cached and retries fall through to the
state machine, which rejects the repeated transition.
"""

import json
from typing import Any
from uuid import UUID

from src.assignx.core.config import get_settings
from src.assignx.core.redis import get_redis

PREFIX_IDEMPOTENCY = "idempotency"


def idempotency_cache_key(user_id: UUID, route: str, key: str) -> str:
    return f"{PREFIX_IDEMPOTENCY}:{user_id}:{route}:{key}"


async def get_cached_response(cache_key: str) -> dict[str, Any] | None:
    """Return the stored response body, or None on a miss or without Redis."""
    redis = await get_redis()
    if not redis:
        return None
    raw = await redis.get(cache_key)
    if raw is None:
        return None
    return json.loads(raw)  # type: ignore[no-any-return]


async def store_response(cache_key: str, body: dict[str, Any], ttl: int | None = None) -> bool:
    """Store a successful response body.

    Returns:
        True if stored, False if Redis is unavailable or the key already exists.
    """
    redis = await get_redis()
    if not redis:
        return False
    if ttl is None:
        ttl = get_settings().idempotency_ttl_seconds
    stored = await redis.set(cache_key, json.dumps(body, default=str), ex=ttl, nx=True)
    return bool(stored)
