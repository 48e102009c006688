"""Redis store for catalog caching.

Handles:
- Caching with TTL policies
- JSON payload helpers

TTL policies:
- Product listing (Stripe products + prices): 5 minutes

Redis is optional: callers treat RuntimeError from an uninitialized client as
"no cache" and go straight to Stripe.
"""

import json
import logging
from typing import Any

import redis.asyncio as redis

from app.settings import get_settings

# TTL constants (in seconds)
TTL_CATALOG_LIST = 300  # 5 minutes

# Key prefixes
PREFIX_CATALOG = "catalog:"
KEY_CATALOG_LIST = f"{PREFIX_CATALOG}products"

# Redis client (initialized on startup)
_redis: redis.Redis | None = None
logger = logging.getLogger("uvicorn.error")


async def init_redis() -> None:
    """Initialize Redis connection."""
    global _redis
    settings = get_settings()
    _redis = redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )
    await _redis.ping()
    logger.info("Redis connected")


async def close_redis() -> None:
    """Close Redis connection."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def _get_redis() -> redis.Redis:
    """Get Redis client instance."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis


# ============================================================
# Generic cache operations
# ============================================================


async def cache_get(key: str) -> str | None:
    """Get value from cache.

    Args:
        key: Cache key.

    Returns:
        Cached value or None if not found.
    """
    return await _get_redis().get(key)


async def cache_set(key: str, value: str, ttl: int) -> None:
    """Set value in cache with TTL.

    Args:
        key: Cache key.
        value: Value to cache.
        ttl: Time-to-live in seconds.
    """
    await _get_redis().setex(key, ttl, value)


async def cache_delete(key: str) -> None:
    """Delete value from cache."""
    await _get_redis().delete(key)


async def cache_get_json(key: str) -> dict[str, Any] | None:
    """Get JSON value from cache.

    Returns:
        Parsed JSON dict or None if not found.
    """
    value = await cache_get(key)
    if value:
        return json.loads(value)
    return None


async def cache_set_json(key: str, value: dict[str, Any], ttl: int) -> None:
    """Set JSON value in cache."""
    await cache_set(key, json.dumps(value), ttl)


# ============================================================
# Catalog cache
# ============================================================


async def get_catalog_cache() -> dict[str, Any] | None:
    """Get cached product listing payload."""
    return await cache_get_json(KEY_CATALOG_LIST)


async def set_catalog_cache(payload: dict[str, Any]) -> None:
    """Cache product listing payload (TTL 5 minutes)."""
    await cache_set_json(KEY_CATALOG_LIST, payload, TTL_CATALOG_LIST)


async def invalidate_catalog_cache() -> None:
    """Drop the cached product listing (e.g. after seeding products)."""
    await cache_delete(KEY_CATALOG_LIST)
