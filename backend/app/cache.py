# backend/app/cache.py
from __future__ import annotations

import logging
from typing import Protocol

import redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class CacheError(RuntimeError):
    """Raised by cache clients when the backing store cannot be reached or fails."""


class CacheClient(Protocol):
    """Minimal key-value interface the metrics service caches through."""

    def get(self, key: str) -> bytes | None: ...

    def set(self, key: str, value: bytes, ttl_seconds: int) -> None: ...


class RedisCacheClient:
    """CacheClient backed by a redis-py client.

    Every redis failure (connection refused, timeout, protocol error) is
    re-raised as ``CacheError`` so callers only deal with one exception type.

    Args:
        redis_client: A connected ``redis.Redis`` instance. Its connection pool
            is thread-safe, so one adapter can be shared process-wide.
    """

    def __init__(self, redis_client: redis.Redis) -> None:
        self._redis = redis_client

    def get(self, key: str) -> bytes | None:
        try:
            value = self._redis.get(key)
        except RedisError as e:
            raise CacheError(f"Failed to get key '{key}' from cache: {e}") from e
        if value is None:
            return None
        # decode_responses=True clients hand back str
        return value.encode("utf-8") if isinstance(value, str) else value

    def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        try:
            self._redis.set(key, value, ex=ttl_seconds)
        except RedisError as e:
            raise CacheError(f"Failed to set key '{key}' in cache: {e}") from e


def create_cache_client(url: str | None, timeout: float = 2.0) -> RedisCacheClient | None:
    """Connect to redis at ``url`` and wrap it in a ``RedisCacheClient``.

    Returns None (caching disabled) when no URL is configured or when the
    server does not answer a PING at start-up.
    """
    if not url:
        logger.info("REDIS_URL not set; metrics caching disabled")
        return None

    client = redis.Redis.from_url(url, socket_timeout=timeout, socket_connect_timeout=timeout)
    try:
        client.ping()
    except RedisError as e:
        logger.warning("Redis unreachable at start-up; metrics caching disabled: %s", e)
        client.close()
        return None

    logger.info("Metrics cache connected")
    return RedisCacheClient(client)
