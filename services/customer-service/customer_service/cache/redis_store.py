"""Redis-backed cache store sharing entries between service replicas."""

from __future__ import annotations

import json
from typing import Any

from redis import Redis
from redis.exceptions import RedisError

from ..domain.errors import UpstreamError


class RedisCacheStore:
    """Cache store keeping JSON payloads in Redis with native key expiry."""

    def __init__(
        self,
        client: Redis,
        *,
        default_ttl_seconds: int,
        key_prefix: str = "cache"
    ) -> None:
        """Initialise the Redis client, default TTL, and key namespace."""
        self._client = client
        self._default_ttl = default_ttl_seconds
        self._key_prefix = key_prefix

    def get(self, key: str) -> Any | None:
        """Return the decoded payload stored under ``key`` or ``None``."""
        try:
            raw = self._client.get(self._redis_key(key))
        except RedisError as exc:
            raise UpstreamError(f"cache read failed: {exc}") from exc
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store ``value`` as JSON, replacing any previous entry and its expiry."""
        ttl = self._default_ttl if ttl is None else ttl
        try:
            self._client.set(self._redis_key(key), json.dumps(value), ex=ttl)
        except RedisError as exc:
            raise UpstreamError(f"cache write failed: {exc}") from exc

    def invalidate(self, key: str) -> None:
        """Delete ``key``; deleting a missing key is a no-op in Redis."""
        try:
            self._client.delete(self._redis_key(key))
        except RedisError as exc:
            raise UpstreamError(f"cache invalidation failed: {exc}") from exc

    def _redis_key(self, key: str) -> str:
        return f"{self._key_prefix}:{key}"
