"""Key-value backends for authorization and booking records.

Two implementations of the KeyValueStore protocol:
- MemoryKeyValueStore: per-process dictionary, suitable for a single
  server process and for tests
- RedisKeyValueStore: shared Redis instance, required when the HTTP
  intake and the tool server run in different processes
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

import redis.asyncio as redis
from redis.exceptions import RedisError

from courtbook.utils.exceptions import StorageError

logger = logging.getLogger(__name__)


class MemoryKeyValueStore:
    """In-process key-value store with lazy TTL expiry.

    Expired entries are dropped when they are next read or listed.

    Attributes:
        clock: Callable returning the current Unix time in seconds.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self.clock = clock
        self._data: dict[str, tuple[str, float | None]] = {}

    async def get(self, key: str) -> str | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self.clock() >= expires_at:
            del self._data[key]
            return None
        return value

    async def put(self, key: str, value: str, ttl: int | None = None) -> None:
        expires_at = self.clock() + ttl if ttl else None
        self._data[key] = (value, expires_at)

    async def list_keys(self, prefix: str) -> list[str]:
        keys = []
        for key in list(self._data):
            if key.startswith(prefix) and await self.get(key) is not None:
                keys.append(key)
        return keys

    async def close(self) -> None:
        self._data.clear()


class RedisKeyValueStore:
    """Redis-backed key-value store.

    Values are written with ``SET ... EX`` so Redis expires them natively;
    listing uses ``SCAN MATCH`` to avoid blocking the server.
    """

    def __init__(self, client: redis.Redis) -> None:
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> RedisKeyValueStore:
        """Create a store connected to the Redis instance at url."""
        client = redis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5.0,
            socket_timeout=5.0,
        )
        return cls(client)

    async def get(self, key: str) -> str | None:
        try:
            return await self.client.get(key)
        except RedisError as e:
            raise StorageError(f"Redis GET {key} failed: {e}") from e

    async def put(self, key: str, value: str, ttl: int | None = None) -> None:
        try:
            await self.client.set(key, value, ex=ttl)
        except RedisError as e:
            raise StorageError(f"Redis SET {key} failed: {e}") from e

    async def list_keys(self, prefix: str) -> list[str]:
        try:
            return [key async for key in self.client.scan_iter(match=f"{prefix}*")]
        except RedisError as e:
            raise StorageError(f"Redis SCAN {prefix}* failed: {e}") from e

    async def close(self) -> None:
        """Close the Redis connection pool."""
        try:
            await self.client.aclose()
        except RedisError as e:
            logger.warning(f"Error closing Redis connection: {e}")
