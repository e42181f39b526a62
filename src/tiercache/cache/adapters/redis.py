# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Redis-backed tiered store."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from tiercache.cache.adapters.memory import DEFAULT_MAX_ENTRY_BYTES
from tiercache.kernel.exceptions import CacheSerializationException, CacheUnavailableException

_logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_KEY_PREFIX = "tiercache"
DEFAULT_OPERATION_TIMEOUT = 0.5

_CONNECTIVITY_ERRORS = (RedisError, OSError, asyncio.TimeoutError)


class RedisStore:
    """Store adapter that delegates to a ``redis.asyncio.Redis``-like client.

    Keys live under ``{key_prefix}:{tier}:{key}``. Values are JSON-encoded.
    Connectivity failures and timeouts never escape: the call logs a
    warning, marks the store unavailable and returns ``None``/``False``/
    ``[]``/``0``. Every call still reaches for Redis, so the first call that
    succeeds after an outage marks the store available again.
    """

    def __init__(
        self,
        client: Any,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        operation_timeout: float = DEFAULT_OPERATION_TIMEOUT,
        max_entry_bytes: int = DEFAULT_MAX_ENTRY_BYTES,
    ) -> None:
        self._client = client
        self._key_prefix = key_prefix
        self._timeout = operation_timeout
        self._max_entry_bytes = max_entry_bytes
        self._available = False

    @classmethod
    def from_url(
        cls,
        url: str,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        operation_timeout: float = DEFAULT_OPERATION_TIMEOUT,
        max_entry_bytes: int = DEFAULT_MAX_ENTRY_BYTES,
    ) -> RedisStore:
        client = aioredis.from_url(
            url,
            socket_timeout=operation_timeout,
            socket_connect_timeout=operation_timeout,
        )
        return cls(client, key_prefix=key_prefix, operation_timeout=operation_timeout, max_entry_bytes=max_entry_bytes)

    @property
    def backend(self) -> str:
        return "redis"

    @property
    def available(self) -> bool:
        return self._available

    def _full_key(self, key: str, tier: str) -> str:
        return f"{self._key_prefix}:{tier}:{key}"

    def _split_key(self, full_key: Any) -> tuple[str, str] | None:
        """Split a stored key into ``(tier, key)``; None for keys not written by a store."""
        raw = full_key.decode() if isinstance(full_key, bytes) else str(full_key)
        parts = raw.removeprefix(f"{self._key_prefix}:").split(":", 1)
        if len(parts) != 2:
            return None
        return parts[0], parts[1]

    async def _execute(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        """Run one Redis call under the operation timeout."""
        try:
            result = await asyncio.wait_for(call(), timeout=self._timeout)
        except _CONNECTIVITY_ERRORS as exc:
            if self._available:
                _logger.warning("Redis store became unavailable during %s: %s", operation, exc)
            else:
                _logger.warning("Redis store unavailable for %s: %s", operation, exc)
            self._available = False
            raise CacheUnavailableException(
                f"Redis {operation} failed",
                code="CACHE_UNAVAILABLE",
                context={"operation": operation, "error": str(exc)},
            ) from exc
        if not self._available:
            _logger.info("Redis store available")
            self._available = True
        return result

    async def get(self, key: str, tier: str) -> Any | None:
        try:
            raw = await self._execute("GET", lambda: self._client.get(self._full_key(key, tier)))
        except CacheUnavailableException:
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError, UnicodeDecodeError):
            _logger.warning("Failed to deserialize cached value for key '%s'", key)
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int, tier: str) -> bool:
        try:
            raw = json.dumps(value).encode()
        except (TypeError, ValueError) as exc:
            raise CacheSerializationException(
                f"Payload for key '{key}' is not JSON-serializable",
                code="CACHE_SERIALIZATION",
                context={"key": key, "tier": tier},
            ) from exc

        if len(raw) > self._max_entry_bytes:
            _logger.warning(
                "Redis SET refused [%s] key=%s size=%d exceeds max_entry_bytes=%d",
                tier,
                key,
                len(raw),
                self._max_entry_bytes,
            )
            return False

        try:
            await self._execute(
                "SET", lambda: self._client.set(self._full_key(key, tier), raw, ex=int(ttl_seconds))
            )
        except CacheUnavailableException:
            return False
        _logger.debug("Redis SET [%s] key=%s ttl=%d", tier, key, ttl_seconds)
        return True

    async def delete(self, key: str, tier: str) -> bool:
        """Remove a key. Returns True if the key existed."""
        try:
            count = await self._execute("DELETE", lambda: self._client.delete(self._full_key(key, tier)))
        except CacheUnavailableException:
            return False
        return bool(count)

    async def _scan(self, tier: str | None) -> list[Any]:
        match = f"{self._key_prefix}:{tier}:*" if tier is not None else f"{self._key_prefix}:*"

        async def _collect() -> list[Any]:
            return [k async for k in self._client.scan_iter(match=match, count=500)]

        return await self._execute("SCAN", _collect)

    async def clear(self, tier: str | None = None) -> bool:
        """Delete every key under this store's prefix (optionally one tier only)."""
        try:
            keys = await self._scan(tier)
            if keys:
                await self._execute("DELETE", lambda: self._client.delete(*keys))
        except CacheUnavailableException:
            return False
        _logger.info("Redis cache cleared (tier=%s, keys=%d)", tier or "all", len(keys))
        return True

    async def list_keys(self, pattern: str | None = None, tier: str | None = None) -> list[str]:
        try:
            full_keys = await self._scan(tier)
        except CacheUnavailableException:
            return []
        keys: list[str] = []
        for full_key in full_keys:
            split = self._split_key(full_key)
            if split is None:
                _logger.debug("Skipping foreign key under prefix: %r", full_key)
                continue
            if pattern is None or pattern in split[1]:
                keys.append(split[1])
        return keys

    async def count_keys(self, tier: str) -> int:
        try:
            return len(await self._scan(tier))
        except CacheUnavailableException:
            return 0

    async def ping(self) -> bool:
        try:
            await self._execute("PING", self._client.ping)
        except CacheUnavailableException:
            return False
        return True

    async def start(self) -> None:
        """Check connectivity; an unreachable Redis is logged, not raised."""
        if await self.ping():
            _logger.info("Redis cache initialized")
        else:
            _logger.warning("Redis unreachable at startup, requests will be served as cache misses")

    async def stop(self) -> None:
        """Close the underlying Redis connection."""
        try:
            await self._client.aclose()
        except _CONNECTIVITY_ERRORS as exc:
            _logger.warning("Error closing Redis connection: %s", exc)
        self._available = False
