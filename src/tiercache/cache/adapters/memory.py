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
"""In-memory tiered store."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

from tiercache.cache.types import DEFAULT_TIERS, CacheEntry, CacheTier
from tiercache.kernel.exceptions import CacheSerializationException, ConfigurationException

_logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRY_BYTES = 1024 * 1024

ExpiryListener = Callable[[str, str], None]


class TieredMemoryStore:
    """In-process store keeping one mapping per tier.

    Expired entries are treated as absent on read and removed by a periodic
    sweep (one task per tier, started with :meth:`start`). Every removal by
    expiry is reported to the registered expiry listeners as ``(tier, key)``.

    Entries whose JSON encoding is larger than *max_entry_bytes* are refused.
    """

    def __init__(
        self,
        tiers: Mapping[str, CacheTier] | None = None,
        max_entry_bytes: int = DEFAULT_MAX_ENTRY_BYTES,
    ) -> None:
        if max_entry_bytes <= 0:
            raise ConfigurationException(
                "max_entry_bytes must be positive",
                code="CACHE_CONFIG_MAX_ENTRY",
                context={"max_entry_bytes": max_entry_bytes},
            )
        self._tiers: dict[str, CacheTier] = dict(tiers or DEFAULT_TIERS)
        self._max_entry_bytes = max_entry_bytes
        self._stores: dict[str, dict[str, CacheEntry]] = {name: {} for name in self._tiers}
        self._listeners: list[ExpiryListener] = []
        self._sweepers: dict[str, asyncio.Task[None]] = {}

    @property
    def backend(self) -> str:
        return "memory"

    @property
    def available(self) -> bool:
        return True

    @property
    def max_entry_bytes(self) -> int:
        return self._max_entry_bytes

    def add_expiry_listener(self, listener: ExpiryListener) -> None:
        self._listeners.append(listener)

    def _store(self, tier: str) -> dict[str, CacheEntry]:
        return self._stores.setdefault(tier, {})

    def _expire(self, tier: str, key: str) -> None:
        del self._stores[tier][key]
        _logger.debug("Cache EXPIRED [%s] key=%s", tier, key)
        for listener in self._listeners:
            try:
                listener(tier, key)
            except Exception:
                _logger.exception("Cache expiry listener failed [%s] key=%s", tier, key)

    async def get(self, key: str, tier: str) -> Any | None:
        """Return the live value for *key* in *tier*, or None."""
        entry = self._store(tier).get(key)
        if entry is None:
            return None
        if entry.is_expired(time.monotonic()):
            self._expire(tier, key)
            return None
        return entry.value

    async def set(self, key: str, value: Any, ttl_seconds: int, tier: str) -> bool:
        """Store *value*, replacing any previous entry and its TTL."""
        try:
            size = len(json.dumps(value).encode())
        except (TypeError, ValueError) as exc:
            raise CacheSerializationException(
                f"Payload for key '{key}' is not JSON-serializable",
                code="CACHE_SERIALIZATION",
                context={"key": key, "tier": tier},
            ) from exc

        if size > self._max_entry_bytes:
            _logger.warning(
                "Cache SET refused [%s] key=%s size=%d exceeds max_entry_bytes=%d",
                tier,
                key,
                size,
                self._max_entry_bytes,
            )
            return False

        self._store(tier)[key] = CacheEntry(
            key=key,
            value=value,
            ttl_seconds=ttl_seconds,
            inserted_at=time.monotonic(),
        )
        _logger.debug("Cache SET [%s] key=%s ttl=%d size=%d", tier, key, ttl_seconds, size)
        return True

    async def delete(self, key: str, tier: str) -> bool:
        """Remove a key. Returns True if the key existed."""
        store = self._store(tier)
        if key in store:
            del store[key]
            _logger.debug("Cache DELETE [%s] key=%s", tier, key)
            return True
        return False

    async def clear(self, tier: str | None = None) -> bool:
        if tier is None:
            for store in self._stores.values():
                store.clear()
        else:
            self._store(tier).clear()
        return True

    async def list_keys(self, pattern: str | None = None, tier: str | None = None) -> list[str]:
        """Return live keys containing *pattern* in one tier or across all tiers."""
        self.sweep(tier)
        tiers = [tier] if tier is not None else list(self._stores)
        keys: list[str] = []
        for name in tiers:
            keys.extend(k for k in self._store(name) if pattern is None or pattern in k)
        return keys

    async def count_keys(self, tier: str) -> int:
        self.sweep(tier)
        return len(self._store(tier))

    def sweep(self, tier: str | None = None) -> int:
        """Evict expired entries now. Returns how many were evicted."""
        now = time.monotonic()
        tiers = [tier] if tier is not None else list(self._stores)
        evicted = 0
        for name in tiers:
            expired = [k for k, entry in self._store(name).items() if entry.is_expired(now)]
            for key in expired:
                self._expire(name, key)
            evicted += len(expired)
        return evicted

    async def _sweep_loop(self, tier: CacheTier) -> None:
        while True:
            await asyncio.sleep(tier.check_interval_seconds)
            self.sweep(tier.name)

    async def start(self) -> None:
        """Launch one background sweeper per tier (idempotent)."""
        for tier in self._tiers.values():
            task = self._sweepers.get(tier.name)
            if task is None or task.done():
                self._sweepers[tier.name] = asyncio.create_task(
                    self._sweep_loop(tier), name=f"tiercache-sweep-{tier.name}"
                )

    async def stop(self) -> None:
        """Cancel the sweepers."""
        tasks = list(self._sweepers.values())
        self._sweepers.clear()
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

