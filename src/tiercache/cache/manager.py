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
"""ResponseCache — a store, its tiers, and its statistics."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from tiercache.cache.ports.outbound import StoreAdapter
from tiercache.cache.stats import CacheStats
from tiercache.cache.types import DEFAULT_TIER, DEFAULT_TIERS, CacheTier, resolve_tier, whole_seconds
from tiercache.kernel.exceptions import CacheSerializationException

logger = logging.getLogger("tiercache.cache")


class ResponseCache:
    """The cache context handed to interceptors, invalidators and endpoints.

    Wraps a :class:`StoreAdapter` and keeps the hit/miss/set/delete counters.
    Store failures are absorbed here: lookups degrade to misses and writes
    report ``False``, so callers never have to guard cache calls.
    """

    def __init__(
        self,
        store: StoreAdapter,
        tiers: Mapping[str, CacheTier] | None = None,
        stats: CacheStats | None = None,
        default_tier: str = DEFAULT_TIER,
        enabled: bool = True,
    ) -> None:
        self._store = store
        self._enabled = enabled
        self._tiers: dict[str, CacheTier] = dict(tiers or DEFAULT_TIERS)
        self._stats = stats if stats is not None else CacheStats()
        self._default_tier = resolve_tier(self._tiers, default_tier).name

        if hasattr(store, "add_expiry_listener"):
            store.add_expiry_listener(self._stats.record_expired)

    @property
    def enabled(self) -> bool:
        """When False, interceptors pass every request straight through."""
        return self._enabled

    @property
    def store(self) -> StoreAdapter:
        return self._store

    @property
    def stats(self) -> CacheStats:
        return self._stats

    @property
    def tier_names(self) -> list[str]:
        return list(self._tiers)

    def tier(self, name: str | None = None) -> CacheTier:
        """Resolve a tier name; unknown names fall back to ``short``."""
        return resolve_tier(self._tiers, name if name is not None else self._default_tier)

    async def lookup(self, key: str, tier: str | None = None) -> Any | None:
        """Fetch a live entry, counting a hit or a miss."""
        tier_name = self.tier(tier).name
        try:
            value = await self._store.get(key, tier_name)
        except Exception:
            logger.warning("Cache lookup failed for '%s', treating as miss", key, exc_info=True)
            value = None

        if value is None:
            self._stats.record_miss()
            logger.debug("Cache MISS [%s] key=%s", tier_name, key)
            return None

        self._stats.record_hit()
        logger.debug("Cache HIT [%s] key=%s", tier_name, key)
        return value

    async def put(self, key: str, value: Any, tier: str | None = None, ttl: float | None = None) -> bool:
        """Store *value* under the tier TTL (or *ttl* seconds). Never raises."""
        resolved = self.tier(tier)
        ttl_seconds = whole_seconds(ttl) if ttl is not None else resolved.default_ttl_seconds
        try:
            stored = await self._store.set(key, value, ttl_seconds, resolved.name)
        except CacheSerializationException as exc:
            logger.error("Cache SET skipped, payload not serializable: key=%s error=%s", key, exc.__cause__ or exc)
            return False
        except Exception:
            logger.warning("Cache SET failed for '%s'", key, exc_info=True)
            return False

        if stored:
            self._stats.record_set()
        return stored

    async def delete(self, key: str, tier: str | None = None) -> bool:
        """Remove one entry, counting it as a delete if it existed."""
        tier_name = self.tier(tier).name
        try:
            removed = await self._store.delete(key, tier_name)
        except Exception:
            logger.warning("Cache DELETE failed for '%s'", key, exc_info=True)
            return False
        if removed:
            self._stats.record_delete()
        return removed

    async def clear(self, tier: str | None = None) -> bool:
        try:
            return await self._store.clear(self.tier(tier).name if tier is not None else None)
        except Exception:
            logger.warning("Cache CLEAR failed", exc_info=True)
            return False

    async def keys(self, pattern: str | None = None, tier: str | None = None) -> list[str]:
        try:
            return await self._store.list_keys(pattern, self.tier(tier).name if tier is not None else None)
        except Exception:
            logger.warning("Cache key listing failed", exc_info=True)
            return []

    async def describe(self) -> dict[str, Any]:
        """Stats snapshot plus backend state and per-tier key counts."""
        tiers: dict[str, Any] = {}
        for name, tier in self._tiers.items():
            try:
                count = await self._store.count_keys(name)
            except Exception:
                logger.warning("Cache key count failed for tier '%s'", name, exc_info=True)
                count = 0
            tiers[name] = {"keys": count, "ttl": tier.default_ttl_seconds}

        return {
            **self._stats.snapshot(),
            "backend": self._store.backend,
            "available": self._store.available,
            "tiers": tiers,
        }

    async def start(self) -> None:
        await self._store.start()

    async def stop(self) -> None:
        await self._store.stop()
