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
"""Cache invalidation by key, pattern, or named resource."""

from __future__ import annotations

import logging

from tiercache.cache.manager import ResponseCache

logger = logging.getLogger("tiercache.cache")

ALL_TIERS = "all"

# Named resources map to the substring their cache keys carry.
RESOURCE_PATTERNS: dict[str, str] = {
    "dishes": "dishes",
    "orders": "orders",
    "dashboard": "dashboard",
    "expenses": "expenses",
}


class CacheInvalidator:
    """Removes entries from a :class:`ResponseCache` ahead of their TTL."""

    def __init__(self, cache: ResponseCache) -> None:
        self._cache = cache

    def _tiers(self, tier: str | None) -> list[str]:
        if tier is None or tier == ALL_TIERS:
            return self._cache.tier_names
        return [self._cache.tier(tier).name]

    async def invalidate_all(self) -> bool:
        cleared = await self._cache.clear()
        logger.info("All caches invalidated")
        return cleared

    async def invalidate_key(self, key: str, tier: str | None = None) -> int:
        """Delete *key* from one tier (or every tier). Returns entries removed."""
        removed = 0
        for name in self._tiers(tier):
            if await self._cache.delete(key, name):
                removed += 1
        return removed

    async def invalidate_by_prefix(self, pattern: str, tier: str | None = None) -> int:
        """Delete every key containing *pattern*. Returns entries removed.

        Keys are matched by substring, so a key prefix or any fragment
        (a resource name, a user id) both work. An empty pattern removes
        nothing; use :meth:`invalidate_all` to flush.
        """
        if not pattern:
            return 0
        removed = 0
        for name in self._tiers(tier):
            for key in await self._cache.keys(pattern, name):
                if await self._cache.delete(key, name):
                    removed += 1
        logger.info("Cache invalidated by pattern '%s' (tier=%s, removed=%d)", pattern, tier or ALL_TIERS, removed)
        return removed

    async def invalidate_resource(self, name: str) -> int:
        """Invalidate a named resource: ``dishes``, ``orders``, ``user:<id>``..."""
        if name.startswith("user:"):
            return await self.invalidate_by_prefix(name.split(":", 1)[1])
        return await self.invalidate_by_prefix(RESOURCE_PATTERNS.get(name, name))
