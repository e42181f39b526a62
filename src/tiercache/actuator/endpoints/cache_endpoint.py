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
"""Cache actuator endpoint — statistics and invalidation."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from tiercache.cache.invalidator import ALL_TIERS, CacheInvalidator
from tiercache.cache.manager import ResponseCache

logger = logging.getLogger(__name__)


class CacheEndpoint:
    """Endpoint at ``/actuator/caches``.

    ``handle()`` returns hits/misses/sets/deletes, the hit rate, backend
    state and per-tier key counts. ``invalidate()`` accepts
    ``{"all": true}``, ``{"pattern": "...", "tier": "short|medium|long|all"}``
    or ``{"resource": "dishes" | "user:<id>" | ...}``.
    """

    def __init__(self, cache: ResponseCache, invalidator: CacheInvalidator | None = None) -> None:
        self._cache = cache
        self._invalidator = invalidator or CacheInvalidator(cache)

    @property
    def endpoint_id(self) -> str:
        return "caches"

    @property
    def enabled(self) -> bool:
        return True

    async def handle(self, context: Any = None) -> dict[str, Any]:
        return await self._cache.describe()

    async def invalidate(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Run an invalidation request. The result carries ``error`` on bad input."""
        timestamp = datetime.now(UTC).isoformat()

        if payload.get("all") is True:
            cleared = await self._invalidator.invalidate_all()
            return {"success": cleared, "all": True, "timestamp": timestamp}

        pattern = payload.get("pattern")
        if isinstance(pattern, str) and pattern:
            tier = payload.get("tier", ALL_TIERS)
            if tier != ALL_TIERS and tier not in self._cache.tier_names:
                return {"success": False, "error": f"Unknown tier '{tier}'"}
            removed = await self._invalidator.invalidate_by_prefix(pattern, tier)
            return {"success": True, "pattern": pattern, "tier": tier, "removed": removed, "timestamp": timestamp}

        resource = payload.get("resource")
        if isinstance(resource, str) and resource:
            removed = await self._invalidator.invalidate_resource(resource)
            return {"success": True, "resource": resource, "removed": removed, "timestamp": timestamp}

        return {"success": False, "error": "Either pattern, resource or all=true must be specified"}
