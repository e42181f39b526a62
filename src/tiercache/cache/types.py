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
"""Cache value types: tiers, entries, backend selection."""

from __future__ import annotations

import enum
import logging
import math
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from tiercache.kernel.exceptions import ConfigurationException

_logger = logging.getLogger(__name__)

SHORT = "short"
MEDIUM = "medium"
LONG = "long"
DEFAULT_TIER = SHORT


class CacheBackend(enum.Enum):
    """Which store implementation backs a response cache."""

    MEMORY = "memory"
    REDIS = "redis"


@dataclass(frozen=True)
class CacheTier:
    """A named TTL bucket selected per route."""

    name: str
    default_ttl_seconds: int
    check_interval_seconds: int

    def __post_init__(self) -> None:
        if self.default_ttl_seconds <= 0:
            raise ConfigurationException(
                f"Tier '{self.name}' must have a positive TTL",
                code="CACHE_CONFIG_TTL",
                context={"tier": self.name, "ttl": self.default_ttl_seconds},
            )
        if self.check_interval_seconds <= 0:
            raise ConfigurationException(
                f"Tier '{self.name}' must have a positive check interval",
                code="CACHE_CONFIG_INTERVAL",
                context={"tier": self.name, "check_interval": self.check_interval_seconds},
            )


DEFAULT_TIERS: dict[str, CacheTier] = {
    SHORT: CacheTier(SHORT, 300, 60),
    MEDIUM: CacheTier(MEDIUM, 1800, 300),
    LONG: CacheTier(LONG, 7200, 600),
}


def tiers_from_mapping(raw: Mapping[str, Any]) -> dict[str, CacheTier]:
    """Build tiers from a ``{name: {"ttl": .., "check_interval": ..}}`` mapping.

    Names missing from *raw* keep their defaults.
    """
    tiers = dict(DEFAULT_TIERS)
    for name, settings in raw.items():
        settings = settings or {}
        fallback = DEFAULT_TIERS.get(name)
        try:
            ttl = int(settings.get("ttl", fallback.default_ttl_seconds if fallback else 0))
            interval = int(
                settings.get("check_interval", fallback.check_interval_seconds if fallback else 0)
            )
        except (TypeError, ValueError) as exc:
            raise ConfigurationException(
                f"Tier '{name}' has a non-numeric setting",
                code="CACHE_CONFIG_TIER",
                context={"tier": name, "settings": dict(settings)},
            ) from exc
        tiers[name] = CacheTier(name, ttl, interval)
    return tiers


def resolve_tier(tiers: Mapping[str, CacheTier], name: str | None) -> CacheTier:
    """Look up a tier by name, falling back to ``short`` for unknown names."""
    if name is not None and name in tiers:
        return tiers[name]
    if name is not None:
        _logger.warning("Unknown cache tier '%s', using '%s'", name, DEFAULT_TIER)
    return tiers.get(DEFAULT_TIER) or DEFAULT_TIERS[DEFAULT_TIER]


def whole_seconds(ttl: float) -> int:
    """Normalise a TTL to whole seconds (rounded up, at least 1)."""
    return max(1, math.ceil(ttl))


@dataclass
class CacheEntry:
    """A stored payload and its expiry bookkeeping."""

    key: str
    value: Any
    ttl_seconds: int
    inserted_at: float = field(default_factory=time.monotonic)

    @property
    def expires_at(self) -> float:
        return self.inserted_at + self.ttl_seconds

    def is_expired(self, now: float | None = None) -> bool:
        current = time.monotonic() if now is None else now
        return current >= self.expires_at
