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
"""Cache subsystem configuration properties."""

from __future__ import annotations

from dataclasses import dataclass, field

from tiercache.core.config import config_properties


def _default_tiers() -> dict:
    return {
        "short": {"ttl": 300, "check_interval": 60},
        "medium": {"ttl": 1800, "check_interval": 300},
        "long": {"ttl": 7200, "check_interval": 600},
    }


@config_properties(prefix="tiercache.cache")
@dataclass
class CacheProperties:
    """Configuration for the response cache (tiercache.cache.*)."""

    enabled: bool = True
    provider: str = "auto"
    default_tier: str = "short"
    max_entry_bytes: int = 1024 * 1024
    tiers: dict = field(default_factory=_default_tiers)


@config_properties(prefix="tiercache.cache.redis")
@dataclass
class RedisProperties:
    """Remote store settings (tiercache.cache.redis.*).

    An empty ``url`` means no remote store is configured.
    """

    url: str = ""
    key_prefix: str = "tiercache"
    operation_timeout: float = 0.5
