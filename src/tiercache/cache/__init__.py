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
"""tiercache cache — tiered response cache with in-memory and Redis stores."""

from tiercache.cache.adapters.memory import TieredMemoryStore
from tiercache.cache.adapters.redis import RedisStore
from tiercache.cache.auto_configuration import CacheAutoConfiguration, build_response_cache
from tiercache.cache.invalidator import CacheInvalidator
from tiercache.cache.keys import RequestDescriptor, derive_cache_key, describe_request
from tiercache.cache.manager import ResponseCache
from tiercache.cache.ports.outbound import StoreAdapter
from tiercache.cache.stats import CacheStats
from tiercache.cache.types import DEFAULT_TIERS, CacheBackend, CacheEntry, CacheTier

__all__ = [
    "DEFAULT_TIERS",
    "CacheAutoConfiguration",
    "CacheBackend",
    "CacheEntry",
    "CacheInvalidator",
    "CacheStats",
    "CacheTier",
    "RedisStore",
    "RequestDescriptor",
    "ResponseCache",
    "StoreAdapter",
    "TieredMemoryStore",
    "build_response_cache",
    "derive_cache_key",
    "describe_request",
]
