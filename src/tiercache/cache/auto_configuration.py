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
"""Builds a ResponseCache from configuration."""

from __future__ import annotations

import logging
from typing import Any

from tiercache.cache.adapters.memory import TieredMemoryStore
from tiercache.cache.adapters.redis import RedisStore
from tiercache.cache.manager import ResponseCache
from tiercache.cache.ports.outbound import StoreAdapter
from tiercache.cache.types import DEFAULT_TIERS, CacheBackend, CacheTier, tiers_from_mapping
from tiercache.config.properties.cache import CacheProperties, RedisProperties
from tiercache.core.config import Config
from tiercache.kernel.exceptions import ConfigurationException
from tiercache.logging.port import LoggingPort
from tiercache.logging.structlog_adapter import StructlogAdapter

logger = logging.getLogger("tiercache.cache")

TIER_OPTIONS = ("ttl", "check_interval")


class CacheAutoConfiguration:
    """Selects and builds the store backing the response cache.

    ``provider: auto`` picks Redis when ``tiercache.cache.redis.url`` (or
    ``REDIS_URL``) is set and the in-memory store otherwise. Invalid settings
    raise :class:`ConfigurationException` here, at startup.
    """

    def __init__(self, config: Config) -> None:
        self._config = config
        self._properties = config.bind(CacheProperties)
        self._redis = config.bind(RedisProperties)
        if int(self._properties.max_entry_bytes) <= 0:
            raise ConfigurationException(
                "tiercache.cache.max_entry_bytes must be positive",
                code="CACHE_CONFIG_MAX_ENTRY",
                context={"max_entry_bytes": self._properties.max_entry_bytes},
            )
        if float(self._redis.operation_timeout) <= 0:
            raise ConfigurationException(
                "tiercache.cache.redis.operation_timeout must be positive",
                code="CACHE_CONFIG_TIMEOUT",
                context={"operation_timeout": self._redis.operation_timeout},
            )

    @property
    def properties(self) -> CacheProperties:
        return self._properties

    def detect_backend(self) -> CacheBackend:
        provider = str(self._properties.provider).lower()
        if provider == "auto":
            return CacheBackend.REDIS if self._redis.url else CacheBackend.MEMORY
        try:
            backend = CacheBackend(provider)
        except ValueError as exc:
            raise ConfigurationException(
                f"Unknown cache provider '{provider}'",
                code="CACHE_CONFIG_PROVIDER",
                context={"provider": provider, "allowed": ["auto", *(b.value for b in CacheBackend)]},
            ) from exc
        if backend is CacheBackend.REDIS and not self._redis.url:
            raise ConfigurationException(
                "Cache provider 'redis' requires tiercache.cache.redis.url",
                code="CACHE_CONFIG_REDIS_URL",
            )
        return backend

    def tiers(self) -> dict[str, CacheTier]:
        """Tier settings, read per option so ``TIERCACHE_CACHE_TIERS_<NAME>_TTL`` style overrides apply."""
        raw = self._properties.tiers or {}
        settings: dict[str, dict[str, Any]] = {}
        for name in {**DEFAULT_TIERS, **raw}:
            options = dict(raw.get(name) or {})
            for option in TIER_OPTIONS:
                value = self._config.get(f"tiercache.cache.tiers.{name}.{option}")
                if value is not None:
                    options[option] = value
            settings[name] = options
        return tiers_from_mapping(settings)

    def store(self) -> StoreAdapter:
        backend = self.detect_backend()
        if backend is CacheBackend.REDIS:
            logger.info("Response cache using Redis store")
            return RedisStore.from_url(
                self._redis.url,
                key_prefix=self._redis.key_prefix,
                operation_timeout=float(self._redis.operation_timeout),
                max_entry_bytes=int(self._properties.max_entry_bytes),
            )

        logger.info("Response cache using in-memory store")
        return TieredMemoryStore(self.tiers(), max_entry_bytes=int(self._properties.max_entry_bytes))

    def configure_logging(self, adapter: LoggingPort | None = None) -> LoggingPort:
        """Apply the ``tiercache.logging`` section through *adapter* (structlog by default)."""
        logging_port = adapter or StructlogAdapter()
        logging_port.configure(self._config)
        return logging_port

    def response_cache(self) -> ResponseCache:
        return ResponseCache(
            self.store(),
            tiers=self.tiers(),
            default_tier=self._properties.default_tier,
            enabled=bool(self._properties.enabled),
        )


def build_response_cache(config: Config | None = None, configure_logging: bool = False) -> ResponseCache:
    """Build a cache from *config*, or from the packaged defaults plus env vars.

    With *configure_logging* the ``tiercache.logging`` section is applied
    first, so backend selection is already logged in the configured format.
    """
    auto = CacheAutoConfiguration(config or Config.defaults())
    if configure_logging:
        auto.configure_logging()
    return auto.response_cache()
