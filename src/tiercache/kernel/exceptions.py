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
"""Exception hierarchy for tiercache.

Categories:
- InfrastructureException: backing store failures (Redis down, timeouts)
- CacheSerializationException: payloads that cannot be encoded for storage
- ConfigurationException: invalid settings detected while building the cache

None of these ever reach an HTTP client through the response interceptor;
they exist so the store layer can signal failures precisely and so startup
misconfiguration fails fast.
"""

from __future__ import annotations


class TierCacheException(Exception):
    """Base exception for all tiercache errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "CACHE_CONFIG_001").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


class InfrastructureException(TierCacheException):
    """Infrastructure failures: remote store, network."""


class CacheUnavailableException(InfrastructureException):
    """The backing cache store cannot be reached."""


class CacheSerializationException(TierCacheException):
    """A payload could not be encoded for storage."""


class ConfigurationException(TierCacheException):
    """Cache settings are invalid; raised at startup, never per request."""
