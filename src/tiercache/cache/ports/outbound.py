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
"""Store adapter protocol."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class StoreAdapter(Protocol):
    """Tier-aware key/value store with per-entry TTL.

    All cache backends (in-memory, Redis) implement this protocol. TTLs are
    whole seconds. ``get`` returns ``None`` for absent, expired, and
    unreachable entries alike; mutating calls report success as a bool.
    """

    @property
    def backend(self) -> str: ...

    @property
    def available(self) -> bool: ...

    async def get(self, key: str, tier: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl_seconds: int, tier: str) -> bool: ...

    async def delete(self, key: str, tier: str) -> bool: ...

    async def clear(self, tier: str | None = None) -> bool: ...

    async def list_keys(self, pattern: str | None = None, tier: str | None = None) -> list[str]: ...

    async def count_keys(self, tier: str) -> int: ...

    async def start(self) -> None: ...

    async def stop(self) -> None: ...
