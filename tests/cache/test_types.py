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
"""Tests for cache tiers and entries."""

from __future__ import annotations

import pytest

from tiercache.cache.types import (
    DEFAULT_TIERS,
    CacheEntry,
    CacheTier,
    resolve_tier,
    tiers_from_mapping,
    whole_seconds,
)
from tiercache.kernel.exceptions import ConfigurationException


class TestCacheTier:
    def test_default_tiers(self):
        assert DEFAULT_TIERS["short"] == CacheTier("short", 300, 60)
        assert DEFAULT_TIERS["medium"] == CacheTier("medium", 1800, 300)
        assert DEFAULT_TIERS["long"] == CacheTier("long", 7200, 600)

    @pytest.mark.parametrize(("ttl", "interval"), [(0, 60), (-1, 60), (300, 0)])
    def test_non_positive_settings_rejected(self, ttl: int, interval: int):
        with pytest.raises(ConfigurationException):
            CacheTier("short", ttl, interval)

    def test_resolve_known_tier(self):
        assert resolve_tier(DEFAULT_TIERS, "long").name == "long"

    def test_resolve_unknown_tier_falls_back_to_short(self):
        assert resolve_tier(DEFAULT_TIERS, "eternal").name == "short"
        assert resolve_tier(DEFAULT_TIERS, None).name == "short"


class TestTiersFromMapping:
    def test_partial_override_keeps_defaults(self):
        tiers = tiers_from_mapping({"medium": {"ttl": 900}})
        assert tiers["medium"] == CacheTier("medium", 900, 300)
        assert tiers["short"] == DEFAULT_TIERS["short"]

    def test_extra_tier(self):
        tiers = tiers_from_mapping({"daily": {"ttl": 86400, "check_interval": 3600}})
        assert tiers["daily"].default_ttl_seconds == 86400

    def test_extra_tier_needs_ttl(self):
        with pytest.raises(ConfigurationException):
            tiers_from_mapping({"daily": {}})

    def test_non_numeric_setting(self):
        with pytest.raises(ConfigurationException):
            tiers_from_mapping({"short": {"ttl": "five minutes"}})


class TestWholeSeconds:
    @pytest.mark.parametrize(("ttl", "expected"), [(300, 300), (2.2, 3), (0.1, 1), (0, 1)])
    def test_rounding(self, ttl: float, expected: int):
        assert whole_seconds(ttl) == expected


class TestCacheEntry:
    def test_expiry(self):
        entry = CacheEntry("k", 1, 10, inserted_at=100.0)
        assert entry.expires_at == 110.0
        assert entry.is_expired(109.9) is False
        assert entry.is_expired(110.0) is True
