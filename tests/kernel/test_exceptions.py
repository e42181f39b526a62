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
"""Tests for the tiercache exception hierarchy."""

import pytest

from tiercache.kernel.exceptions import (
    CacheSerializationException,
    CacheUnavailableException,
    ConfigurationException,
    InfrastructureException,
    TierCacheException,
)


class TestTierCacheException:
    def test_message_code_context(self):
        exc = TierCacheException("bad", code="CACHE_X", context={"key": "k"})
        assert str(exc) == "bad"
        assert exc.code == "CACHE_X"
        assert exc.context == {"key": "k"}

    def test_context_defaults_to_empty(self):
        exc = TierCacheException("bad")
        assert exc.code is None
        assert exc.context == {}


class TestHierarchy:
    @pytest.mark.parametrize(
        ("exc_type", "parent"),
        [
            (InfrastructureException, TierCacheException),
            (CacheUnavailableException, InfrastructureException),
            (CacheSerializationException, TierCacheException),
            (ConfigurationException, TierCacheException),
        ],
    )
    def test_subclassing(self, exc_type: type, parent: type):
        assert issubclass(exc_type, parent)

    def test_catch_by_base(self):
        with pytest.raises(TierCacheException):
            raise CacheUnavailableException("redis down", code="CACHE_UNAVAILABLE")
