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
"""Tests for the cache actuator endpoint and its Starlette routes."""

from __future__ import annotations

import pytest
from starlette.applications import Starlette
from starlette.testclient import TestClient

from tiercache.actuator.adapters.starlette import make_cache_actuator_routes
from tiercache.actuator.endpoints.cache_endpoint import CacheEndpoint
from tiercache.actuator.ports import ActuatorEndpoint
from tiercache.cache.adapters.memory import TieredMemoryStore
from tiercache.cache.manager import ResponseCache


@pytest.fixture
async def cache() -> ResponseCache:
    c = ResponseCache(TieredMemoryStore())
    await c.put("GET:/api/dishes:{}:{}:anonymous", [1], tier="medium")
    await c.put("GET:/api/orders:{}:{}:42", [2], tier="short")
    await c.put("GET:/api/settings:{}:{}:42", {}, tier="long")
    return c


class TestCacheEndpoint:
    def test_is_actuator_endpoint(self):
        endpoint = CacheEndpoint(ResponseCache(TieredMemoryStore()))
        assert isinstance(endpoint, ActuatorEndpoint)
        assert endpoint.endpoint_id == "caches"

    @pytest.mark.asyncio
    async def test_handle_reports_stats(self, cache: ResponseCache):
        await cache.lookup("GET:/api/orders:{}:{}:42", tier="short")
        data = await CacheEndpoint(cache).handle()
        assert data["hits"] == 1
        assert data["sets"] == 3
        assert data["hit_rate"] == 1.0
        assert data["tiers"]["medium"]["keys"] == 1

    @pytest.mark.asyncio
    async def test_invalidate_pattern(self, cache: ResponseCache):
        result = await CacheEndpoint(cache).invalidate({"pattern": "dishes"})
        assert result["success"] is True
        assert result["removed"] == 1
        assert result["tier"] == "all"
        assert "timestamp" in result

    @pytest.mark.asyncio
    async def test_invalidate_pattern_in_tier(self, cache: ResponseCache):
        result = await CacheEndpoint(cache).invalidate({"pattern": "42", "tier": "long"})
        assert result["removed"] == 1
        assert len(await cache.keys(tier="short")) == 1

    @pytest.mark.asyncio
    async def test_invalidate_unknown_tier(self, cache: ResponseCache):
        result = await CacheEndpoint(cache).invalidate({"pattern": "42", "tier": "eternal"})
        assert result["success"] is False
        assert "eternal" in result["error"]

    @pytest.mark.asyncio
    async def test_invalidate_resource(self, cache: ResponseCache):
        result = await CacheEndpoint(cache).invalidate({"resource": "user:42"})
        assert result["removed"] == 2

    @pytest.mark.asyncio
    async def test_invalidate_all(self, cache: ResponseCache):
        result = await CacheEndpoint(cache).invalidate({"all": True})
        assert result["success"] is True
        assert await cache.keys() == []

    @pytest.mark.asyncio
    async def test_invalidate_requires_a_target(self, cache: ResponseCache):
        result = await CacheEndpoint(cache).invalidate({})
        assert result == {"success": False, "error": "Either pattern, resource or all=true must be specified"}


class TestCacheActuatorRoutes:
    def _client(self, cache: ResponseCache) -> TestClient:
        return TestClient(Starlette(routes=make_cache_actuator_routes(CacheEndpoint(cache))))

    def test_stats_route(self, cache: ResponseCache):
        resp = self._client(cache).get("/actuator/caches")
        assert resp.status_code == 200
        body = resp.json()
        assert body["backend"] == "memory"
        assert set(body["tiers"]) == {"short", "medium", "long"}

    def test_invalidate_route(self, cache: ResponseCache):
        resp = self._client(cache).post("/actuator/caches/invalidate", json={"pattern": "orders"})
        assert resp.status_code == 200
        assert resp.json()["removed"] == 1

    def test_missing_target_is_400(self, cache: ResponseCache):
        resp = self._client(cache).post("/actuator/caches/invalidate", json={})
        assert resp.status_code == 400

    def test_invalid_json_is_400(self, cache: ResponseCache):
        resp = self._client(cache).post(
            "/actuator/caches/invalidate",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400

    def test_non_object_body_is_400(self, cache: ResponseCache):
        resp = self._client(cache).post("/actuator/caches/invalidate", json=["dishes"])
        assert resp.status_code == 400
