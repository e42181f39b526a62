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
"""Tests for CacheControlFilter."""

from __future__ import annotations

import pytest
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from tiercache.web.adapters.starlette.cache_control_filter import CacheControlFilter
from tiercache.web.adapters.starlette.filter_chain import WebFilterChainMiddleware


async def _hello(request):  # noqa: ANN001
    return JSONResponse({"msg": "ok"})


def _make_client(web_filter: CacheControlFilter) -> TestClient:
    app = Starlette(
        routes=[Route("/api/menu", _hello), Route("/health", _hello)],
        middleware=[Middleware(WebFilterChainMiddleware, filters=[web_filter])],
    )
    return TestClient(app)


class TestCacheControlFilter:
    def test_default_header(self) -> None:
        resp = _make_client(CacheControlFilter()).get("/api/menu")
        assert resp.headers["Cache-Control"] == "public, max-age=300"

    def test_url_patterns(self) -> None:
        client = _make_client(CacheControlFilter(max_age=60, url_patterns=["/api/*"]))
        assert client.get("/api/menu").headers["Cache-Control"] == "public, max-age=60"
        assert "Cache-Control" not in client.get("/health").headers


class TestDirective:
    @pytest.mark.parametrize(
        ("kwargs", "expected"),
        [
            ({}, "public, max-age=300"),
            ({"public": False, "max_age": 10}, "private, max-age=10"),
            ({"must_revalidate": True}, "public, max-age=300, must-revalidate"),
            ({"no_cache": True}, "no-cache"),
            ({"no_store": True, "no_cache": True}, "no-store"),
        ],
    )
    def test_directive(self, kwargs: dict, expected: str) -> None:
        assert CacheControlFilter.directive(**kwargs) == expected
