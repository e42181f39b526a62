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
"""Tests for cache key derivation."""

from __future__ import annotations

from types import SimpleNamespace

from starlette.requests import Request

from tiercache.cache.keys import (
    RequestDescriptor,
    caller_of,
    derive_cache_key,
    describe_request,
    request_cache_key,
)


def _request(path: str, query: str = "", method: str = "GET", path_params: dict | None = None) -> Request:
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": query.encode(),
        "headers": [],
        "path_params": path_params or {},
    }
    return Request(scope)


class TestDeriveCacheKey:
    def test_same_inputs_same_key(self):
        a = RequestDescriptor("GET", "/api/dishes", (("category", "main"),))
        b = RequestDescriptor("GET", "/api/dishes", (("category", "main"),))
        assert derive_cache_key(a) == derive_cache_key(b)

    def test_query_order_does_not_matter(self):
        a = RequestDescriptor("GET", "/api/dishes", (("a", "1"), ("b", "2")))
        b = RequestDescriptor("GET", "/api/dishes", (("b", "2"), ("a", "1")))
        assert derive_cache_key(a) == derive_cache_key(b)

    def test_each_component_changes_the_key(self):
        base = RequestDescriptor("GET", "/api/dishes", (("category", "main"),), {"id": "1"}, "u1", None)
        variants = [
            RequestDescriptor("HEAD", "/api/dishes", (("category", "main"),), {"id": "1"}, "u1", None),
            RequestDescriptor("GET", "/api/orders", (("category", "main"),), {"id": "1"}, "u1", None),
            RequestDescriptor("GET", "/api/dishes", (("category", "side"),), {"id": "1"}, "u1", None),
            RequestDescriptor("GET", "/api/dishes", (("category", "main"),), {"id": "2"}, "u1", None),
            RequestDescriptor("GET", "/api/dishes", (("category", "main"),), {"id": "1"}, "u2", None),
            RequestDescriptor("GET", "/api/dishes", (("category", "main"),), {"id": "1"}, "u1", "dishes"),
        ]
        keys = {derive_cache_key(v) for v in variants}
        assert derive_cache_key(base) not in keys
        assert len(keys) == len(variants)

    def test_anonymous_caller_by_default(self):
        key = derive_cache_key(RequestDescriptor("GET", "/api/dishes"))
        assert key == 'GET:/api/dishes:{}:{}:anonymous'

    def test_namespace_prefixes_key(self):
        key = derive_cache_key(RequestDescriptor("GET", "/api/dishes", namespace="dishes"))
        assert key.startswith("dishes:GET:/api/dishes")

    def test_repeated_query_values_kept(self):
        a = RequestDescriptor("GET", "/api/dishes", (("tag", "veg"), ("tag", "spicy")))
        b = RequestDescriptor("GET", "/api/dishes", (("tag", "veg"),))
        assert derive_cache_key(a) != derive_cache_key(b)


class TestDescribeRequest:
    def test_reads_method_path_and_query(self):
        descriptor = describe_request(_request("/api/dishes", "category=main"))
        assert descriptor.method == "GET"
        assert descriptor.path == "/api/dishes"
        assert descriptor.query == (("category", "main"),)
        assert descriptor.caller_id is None

    def test_user_paths_yield_distinct_keys(self):
        a = derive_cache_key(describe_request(_request("/api/user/123", path_params={"user_id": "123"})))
        b = derive_cache_key(describe_request(_request("/api/user/456", path_params={"user_id": "456"})))
        assert a != b

    def test_route_template_used_when_routed(self):
        request = _request("/api/user/123", path_params={"user_id": "123"})
        request.scope["route"] = SimpleNamespace(path="/api/user/{user_id}")
        descriptor = describe_request(request)
        assert descriptor.path == "/api/user/{user_id}"
        assert descriptor.path_params == {"user_id": "123"}

    def test_explicit_caller_wins(self):
        request = _request("/api/orders")
        request.state.user = {"id": "from-state"}
        assert describe_request(request, caller_id="explicit").caller_id == "explicit"


class TestRequestCacheKey:
    def test_head_shares_get_key(self):
        get_key = request_cache_key(_request("/api/dishes", "category=main"))
        head_key = request_cache_key(_request("/api/dishes", "category=main", method="HEAD"))
        assert head_key == get_key
        assert head_key.startswith("GET:")

    def test_other_methods_keep_their_own_key(self):
        get_key = request_cache_key(_request("/api/dishes"))
        post_key = request_cache_key(_request("/api/dishes", method="POST"))
        assert post_key != get_key

    def test_namespace(self):
        assert request_cache_key(_request("/api/dishes"), namespace="dishes").startswith("dishes:GET:")


class TestCallerOf:
    def test_user_object(self):
        request = _request("/api/orders")
        request.state.user = SimpleNamespace(id=42)
        assert caller_of(request) == "42"

    def test_user_mapping(self):
        request = _request("/api/orders")
        request.state.user = {"id": "abc"}
        assert caller_of(request) == "abc"

    def test_user_id_attribute(self):
        request = _request("/api/orders")
        request.state.user_id = 7
        assert caller_of(request) == "7"

    def test_no_user(self):
        assert caller_of(_request("/api/orders")) is None
