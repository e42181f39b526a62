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
"""Response cache filter — serves GET responses from a ResponseCache."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from tiercache.cache.keys import KeyGenerator, request_cache_key
from tiercache.cache.manager import ResponseCache
from tiercache.web.filters import OncePerRequestFilter
from tiercache.web.ports.filter import CallNext

logger = logging.getLogger(__name__)

CACHE_HEADER = "X-Cache"
CACHE_KEY_HEADER = "X-Cache-Key"
HIT = "HIT"
MISS = "MISS"

CACHEABLE_METHODS = frozenset({"GET", "HEAD"})

SkipPredicate = Callable[[Any], bool]


def _is_json(response: Response) -> bool:
    media_type = response.headers.get("content-type", "").split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def _client_opted_out(request: Request) -> bool:
    directives = request.headers.get("cache-control", "").lower()
    return "no-cache" in directives or "no-store" in directives


class ResponseInterceptor:
    """Wraps one request/response cycle with a cache lookup and store.

    Hits are answered from the cache without calling downstream. Misses
    call downstream and store 2xx JSON bodies of GET requests under the
    tier TTL or *ttl*. Nothing the cache does can change a miss response
    beyond the ``X-Cache``/``X-Cache-Key`` headers.
    """

    def __init__(
        self,
        cache: ResponseCache,
        tier: str | None = None,
        ttl: float | None = None,
        namespace: str | None = None,
        key_generator: KeyGenerator | None = None,
        skip: SkipPredicate | None = None,
    ) -> None:
        self._cache = cache
        self._tier = cache.tier(tier).name
        self._ttl = ttl
        self._namespace = namespace
        self._key_generator = key_generator
        self._skip = skip

    @property
    def tier(self) -> str:
        return self._tier

    def bypasses(self, request: Request) -> bool:
        if not self._cache.enabled:
            return True
        if request.method not in CACHEABLE_METHODS:
            return True
        if self._skip is not None and self._skip(request):
            return True
        return _client_opted_out(request)

    def key_for(self, request: Request) -> str:
        if self._key_generator is not None:
            return self._key_generator(request)
        return request_cache_key(request, namespace=self._namespace)

    async def intercept(self, request: Request, call_next: CallNext) -> Response:
        if self.bypasses(request):
            return await call_next(request)

        key = self.key_for(request)
        cached = await self._cache.lookup(key, self._tier)
        if cached is not None:
            response: Response = JSONResponse(cached)
            response.headers[CACHE_HEADER] = HIT
            response.headers[CACHE_KEY_HEADER] = key
            return response

        response = await call_next(request)
        if request.method == "GET":
            await self._store(key, response)

        response.headers[CACHE_HEADER] = MISS
        response.headers[CACHE_KEY_HEADER] = key
        return response

    async def _store(self, key: str, response: Response) -> None:
        if not 200 <= response.status_code < 300:
            return
        # Streaming and non-JSON responses pass through uncached.
        body = getattr(response, "body", None)
        if body is None or not _is_json(response):
            return

        try:
            payload = json.loads(body)
        except (ValueError, UnicodeDecodeError) as exc:
            logger.error("Cache SET skipped, response body is not valid JSON: key=%s error=%s", key, exc)
            return

        if payload is None:
            return
        await self._cache.put(key, payload, self._tier, ttl=self._ttl)


class ResponseCacheFilter(OncePerRequestFilter):
    """WebFilter caching JSON GET responses on matching paths.

    Usage::

        cache = build_response_cache()
        app = Starlette(
            routes=routes,
            middleware=[
                Middleware(
                    WebFilterChainMiddleware,
                    filters=[ResponseCacheFilter(cache, tier="medium", url_patterns=["/api/dishes*"])],
                )
            ],
        )
    """

    exclude_patterns: Sequence[str] = ("/actuator/*", "/health")

    def __init__(
        self,
        cache: ResponseCache,
        tier: str | None = None,
        ttl: float | None = None,
        namespace: str | None = None,
        key_generator: KeyGenerator | None = None,
        skip: SkipPredicate | None = None,
        url_patterns: Sequence[str] | None = None,
        exclude_patterns: Sequence[str] | None = None,
    ) -> None:
        self._interceptor = ResponseInterceptor(
            cache,
            tier=tier,
            ttl=ttl,
            namespace=namespace,
            key_generator=key_generator,
            skip=skip,
        )
        if url_patterns is not None:
            self.url_patterns = tuple(url_patterns)
        if exclude_patterns is not None:
            self.exclude_patterns = tuple(exclude_patterns)

    @property
    def interceptor(self) -> ResponseInterceptor:
        return self._interceptor

    async def do_filter(self, request: Request, call_next: CallNext) -> Response:
        return await self._interceptor.intercept(request, call_next)
