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
"""Cache-Control filter — advertises client-side caching policy."""

from __future__ import annotations

from collections.abc import Sequence

from starlette.requests import Request
from starlette.responses import Response

from tiercache.web.filters import OncePerRequestFilter
from tiercache.web.ports.filter import CallNext

CACHE_CONTROL_HEADER = "Cache-Control"


class CacheControlFilter(OncePerRequestFilter):
    """Sets ``Cache-Control`` on every response it filters.

    ``no_store`` wins over ``no_cache``, which wins over ``max-age``.
    """

    def __init__(
        self,
        max_age: int = 300,
        public: bool = True,
        must_revalidate: bool = False,
        no_store: bool = False,
        no_cache: bool = False,
        url_patterns: Sequence[str] | None = None,
    ) -> None:
        self._value = self.directive(max_age, public, must_revalidate, no_store, no_cache)
        if url_patterns is not None:
            self.url_patterns = tuple(url_patterns)

    @staticmethod
    def directive(
        max_age: int = 300,
        public: bool = True,
        must_revalidate: bool = False,
        no_store: bool = False,
        no_cache: bool = False,
    ) -> str:
        if no_store:
            return "no-store"
        if no_cache:
            return "no-cache"
        directives = ["public" if public else "private", f"max-age={max_age}"]
        if must_revalidate:
            directives.append("must-revalidate")
        return ", ".join(directives)

    async def do_filter(self, request: Request, call_next: CallNext) -> Response:
        response: Response = await call_next(request)
        response.headers[CACHE_CONTROL_HEADER] = self._value
        return response
