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
"""Starlette adapter — filter chain, response cache filter, decorators."""

from tiercache.web.adapters.starlette.cache_control_filter import CacheControlFilter
from tiercache.web.adapters.starlette.cache_filter import (
    CACHE_HEADER,
    CACHE_KEY_HEADER,
    ResponseCacheFilter,
    ResponseInterceptor,
)
from tiercache.web.adapters.starlette.decorators import cached, invalidates
from tiercache.web.adapters.starlette.filter_chain import WebFilterChainMiddleware

__all__ = [
    "CACHE_HEADER",
    "CACHE_KEY_HEADER",
    "CacheControlFilter",
    "ResponseCacheFilter",
    "ResponseInterceptor",
    "WebFilterChainMiddleware",
    "cached",
    "invalidates",
]
