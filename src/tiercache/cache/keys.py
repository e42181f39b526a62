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
"""Cache key derivation.

Framework-agnostic: :func:`describe_request` only reads attributes
(``method``, ``url.path``, ``query_params``, ``path_params``, ``scope``,
``state``) so no Starlette import is needed here.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

ANONYMOUS = "anonymous"

KeyGenerator = Callable[[Any], str]


@dataclass(frozen=True)
class RequestDescriptor:
    """The parts of a request that identify a cacheable response."""

    method: str
    path: str
    query: tuple[tuple[str, str], ...] = ()
    path_params: Mapping[str, Any] = field(default_factory=dict)
    caller_id: str | None = None
    namespace: str | None = None


def _encode_query(items: Iterable[tuple[str, str]]) -> str:
    grouped: dict[str, list[str]] = {}
    for name, value in items:
        grouped.setdefault(name, []).append(value)
    return json.dumps(grouped, sort_keys=True, separators=(",", ":"))


def _encode_params(params: Mapping[str, Any]) -> str:
    return json.dumps({k: str(v) for k, v in params.items()}, sort_keys=True, separators=(",", ":"))


def derive_cache_key(descriptor: RequestDescriptor) -> str:
    """Build ``[namespace:]METHOD:path:query:params:caller``.

    Query values keep their order per name but names are sorted, so
    ``?a=1&b=2`` and ``?b=2&a=1`` share a key.
    """
    parts = [
        descriptor.method.upper(),
        descriptor.path,
        _encode_query(descriptor.query),
        _encode_params(descriptor.path_params),
        descriptor.caller_id or ANONYMOUS,
    ]
    key = ":".join(parts)
    if descriptor.namespace:
        return f"{descriptor.namespace}:{key}"
    return key


def caller_of(request: Any) -> str | None:
    """Find the authenticated caller id left on ``request.state`` by auth middleware."""
    state = getattr(request, "state", None)
    if state is None:
        return None
    user = getattr(state, "user", None)
    if user is not None:
        user_id = user.get("id") if isinstance(user, Mapping) else getattr(user, "id", None)
        if user_id is not None:
            return str(user_id)
    user_id = getattr(state, "user_id", None)
    return str(user_id) if user_id is not None else None


def describe_request(
    request: Any,
    namespace: str | None = None,
    caller_id: str | None = None,
) -> RequestDescriptor:
    """Describe an incoming request.

    The matched route template is used as the path when routing has already
    happened (endpoint decorators); filters running before routing fall back
    to the concrete URL path.
    """
    scope = getattr(request, "scope", {}) or {}
    route = scope.get("route")
    path = getattr(route, "path", None) or request.url.path
    return RequestDescriptor(
        method=request.method,
        path=path,
        query=tuple(request.query_params.multi_items()),
        path_params=dict(getattr(request, "path_params", {}) or {}),
        caller_id=caller_id if caller_id is not None else caller_of(request),
        namespace=namespace,
    )


def request_cache_key(request: Any, namespace: str | None = None) -> str:
    """Default key generator. HEAD shares the GET key so it is answered from GET entries."""
    descriptor = describe_request(request, namespace=namespace)
    if descriptor.method.upper() == "HEAD":
        descriptor = replace(descriptor, method="GET")
    return derive_cache_key(descriptor)
