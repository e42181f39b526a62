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
"""Declarative caching decorators for Starlette endpoints."""

from __future__ import annotations

import functools
import logging
import string
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from starlette.requests import Request
from starlette.responses import Response

from tiercache.cache.invalidator import CacheInvalidator
from tiercache.cache.keys import KeyGenerator
from tiercache.cache.manager import ResponseCache
from tiercache.kernel.exceptions import ConfigurationException
from tiercache.web.adapters.starlette.cache_filter import ResponseInterceptor, SkipPredicate

logger = logging.getLogger(__name__)

_FORMATTER = string.Formatter()

Endpoint = Callable[[Request], Awaitable[Response]]
F = TypeVar("F", bound=Callable[..., Any])


def cached(
    cache: ResponseCache,
    tier: str | None = None,
    ttl: float | None = None,
    namespace: str | None = None,
    key_generator: KeyGenerator | None = None,
    skip: SkipPredicate | None = None,
) -> Callable[[F], F]:
    """Serve an async endpoint's JSON GET responses from *cache*.

    Runs after routing, so keys are built from the route template and its
    path params (``/api/user/{user_id}`` + ``{"user_id": "123"}``).

    Args:
        cache: Response cache to read and fill.
        tier: ``short``, ``medium`` or ``long``; unknown names mean ``short``.
        ttl: Seconds overriding the tier TTL.
        namespace: Prefix for derived keys, e.g. ``"dishes"``.
        key_generator: Replaces key derivation entirely.
        skip: Predicate; when it returns True the endpoint runs uncached.
    """
    interceptor = ResponseInterceptor(
        cache,
        tier=tier,
        ttl=ttl,
        namespace=namespace,
        key_generator=key_generator,
        skip=skip,
    )

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(request: Request) -> Response:
            return await interceptor.intercept(request, func)

        return wrapper  # type: ignore[return-value]

    return decorator


def invalidates(invalidator: CacheInvalidator, *resources: str) -> Callable[[F], F]:
    """Invalidate *resources* after the endpoint returns a 2xx response.

    Each resource is a named resource (``"dishes"``, ``"orders"``,
    ``"user:<id>"``) or any key fragment. Fragments may use ``{param}``
    placeholders filled from the request's path params, e.g.
    ``"user:{user_id}"``. Literal braces are written ``{{`` and ``}}``.
    Malformed patterns raise :class:`ConfigurationException` here; a
    pattern whose path param is missing from a request is skipped.
    """
    templates = [(resource, _placeholders(resource)) for resource in resources]

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(request: Request) -> Response:
            response: Response = await func(request)
            if 200 <= response.status_code < 300:
                params = {name: str(value) for name, value in request.path_params.items()}
                for resource, names in templates:
                    missing = [name for name in names if name not in params]
                    if missing:
                        logger.warning("Invalidation of '%s' skipped, path params missing: %s", resource, missing)
                        continue
                    await invalidator.invalidate_resource(resource.format(**params))
            return response

        return wrapper  # type: ignore[return-value]

    return decorator


def _placeholders(resource: str) -> tuple[str, ...]:
    try:
        names = [name for _, name, _, _ in _FORMATTER.parse(resource) if name is not None]
    except ValueError as exc:
        raise ConfigurationException(
            f"Invalid invalidation pattern '{resource}'",
            code="CACHE_CONFIG_PATTERN",
            context={"resource": resource, "error": str(exc)},
        ) from exc
    for name in names:
        if not name.isidentifier():
            raise ConfigurationException(
                f"Invalidation pattern '{resource}' has placeholder '{{{name}}}'; placeholders must name a path param",
                code="CACHE_CONFIG_PATTERN",
                context={"resource": resource, "placeholder": name},
            )
    return tuple(names)
