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
"""Starlette routes for the cache actuator endpoint."""

from __future__ import annotations

import json

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from tiercache.actuator.endpoints.cache_endpoint import CacheEndpoint


def make_cache_actuator_routes(endpoint: CacheEndpoint) -> list[Route]:
    """``GET /actuator/caches`` (stats) and ``POST /actuator/caches/invalidate``."""
    base = f"/actuator/{endpoint.endpoint_id}"

    async def stats_handler(request: Request) -> JSONResponse:
        return JSONResponse(await endpoint.handle())

    async def invalidate_handler(request: Request) -> JSONResponse:
        body = await request.body()
        try:
            payload = json.loads(body) if body else {}
        except ValueError:
            return JSONResponse({"success": False, "error": "Request body must be JSON"}, status_code=400)
        if not isinstance(payload, dict):
            return JSONResponse({"success": False, "error": "Request body must be a JSON object"}, status_code=400)

        result = await endpoint.invalidate(payload)
        if "error" in result:
            return JSONResponse(result, status_code=400)
        return JSONResponse(result)

    if not endpoint.enabled:
        return []
    return [
        Route(base, stats_handler, methods=["GET"]),
        Route(f"{base}/invalidate", invalidate_handler, methods=["POST"]),
    ]
