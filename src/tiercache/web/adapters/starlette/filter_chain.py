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
"""WebFilterChainMiddleware — pure ASGI middleware running a list of WebFilters."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any, cast

from starlette.datastructures import Headers
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from tiercache.web.ports.filter import CallNext, WebFilter

STREAMING_MEDIA_TYPES = frozenset({"text/event-stream"})


class _ForwardedResponse(Response):
    """A downstream response that is still being produced.

    Filters may change its status and headers; the body is forwarded
    message by message when the response is sent. It has no ``body``
    attribute, so body-reading filters leave it alone.
    """

    def __init__(
        self,
        start: Message,
        received: list[Message],
        messages: asyncio.Queue[Message | None],
        producer: asyncio.Task[None],
    ) -> None:
        self.status_code = start["status"]
        self.background = None
        self.raw_headers = list(start.get("headers", []))
        self._received = received
        self._messages = messages
        self._producer = producer

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await send({"type": "http.response.start", "status": self.status_code, "headers": self.raw_headers})
        for message in self._received:
            await send(message)
        while (message := await self._messages.get()) is not None:
            await send(message)
        await self._producer


def _is_streaming(headers: Headers) -> bool:
    media_type = headers.get("content-type", "").split(";", 1)[0].strip().lower()
    return media_type in STREAMING_MEDIA_TYPES


class WebFilterChainMiddleware:
    """Runs *filters* in the given order around the downstream ASGI app.

    Requests no filter applies to go straight to the app. Otherwise the
    downstream response is buffered into a :class:`Response` so filters can
    read its status, headers and body (the response cache needs the body to
    store it). Streaming responses (``text/event-stream``, or chunked bodies
    without a ``Content-Length``) are not buffered: filters see their status
    and headers and the chunks are forwarded as they are produced.
    """

    def __init__(self, app: ASGIApp, filters: Sequence[WebFilter] = ()) -> None:
        self.app = app
        self._filters = list(filters)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not self._filters:
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive, send)
        active = [f for f in self._filters if not f.should_not_filter(request)]
        if not active:
            await self.app(scope, receive, send)
            return

        async def _call_app(req: Any) -> Response:
            return await self._downstream(scope, receive)

        chain: CallNext = _call_app
        for web_filter in reversed(active):
            chain = _wrap(web_filter, chain)

        response = cast(Response, await chain(request))
        await response(scope, receive, send)

    async def _downstream(self, scope: Scope, receive: Receive) -> Response:
        messages: asyncio.Queue[Message | None] = asyncio.Queue()

        async def _produce() -> None:
            try:
                await self.app(scope, receive, messages.put)
            finally:
                await messages.put(None)

        producer = asyncio.create_task(_produce())

        start = await messages.get()
        while start is not None and start["type"] != "http.response.start":
            start = await messages.get()
        if start is None:
            await producer
            raise RuntimeError("Downstream app returned without starting a response")

        headers = Headers(raw=start.get("headers", []))
        if _is_streaming(headers):
            return _ForwardedResponse(start, [], messages, producer)

        body_parts: list[bytes] = []
        while (message := await messages.get()) is not None:
            if message["type"] != "http.response.body":
                continue
            body_parts.append(message.get("body", b""))
            if not message.get("more_body", False):
                break
            if "content-length" not in headers:
                received = [{"type": "http.response.body", "body": b"".join(body_parts), "more_body": True}]
                return _ForwardedResponse(start, received, messages, producer)
        await producer

        response = Response(content=b"".join(body_parts), status_code=start["status"])
        response.raw_headers[:] = list(start.get("headers", []))
        return response


def _wrap(web_filter: WebFilter, next_call: CallNext) -> CallNext:
    async def _inner(request: Request) -> Response:
        return cast(Response, await web_filter.do_filter(request, next_call))

    return _inner
