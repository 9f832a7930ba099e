"""Immutable HTTP request.

Frozen metadata with async body access. Rewriting the effective URL
produces a new ``Request`` that shares the body stream with the one it
replaces, so the body is still consumed at most once.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass, field, replace
from typing import Any

from ssrgate._internal.asgi import Receive
from ssrgate.http.headers import Headers
from ssrgate.http.url import URL


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP (or WebSocket handshake) request.

    ``url`` is the effective URL seen by downstream resolvers and the
    renderer. Origin rewriting replaces it through ``with_url()``.
    """

    method: str
    url: URL
    headers: Headers
    http_version: str
    server: tuple[str, int] | None
    client: tuple[str, int] | None

    # Private: ASGI receive callable for body streaming
    _receive: Receive

    # Private: body cache, shared by every request derived via with_url()
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def path(self) -> str:
        """Request path, still percent-encoded."""
        return self.url.path

    @property
    def query(self) -> str:
        return self.url.query

    @property
    def is_websocket(self) -> bool:
        return self.url.scheme in ("ws", "wss")

    # -- Rewrites --

    def with_url(self, url: URL) -> Request:
        """Return a request for *url* carrying the same headers and body."""
        return replace(self, url=url)

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body.

        Result is cached — the ASGI receive is consumed once, then
        the same bytes are returned on subsequent calls.
        """
        if "_body" in self._cache:
            return self._cache["_body"]
        chunks = [chunk async for chunk in self.stream()]
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks."""
        while True:
            message = await self._receive()
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    async def text(self) -> str:
        """Read the body as text (UTF-8)."""
        raw = await self.body()
        return raw.decode("utf-8")

    async def json(self) -> Any:
        """Parse the body as JSON."""
        import json as json_module

        raw = await self.body()
        return json_module.loads(raw)

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: dict[str, Any], receive: Receive) -> Request:
        """Create a Request from an ASGI ``http`` or ``websocket`` scope."""
        headers = Headers(tuple(scope.get("headers", ())))
        server = scope.get("server")
        client = scope.get("client")
        return cls(
            method=scope.get("method", "GET"),
            url=URL.from_scope(scope, headers.get("host")),
            headers=headers,
            http_version=scope.get("http_version", "1.1"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            _receive=receive,
        )
