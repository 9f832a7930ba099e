"""ASGI handler — translates ASGI scope/messages to ssrgate types.

The only component that touches raw ASGI directly. Converts scopes to
immutable Requests, runs the Dispatcher, and sends the result back
through ASGI send(), or hands a WebSocket scope to its upgrade handler.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import anyio

from ssrgate._internal.asgi import Receive, Scope, Send
from ssrgate.config import GatewayConfig
from ssrgate.dispatch import Dispatcher, Renderer, Resolver
from ssrgate.http.request import Request
from ssrgate.http.response import AnyResponse, Response
from ssrgate.server.sender import send_any
from ssrgate.server.websocket import PendingUpgrade, reject_websocket, run_websocket

logger = logging.getLogger("ssrgate.server")


class AsgiServerHandle:
    """``ServerHandle`` for one ASGI connection.

    ``upgrade()`` only succeeds for ``websocket`` scopes, and only once;
    the accepted upgrade is kept in ``pending`` for the handler to run
    after dispatch returns.
    """

    __slots__ = ("_scope", "pending")

    def __init__(self, scope: Scope) -> None:
        self._scope = scope
        self.pending: PendingUpgrade | None = None

    def request_ip(self, request: Request) -> str | None:
        client = self._scope.get("client")
        return str(client[0]) if client else None

    def upgrade(self, request: Request, *, headers: tuple[tuple[str, str], ...], data: Any) -> bool:
        if self._scope["type"] != "websocket" or self.pending is not None:
            return False
        self.pending = PendingUpgrade(headers=headers, data=data)
        return True


def _plain(status: int, text: str) -> Response:
    return Response(body=text, status=status, content_type="text/plain; charset=utf-8")


def _timeout_scope(timeout: float | None) -> contextlib.AbstractContextManager[Any]:
    return anyio.fail_after(timeout) if timeout else contextlib.nullcontext()


async def _dispatch(
    dispatcher: Dispatcher,
    request: Request,
    server: AsgiServerHandle,
    timeout: float | None,
) -> AnyResponse | None:
    """Run the dispatcher, mapping failures to plain error responses."""
    try:
        with _timeout_scope(timeout):
            return await dispatcher.dispatch(request, server)
    except TimeoutError:
        logger.warning("504 %s %s: dispatch exceeded %ss", request.method, request.path, timeout)
        return _plain(504, "Gateway Timeout")
    except Exception:
        logger.exception("500 %s %s", request.method, request.path)
        return _plain(500, "Internal Server Error")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    dispatcher: Dispatcher,
    timeout: float | None = None,
) -> None:
    """Process a single HTTP request through the resolver chain."""
    request = Request.from_asgi(scope, receive)
    server = AsgiServerHandle(scope)

    response = await _dispatch(dispatcher, request, server, timeout)
    if response is None:
        # Nothing answered; the renderer is expected to always respond
        logger.debug("404 %s %s: no resolver answered", request.method, request.path)
        response = _plain(404, "Not Found")

    await send_any(response, send, head=request.method == "HEAD")


async def handle_websocket(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    dispatcher: Dispatcher,
    timeout: float | None = None,
) -> None:
    """Run a WebSocket handshake through the chain, then hand it off."""
    request = Request.from_asgi(scope, receive)
    server = AsgiServerHandle(scope)

    response = await _dispatch(dispatcher, request, server, timeout)
    if server.pending is not None and response is None:
        await run_websocket(receive, send, request, server.pending)
        return

    logger.debug("Refused WebSocket upgrade for %s", request.path)
    await reject_websocket(receive, send, response, scope.get("extensions") or {})


class Gateway:
    """ASGI 3.0 application in front of a server-side renderer.

    Usage::

        from ssrgate import Gateway, GatewayConfig

        app = Gateway(render, GatewayConfig.from_env(), base_dir="build")

    ``render`` is either an object with ``respond(request, context)`` or
    a plain callable with that signature.
    """

    __slots__ = ("config", "dispatcher")

    def __init__(
        self,
        renderer: Renderer | Callable[..., Any],
        config: GatewayConfig | None = None,
        *,
        base_dir: str | Path = ".",
        resolvers: tuple[Resolver, ...] | None = None,
    ) -> None:
        self.config = config or GatewayConfig()
        self.dispatcher = Dispatcher(
            renderer, self.config, base_dir=base_dir, resolvers=resolvers
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        if scope["type"] == "http":
            await handle_request(
                scope, receive, send, dispatcher=self.dispatcher, timeout=self.config.timeout
            )
            return
        if scope["type"] == "websocket":
            await handle_websocket(
                scope, receive, send, dispatcher=self.dispatcher, timeout=self.config.timeout
            )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Acknowledge lifespan events; all setup happens at construction."""
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return
