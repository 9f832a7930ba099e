"""WebSocket handoff for upgraded connections.

After the renderer marks a response for upgrade and the server handle
accepts it, the ASGI adapter calls ``run_websocket``: it accepts the
connection with the response's headers, then forwards every event to
the handler object until the client disconnects.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ssrgate._internal.asgi import Receive, Send, encode_headers
from ssrgate._internal.invoke import invoke
from ssrgate.http.request import Request
from ssrgate.http.response import AnyResponse, Response

logger = logging.getLogger("ssrgate.server")

# Handshake headers owned by the ASGI server, never copied from a response
_HANDSHAKE_HEADERS = frozenset(
    {
        "connection",
        "content-length",
        "content-type",
        "sec-websocket-accept",
        "sec-websocket-protocol",
        "transfer-encoding",
        "upgrade",
    }
)


@dataclass(frozen=True, slots=True)
class PendingUpgrade:
    """An upgrade the server handle has agreed to perform."""

    headers: tuple[tuple[str, str], ...]
    data: Any

    @property
    def subprotocol(self) -> str | None:
        for name, value in self.headers:
            if name.lower() == "sec-websocket-protocol":
                return value
        return None

    def accept_headers(self) -> list[tuple[bytes, bytes]]:
        kept = tuple(
            (name, value) for name, value in self.headers if name.lower() not in _HANDSHAKE_HEADERS
        )
        return encode_headers(kept)


class WebSocket:
    """The live connection handed to a ``WebSocketHandler``."""

    __slots__ = ("_closed", "_send", "data", "request")

    def __init__(self, send: Send, request: Request, data: Any) -> None:
        self._send = send
        self._closed = False
        self.request = request
        self.data = data

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, data: str | bytes) -> None:
        """Send a text (``str``) or binary (``bytes``) message."""
        if isinstance(data, str):
            await self._send({"type": "websocket.send", "text": data})
        else:
            await self._send({"type": "websocket.send", "bytes": bytes(data)})

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if self._closed:
            return
        self._closed = True
        await self._send({"type": "websocket.close", "code": code, "reason": reason})


async def _call(handler: Any, name: str, *args: Any) -> None:
    method = getattr(handler, name, None)
    if method is not None:
        await invoke(method, *args)


async def run_websocket(
    receive: Receive,
    send: Send,
    request: Request,
    upgrade: PendingUpgrade,
) -> None:
    """Accept the connection and pump events into the handler.

    Expects ``websocket.connect`` to still be unread. A handler error
    closes the connection with 1011.
    """
    message = await receive()
    if message["type"] != "websocket.connect":
        logger.debug("WebSocket gone before accept: %s", message["type"])
        return

    accept: dict[str, Any] = {"type": "websocket.accept", "headers": upgrade.accept_headers()}
    if upgrade.subprotocol:
        accept["subprotocol"] = upgrade.subprotocol
    await send(accept)

    handler = upgrade.data
    ws = WebSocket(send, request, handler)
    try:
        await _call(handler, "open", ws)
        while True:
            message = await receive()
            if message["type"] == "websocket.receive":
                text = message.get("text")
                data = text if text is not None else message.get("bytes", b"")
                await _call(handler, "message", ws, data)
            elif message["type"] == "websocket.disconnect":
                ws._closed = True
                code = message.get("code", 1005)
                await _call(handler, "close", ws, code, message.get("reason", ""))
                return
    except Exception:
        logger.exception("WebSocket handler failed for %s", request.path)
        await ws.close(1011)


async def reject_websocket(
    receive: Receive,
    send: Send,
    response: AnyResponse | None,
    extensions: Mapping[str, Any],
) -> None:
    """Refuse a WebSocket handshake that nothing upgraded.

    Servers with the ``websocket.http.response`` extension get the
    buffered HTTP response itself; otherwise the handshake is closed,
    which the server reports to the client as a 403.
    """
    message = await receive()
    if message["type"] != "websocket.connect":
        return
    if isinstance(response, Response) and "websocket.http.response" in extensions:
        headers = encode_headers(response.headers)
        if response.content_type is not None:
            headers.insert(0, (b"content-type", response.content_type.encode("latin-1")))
        await send(
            {
                "type": "websocket.http.response.start",
                "status": response.status,
                "headers": headers,
            }
        )
        await send({"type": "websocket.http.response.body", "body": response.body_bytes})
        return
    await send({"type": "websocket.close", "code": 1008})
