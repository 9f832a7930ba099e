"""ASGI response sending — translates ssrgate responses to ASGI messages.

Handles buffered responses, file windows streamed from disk, and chunked
streaming responses. ``head=True`` sends the headers a GET would get and
an empty body.
"""

import logging
from collections.abc import AsyncIterator

import anyio

from ssrgate._internal.asgi import Send, encode_headers
from ssrgate.http.response import AnyResponse, FileResponse, Response, StreamingResponse

logger = logging.getLogger("ssrgate.server")

CHUNK_SIZE = 64 * 1024


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


async def send_any(response: AnyResponse, send: Send, *, head: bool = False) -> None:
    """Send any response type."""
    if isinstance(response, FileResponse):
        await send_file_response(response, send, head=head)
    elif isinstance(response, StreamingResponse):
        await send_streaming_response(response, send, head=head)
    else:
        await send_response(response, send, head=head)


async def send_response(response: Response, send: Send, *, head: bool = False) -> None:
    """Translate a buffered Response into ASGI send() calls."""
    raw_headers: list[tuple[bytes, bytes]] = []
    if response.content_type is not None:
        raw_headers.append((b"content-type", response.content_type.encode("latin-1")))
    if _body_allowed(response.status):
        body = response.body_bytes
        raw_headers.extend(
            pair for pair in encode_headers(response.headers) if pair[0] != b"content-length"
        )
        raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))
    else:
        # No body: headers pass through as given, a 304 keeps the
        # Content-Length of the representation it validates
        body = b""
        raw_headers.extend(encode_headers(response.headers))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": b"" if head else body,
        }
    )


async def send_file_response(response: FileResponse, send: Send, *, head: bool = False) -> None:
    """Stream ``response.length`` bytes of a file from ``response.offset``.

    Headers go out verbatim. The file is opened before anything is sent,
    so a file that vanished after indexing becomes a plain 500. It is
    read in ``CHUNK_SIZE`` pieces on a worker thread so the event loop
    never blocks on disk.
    """
    try:
        f = await anyio.open_file(response.path, "rb")
    except OSError:
        logger.exception("500: cannot open %s", response.path)
        error = Response(
            body="Internal Server Error",
            status=500,
            content_type="text/plain; charset=utf-8",
        )
        await send_response(error, send, head=head)
        return

    async with f:
        await send(
            {
                "type": "http.response.start",
                "status": response.status,
                "headers": encode_headers(response.headers),
            }
        )
        if head or not _body_allowed(response.status):
            await send({"type": "http.response.body", "body": b""})
            return

        remaining = response.length
        if response.offset:
            await f.seek(response.offset)
        while remaining is None or remaining > 0:
            size = CHUNK_SIZE if remaining is None else min(CHUNK_SIZE, remaining)
            chunk = await f.read(size)
            if not chunk:
                break
            if remaining is not None:
                remaining -= len(chunk)
            await send({"type": "http.response.body", "body": chunk, "more_body": True})

    await send({"type": "http.response.body", "body": b"", "more_body": False})


async def send_streaming_response(
    response: StreamingResponse,
    send: Send,
    *,
    head: bool = False,
) -> None:
    """Send a streaming response via chunked transfer encoding.

    Sends headers immediately, then each chunk as an ASGI body message
    with ``more_body=True``. Closes with an empty body. A mid-stream
    error is logged and the stream is closed; the status is already out.
    """
    raw_headers: list[tuple[bytes, bytes]] = []
    if response.content_type is not None:
        raw_headers.append((b"content-type", response.content_type.encode("latin-1")))
    raw_headers.append((b"transfer-encoding", b"chunked"))
    raw_headers.extend(encode_headers(response.headers))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )

    def _encode_chunk(chunk: str | bytes) -> bytes:
        return chunk.encode("utf-8") if isinstance(chunk, str) else chunk

    if not head:
        try:
            if isinstance(response.chunks, AsyncIterator):
                async for chunk in response.chunks:
                    if chunk:
                        await send(
                            {
                                "type": "http.response.body",
                                "body": _encode_chunk(chunk),
                                "more_body": True,
                            }
                        )
            else:
                for chunk in response.chunks:
                    if chunk:
                        await send(
                            {
                                "type": "http.response.body",
                                "body": _encode_chunk(chunk),
                                "more_body": True,
                            }
                        )
        except Exception:
            logger.exception("Stream failed mid-response (status %d)", response.status)

    # Close the stream
    await send(
        {
            "type": "http.response.body",
            "body": b"",
            "more_body": False,
        }
    )
