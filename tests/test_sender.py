"""Tests for ssrgate.server.sender response emission rules."""

import logging
from pathlib import Path

import pytest

from ssrgate.http.response import FileResponse, Response, StreamingResponse
from ssrgate.server import sender
from ssrgate.server.sender import send_any, send_file_response, send_response


def _collector() -> tuple[list[dict], object]:
    messages: list[dict] = []

    async def send(message: dict) -> None:
        messages.append(message)

    return messages, send


def _body(messages: list[dict]) -> bytes:
    return b"".join(m.get("body", b"") for m in messages if m["type"] == "http.response.body")


class TestSendResponseNoBodyStatuses:
    @pytest.mark.asyncio
    async def test_204_drops_body_and_adds_no_content_length(self) -> None:
        messages, send = _collector()

        # Even if a handler accidentally attaches body content, sender must
        # enforce RFC no-body semantics for 204.
        response = Response("unexpected-body").with_status(204)
        await send_response(response, send)

        assert messages[0]["type"] == "http.response.start"
        names = [name for name, _ in messages[0]["headers"]]
        assert b"content-length" not in names

        assert messages[1]["type"] == "http.response.body"
        assert messages[1]["body"] == b""

    @pytest.mark.asyncio
    async def test_304_drops_body_and_adds_no_content_length(self) -> None:
        messages, send = _collector()

        response = Response("unexpected-body").with_status(304)
        await send_response(response, send)

        names = [name for name, _ in messages[0]["headers"]]
        assert b"content-length" not in names
        assert messages[1]["body"] == b""

    async def test_304_keeps_given_content_length(self) -> None:
        messages, send = _collector()

        response = Response(
            b"", status=304, content_type=None, headers=(("Content-Length", "50"),)
        )
        await send_response(response, send)

        lengths = [v for k, v in messages[0]["headers"] if k == b"content-length"]
        assert lengths == [b"50"]
        assert messages[1]["body"] == b""

    @pytest.mark.asyncio
    async def test_200_preserves_body(self) -> None:
        messages, send = _collector()

        await send_response(Response("ok"), send)

        headers = dict(messages[0]["headers"])
        assert headers[b"content-length"] == b"2"
        assert messages[1]["body"] == b"ok"


class TestSendResponseHeaders:
    async def test_content_type_none_adds_nothing(self) -> None:
        messages, send = _collector()
        response = Response(
            b"", status=416, content_type=None, headers=(("Content-Range", "bytes */9"),)
        )
        await send_response(response, send)

        names = [name for name, _ in messages[0]["headers"]]
        assert b"content-type" not in names
        assert (b"content-range", b"bytes */9") in messages[0]["headers"]

    async def test_stale_content_length_replaced(self) -> None:
        messages, send = _collector()
        response = Response("abc", headers=(("Content-Length", "999"),))
        await send_response(response, send)

        lengths = [v for k, v in messages[0]["headers"] if k == b"content-length"]
        assert lengths == [b"3"]

    async def test_head_keeps_length_drops_body(self) -> None:
        messages, send = _collector()
        await send_response(Response("hello"), send, head=True)

        assert dict(messages[0]["headers"])[b"content-length"] == b"5"
        assert messages[1]["body"] == b""


@pytest.fixture
def big_file(tmp_path: Path) -> Path:
    path = tmp_path / "big.bin"
    path.write_bytes(bytes(i % 251 for i in range(200_000)))
    return path


class TestSendFileResponse:
    async def test_whole_file_in_chunks(self, big_file: Path) -> None:
        messages, send = _collector()
        response = FileResponse(big_file, headers=(("Content-Length", "200000"),))
        await send_file_response(response, send)

        assert messages[0]["status"] == 200
        assert messages[0]["headers"] == [(b"content-length", b"200000")]
        assert _body(messages) == big_file.read_bytes()
        chunks = [m for m in messages[1:] if m.get("body")]
        assert len(chunks) == 4  # 64 KiB pieces
        assert all(len(m["body"]) <= sender.CHUNK_SIZE for m in chunks)
        assert messages[-1] == {"type": "http.response.body", "body": b"", "more_body": False}

    async def test_window(self, big_file: Path) -> None:
        messages, send = _collector()
        response = FileResponse(big_file, status=206, offset=70_000, length=100_000)
        await send_file_response(response, send)

        assert _body(messages) == big_file.read_bytes()[70_000:170_000]

    async def test_head_sends_no_body(self, big_file: Path) -> None:
        messages, send = _collector()
        await send_file_response(FileResponse(big_file), send, head=True)

        assert len(messages) == 2
        assert messages[1]["body"] == b""


    async def test_missing_file_is_plain_500(self, tmp_path: Path, caplog) -> None:
        messages, send = _collector()
        with caplog.at_level(logging.ERROR, logger="ssrgate.server"):
            await send_file_response(FileResponse(tmp_path / "gone.bin"), send)

        assert messages[0]["status"] == 500
        assert (b"content-type", b"text/plain; charset=utf-8") in messages[0]["headers"]
        assert _body(messages) == b"Internal Server Error"
        assert [m["type"] for m in messages].count("http.response.start") == 1
        assert "gone.bin" in caplog.text


class TestSendStreamingResponse:
    async def test_sync_chunks(self) -> None:
        messages, send = _collector()
        await send_any(StreamingResponse(iter(["a", b"b", ""])), send)

        assert (b"transfer-encoding", b"chunked") in messages[0]["headers"]
        assert _body(messages) == b"ab"

    async def test_async_chunks(self) -> None:
        async def chunks():
            yield "x"
            yield "y"

        messages, send = _collector()
        await send_any(StreamingResponse(chunks()), send)
        assert _body(messages) == b"xy"

    async def test_error_mid_stream_closes(self) -> None:
        def chunks():
            yield "partial"
            raise RuntimeError("gone")

        messages, send = _collector()
        await send_any(StreamingResponse(chunks()), send)
        assert _body(messages) == b"partial"
        assert messages[-1]["more_body"] is False


class TestSendAny:
    async def test_dispatches_buffered(self) -> None:
        messages, send = _collector()
        await send_any(Response("hi"), send)
        assert messages[1]["body"] == b"hi"

    async def test_dispatches_file(self, tmp_path: Path) -> None:
        path = tmp_path / "f.txt"
        path.write_bytes(b"file-body")
        messages, send = _collector()
        await send_any(FileResponse(path), send)
        assert _body(messages) == b"file-body"
