"""Static file responder.

Serves files from one directory as a resolver: returns a response for
paths it owns and ``None`` for everything else, so the next resolver in
the chain gets a turn.

Handles compressed-variant negotiation (brotli, then gzip, then the
original file), directory ``index`` fallbacks, weak-ETag conditional
GETs, and single byte ranges.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TypeAlias
from urllib.parse import unquote

from ssrgate.errors import RangeNotSatisfiable
from ssrgate.http.headers import MutableHeaders
from ssrgate.http.request import Request
from ssrgate.http.response import AnyResponse, FileResponse, Response
from ssrgate.static.index import (
    FileEntry,
    FileStat,
    build_index,
    cache_policy,
    lookup_index,
    probe,
)
from ssrgate.static.mimes import build_mime_table

logger = logging.getLogger("ssrgate.static")

# Hook to adjust a response's cloned headers: (headers, pathname, stat)
SetHeaders: TypeAlias = Callable[[MutableHeaders, str, FileStat], MutableHeaders | None]

_BROTLI = re.compile(r"(br|brotli)", re.IGNORECASE)
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


@dataclass(frozen=True, slots=True)
class RangeSpec:
    """Inclusive byte bounds of a satisfiable range."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def content_range(self, size: int) -> str:
        return f"bytes {self.start}-{self.end}/{size}"


def parse_range(value: str, size: int) -> RangeSpec | None:
    """Parse a ``Range`` header against a file of *size* bytes.

    Only the first range of a ``bytes=`` set is honoured. Returns None
    when the header should be ignored (other unit, malformed), and raises
    ``RangeNotSatisfiable`` when it reaches outside the file. A suffix
    range longer than the file covers the whole file.
    """
    unit, _, ranges = value.strip().partition("=")
    if unit.strip().lower() != "bytes" or not ranges:
        return None
    first, dash, last = ranges.split(",", 1)[0].strip().partition("-")
    first, last = first.strip(), last.strip()
    if not dash or not (first or last):
        return None
    if (first and not first.isdigit()) or (last and not last.isdigit()):
        return None

    if not first:
        # Suffix range: the final N bytes
        if not last or int(last) == 0 or size == 0:
            raise RangeNotSatisfiable(size)
        return RangeSpec(start=max(size - int(last), 0), end=size - 1)

    start = int(first)
    end = int(last) if last else size - 1
    if start > end or end >= size:
        raise RangeNotSatisfiable(size)
    return RangeSpec(start=start, end=end)


def immutable_assets(prefix: str) -> SetHeaders:
    """Header hook marking paths under *prefix* as cacheable forever.

    Used for versioned build output, whose file names change whenever
    their content does.
    """
    prefix = "/" + prefix.strip("/") + "/"

    def set_headers(headers: MutableHeaders, pathname: str, stat: FileStat) -> MutableHeaders:
        if pathname.startswith(prefix):
            headers.set("Cache-Control", "public,max-age=31536000,immutable")
        return headers

    return set_headers


class StaticFiles:
    """Resolver that serves files from a directory.

    In production (``dev=False``) the directory is indexed once at
    construction and never touched again except to read file bodies.
    In development every lookup stats the disk and refuses paths that
    resolve outside the directory.

    Usage::

        client = StaticFiles(
            "build/client",
            etag=True,
            gzip=True,
            brotli=True,
            set_headers=immutable_assets("/_app/immutable"),
        )
        response = await client(request)  # None -> not a static file
    """

    __slots__ = (
        "_brotli",
        "_directory",
        "_etag",
        "_extensions",
        "_files",
        "_gzip",
        "_mimes",
        "_set_headers",
    )

    def __init__(
        self,
        directory: str | Path,
        *,
        dev: bool = False,
        etag: bool = False,
        gzip: bool = False,
        brotli: bool = False,
        extensions: Sequence[str] = ("html", "htm"),
        dotfiles: bool = False,
        max_age: int | None = None,
        immutable: bool = False,
        set_headers: SetHeaders | None = None,
        mimes: Mapping[str, str] | None = None,
    ) -> None:
        self._directory = Path(directory).resolve()
        self._etag = etag
        self._set_headers = set_headers
        self._mimes = mimes if mimes is not None else build_mime_table()

        extensions = tuple(ext.lstrip(".") for ext in extensions)
        self._extensions = extensions
        self._gzip = (*(f"{x}.gz" for x in extensions), "gz") if gzip else ()
        self._brotli = (*(f"{x}.br" for x in extensions), "br") if brotli else ()

        self._files: Mapping[str, FileEntry] | None = None
        if not dev:
            self._files = build_index(
                self._directory,
                etag=etag,
                mimes=self._mimes,
                cache_control=cache_policy(max_age, immutable=immutable),
                dotfiles=dotfiles,
            )

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def files(self) -> Mapping[str, FileEntry] | None:
        """The production index, or None in dev mode."""
        return self._files

    def extensions_for(self, accept_encoding: str) -> list[str]:
        """Candidate extensions for an ``Accept-Encoding`` value.

        Order: brotli variants, gzip variants, the bare path, then the
        configured extensions.
        """
        result: list[str] = []
        if self._brotli and _BROTLI.search(accept_encoding):
            result.extend(self._brotli)
        if self._gzip and "gzip" in accept_encoding:
            result.extend(self._gzip)
        result.append("")
        result.extend(self._extensions)
        return result

    def lookup(self, pathname: str, accept_encoding: str = "") -> FileEntry | None:
        """Best entry for an already-decoded *pathname*, or None."""
        pathname = unicodedata.normalize("NFC", pathname)
        extensions = self.extensions_for(accept_encoding)
        if self._files is not None:
            return lookup_index(self._files, pathname, extensions)
        return probe(
            self._directory,
            pathname,
            extensions,
            etag=self._etag,
            mimes=self._mimes,
        )

    async def __call__(self, request: Request) -> AnyResponse | None:
        """Serve a static file or decline."""
        if request.method not in ("GET", "HEAD"):
            return None

        pathname = request.path
        if "%" in pathname:
            pathname = _decode(pathname)

        entry = self.lookup(pathname, request.headers.get("accept-encoding") or "")
        if entry is None:
            return None

        etag = entry.headers.get("ETag")
        if self._etag and etag is not None and request.headers.get("if-none-match") == etag:
            return Response(
                body=b"", status=304, content_type=None, headers=entry.headers.items()
            )

        # Never hand out the cached header set itself
        headers = entry.headers.copy()
        if self._gzip or self._brotli:
            headers.append("Vary", "Accept-Encoding")
        if self._set_headers is not None:
            headers = self._set_headers(headers, pathname, entry.stat) or headers

        return self._send(request, entry, headers)

    def _send(self, request: Request, entry: FileEntry, headers: MutableHeaders) -> AnyResponse:
        size = entry.stat.size
        range_header = request.headers.get("range")
        if range_header is None:
            return FileResponse(path=entry.path, status=200, headers=headers.items())

        try:
            spec = parse_range(range_header, size)
        except RangeNotSatisfiable:
            logger.debug("416 %s Range: %s (size %d)", request.path, range_header, size)
            headers.set("Content-Range", f"bytes */{size}")
            headers.delete("Content-Length")
            return Response(body=b"", status=416, content_type=None, headers=headers.items())

        if spec is None:
            return FileResponse(path=entry.path, status=200, headers=headers.items())

        headers.set("Content-Range", spec.content_range(size))
        headers.set("Content-Length", str(spec.length))
        headers.set("Accept-Ranges", "bytes")
        return FileResponse(
            path=entry.path,
            status=206,
            headers=headers.items(),
            offset=spec.start,
            length=spec.length,
        )


def _decode(pathname: str) -> str:
    """Percent-decode *pathname*, keeping it as-is if malformed."""
    if _BAD_ESCAPE.search(pathname):
        return pathname
    try:
        return unquote(pathname, errors="strict")
    except UnicodeDecodeError:
        return pathname
