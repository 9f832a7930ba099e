"""Static asset index.

Maps public URL paths to files under one root directory, with the
response headers for each file computed up front.

Two strategies:

- ``build_index()`` walks the root once (production). The result is a
  read-only mapping shared by every request.
- ``probe()`` stats candidate paths on demand (development). Each hit is
  built fresh and marked non-cacheable.

Both share ``candidates()``, which expands a request path into the
ordered list of index keys to try.
"""

from __future__ import annotations

import logging
import os
import stat as stat_module
import unicodedata
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from email.utils import formatdate
from pathlib import Path
from types import MappingProxyType

from ssrgate.http.headers import MutableHeaders
from ssrgate.static.mimes import DEFAULT_TYPE, lookup

logger = logging.getLogger("ssrgate.static")

# Compressed variant suffix -> Content-Encoding
ENCODINGS: Mapping[str, str] = MappingProxyType({".br": "br", ".gz": "gzip"})


@dataclass(frozen=True, slots=True)
class FileStat:
    """The parts of ``os.stat_result`` the index needs."""

    size: int
    mtime: float
    is_dir: bool = False

    @classmethod
    def from_os(cls, st: os.stat_result) -> FileStat:
        return cls(size=st.st_size, mtime=st.st_mtime, is_dir=stat_module.S_ISDIR(st.st_mode))

    @property
    def mtime_ms(self) -> int:
        return int(self.mtime * 1000)


@dataclass(frozen=True, slots=True, eq=False)
class FileEntry:
    """One servable file: where it lives, its stat, and its base headers.

    ``headers`` belongs to the index. Responders clone it before adding
    anything request-specific.
    """

    path: Path
    stat: FileStat
    headers: MutableHeaders


def cache_policy(max_age: int | None, *, immutable: bool = False) -> str | None:
    """Cache-Control value for a ``max_age`` policy, or None if unset."""
    if max_age is None:
        return None
    value = f"public,max-age={max_age}"
    if immutable:
        value += ",immutable"
    elif max_age == 0:
        value += ",must-revalidate"
    return value


def weak_etag(st: FileStat) -> str:
    return f'W/"{st.size}-{st.mtime_ms}"'


def build_headers(
    name: str,
    st: FileStat,
    *,
    etag: bool,
    mimes: Mapping[str, str],
) -> MutableHeaders:
    """Headers for the file at URL path *name*.

    A ``.gz``/``.br`` suffix sets Content-Encoding and is stripped before
    the content type is looked up, so ``app.js.br`` is ``text/javascript``.
    """
    encoding = ENCODINGS.get(name[-3:])
    ctype = lookup(mimes, name[:-3] if encoding else name) or DEFAULT_TYPE
    if ctype == "text/html":
        ctype += ";charset=utf-8"

    headers = MutableHeaders(
        [
            ("Content-Length", str(st.size)),
            ("Content-Type", ctype),
            ("Last-Modified", formatdate(st.mtime, usegmt=True)),
        ]
    )
    if encoding:
        headers.set("Content-Encoding", encoding)
    if etag:
        headers.set("ETag", weak_etag(st))
    return headers


def is_ignored(name: str, *, dotfiles: bool = False) -> bool:
    """True if relative path *name* must stay out of the index.

    Dot-prefixed segments are hidden unless *dotfiles* is set; anything
    under ``.well-known/`` is always served.
    """
    if ".well-known/" in name:
        return False
    if dotfiles:
        return False
    return name.startswith(".") or "/." in name


def normalize_key(name: str) -> str:
    """Index key for a relative path: leading ``/``, forward slashes, NFC."""
    name = unicodedata.normalize("NFC", name).replace("\\", "/")
    return name if name.startswith("/") else "/" + name


def build_index(
    root: str | Path,
    *,
    etag: bool,
    mimes: Mapping[str, str],
    cache_control: str | None = None,
    dotfiles: bool = False,
) -> Mapping[str, FileEntry]:
    """Walk *root* once and index every servable regular file."""
    root = Path(root).resolve()
    files: dict[str, FileEntry] = {}
    for dirpath, _dirnames, filenames in os.walk(root):
        for filename in filenames:
            abs_path = Path(dirpath) / filename
            name = abs_path.relative_to(root).as_posix()
            if is_ignored(name, dotfiles=dotfiles):
                continue
            try:
                st = FileStat.from_os(abs_path.stat())
            except OSError:
                # Dangling symlink or file removed mid-walk
                continue
            if st.is_dir:
                continue
            key = normalize_key(name)
            headers = build_headers(key, st, etag=etag, mimes=mimes)
            if cache_control:
                headers.set("Cache-Control", cache_control)
            files[key] = FileEntry(path=abs_path, stat=st, headers=headers)

    logger.info("Indexed %d static files under %s", len(files), root)
    return MappingProxyType(files)


def candidates(pathname: str, extensions: Sequence[str]) -> list[str]:
    """Index keys to try for *pathname*, in priority order.

    For every extension (``""`` meaning the bare path) try the path
    itself, then ``<path>/index``. A single trailing slash is dropped
    first, and the bare path is skipped when it is empty (``/``).
    """
    if pathname.endswith("/"):
        pathname = pathname[:-1]

    result: list[str] = []
    index = f"{pathname}/index"
    for ext in extensions:
        suffix = f".{ext}" if ext else ""
        if pathname:
            result.append(pathname + suffix)
        result.append(index + suffix)
    return result


def lookup_index(
    files: Mapping[str, FileEntry],
    pathname: str,
    extensions: Sequence[str],
) -> FileEntry | None:
    """First entry of *files* matching a candidate for *pathname*."""
    for name in candidates(pathname, extensions):
        entry = files.get(name)
        if entry is not None:
            return entry
    return None


def probe(
    root: str | Path,
    pathname: str,
    extensions: Sequence[str],
    *,
    etag: bool,
    mimes: Mapping[str, str],
) -> FileEntry | None:
    """Find *pathname* on disk under *root* without an index.

    Resolved paths that escape *root* are treated as missing. Hits get
    ``Cache-Control: no-cache`` (with ETags) or ``no-store`` (without).
    """
    root_str = os.path.normpath(os.fspath(Path(root).resolve()))
    for name in candidates(pathname, extensions):
        abs_path = os.path.normpath(os.path.join(root_str, name.lstrip("/")))
        if abs_path != root_str and not abs_path.startswith(root_str + os.sep):
            continue
        try:
            st = FileStat.from_os(os.stat(abs_path))
        except (OSError, ValueError):
            continue
        if st.is_dir:
            continue
        headers = build_headers(name, st, etag=etag, mimes=mimes)
        headers.set("Cache-Control", "no-cache" if etag else "no-store")
        return FileEntry(path=Path(abs_path), stat=st, headers=headers)
    return None
