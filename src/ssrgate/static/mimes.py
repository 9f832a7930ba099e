"""Extension → MIME type table.

Built once from the standard ``mimetypes`` registry plus the web types
the registry gets wrong or lacks, then frozen. The static index receives
the table by reference; nothing patches it afterwards.
"""

import mimetypes
from collections.abc import Mapping
from types import MappingProxyType

DEFAULT_TYPE = "application/octet-stream"

# Explicit entries win over whatever the host's mime registry says.
WEB_TYPES: Mapping[str, str] = MappingProxyType(
    {
        "html": "text/html",
        "htm": "text/html",
        "css": "text/css",
        "js": "text/javascript",
        "mjs": "text/javascript",
        "cjs": "text/javascript",
        "json": "application/json",
        "map": "application/json",
        "webmanifest": "application/manifest+json",
        "xml": "application/xml",
        "txt": "text/plain",
        "md": "text/markdown",
        "csv": "text/csv",
        "svg": "image/svg+xml",
        "png": "image/png",
        "jpg": "image/jpeg",
        "jpeg": "image/jpeg",
        "gif": "image/gif",
        "webp": "image/webp",
        "avif": "image/avif",
        "ico": "image/x-icon",
        "woff": "font/woff",
        "woff2": "font/woff2",
        "ttf": "font/ttf",
        "otf": "font/otf",
        "wasm": "application/wasm",
        "pdf": "application/pdf",
        "mp4": "video/mp4",
        "webm": "video/webm",
        "mp3": "audio/mpeg",
        "ogg": "audio/ogg",
        "wav": "audio/wav",
    }
)


def build_mime_table(extra: Mapping[str, str] | None = None) -> Mapping[str, str]:
    """Return an immutable ``{extension: type}`` table.

    Extensions are lowercase without the leading dot. *extra* overrides
    both the registry and ``WEB_TYPES``.
    """
    mimetypes.init()
    table = {ext.lstrip(".").lower(): ctype for ext, ctype in mimetypes.types_map.items()}
    table.update(WEB_TYPES)
    if extra:
        table.update({ext.lstrip(".").lower(): ctype for ext, ctype in extra.items()})
    return MappingProxyType(table)


def lookup(table: Mapping[str, str], name: str) -> str | None:
    """MIME type for file *name* by its last extension, or None."""
    base = name.rsplit("/", 1)[-1]
    _, dot, ext = base.rpartition(".")
    if not dot:
        return None
    return table.get(ext.lower())
