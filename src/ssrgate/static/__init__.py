"""Static asset serving — index, MIME table, and responder.

    StaticFiles -- Resolver serving one directory (indexed or probed)
    immutable_assets -- Header hook for versioned build output
    build_index -- One-time walk producing path -> FileEntry
    build_mime_table -- Frozen extension -> MIME type table
"""

from ssrgate.static.files import RangeSpec, StaticFiles, immutable_assets, parse_range
from ssrgate.static.index import FileEntry, FileStat, build_index, probe
from ssrgate.static.mimes import build_mime_table

__all__ = [
    "FileEntry",
    "FileStat",
    "RangeSpec",
    "StaticFiles",
    "build_index",
    "build_mime_table",
    "immutable_assets",
    "parse_range",
    "probe",
]
