"""Immutable request URL.

The path is kept in its on-the-wire (percent-encoded) form so static
lookup can decide how to decode it. Every rewrite returns a new ``URL``.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any
from urllib.parse import quote, urlsplit, urlunsplit

_DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443}
_HOST_END = re.compile(r"[/?#@\\]")


def _normalize_netloc(scheme: str, netloc: str) -> str:
    """Lowercase the host and drop the scheme's default port."""
    netloc = netloc.strip().lower()
    host, sep, port = netloc.rpartition(":")
    # "[::1]" has colons but no port; only strip a trailing numeric port
    if sep and port.isdigit() and ("]" in host or ":" not in host):
        if _DEFAULT_PORTS.get(scheme) == int(port):
            return host
    return netloc


@dataclass(frozen=True, slots=True)
class URL:
    """An absolute URL split into the parts the gateway rewrites."""

    scheme: str
    netloc: str
    path: str = "/"
    query: str = ""

    @classmethod
    def parse(cls, value: str) -> URL:
        """Parse an absolute URL string."""
        parts = urlsplit(value)
        scheme = parts.scheme.lower()
        return cls(
            scheme=scheme,
            netloc=_normalize_netloc(scheme, parts.netloc),
            path=parts.path or "/",
            query=parts.query,
        )

    @classmethod
    def from_scope(cls, scope: Mapping[str, Any], host: str | None = None) -> URL:
        """Build the effective URL of an ASGI scope.

        The host comes from the ``Host`` header when given, else from the
        scope's ``server`` tuple.
        """
        scheme = scope.get("scheme") or ("ws" if scope.get("type") == "websocket" else "http")
        if not host:
            server = scope.get("server")
            if server and server[1] is not None:
                host = f"{server[0]}:{server[1]}"
            elif server:
                host = str(server[0])
            else:
                host = "localhost"
        raw_path = scope.get("raw_path")
        if raw_path:
            path = raw_path.decode("latin-1").split("?", 1)[0]
        else:
            path = quote(scope.get("path", "/"), safe="/:@!$&'()*+,;=-._~")
        return cls(
            scheme=scheme,
            netloc=_normalize_netloc(scheme, host),
            path=path or "/",
            query=scope.get("query_string", b"").decode("latin-1"),
        )

    # -- Derived parts --

    @property
    def origin(self) -> str:
        """``scheme://host[:port]``."""
        return f"{self.scheme}://{self.netloc}"

    @property
    def hostname(self) -> str:
        return urlsplit(f"//{self.netloc}").hostname or ""

    @property
    def port(self) -> int | None:
        return urlsplit(f"//{self.netloc}").port or _DEFAULT_PORTS.get(self.scheme)

    @property
    def search(self) -> str:
        """``?query`` or empty."""
        return f"?{self.query}" if self.query else ""

    # -- Rewrites --

    def with_origin(self, origin: URL) -> URL:
        """Keep path and query; take scheme, host and port from *origin*."""
        return replace(self, scheme=origin.scheme, netloc=origin.netloc)

    def with_host(self, host: str) -> URL:
        """Take host and port from a Host-style value.

        Anything from the first path, query, fragment or userinfo
        delimiter on is dropped; an empty remainder leaves the URL as is.
        """
        host = _HOST_END.split(host.strip(), maxsplit=1)[0]
        if not host:
            return self
        return replace(self, netloc=_normalize_netloc(self.scheme, host))

    def with_scheme(self, scheme: str) -> URL:
        scheme = scheme.strip().rstrip(":").lower()
        return replace(self, scheme=scheme, netloc=_normalize_netloc(scheme, self.netloc))

    def __str__(self) -> str:
        return urlunsplit((self.scheme, self.netloc, self.path, self.query, ""))
