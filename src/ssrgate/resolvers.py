"""Identity and origin resolvers.

Pure functions over immutable requests. Origin resolvers return a
replacement ``Request`` (or ``None`` for "unchanged"); the client-address
resolver returns the address string a renderer should see.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeAlias

from ssrgate.config import XFF_HEADER
from ssrgate.http.request import Request
from ssrgate.http.url import URL

# (request, peer address reported by the server) -> client address
ClientAddress: TypeAlias = Callable[[Request, str | None], str | None]


def override_origin(request: Request, origin: URL) -> Request:
    """Move *request* to *origin*, keeping its path and query."""
    return request.with_url(request.url.with_origin(origin))


def rewrite_origin_from_headers(
    request: Request,
    host_header: str | None,
    protocol_header: str | None,
) -> Request | None:
    """Take host and/or scheme from the configured request headers.

    Only components whose header is present change. Returns None when
    the URL is unchanged.
    """
    url = request.url
    if host_header:
        host = request.headers.get(host_header)
        if host is not None and host.strip():
            url = url.with_host(host)
    if protocol_header:
        scheme = request.headers.get(protocol_header)
        if scheme is not None and scheme.strip():
            url = url.with_scheme(scheme)
    if url == request.url:
        return None
    return request.with_url(url)


def forwarded_for(request: Request, depth: int) -> str | None:
    """The *depth*-th address from the right of ``X-Forwarded-For``.

    Depth 1 is the last entry, the address the nearest proxy saw.
    """
    value = request.headers.get(XFF_HEADER)
    if value is None:
        return None
    addresses = value.split(",")
    if depth > len(addresses):
        return None
    return addresses[-depth].strip() or None


def client_address_resolver(ip_header: str | None, xff_depth: int = 1) -> ClientAddress:
    """Build the client-address lookup for a header configuration.

    - ``x-forwarded-for``: entry at *xff_depth* from the right, else peer.
    - any other header: its raw value, else peer.
    - no header: the peer address.
    """
    if ip_header is None:
        return lambda request, peer: peer

    header = ip_header.lower()
    if header == XFF_HEADER:

        def from_xff(request: Request, peer: str | None) -> str | None:
            return forwarded_for(request, xff_depth) or peer

        return from_xff

    def from_header(request: Request, peer: str | None) -> str | None:
        value = request.headers.get(header)
        return value if value is not None else peer

    return from_header
