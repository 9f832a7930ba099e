"""Resolver chain and dispatcher.

A resolver is any callable matching::

    def resolver(request: Request) -> Request | AnyResponse | None: ...

(sync or async). Returning a ``Request`` replaces the request for every
later resolver; returning a response ends the chain; returning ``None``
passes.

``Dispatcher`` builds the chain once from ``GatewayConfig``:

1. origin rewrite (fixed override origin, or host/protocol headers)
2. ``<base>/client`` static files, if the directory exists
3. ``<base>/prerender`` static files, if the directory exists
4. the renderer

and runs it per request. A renderer response marked for upgrade is
offered to the server; if the server takes the connection, dispatch
returns ``None``.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Any, Protocol, TypeAlias

from ssrgate._internal.invoke import invoke
from ssrgate.config import GatewayConfig
from ssrgate.errors import ClientAddressError
from ssrgate.http.request import Request
from ssrgate.http.response import AnyResponse
from ssrgate.http.url import URL
from ssrgate.resolvers import (
    client_address_resolver,
    override_origin,
    rewrite_origin_from_headers,
)
from ssrgate.static.files import StaticFiles, immutable_assets
from ssrgate.static.mimes import build_mime_table
from ssrgate.upgrade import MarkForUpgrade, UpgradeTable

logger = logging.getLogger("ssrgate.dispatch")

ResolverResult: TypeAlias = Request | AnyResponse | None
Resolver: TypeAlias = Callable[[Request], ResolverResult | Awaitable[ResolverResult]]


class ServerHandle(Protocol):
    """What the dispatcher needs from the host server for one connection."""

    def request_ip(self, request: Request) -> str | None:
        """Peer address of the connection carrying *request*."""
        ...

    def upgrade(self, request: Request, *, headers: tuple[tuple[str, str], ...], data: Any) -> bool:
        """Take over the connection as a WebSocket. False if refused."""
        ...


@dataclass(frozen=True, slots=True)
class Platform:
    """Host capabilities handed to the renderer."""

    original_request: Request
    server: ServerHandle
    mark_for_upgrade: MarkForUpgrade


@dataclass(frozen=True, slots=True)
class RenderContext:
    """Second argument of every renderer call."""

    platform: Platform
    _client_address: Callable[[], str | None]

    def get_client_address(self) -> str:
        """The client's address.

        Raises:
            ClientAddressError: If no address can be derived.
        """
        address = self._client_address()
        if address:
            return address
        raise ClientAddressError


class Renderer(Protocol):
    """The server-side renderer behind the gateway.

    A plain callable ``(request, context) -> response`` works as well;
    the dispatcher calls ``respond`` when present.
    """

    def respond(
        self, request: Request, context: RenderContext
    ) -> AnyResponse | Awaitable[AnyResponse]: ...


async def first_resolve(request: Request, resolvers: Sequence[Resolver]) -> AnyResponse | None:
    """Run *resolvers* in order; the first response wins.

    Later resolvers are never called once one has answered.
    """
    for resolver in resolvers:
        result = await invoke(resolver, request)
        if result is None:
            continue
        if isinstance(result, Request):
            request = result
            continue
        return result
    return None


def build_resolvers(config: GatewayConfig, base_dir: str | Path) -> tuple[Resolver, ...]:
    """Origin rewrite and static roots for *config*, in chain order."""
    resolvers: list[Resolver] = []

    if config.override_origin:
        origin = URL.parse(config.override_origin)
        resolvers.append(partial(override_origin, origin=origin))
        logger.debug("Rewriting every request to origin %s", origin.origin)
    elif config.host_header or config.protocol_header:
        resolvers.append(
            partial(
                rewrite_origin_from_headers,
                host_header=config.host_header,
                protocol_header=config.protocol_header,
            )
        )
        logger.debug(
            "Rewriting origin from headers host=%s protocol=%s",
            config.host_header,
            config.protocol_header,
        )

    base = Path(base_dir)
    mimes = build_mime_table()
    client = base / "client"
    if client.is_dir():
        resolvers.append(
            StaticFiles(
                client,
                dev=config.dev,
                etag=True,
                gzip=True,
                brotli=True,
                set_headers=immutable_assets(f"{config.app_dir}/immutable"),
                mimes=mimes,
            )
        )
    prerender = base / "prerender"
    if prerender.is_dir():
        resolvers.append(
            StaticFiles(prerender, dev=config.dev, etag=True, gzip=True, brotli=True, mimes=mimes)
        )

    return tuple(resolvers)


class Dispatcher:
    """Per-request decision procedure in front of a renderer.

    Usage::

        dispatcher = Dispatcher(renderer, GatewayConfig(), base_dir="build")
        response = await dispatcher.dispatch(request, server)
        if response is None:
            ...  # the connection was upgraded
    """

    __slots__ = ("_client_address", "_renderer", "_resolvers")

    def __init__(
        self,
        renderer: Renderer | Callable[..., Any],
        config: GatewayConfig | None = None,
        *,
        base_dir: str | Path = ".",
        resolvers: Sequence[Resolver] | None = None,
    ) -> None:
        config = config or GatewayConfig()
        self._renderer = getattr(renderer, "respond", renderer)
        self._client_address = client_address_resolver(config.ip_header, config.xff_depth)
        self._resolvers: tuple[Resolver, ...] = (
            tuple(resolvers) if resolvers is not None else build_resolvers(config, base_dir)
        )

    @property
    def resolvers(self) -> tuple[Resolver, ...]:
        """The chain ahead of the renderer."""
        return self._resolvers

    async def dispatch(self, request: Request, server: ServerHandle) -> AnyResponse | None:
        """Resolve *request* to a response, or None if it was upgraded."""
        upgrades = UpgradeTable()
        peer = server.request_ip(request)
        original = request

        def client_address() -> str | None:
            return self._client_address(original, peer)

        platform = Platform(
            original_request=original,
            server=server,
            mark_for_upgrade=upgrades.mark,
        )
        context = RenderContext(platform=platform, _client_address=client_address)

        async def render(req: Request) -> AnyResponse | None:
            response = await invoke(self._renderer, req, context)
            data = upgrades.pop(response)
            if data is not None and await invoke(
                server.upgrade, original, headers=response.headers, data=data
            ):
                logger.debug("Upgraded %s", req.path)
                return None
            return response

        return await first_resolve(request, (*self._resolvers, render))
