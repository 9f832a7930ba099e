"""ssrgate — the request-serving layer in front of a server-side renderer.

Rewrites the effective origin, serves prebuilt client assets and
prerendered pages straight from disk, and hands everything else to the
renderer. Renderer responses can be marked to take over the connection
as a WebSocket.

Basic usage::

    from ssrgate import Gateway, GatewayConfig, Response

    def render(request, context):
        return Response(f"<h1>{request.path}</h1>")

    app = Gateway(render, GatewayConfig.from_env(), base_dir="build")

Serving (``pip install ssrgate[serve]``)::

    from ssrgate import serve
    serve(app)
"""

__version__ = "0.1.0"
__all__ = [
    "AnyResponse",
    "ClientAddressError",
    "ConfigurationError",
    "Dispatcher",
    "FileResponse",
    "Gateway",
    "GatewayConfig",
    "RenderContext",
    "Request",
    "Response",
    "SsrgateError",
    "StaticFiles",
    "StreamingResponse",
    "URL",
    "serve",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import ssrgate`` fast while providing a clean top-level API.
    """
    if name == "Gateway":
        from ssrgate.server.handler import Gateway

        return Gateway

    if name == "GatewayConfig":
        from ssrgate.config import GatewayConfig

        return GatewayConfig

    if name in ("Dispatcher", "RenderContext"):
        from ssrgate import dispatch

        return getattr(dispatch, name)

    if name == "Request":
        from ssrgate.http.request import Request

        return Request

    if name in ("AnyResponse", "FileResponse", "Response", "StreamingResponse"):
        from ssrgate.http import response

        return getattr(response, name)

    if name == "URL":
        from ssrgate.http.url import URL

        return URL

    if name == "StaticFiles":
        from ssrgate.static.files import StaticFiles

        return StaticFiles

    if name in ("SsrgateError", "ConfigurationError", "ClientAddressError"):
        from ssrgate import errors

        return getattr(errors, name)

    if name == "serve":
        from ssrgate.server.run import serve

        return serve

    msg = f"module 'ssrgate' has no attribute {name!r}"
    raise AttributeError(msg)
