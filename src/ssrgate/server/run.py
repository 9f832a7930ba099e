"""Run a Gateway under uvicorn.

uvicorn is an optional dependency (``pip install ssrgate[serve]``);
any ASGI 3.0 server can host ``Gateway`` directly.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ssrgate.config import GatewayConfig
    from ssrgate.server.handler import Gateway

logger = logging.getLogger("ssrgate.server")


def server_options(config: GatewayConfig, *, log_level: str = "info") -> dict[str, Any]:
    """uvicorn keyword arguments for *config*.

    A Unix socket, when configured, replaces the TCP host and port.
    """
    options: dict[str, Any] = {"log_level": log_level, "lifespan": "on"}
    if config.unix_socket:
        options["uds"] = config.unix_socket
    else:
        options["host"] = config.host
        options["port"] = config.port
    if config.timeout:
        options["timeout_keep_alive"] = max(1, int(config.timeout))
    return options


def serve(app: Gateway, config: GatewayConfig | None = None, *, log_level: str = "info") -> None:
    """Serve *app* until interrupted.

    Args:
        app: The gateway to serve.
        config: Listener settings. Defaults to ``app.config``.
        log_level: uvicorn log level (debug, info, warning, error).
    """
    import uvicorn

    config = config or app.config
    options = server_options(config, log_level=log_level)
    if config.unix_socket:
        logger.info("Serving on unix:%s", config.unix_socket)
    else:
        logger.info("Serving on http://%s:%d", config.host, config.port)
    uvicorn.run(app, **options)
