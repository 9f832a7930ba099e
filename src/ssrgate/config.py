"""Gateway configuration.

GatewayConfig is a frozen dataclass: immutable after creation, validated
once at construction, no string-key dict lookups.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from urllib.parse import urlsplit

from ssrgate.errors import ConfigurationError

# Header name that selects right-to-left forwarded-for parsing
XFF_HEADER = "x-forwarded-for"

_TRUE = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True, slots=True)
class GatewayConfig:
    """Gateway configuration. Immutable after creation.

    All fields have defaults. Override what you need::

        config = GatewayConfig(
            protocol_header="x-forwarded-proto",
            host_header="x-forwarded-host",
            ip_header="x-forwarded-for",
            xff_depth=2,
        )
    """

    # Origin rewriting. override_origin wins over the header pair.
    override_origin: str | None = None
    host_header: str | None = None
    protocol_header: str | None = None

    # Client address
    ip_header: str | None = None
    xff_depth: int = 1

    # Serving. unix_socket takes precedence over host/port.
    host: str = "localhost"
    port: int = 3000
    unix_socket: str | None = None
    timeout: float | None = None  # seconds per dispatch, None = unbounded

    # Static roots
    dev: bool = False
    app_dir: str = "_app"  # versioned build output under <base>/client/<app_dir>/immutable

    def __post_init__(self) -> None:
        if self.override_origin is not None:
            parts = urlsplit(self.override_origin)
            if parts.scheme not in ("http", "https") or not parts.netloc:
                msg = (
                    "override_origin must be an absolute http(s) URL, "
                    f"got {self.override_origin!r}"
                )
                raise ConfigurationError(msg)
        if self.xff_depth < 1:
            msg = f"xff_depth must be a positive integer, got {self.xff_depth!r}"
            raise ConfigurationError(msg)
        if not 0 <= self.port <= 65535:
            msg = f"port must be between 0 and 65535, got {self.port!r}"
            raise ConfigurationError(msg)
        if self.timeout is not None and self.timeout <= 0:
            msg = f"timeout must be positive, got {self.timeout!r}"
            raise ConfigurationError(msg)
        # Header names are matched case-insensitively; store them lowercased.
        for name in ("host_header", "protocol_header", "ip_header"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, value.strip().lower() or None)

    @property
    def uses_forwarded_for(self) -> bool:
        """True if the client address is read from ``X-Forwarded-For``."""
        return self.ip_header == XFF_HEADER

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        prefix: str = "SSRGATE_",
    ) -> GatewayConfig:
        """Build a config from ``SSRGATE_*`` environment variables.

        Field names map to upper-case variables (``SSRGATE_XFF_DEPTH``,
        ``SSRGATE_OVERRIDE_ORIGIN``, ...). Unset variables keep defaults.
        """
        env = os.environ if environ is None else environ
        kwargs: dict[str, object] = {}
        for f in fields(cls):
            raw = env.get(prefix + f.name.upper())
            if raw is None or raw == "":
                continue
            try:
                kwargs[f.name] = _coerce(f.name, raw)
            except ValueError:
                msg = f"{prefix}{f.name.upper()}: invalid value {raw!r}"
                raise ConfigurationError(msg) from None
        return cls(**kwargs)  # type: ignore[arg-type]


def _coerce(name: str, raw: str) -> object:
    if name in ("xff_depth", "port"):
        return int(raw)
    if name == "timeout":
        return float(raw)
    if name == "dev":
        return raw.strip().lower() in _TRUE
    return raw
