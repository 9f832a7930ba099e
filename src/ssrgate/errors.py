"""ssrgate exception hierarchy.

Shared across the dispatcher, resolvers, static serving, and the ASGI
adapter so every module raises and catches the same types.
"""

from dataclasses import dataclass


class SsrgateError(Exception):
    """Base for all ssrgate-specific errors."""


class ConfigurationError(SsrgateError):
    """Raised when gateway configuration is invalid.

    Typically raised from ``GatewayConfig.__post_init__`` at startup,
    before any request is served.
    """


class ClientAddressError(SsrgateError):
    """The client address could not be derived for a request.

    Raised by ``RenderContext.get_client_address()`` when neither the
    configured IP header nor the server-reported peer address yields a
    value. Fatal for that request; never defaulted.
    """

    def __init__(self, detail: str = "Unable to determine client address") -> None:
        super().__init__(detail)


@dataclass(frozen=True, slots=True)
class RangeNotSatisfiable(SsrgateError):
    """A ``Range`` header cannot be satisfied against a file of *size* bytes.

    Caught by ``StaticFiles`` and mapped to a 416 response carrying
    ``Content-Range: bytes */<size>``.
    """

    size: int

    def __str__(self) -> str:
        return f"416: range not satisfiable for {self.size} bytes"
