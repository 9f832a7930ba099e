"""Test utilities for ssrgate gateways.

    from ssrgate.testing import TestClient
"""

from ssrgate.testing.client import TestClient, WebSocketResult

__all__ = [
    "TestClient",
    "WebSocketResult",
]
