"""Upgrade correlation between renderer responses and WebSocket handlers.

The renderer marks a response for upgrade by passing it, together with
the handler that should own the connection, to ``mark_for_upgrade``.
Marks are keyed by response identity, not equality: only the exact
object that was marked gets upgraded.

Each dispatch creates its own ``UpgradeTable`` and drops it when the
dispatch returns, so nothing outlives the request that produced it.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, TypeAlias, runtime_checkable

from ssrgate.http.response import AnyResponse

# What the renderer calls: (response, handler) -> the same response
MarkForUpgrade: TypeAlias = Callable[[AnyResponse, Any], AnyResponse]


@runtime_checkable
class WebSocketHandler(Protocol):
    """The object that owns an upgraded connection.

    Only ``message`` is required. ``open`` and ``close`` are looked up
    with ``getattr`` and skipped when absent. Each may be sync or async.
    """

    def message(self, ws: Any, data: str | bytes) -> Any: ...


class UpgradeTable:
    """Identity-keyed side table: response -> upgrade handler data.

    Holds a strong reference to each marked response so its ``id()``
    cannot be reused while the entry lives.
    """

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: dict[int, tuple[AnyResponse, Any]] = {}

    def mark(self, response: AnyResponse, data: Any) -> AnyResponse:
        """Associate *data* with this exact *response*; return it unchanged."""
        self._entries[id(response)] = (response, data)
        return response

    def pop(self, response: AnyResponse) -> Any | None:
        """Remove and return the data marked for *response*, if any."""
        entry = self._entries.pop(id(response), None)
        if entry is None or entry[0] is not response:
            return None
        return entry[1]

    def __contains__(self, response: object) -> bool:
        entry = self._entries.get(id(response))
        return entry is not None and entry[0] is response

    def __len__(self) -> int:
        return len(self._entries)
