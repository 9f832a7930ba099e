"""Invoke helpers — call sync or async callables uniformly.

Resolvers, renderers, server handles, and WebSocket handlers can all be
``def`` or ``async def``. Any code that calls one of them goes through
this helper so the sync/async check lives in exactly one place.

Usage::

    from ssrgate._internal.invoke import invoke

    result = await invoke(resolver, request)
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's awaitable."""
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
