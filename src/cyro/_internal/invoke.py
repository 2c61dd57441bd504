"""Invoke helpers — call sync or async user code uniformly.

Handlers and middleware can be ``def`` or ``async def``. Any code that
calls one must handle both cases; this module keeps that check in
exactly one place.

Usage::

    from cyro._internal.invoke import invoke

    await invoke(handler, request, response, context)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it's awaitable.

    Works with both sync and async callables::

        def log_request(request, response):
            ...

        async def load_user(request, response):
            g.user = await users.get(request.headers.get("x-user"))
    """
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


def describe(func: Any) -> str:
    """Human-readable identity for a handler or middleware, for log lines."""
    name = getattr(func, "__qualname__", None) or getattr(func, "__name__", None)
    if name is None:
        name = type(func).__qualname__
    module = getattr(func, "__module__", None)
    return f"{module}.{name}" if module else name
