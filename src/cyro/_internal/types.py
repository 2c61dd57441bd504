"""Shared type aliases used across cyro modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler, called as handler(request, response, context)
Handler: TypeAlias = Callable[..., Any]

# Lifecycle hook: zero-argument, sync or async
Hook: TypeAlias = Callable[[], Any]
