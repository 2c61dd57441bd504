"""Cyro exception hierarchy.

Shared across the route table, middleware chain, dispatcher, and app so
every module raises and catches the same types.
"""

from dataclasses import dataclass


class CyroError(Exception):
    """Base for all cyro-specific errors."""


class ConfigurationError(CyroError):
    """Raised when the app is set up incorrectly.

    Also used at dispatch time when a request arrives with a method the
    route table has no entry for: that can only happen through a setup
    bug, never through client input alone.
    """


class RouteRegistrationError(ConfigurationError):
    """A route could not be registered (bad method, path, or handler).

    The route table reports these and omits the route unless it was
    created with ``strict=True``.
    """

    def __init__(self, method: object, path: object, reason: str) -> None:
        self.method = method
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to add route [{method} {path}]: {reason}")


class InvalidMiddlewareError(ConfigurationError):
    """Raised when a non-callable is appended to the middleware chain."""


@dataclass(frozen=True, slots=True)
class HTTPError(CyroError):
    """An error that maps directly to an HTTP status code."""

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class BadRequest(HTTPError):  # noqa: N818
    """400 — the request URL could not be parsed."""

    def __init__(self, detail: str = "Bad Request") -> None:
        super().__init__(status=400, detail=detail)


class NotFound(HTTPError):  # noqa: N818
    """404 — no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)
