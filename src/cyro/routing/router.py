"""Route table with ordered, first-match-wins path matching.

Routes are kept per method in registration order. Resolution walks that
list and returns the first route whose pattern accepts the path, so an
earlier literal route (``/users/new``) shadows a later parameterized
one (``/users/:id``) for the paths both describe.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any
from urllib.parse import unquote

from cyro.errors import ConfigurationError, RouteRegistrationError
from cyro.http.methods import HTTPMethod
from cyro.routing.route import PathSegment, Route, RouteMatch, SegmentKind

logger = logging.getLogger("cyro.routing")


def parse_path(path: str) -> tuple[PathSegment, ...]:
    """Compile a route pattern into segments.

    The pattern must start with ``/``. Splitting what follows on ``/``
    gives one segment per part, so a trailing slash yields a final empty
    literal and ``/`` itself is a single empty literal::

        "/"             -> (LITERAL "",)
        "/users/:id"    -> (LITERAL "users", PARAM id)
        "/users/"       -> (LITERAL "users", LITERAL "")
        "/static/*rest" -> (LITERAL "static", WILDCARD rest)

    Raises:
        RouteRegistrationError: On an empty interior segment, a wildcard
            that is not last, or an invalid or duplicate parameter name.
    """
    if not isinstance(path, str) or not path.startswith("/"):
        raise RouteRegistrationError("?", path, "Path must be a string starting with '/'")

    parts = path[1:].split("/")
    segments: list[PathSegment] = []
    names: set[str] = set()
    last = len(parts) - 1

    for index, part in enumerate(parts):
        if part.startswith(":"):
            name = part[1:]
            _check_name(path, name, names)
            segments.append(PathSegment(SegmentKind.PARAM, part, name))
        elif part.startswith("*"):
            if index != last:
                raise RouteRegistrationError("?", path, "Wildcard must be the last segment")
            name = part[1:] or None
            if name is not None:
                _check_name(path, name, names)
            segments.append(PathSegment(SegmentKind.WILDCARD, part, name))
        elif not part and index != last:
            raise RouteRegistrationError("?", path, "Empty path segment")
        else:
            segments.append(PathSegment(SegmentKind.LITERAL, part))

    return tuple(segments)


def _check_name(path: str, name: str, seen: set[str]) -> None:
    if not name.isidentifier():
        raise RouteRegistrationError("?", path, f"Invalid parameter name {name!r}")
    if name in seen:
        raise RouteRegistrationError("?", path, f"Duplicate parameter name {name!r}")
    seen.add(name)


def match_segments(segments: tuple[PathSegment, ...], path: str) -> dict[str, str] | None:
    """Match a request path against compiled segments.

    Returns the decoded parameters, or ``None`` if the pattern does not
    accept *path*.
    """
    if not path.startswith("/"):
        return None
    parts = path[1:].split("/")
    params: dict[str, str] = {}

    for index, segment in enumerate(segments):
        if segment.kind is SegmentKind.WILDCARD:
            if index >= len(parts):
                return None
            if segment.name is not None:
                params[segment.name] = unquote("/".join(parts[index:]))
            return params
        if index >= len(parts):
            return None
        part = parts[index]
        if segment.kind is SegmentKind.LITERAL:
            if part != segment.value:
                return None
        else:
            if not part:
                return None
            params[segment.name] = unquote(part)  # type: ignore[index]

    if len(parts) != len(segments):
        return None
    return params


class RouteTable:
    """Per-method ordered route lists.

    Usage::

        table = RouteTable()
        table.get("/users/new", new_user)
        table.get("/users/:id", show_user)
        table.freeze()
        match = table.resolve("GET", "/users/42")  # params == {"id": "42"}

    A registration fault (unsupported method, malformed pattern,
    non-callable handler) is logged and the route omitted, leaving the
    table in its prior state. With ``strict=True`` it raises instead.
    """

    __slots__ = ("_frozen", "_order", "_routes", "_strict")

    def __init__(self, *, strict: bool = False) -> None:
        self._routes: dict[HTTPMethod, list[Route]] = {method: [] for method in HTTPMethod}
        self._order: list[Route] = []
        self._strict = strict
        self._frozen = False

    def __len__(self) -> int:
        return sum(len(routes) for routes in self._routes.values())

    def __repr__(self) -> str:
        return f"<RouteTable routes={len(self)} frozen={self._frozen}>"

    # -- Registration --

    def register(self, method: Any, path: Any, handler: Any) -> Route | None:
        """Compile and append a route. Returns it, or ``None`` on a fault."""
        if self._frozen:
            msg = "Cannot register routes after the route table is frozen."
            raise RuntimeError(msg)
        try:
            route = self._compile(method, path, handler)
        except RouteRegistrationError as exc:
            if self._strict:
                raise
            logger.error("%s", exc)
            return None
        self._routes[route.method].append(route)
        self._order.append(route)
        return route

    def _compile(self, method: Any, path: Any, handler: Any) -> Route:
        parsed = HTTPMethod.parse(method)
        if parsed is None:
            raise RouteRegistrationError(method, path, f"Unsupported HTTP method {method!r}")
        if not isinstance(path, str) or not path:
            raise RouteRegistrationError(method, path, "Path must be a non-empty string")
        if not callable(handler):
            raise RouteRegistrationError(method, path, "Handler must be callable")
        try:
            segments = parse_path(path)
        except RouteRegistrationError as exc:
            raise RouteRegistrationError(parsed, path, exc.reason) from None
        names = tuple(seg.name for seg in segments if seg.name is not None)
        return Route(
            method=parsed,
            path=path,
            segments=segments,
            handler=handler,
            param_names=names,
        )

    def route(self, method: Any, path: Any, handler: Callable[..., Any]) -> Route | None:
        return self.register(method, path, handler)

    def get(self, path: str, handler: Callable[..., Any]) -> Route | None:
        return self.register(HTTPMethod.GET, path, handler)

    def post(self, path: str, handler: Callable[..., Any]) -> Route | None:
        return self.register(HTTPMethod.POST, path, handler)

    def put(self, path: str, handler: Callable[..., Any]) -> Route | None:
        return self.register(HTTPMethod.PUT, path, handler)

    def delete(self, path: str, handler: Callable[..., Any]) -> Route | None:
        return self.register(HTTPMethod.DELETE, path, handler)

    def patch(self, path: str, handler: Callable[..., Any]) -> Route | None:
        return self.register(HTTPMethod.PATCH, path, handler)

    def head(self, path: str, handler: Callable[..., Any]) -> Route | None:
        return self.register(HTTPMethod.HEAD, path, handler)

    def options(self, path: str, handler: Callable[..., Any]) -> Route | None:
        return self.register(HTTPMethod.OPTIONS, path, handler)

    def freeze(self) -> None:
        """Reject further registration. Resolution is unaffected."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # -- Lookup --

    def exists(self, method: Any) -> bool:
        """Whether *method* is one the table has an entry for."""
        return HTTPMethod.parse(method) is not None

    def _lookup(self, method: Any) -> list[Route]:
        parsed = HTTPMethod.parse(method)
        if parsed is None:
            raise ConfigurationError(f"No routes defined for HTTP method: {method!r}")
        return self._routes[parsed]

    def resolve(self, method: Any, path: str) -> RouteMatch | None:
        """Return the first route for *method* that accepts *path*.

        Raises:
            ConfigurationError: If *method* is not a supported method.
        """
        for route in self._lookup(method):
            params = match_segments(route.segments, path)
            if params is not None:
                return RouteMatch(route=route, params=params)
        return None

    @property
    def routes(self) -> list[Route]:
        """All routes, in registration order."""
        return list(self._order)

    def routes_for(self, method: Any) -> tuple[Route, ...]:
        """Routes registered for *method*, in order.

        Raises:
            ConfigurationError: If *method* is not a supported method.
        """
        return tuple(self._lookup(method))
