"""Route, PathSegment, and RouteMatch frozen dataclasses."""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from cyro.http.methods import HTTPMethod


class SegmentKind(Enum):
    """How a pattern segment matches a request path segment."""

    LITERAL = "literal"
    PARAM = "param"
    WILDCARD = "wildcard"


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route pattern.

    Literal:  ``users``  (value="users")
    Param:    ``:id``    (name="id")
    Wildcard: ``*`` or ``*rest``, last segment only (name=None or "rest")
    """

    kind: SegmentKind
    value: str = ""
    name: str | None = None


@dataclass(frozen=True, slots=True)
class Route:
    """A compiled route. Created at registration, immutable thereafter."""

    method: HTTPMethod
    path: str
    segments: tuple[PathSegment, ...]
    handler: Callable[..., Any]
    param_names: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match. Params are percent-decoded."""

    route: Route
    params: dict[str, str]
