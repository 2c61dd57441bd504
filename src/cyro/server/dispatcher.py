"""Request dispatcher: middleware, routing, and handler invocation.

One ``dispatch`` call turns one ``Request`` into exactly one
``FinalResponse``::

    1. fresh Response
    2. run the middleware chain; if it finished the response, stop
    3. parse the request URL               (failure -> 400)
    4. check the method is a known one     (unknown -> 500, logged CRITICAL)
    5. resolve the route                   (no match -> 404)
    6. build the DispatchContext
    7. call the handler                    (exception -> 500, logged)
    8. finish whatever the handler left

Nothing raised by user code escapes ``dispatch``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from http import HTTPStatus
from urllib.parse import urlsplit

from cyro._internal.invoke import describe, invoke
from cyro.config import AppConfig
from cyro.context import g, request_var
from cyro.errors import BadRequest, ConfigurationError, HTTPError, NotFound
from cyro.http.methods import HTTPMethod
from cyro.http.query import QueryParams
from cyro.http.request import Request
from cyro.http.response import FinalResponse, Response
from cyro.middleware.chain import ChainOutcome, MiddlewareChain
from cyro.routing.route import Route
from cyro.routing.router import RouteTable
from cyro.server.terminal_errors import log_error

logger = logging.getLogger("cyro.server")


@dataclass(frozen=True, slots=True)
class DispatchContext:
    """What the router learned about a request, handed to the handler.

    ``dynamic`` holds the decoded path parameters. ``query`` flattens
    the query string with the last occurrence of a repeated key
    winning; ``query_params`` keeps every value (``get_list``).
    """

    dynamic: dict[str, str] = field(default_factory=dict)
    query: dict[str, str] = field(default_factory=dict)
    query_params: QueryParams = field(default_factory=QueryParams)
    route: Route | None = None


def _has_control_chars(value: str) -> bool:
    return any(ord(ch) <= 0x20 or ord(ch) == 0x7F for ch in value)


def parse_url(url: str) -> tuple[str, str]:
    """Split a request target into ``(path, query_string)``.

    Accepts origin-form (``/users?page=2``) and absolute-form
    (``http://host/users``) targets. The fragment, if any, is dropped.

    Raises:
        BadRequest: If the target is empty, contains whitespace or
            control characters, is relative without a leading ``/``, or
            is absolute without a host.
    """
    if not isinstance(url, str) or not url or _has_control_chars(url):
        raise BadRequest(f"Malformed request target {url!r}")

    if url.startswith("/"):
        target = url.partition("#")[0]
        path, _, query = target.partition("?")
        return path, query

    try:
        parts = urlsplit(url)
        # Accessing .port validates it (raises ValueError when out of range)
        parts.port  # noqa: B018
    except ValueError as exc:
        raise BadRequest(f"Malformed request target {url!r}") from exc

    if not parts.scheme or not parts.hostname:
        raise BadRequest(f"Malformed request target {url!r}")
    return parts.path or "/", parts.query


class Dispatcher:
    """Runs the per-request pipeline over a route table and a chain.

    The dispatcher reads shared state only; the route table and chain
    must not change while requests are in flight (``App`` freezes both
    before serving).
    """

    __slots__ = ("_chain", "_config", "_default_headers", "_routes")

    def __init__(
        self,
        routes: RouteTable,
        chain: MiddlewareChain | None = None,
        config: AppConfig | None = None,
    ) -> None:
        self._routes = routes
        self._chain = chain if chain is not None else MiddlewareChain()
        self._config = config or AppConfig()
        self._default_headers: dict[str, str] = {}
        if self._config.server_header:
            self._default_headers["Server"] = self._config.server_header

    async def dispatch(self, request: Request) -> FinalResponse:
        """Produce the single terminal response for *request*."""
        response = Response(self._default_headers)
        token = request_var.set(request)
        try:
            return await self._dispatch(request, response)
        finally:
            g._reset()
            request_var.reset(token)

    async def _dispatch(self, request: Request, response: Response) -> FinalResponse:
        outcome = await self._chain.run(request, response)
        if outcome is ChainOutcome.TERMINATED:
            return response.end()

        try:
            path, query_string = parse_url(request.url)
        except BadRequest as exc:
            return self._http_error(response, exc)

        method = HTTPMethod.parse(request.method)
        if method is None or not self._routes.exists(method):
            fault = ConfigurationError(f"No routes defined for HTTP method: {request.method!r}")
            log_error(
                fault,
                "configuration",
                f"Unsupported method [{request.method} {path}]",
                level=logging.CRITICAL,
            )
            return response.server_error()

        match = self._routes.resolve(method, path)
        if match is None:
            return self._http_error(response, NotFound(f"No route matches {method} {path!r}"))

        params = QueryParams(query_string)
        context = DispatchContext(
            dynamic=match.params,
            query=params.to_dict(),
            query_params=params,
            route=match.route,
        )

        handler = match.route.handler
        try:
            await invoke(handler, request, response, context)
        except Exception as exc:
            log_error(exc, "routes", f"Error in handler {describe(handler)} [{method} {path}]")
            return response.server_error()

        return response.end()

    def _http_error(self, response: Response, exc: HTTPError) -> FinalResponse:
        """Answer with the status phrase as a plain-text body."""
        logger.debug("%s", exc)
        if exc.headers:
            response.header(dict(exc.headers))
        return response.text(HTTPStatus(exc.status).phrase, status=exc.status)
