"""Immutable HTTP request.

Frozen metadata with async body access. The request is honest about
what it is: received data that doesn't change.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from urllib.parse import quote, quote_from_bytes, urlsplit

from cyro._internal.asgi import Receive, Scope
from cyro.http.cookies import parse_cookies
from cyro.http.headers import Headers
from cyro.http.query import encode_query

if TYPE_CHECKING:
    from cyro.http.forms import FormData

# Path characters that stay literal; "%" only when escapes are already present
_PATH_SAFE = "/:@!$&'()*+,;="


async def _empty_receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``method`` is the raw method string as received; the dispatcher
    decides whether it is one the route table knows. ``url`` is the
    request target, either origin-relative (``/users?page=2``) or
    absolute (``http://host/users``). It is parsed per dispatch, so a
    malformed target surfaces as a 400 rather than at construction.

    Body is read asynchronously via ``.body()``, ``.text()``,
    ``.json()``, ``.form()``; each is cached after the first read.
    """

    method: str
    url: str
    headers: Headers = field(default_factory=Headers)
    cookies: Mapping[str, str] = field(default_factory=dict)
    http_version: str = "1.1"
    server: tuple[str, int] | None = None
    client: tuple[str, int] | None = None

    # Private: ASGI receive callable for body streaming
    _receive: Receive = field(default=_empty_receive, repr=False, compare=False)

    # Private: mutable cache for body and parsed form data
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def path(self) -> str:
        """Path component of ``url`` (still percent-encoded)."""
        return urlsplit(self.url).path or "/"

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def content_length(self) -> int | None:
        """The Content-Length header as int."""
        value = self.headers.get("content-length")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body.

        The ASGI receive channel is consumed once; later calls return
        the cached bytes.
        """
        if "_body" in self._cache:
            return self._cache["_body"]
        chunks = [chunk async for chunk in self.stream()]
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks."""
        while True:
            message = await self._receive()
            if message.get("type") == "http.disconnect":
                break
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    async def json(self) -> Any:
        """Parse the body as JSON."""
        raw = await self.body()
        return json_module.loads(raw)

    async def text(self) -> str:
        """Read the body as text (UTF-8)."""
        raw = await self.body()
        return raw.decode("utf-8")

    async def form(self) -> FormData:
        """Parse the body as form data (URL-encoded or multipart).

        Raises:
            ValueError: If Content-Type is not a form encoding.
        """
        if "_form" in self._cache:
            return self._cache["_form"]

        from cyro.http.forms import parse_form_data

        ct = self.content_type or "application/x-www-form-urlencoded"
        raw = await self.body()
        result = await parse_form_data(raw, ct)
        self._cache["_form"] = result
        return result

    # -- Factories --

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable.

        The URL is always percent-encoded ASCII. It is rebuilt from
        ``raw_path`` when the server provides it (existing escapes kept);
        otherwise the already-decoded ``path`` is encoded again, so a
        space or an encoded ``/`` inside a segment reaches the router
        the way the client sent it. Raw non-ASCII bytes in the path or
        query are escaped so they decode as UTF-8.
        """
        headers = Headers(tuple(scope.get("headers", ())))
        raw_path = scope.get("raw_path")
        if raw_path:
            path = quote_from_bytes(raw_path, safe=_PATH_SAFE + "%")
        else:
            path = quote(scope.get("path", ""), safe=_PATH_SAFE)
        query_string = encode_query(scope.get("query_string", b""))
        url = f"{path}?{query_string}" if query_string else path
        server = scope.get("server")
        client = scope.get("client")
        return cls(
            method=scope["method"],
            url=url,
            headers=headers,
            cookies=parse_cookies(headers.get("cookie", "")),
            http_version=scope.get("http_version", "1.1"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            _receive=receive,
        )
