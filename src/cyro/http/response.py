"""HTTP response state machine.

A ``Response`` is built up by middleware and handlers through chainable
mutators (``status()``, ``header()``, ``cookie()``) and terminated by
exactly one call that sends a body (``send()``, ``json()``, ...) or by
``end()`` directly. The terminal transition freezes the state into a
``FinalResponse``, the value the server writes to the wire.

Once finished, every mutator is a no-op that logs a warning, so code
that runs after a middleware has already answered cannot alter what
the client receives.
"""

from __future__ import annotations

import json as json_module
import logging
from collections.abc import AsyncIterable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from urllib.parse import quote

from cyro.http.cookies import SetCookie
from cyro.http.headers import MutableHeaders

logger = logging.getLogger("cyro.response")

TEXT_PLAIN = "text/plain; charset=utf-8"
TEXT_HTML = "text/html; charset=utf-8"
APPLICATION_JSON = "application/json"
OCTET_STREAM = "application/octet-stream"

SERVER_ERROR_BODY = "Internal Server Error"

_URL_SAFE = ":/?#[]@!$&'()*+,;=%"


class BodyKind(Enum):
    """What the body of a finished response holds."""

    EMPTY = "empty"
    TEXT = "text"
    JSON = "json"
    BINARY = "binary"
    STREAM = "stream"


@dataclass(frozen=True, slots=True)
class FinalResponse:
    """The immutable outcome of a dispatch.

    ``body`` is ``None`` for ``EMPTY``, a ``str`` for ``TEXT``/``JSON``,
    ``bytes`` for ``BINARY``, and a sync or async iterable of chunks for
    ``STREAM``.
    """

    status: int
    headers: tuple[tuple[str, str], ...] = ()
    body: Any = None
    kind: BodyKind = BodyKind.EMPTY

    def header(self, name: str, default: str | None = None) -> str | None:
        """Return the last value of header *name* (case-insensitive)."""
        key = name.lower()
        found = default
        for existing, value in self.headers:
            if existing.lower() == key:
                found = value
        return found

    def header_list(self, name: str) -> list[str]:
        key = name.lower()
        return [value for existing, value in self.headers if existing.lower() == key]

    @property
    def content_type(self) -> str | None:
        return self.header("content-type")

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes. Streams have no fixed body."""
        if self.kind is BodyKind.STREAM:
            msg = "A streaming response has no fixed body; iterate over .body instead"
            raise TypeError(msg)
        if self.body is None:
            return b""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return bytes(self.body)

    @property
    def text(self) -> str:
        """Body as string."""
        return self.body_bytes.decode("utf-8")

    def json(self) -> Any:
        return json_module.loads(self.body_bytes)


def _valid_status(code: object) -> bool:
    return isinstance(code, int) and not isinstance(code, bool) and 100 <= code <= 599


def _valid_header_part(part: object) -> bool:
    return isinstance(part, str) and bool(part) and "\r" not in part and "\n" not in part


def _latin1(text: str) -> bool:
    # Header bytes go out as latin-1
    try:
        text.encode("latin-1")
    except UnicodeEncodeError:
        return False
    return True


def _looks_like_html(body: str) -> bool:
    stripped = body.strip()
    return stripped.startswith("<") and stripped.endswith(">")


class Response:
    """Mutable response under construction for a single request.

    Usage::

        def show_user(request, response, context):
            response.status(200).header("Cache-Control", "no-store")
            response.json({"id": context.dynamic["id"]})

    Mutators return ``self`` so they chain. Body helpers finish the
    response and return the ``FinalResponse``.
    """

    __slots__ = ("_default_headers", "_final", "body", "headers", "kind", "status_code")

    def __init__(self, default_headers: Mapping[str, str] | None = None) -> None:
        self.status_code = 200
        self.headers = MutableHeaders()
        self.body: Any = None
        self.kind = BodyKind.EMPTY
        self._final: FinalResponse | None = None
        # Survive server_error(), which otherwise wipes every header
        self._default_headers = dict(default_headers or {})
        for name, value in self._default_headers.items():
            self.headers.set(name, value)

    def __repr__(self) -> str:
        state = "finished" if self.finished else "open"
        return f"<Response {self.status_code} {self.kind.value} {state}>"

    @property
    def finished(self) -> bool:
        return self._final is not None

    @property
    def final(self) -> FinalResponse | None:
        """The terminal value, or ``None`` while the response is open."""
        return self._final

    def _rejected(self, action: str) -> bool:
        if self._final is None:
            return False
        logger.warning("Ignored %s(): response already finished", action)
        return True

    # -- Chainable mutators --

    def status(self, code: int) -> Response:
        """Set the status code.

        An invalid code (not an int in 100-599) is a programming error in
        the caller; it is logged and the status becomes 500.
        """
        if self._rejected("status"):
            return self
        if not _valid_status(code):
            logger.error("Invalid status code %r; using 500", code)
            self.status_code = 500
            return self
        self.status_code = int(code)
        return self

    def header(self, name: str | Mapping[str, Any], value: Any = None) -> Response:
        """Set one header, or several from a mapping.

        Later writes to the same name overwrite earlier ones (except
        ``Set-Cookie``). Invalid names or values are logged and skipped.
        """
        if self._rejected("header"):
            return self
        if isinstance(name, Mapping):
            for key, val in name.items():
                self._set_header(key, val)
        elif value is None:
            logger.error("Invalid header arguments: name=%r value=None", name)
        else:
            self._set_header(name, value)
        return self

    def _set_header(self, name: object, value: object) -> None:
        text = value if isinstance(value, str) else str(value)
        if (
            not _valid_header_part(name)
            or "\r" in text
            or "\n" in text
            or not _latin1(name)  # type: ignore[arg-type]
            or not _latin1(text)
        ):
            logger.error("Invalid header %r: %r", name, value)
            return
        self.headers.set(name, text)  # type: ignore[arg-type]

    def cookie(
        self,
        name: str,
        value: str,
        *,
        max_age: int | None = None,
        expires: datetime | None = None,
        path: str | None = "/",
        domain: str | None = None,
        secure: bool = False,
        httponly: bool = True,
        samesite: str | None = "Lax",
    ) -> Response:
        """Append a ``Set-Cookie`` header."""
        if self._rejected("cookie"):
            return self
        directive = SetCookie(
            name=name,
            value=value,
            max_age=max_age,
            expires=expires,
            path=path,
            domain=domain,
            secure=secure,
            httponly=httponly,
            samesite=samesite,
        )
        self._set_header("Set-Cookie", directive.to_header_value())
        return self

    def clear_cookie(self, name: str, path: str | None = "/") -> Response:
        """Expire a cookie on the client (``Max-Age=0``)."""
        return self.cookie(name, "", max_age=0, path=path)

    # -- Terminal operations --

    def send(
        self,
        body: Any = None,
        status: int | None = None,
        headers: Mapping[str, Any] | None = None,
    ) -> FinalResponse:
        """Finish with *body*, inferring its kind and Content-Type.

        - ``None``: empty body, no Content-Type
        - ``str``: ``text/html`` if it looks like markup, else ``text/plain``
        - ``bytes``/``bytearray``/``memoryview``: ``application/octet-stream``
        - iterators and async iterables: streamed chunks
        - anything else: serialized as JSON

        A Content-Type that was already set explicitly is kept. *status*
        defaults to the current status.
        """
        if self._rejected("send"):
            return self._final  # type: ignore[return-value]

        if body is None:
            return self._finish(None, BodyKind.EMPTY, None, status, headers, force=False)
        if isinstance(body, str):
            content_type = TEXT_HTML if _looks_like_html(body) else TEXT_PLAIN
            return self._finish(body, BodyKind.TEXT, content_type, status, headers, force=False)
        if isinstance(body, bytes | bytearray | memoryview):
            return self._finish(
                bytes(body), BodyKind.BINARY, OCTET_STREAM, status, headers, force=False
            )
        if isinstance(body, AsyncIterable | Iterator):
            return self._finish(body, BodyKind.STREAM, OCTET_STREAM, status, headers, force=False)

        payload = self._serialize(body)
        if payload is None:
            return self.server_error()
        return self._finish(payload, BodyKind.JSON, APPLICATION_JSON, status, headers, force=False)

    def json(
        self,
        data: Any,
        status: int | None = None,
        headers: Mapping[str, Any] | None = None,
    ) -> FinalResponse:
        """Finish with *data* serialized as ``application/json``."""
        if self._rejected("json"):
            return self._final  # type: ignore[return-value]
        payload = self._serialize(data)
        if payload is None:
            return self.server_error()
        return self._finish(payload, BodyKind.JSON, APPLICATION_JSON, status, headers)

    def text(
        self,
        body: str,
        status: int | None = None,
        headers: Mapping[str, Any] | None = None,
    ) -> FinalResponse:
        """Finish with a ``text/plain`` body."""
        if self._rejected("text"):
            return self._final  # type: ignore[return-value]
        return self._finish(str(body), BodyKind.TEXT, TEXT_PLAIN, status, headers)

    def html(
        self,
        body: str,
        status: int | None = None,
        headers: Mapping[str, Any] | None = None,
    ) -> FinalResponse:
        """Finish with a ``text/html`` body."""
        if self._rejected("html"):
            return self._final  # type: ignore[return-value]
        return self._finish(str(body), BodyKind.TEXT, TEXT_HTML, status, headers)

    def binary(
        self,
        data: bytes | bytearray | memoryview,
        status: int | None = None,
        headers: Mapping[str, Any] | None = None,
        *,
        content_type: str = OCTET_STREAM,
    ) -> FinalResponse:
        """Finish with raw bytes."""
        if self._rejected("binary"):
            return self._final  # type: ignore[return-value]
        if not isinstance(data, bytes | bytearray | memoryview):
            logger.error("binary() expects bytes, got %s", type(data).__name__)
            return self.server_error()
        return self._finish(bytes(data), BodyKind.BINARY, content_type, status, headers)

    def stream(
        self,
        chunks: Iterable[str | bytes] | AsyncIterable[str | bytes],
        status: int | None = None,
        headers: Mapping[str, Any] | None = None,
        *,
        content_type: str | None = None,
    ) -> FinalResponse:
        """Finish with a body produced chunk by chunk.

        Without *content_type* an explicitly set Content-Type is kept,
        falling back to ``application/octet-stream``.
        """
        if self._rejected("stream"):
            return self._final  # type: ignore[return-value]
        if content_type is not None:
            return self._finish(chunks, BodyKind.STREAM, content_type, status, headers)
        return self._finish(chunks, BodyKind.STREAM, OCTET_STREAM, status, headers, force=False)

    def redirect(self, url: str, status: int = 302) -> FinalResponse:
        """Finish with an empty body and a ``Location`` header.

        Characters outside the URL syntax (spaces, non-ASCII) are
        percent-encoded; existing escapes are kept.
        """
        if self._rejected("redirect"):
            return self._final  # type: ignore[return-value]
        location = quote(str(url), safe=_URL_SAFE)
        return self._finish(None, BodyKind.EMPTY, None, status, {"Location": location})

    def end(self) -> FinalResponse:
        """Finish with the current state. Idempotent."""
        if self._final is None:
            self._final = FinalResponse(
                status=self.status_code,
                headers=self.headers.items(),
                body=self.body,
                kind=self.kind,
            )
        return self._final

    def server_error(self) -> FinalResponse:
        """Discard everything set so far and finish with a generic 500.

        Headers are reset (keeping only the defaults the response was
        created with) so nothing a failed handler set leaks out. No-op if
        the response is already finished.
        """
        if self._final is not None:
            return self._final
        self.headers.clear()
        for name, value in self._default_headers.items():
            self.headers.set(name, value)
        self.headers.set("Content-Type", TEXT_PLAIN)
        self.status_code = 500
        self.body = SERVER_ERROR_BODY
        self.kind = BodyKind.TEXT
        return self.end()

    # -- Internals --

    def _serialize(self, data: Any) -> str | None:
        try:
            return json_module.dumps(data, allow_nan=False)
        except (TypeError, ValueError) as exc:
            from cyro.server.terminal_errors import log_error

            log_error(exc, "response", f"Could not serialize {type(data).__name__} as JSON")
            return None

    def _finish(
        self,
        body: Any,
        kind: BodyKind,
        content_type: str | None,
        status: int | None,
        headers: Mapping[str, Any] | None,
        *,
        force: bool = True,
    ) -> FinalResponse:
        if status is not None:
            self.status(status)
        if content_type is not None and force:
            self.headers.set("Content-Type", content_type)
        if headers:
            self.header(headers)
        if content_type is not None and not force:
            self.headers.setdefault("Content-Type", content_type)
        self.body = body
        self.kind = kind
        return self.end()
