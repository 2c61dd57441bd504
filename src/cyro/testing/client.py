"""Async test client for cyro applications.

Drives the app through its ASGI interface, so requests take exactly the
path a server would give them: scope -> Request -> dispatch -> send.
"""

from __future__ import annotations

import json as json_module
from typing import Any
from urllib.parse import unquote

from cyro._internal.invoke import invoke
from cyro.app import App
from cyro.http.response import BodyKind, FinalResponse


class TestClient:
    __test__ = False  # Tell pytest this is not a test class
    """Async test client for cyro applications.

    Returns ``FinalResponse`` values rebuilt from the ASGI messages the
    app sent. Header names come back lowercased, as on the wire; lookups
    through ``FinalResponse.header`` ignore case anyway.

    Usage::

        async with TestClient(app) as client:
            response = await client.get("/users/42")
            assert response.status == 200
            assert response.json() == {"id": "42"}
    """

    __slots__ = ("app",)

    def __init__(self, app: App) -> None:
        self.app = app

    async def __aenter__(self) -> TestClient:
        self.app._ensure_frozen()
        for hook in self.app._startup_hooks:
            await invoke(hook)
        return self

    async def __aexit__(self, *args: object) -> None:
        for hook in self.app._shutdown_hooks:
            await invoke(hook)

    async def get(self, path: str, *, headers: dict[str, str] | None = None) -> FinalResponse:
        """Send a GET request."""
        return await self.request("GET", path, headers=headers)

    async def head(self, path: str, *, headers: dict[str, str] | None = None) -> FinalResponse:
        return await self.request("HEAD", path, headers=headers)

    async def options(self, path: str, *, headers: dict[str, str] | None = None) -> FinalResponse:
        return await self.request("OPTIONS", path, headers=headers)

    async def delete(self, path: str, *, headers: dict[str, str] | None = None) -> FinalResponse:
        return await self.request("DELETE", path, headers=headers)

    async def post(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        json: Any = None,
    ) -> FinalResponse:
        """Send a POST request. *json* is serialized with a JSON content type."""
        return await self._with_body("POST", path, headers, body, json)

    async def put(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        json: Any = None,
    ) -> FinalResponse:
        return await self._with_body("PUT", path, headers, body, json)

    async def patch(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        json: Any = None,
    ) -> FinalResponse:
        return await self._with_body("PATCH", path, headers, body, json)

    async def _with_body(
        self,
        method: str,
        path: str,
        headers: dict[str, str] | None,
        body: bytes | None,
        json: Any,
    ) -> FinalResponse:
        extra_headers: dict[str, str] = {}
        request_body = body or b""
        if json is not None:
            request_body = json_module.dumps(json).encode("utf-8")
            extra_headers["content-type"] = "application/json"
        merged = {**extra_headers, **(headers or {})}
        return await self.request(method, path, headers=merged, body=request_body)

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> FinalResponse:
        """Send an arbitrary request through the ASGI app.

        *method* is passed through untouched, so unsupported methods
        reach the dispatcher the way a real server would deliver them.
        """
        path_part, _, query_string = path.partition("?")

        raw_headers: list[tuple[bytes, bytes]] = [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in (headers or {}).items()
        ]

        scope: dict[str, Any] = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": method,
            "path": unquote(path_part),
            "raw_path": path_part.encode(),
            "query_string": query_string.encode(),
            "root_path": "",
            "headers": raw_headers,
            "server": ("testserver", 80),
            "client": ("127.0.0.1", 0),
        }

        request_body = body or b""
        body_sent = False

        async def receive() -> dict[str, Any]:
            nonlocal body_sent
            if not body_sent:
                body_sent = True
                return {"type": "http.request", "body": request_body, "more_body": False}
            return {"type": "http.disconnect"}

        response_status = 0
        response_headers: list[tuple[bytes, bytes]] = []
        response_body_parts: list[bytes] = []

        async def send(message: dict[str, Any]) -> None:
            nonlocal response_status, response_headers
            if message["type"] == "http.response.start":
                response_status = message["status"]
                response_headers = list(message.get("headers", []))
            elif message["type"] == "http.response.body":
                response_body_parts.append(message.get("body", b""))

        await self.app(scope, receive, send)

        body_bytes = b"".join(response_body_parts)
        return FinalResponse(
            status=response_status,
            headers=tuple(
                (name.decode("latin-1"), value.decode("latin-1"))
                for name, value in response_headers
            ),
            body=body_bytes,
            kind=BodyKind.BINARY if body_bytes else BodyKind.EMPTY,
        )
