"""Middleware protocol.

A middleware is any callable matching::

    def my_mw(request: Request, response: Response) -> None: ...

or its ``async def`` form. No base class required. Middleware runs in
registration order before the route handler. To answer the request
itself, a middleware finishes the response (``response.send(...)``,
``response.json(...)``); the chain then stops and the handler never
runs. Otherwise it returns and the next entry runs.
"""

from collections.abc import Awaitable
from typing import Protocol

from cyro.http.request import Request
from cyro.http.response import Response


class Middleware(Protocol):
    """Protocol for cyro middleware.

    Accepts both functions and callable objects::

        # Function middleware
        def require_token(request: Request, response: Response) -> None:
            if "authorization" not in request.headers:
                response.status(401).send("Unauthorized")

        # Class middleware
        class RequestId:
            async def __call__(self, request: Request, response: Response) -> None:
                response.header("X-Request-Id", uuid.uuid4().hex)
    """

    def __call__(self, request: Request, response: Response) -> Awaitable[None] | None: ...
