"""Cyro application class.

Mutable during setup (route registration, middleware, lifecycle hooks).
Frozen at runtime when app.run() or __call__() is first invoked.
"""

from __future__ import annotations

import threading
from typing import Any

from cyro._internal.asgi import Receive, Scope, Send
from cyro._internal.invoke import invoke
from cyro._internal.types import Handler, Hook
from cyro.config import AppConfig
from cyro.http.methods import HTTPMethod
from cyro.http.request import Request
from cyro.http.response import FinalResponse
from cyro.middleware.chain import MiddlewareChain
from cyro.middleware.protocol import Middleware
from cyro.routing.router import RouteTable
from cyro.server.dispatcher import Dispatcher
from cyro.server.handler import handle_request, reject_websocket
from cyro.server.terminal_errors import log_error


class App:
    """The cyro application.

    Usage::

        app = App()

        @app.get("/users/:id")
        def show_user(request, response, context):
            response.json({"id": context.dynamic["id"]})

        app.post("/users", create_user)  # direct call works too

    Registration writes straight into the route table, so a malformed
    route is reported at the line that registered it. The table and the
    middleware chain freeze on the first lifespan or HTTP scope.

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check so exactly one
        thread builds the dispatcher, even when several server workers
        deliver their first request concurrently.
    """

    __slots__ = (
        "_chain",
        "_dispatcher",
        "_freeze_lock",
        "_frozen",
        "_routes",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._routes = RouteTable(strict=self.config.strict_routes)
        self._chain = MiddlewareChain()
        self._startup_hooks: list[Hook] = []
        self._shutdown_hooks: list[Hook] = []
        self._frozen = False
        self._freeze_lock = threading.Lock()
        self._dispatcher: Dispatcher | None = None

    def __repr__(self) -> str:
        return f"<App routes={len(self._routes)} middleware={len(self._chain)}>"

    # -- Route registration --

    def route(self, method: str, path: str, handler: Handler | None = None) -> Any:
        """Register *handler* for *method* and *path*.

        Without *handler*, returns a decorator. Either way the handler is
        returned unchanged.
        """
        if handler is not None:
            self._check_not_frozen()
            self._routes.register(method, path, handler)
            return handler

        def decorator(func: Handler) -> Handler:
            self._check_not_frozen()
            self._routes.register(method, path, func)
            return func

        return decorator

    def get(self, path: str, handler: Handler | None = None) -> Any:
        return self.route(HTTPMethod.GET, path, handler)

    def post(self, path: str, handler: Handler | None = None) -> Any:
        return self.route(HTTPMethod.POST, path, handler)

    def put(self, path: str, handler: Handler | None = None) -> Any:
        return self.route(HTTPMethod.PUT, path, handler)

    def delete(self, path: str, handler: Handler | None = None) -> Any:
        return self.route(HTTPMethod.DELETE, path, handler)

    def patch(self, path: str, handler: Handler | None = None) -> Any:
        return self.route(HTTPMethod.PATCH, path, handler)

    def head(self, path: str, handler: Handler | None = None) -> Any:
        return self.route(HTTPMethod.HEAD, path, handler)

    def options(self, path: str, handler: Handler | None = None) -> Any:
        return self.route(HTTPMethod.OPTIONS, path, handler)

    @property
    def routes(self) -> RouteTable:
        """The route table (read-only once the app is frozen)."""
        return self._routes

    # -- Middleware --

    def add_middleware(self, middleware: Middleware) -> Middleware:
        """Append a middleware to the chain. Usable as a decorator.

        Raises:
            InvalidMiddlewareError: If *middleware* is not callable.
        """
        self._check_not_frozen()
        self._chain.append(middleware)
        return middleware

    @property
    def middleware(self) -> MiddlewareChain:
        return self._chain

    # -- Lifecycle hooks --

    def on_startup(self, func: Hook) -> Hook:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        before the server begins accepting HTTP requests.

        Usage::

            @app.on_startup
            async def setup():
                await db.connect()
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Hook) -> Hook:
        """Register an async or sync shutdown hook via decorator.

        Hooks run in registration order during ASGI lifespan shutdown.
        """
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Freeze the app and serve it with pounce.

        Args:
            host: Override bind host.
            port: Override bind port.
        """
        self._ensure_frozen()

        from cyro.server.dev import run_dev_server

        run_dev_server(
            self,
            host or self.config.host,
            port or self.config.port,
            reload=self.config.reload,
        )

    async def dispatch(self, request: Request) -> FinalResponse:
        """Dispatch *request* without going through ASGI."""
        return await self._ensure_frozen().dispatch(request)

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        scope_type = scope["type"]

        if scope_type == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        dispatcher = self._ensure_frozen()

        if scope_type == "websocket":
            await reject_websocket(scope, receive, send)
            return

        await handle_request(scope, receive, send, dispatcher=dispatcher)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup (before the first HTTP request), then
        runs registered hooks and signals completion back to the server.
        """
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    for hook in self._startup_hooks:
                        await invoke(hook)
                except Exception as exc:
                    log_error(exc, "lifespan", "Startup hook failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                try:
                    for hook in self._shutdown_hooks:
                        await invoke(hook)
                except Exception as exc:
                    log_error(exc, "lifespan", "Shutdown hook failed")
                    await send({"type": "lifespan.shutdown.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> Dispatcher:
        """Thread-safe freeze with double-check locking."""
        if self._dispatcher is not None:
            return self._dispatcher
        with self._freeze_lock:
            if self._dispatcher is None:
                self._freeze()
        assert self._dispatcher is not None
        return self._dispatcher

    def _freeze(self) -> None:
        """Freeze shared state and build the dispatcher.

        MUST only be called while holding _freeze_lock.
        """
        self._routes.freeze()
        self._chain.freeze()
        self._dispatcher = Dispatcher(self._routes, self._chain, self.config)
        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, middleware, and hooks before calling app.run()."
            )
            raise RuntimeError(msg)
