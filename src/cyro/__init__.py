"""Cyro — a small request-dispatch framework for ASGI.

Routes map a method and a path pattern to a handler; middleware runs in
order before it and may answer the request itself; handlers build the
response through a mutable builder that finishes exactly once.

Basic usage::

    from cyro import App

    app = App()

    @app.get("/hello/:name")
    def hello(request, response, context):
        response.send(f"Hello, {context.dynamic['name']}!")

    app.run()

Serving needs the optional server extra (``pip install cyro[server]``).
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "BadRequest",
    "ConfigurationError",
    "CyroError",
    "DispatchContext",
    "FinalResponse",
    "HTTPError",
    "HTTPMethod",
    "Middleware",
    "NotFound",
    "Request",
    "Response",
    "g",
    "get_request",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import cyro`` fast while providing a clean top-level API.
    """
    if name == "App":
        from cyro.app import App

        return App

    if name == "AppConfig":
        from cyro.config import AppConfig

        return AppConfig

    if name == "Request":
        from cyro.http.request import Request

        return Request

    if name in ("Response", "FinalResponse"):
        from cyro.http import response as _resp

        return getattr(_resp, name)

    if name == "HTTPMethod":
        from cyro.http.methods import HTTPMethod

        return HTTPMethod

    if name == "DispatchContext":
        from cyro.server.dispatcher import DispatchContext

        return DispatchContext

    if name == "Middleware":
        from cyro.middleware.protocol import Middleware

        return Middleware

    if name in ("g", "get_request"):
        from cyro import context as _ctx

        return getattr(_ctx, name)

    if name in ("CyroError", "ConfigurationError", "HTTPError", "BadRequest", "NotFound"):
        from cyro import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
