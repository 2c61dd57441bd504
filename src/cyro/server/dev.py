"""Development server.

Starts a pounce ASGI server with the live cyro App object. pounce is an
optional dependency (``pip install cyro[server]``) and is imported only
when serving.
"""

from __future__ import annotations

from cyro.errors import ConfigurationError


def run_dev_server(
    app: object,
    host: str,
    port: int,
    *,
    reload: bool = False,
    app_path: str | None = None,
) -> None:
    """Start a single-worker pounce server with the given App.

    Args:
        app: ASGI callable (cyro App instance).
        host: Bind host address.
        port: Bind port number.
        reload: Restart on file changes.
        app_path: Optional ``"module:attribute"`` import string. When
            provided, pounce reimports the app on each reload cycle so
            that code changes on disk take effect.
    """
    try:
        from pounce.config import ServerConfig
        from pounce.server import Server
    except ImportError as exc:
        msg = "Serving requires pounce: pip install 'cyro[server]'"
        raise ConfigurationError(msg) from exc

    config = ServerConfig(host=host, port=port, workers=1, reload=reload)
    server = Server(config, app, app_path=app_path)
    server.run()
