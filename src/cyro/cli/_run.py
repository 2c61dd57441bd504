"""``cyro run`` — development server command."""

import argparse
import logging
import sys

from cyro.cli._resolve import resolve_app
from cyro.errors import ConfigurationError


def run_server(args: argparse.Namespace) -> None:
    """Resolve ``args.app`` and serve it with pounce.

    CLI flags override the app's config. Logging is configured here,
    at the level named by ``AppConfig.log_level``; the library itself
    never installs handlers.
    """
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    logging.basicConfig(
        level=app.config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    host = args.host or app.config.host
    port = args.port or app.config.port

    from cyro.server.dev import run_dev_server

    app._ensure_frozen()
    try:
        run_dev_server(
            app,
            host,
            port,
            reload=args.reload or app.config.reload,
            app_path=args.app,
        )
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
