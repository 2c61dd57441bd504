"""Cyro CLI — dev server and route listing.

Entry point registered as ``cyro`` in ``pyproject.toml``::

    [project.scripts]
    cyro = "cyro.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``cyro`` command."""
    parser = argparse.ArgumentParser(
        prog="cyro",
        description="Cyro — request dispatch for ASGI.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- cyro run ---------------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Start the server")
    run_parser.add_argument("app", help="Import string (e.g. myapp:app)")
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    run_parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart the server when source files change",
    )

    # -- cyro routes ------------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List registered routes")
    routes_parser.add_argument("app", help="Import string (e.g. myapp:app)")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "run":
        from cyro.cli._run import run_server

        run_server(args)
    elif args.command == "routes":
        from cyro.cli._routes import run_routes

        run_routes(args)
