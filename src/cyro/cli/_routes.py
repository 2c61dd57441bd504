"""``cyro routes`` — list registered routes."""

import argparse
import sys

from cyro._internal.invoke import describe
from cyro.cli._resolve import resolve_app


def format_routes(rows: list[tuple[str, str, str]]) -> list[str]:
    """Lay out ``(method, path, handler)`` rows as an aligned table."""
    max_method = max([len(r[0]) for r in rows] + [6])  # "METHOD" header
    max_path = max([len(r[1]) for r in rows] + [4])  # "PATH" header
    fmt = f"{{:<{max_method}}}  {{:<{max_path}}}  {{}}"
    lines = [fmt.format("METHOD", "PATH", "HANDLER")]
    sep_len = max_method + max_path + 4 + max((len(r[2]) for r in rows), default=7)
    lines.append("-" * min(sep_len, 80))
    lines.extend(fmt.format(*row) for row in rows)
    return lines


def run_routes(args: argparse.Namespace) -> None:
    """Print METHOD, PATH, and HANDLER for every route, in registration order."""
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    routes = app.routes.routes
    if not routes:
        print("No routes registered.")
        return

    rows = [(str(route.method), route.path, describe(route.handler)) for route in routes]
    for line in format_routes(rows):
        print(line)
