"""Terminal error formatting for faults raised by user code.

Every place that catches an exception from a handler, a middleware, or
a response helper reports it through ``log_error``. The first line names
where it happened and why it was caught::

    ROUTES ERROR: Error handling request [GET /users/42]

followed by a traceback whose verbosity is controlled by the
``CYRO_TRACEBACK`` environment variable:

- ``compact`` (default): error summary plus application frames only
- ``full``: the complete Python traceback via ``logger.exception``
- ``minimal``: a single line with the innermost location
"""

from __future__ import annotations

import logging
import os
import traceback as _traceback

logger = logging.getLogger("cyro.server")

_MAX_APP_FRAMES = 5


def _is_app_frame(filename: str) -> bool:
    """True if the frame is from the application (not stdlib/site-packages/cyro)."""
    if "site-packages" in filename:
        return False
    if filename.startswith("<"):
        return False
    if f"{os.sep}cyro{os.sep}" in filename:
        return False
    stdlib_prefix = os.path.dirname(os.__file__)
    return not filename.startswith(stdlib_prefix)


def format_banner(where: str, why: str) -> str:
    """First log line: ``WHERE ERROR: why``."""
    return f"{where.upper()} ERROR: {why}"


def format_compact_traceback(exc: BaseException) -> str:
    """Error summary followed by at most five application frames.

    Falls back to the last three frames when none belong to the app
    (e.g. the failure happened inside a library call).
    """
    parts: list[str] = [f"{type(exc).__name__}: {exc}"]

    tb = exc.__traceback__
    frames = _traceback.extract_tb(tb) if tb else []
    app_frames = [f for f in frames if _is_app_frame(f.filename)]
    display_frames = app_frames if app_frames else frames[-3:]

    if display_frames:
        parts.append("  Trace (app frames):")
        for frame in display_frames[-_MAX_APP_FRAMES:]:
            parts.append(f"    {frame.filename}:{frame.lineno} in {frame.name}")
            if frame.line:
                parts.append(f"      {frame.line.strip()}")

    return "\n".join(parts)


def format_minimal_error(exc: BaseException) -> str:
    """One-line error summary with the innermost location."""
    tb = exc.__traceback__
    frames = _traceback.extract_tb(tb) if tb else []
    last = frames[-1] if frames else None
    location = f" at {last.filename}:{last.lineno}" if last else ""
    return f"{type(exc).__name__}{location}: {exc}"


def log_error(
    exc: BaseException,
    where: str,
    why: str,
    *,
    level: int = logging.ERROR,
) -> None:
    """Log a caught fault with a location banner and configured traceback.

    Args:
        exc: The exception that was caught.
        where: Component that caught it (``"routes"``, ``"middleware"``...).
        why: Short description, e.g. which request or handler was running.
        level: Log level for compact/minimal output.
    """
    banner = format_banner(where, why)
    style = os.environ.get("CYRO_TRACEBACK", "compact").lower()

    if style == "full":
        logger.log(level, banner, exc_info=exc)
    elif style == "minimal":
        logger.log(level, "%s - %s", banner, format_minimal_error(exc))
    else:
        logger.log(level, "%s\n%s", banner, format_compact_traceback(exc))
