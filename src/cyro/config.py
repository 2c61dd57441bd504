"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(reload=True, port=3000, strict_routes=True)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 2772
    reload: bool = False

    # Routing: raise on bad registrations instead of logging and skipping
    strict_routes: bool = False

    # Logging (applied by the CLI; the library never configures logging)
    log_level: str = "info"

    # Added to every outgoing response when set
    server_header: str | None = None

    @classmethod
    def from_env(cls, prefix: str = "CYRO_", **overrides: Any) -> AppConfig:
        """Build a config from environment variables.

        Each field maps to ``{prefix}{FIELD_NAME}`` (``CYRO_PORT``,
        ``CYRO_RELOAD``, ...). Values are coerced by the field's default
        type; booleans accept ``1/true/yes/on``. Keyword *overrides* win
        over the environment.
        """
        values: dict[str, Any] = {}
        for f in fields(cls):
            raw = os.environ.get(f"{prefix}{f.name.upper()}")
            if raw is None:
                continue
            values[f.name] = _coerce(raw, f.default)
        values.update(overrides)
        return cls(**values)


def _coerce(raw: str, default: object) -> object:
    if isinstance(default, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        return int(raw)
    return raw
