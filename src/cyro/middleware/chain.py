"""Ordered middleware chain with short-circuit semantics."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from enum import Enum
from typing import Any

from cyro._internal.invoke import describe, invoke
from cyro.errors import InvalidMiddlewareError
from cyro.http.request import Request
from cyro.http.response import Response
from cyro.server.terminal_errors import log_error

logger = logging.getLogger("cyro.middleware")


class ChainOutcome(Enum):
    """How a chain run ended."""

    TERMINATED = "terminated"
    PASS_THROUGH = "pass_through"


class MiddlewareChain:
    """Append-only list of middleware, run in registration order.

    ``run`` awaits each entry in turn. After every entry it checks
    whether the response was finished; if so the remaining entries are
    skipped. An entry that raises is logged with its identity and the
    response becomes a generic 500.

    Usage::

        chain = MiddlewareChain()
        chain.append(require_token)
        outcome = await chain.run(request, response)
        if outcome is ChainOutcome.TERMINATED:
            return response.end()
    """

    __slots__ = ("_entries", "_frozen")

    def __init__(self) -> None:
        self._entries: list[Any] = []
        self._frozen = False

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Any]:
        return iter(tuple(self._entries))

    def __repr__(self) -> str:
        return f"<MiddlewareChain entries={len(self._entries)} frozen={self._frozen}>"

    def append(self, middleware: Any) -> None:
        """Add *middleware* to the end of the chain.

        Raises:
            InvalidMiddlewareError: If *middleware* is not callable.
            RuntimeError: If the chain is frozen.
        """
        if self._frozen:
            msg = "Cannot add middleware after the chain is frozen."
            raise RuntimeError(msg)
        if not callable(middleware):
            msg = f"Middleware must be callable, got {type(middleware).__name__}"
            raise InvalidMiddlewareError(msg)
        self._entries.append(middleware)

    def freeze(self) -> None:
        self._frozen = True

    async def run(self, request: Request, response: Response) -> ChainOutcome:
        """Run every entry until one finishes the response or raises."""
        for middleware in self._entries:
            try:
                await invoke(middleware, request, response)
            except Exception as exc:
                log_error(
                    exc,
                    "middleware",
                    f"Error in middleware {describe(middleware)} [{request.method} {request.url}]",
                )
                response.server_error()
                return ChainOutcome.TERMINATED
            if response.finished:
                logger.debug("Chain terminated by %s", describe(middleware))
                return ChainOutcome.TERMINATED
        return ChainOutcome.PASS_THROUGH
