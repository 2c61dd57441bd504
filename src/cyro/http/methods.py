"""The closed set of HTTP methods the route table accepts.

A ``StrEnum`` so members compare equal to their wire spelling and can be
used directly as dict keys alongside plain strings.
"""

from __future__ import annotations

from enum import StrEnum


class HTTPMethod(StrEnum):
    """Supported request methods.

    Anything outside this set (``TRACE``, ``CONNECT``, typos) is rejected
    at registration and treated as a configuration fault at dispatch.
    """

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"

    @classmethod
    def parse(cls, value: object) -> HTTPMethod | None:
        """Return the member for *value* (case-insensitive), or ``None``."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None
