"""Signed, URL-safe tokens.

A token carries a JSON object payload signed with HMAC-SHA256 by
``itsdangerous``. It is tamper-evident, not encrypted: anyone holding a
token can read its payload.

Usage::

    from cyro.addons.tokens import create_token, verify_token

    token = create_token({"user_id": 7}, secret)
    payload = verify_token(token, secret, max_age=3600)  # None if invalid
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any

from itsdangerous import BadData, URLSafeTimedSerializer

logger = logging.getLogger("cyro.addons")

_SALT = "cyro.token"


def _serializer(secret: str) -> URLSafeTimedSerializer:
    if not isinstance(secret, str | bytes) or not secret:
        msg = "Token secret must be a non-empty string."
        raise ValueError(msg)
    return URLSafeTimedSerializer(
        secret,
        salt=_SALT,
        signer_kwargs={"digest_method": hashlib.sha256},
    )


def create_token(payload: dict[str, Any], secret: str) -> str:
    """Sign *payload* and return the token string.

    Raises:
        ValueError: If *payload* is not a dict, *secret* is empty, or the
            payload is not JSON serializable.
    """
    if not isinstance(payload, dict):
        msg = f"Token payload must be a dict, got {type(payload).__name__}"
        raise ValueError(msg)
    try:
        return _serializer(secret).dumps(payload)
    except TypeError as exc:
        msg = f"Token payload is not JSON serializable: {exc}"
        raise ValueError(msg) from exc


def verify_token(token: str, secret: str, max_age: int | None = None) -> dict[str, Any] | None:
    """Return the payload of a valid token, or ``None``.

    A token is rejected when it is malformed, its signature does not
    match *secret*, or it is older than *max_age* seconds.

    Raises:
        ValueError: If *secret* is empty.
    """
    serializer = _serializer(secret)
    if not isinstance(token, str) or not token:
        logger.debug("Rejected token: empty or not a string")
        return None
    try:
        payload = serializer.loads(token, max_age=max_age)
    except BadData as exc:
        logger.debug("Rejected token: %s", exc)
        return None
    if not isinstance(payload, dict):
        logger.debug("Rejected token: payload is %s, not an object", type(payload).__name__)
        return None
    return payload
