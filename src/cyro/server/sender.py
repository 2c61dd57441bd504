"""ASGI response sending: translates a FinalResponse to ASGI messages.

Fixed bodies go out in one message with a ``content-length``. Streams
are sent chunk by chunk; the server applies chunked transfer encoding.
"""

import logging
from collections.abc import AsyncIterable

from cyro._internal.asgi import Send
from cyro.http.response import BodyKind, FinalResponse

logger = logging.getLogger("cyro.server")


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def _raw_headers(response: FinalResponse) -> list[tuple[bytes, bytes]]:
    return [
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in response.headers
        if name.lower() != "content-length"
    ]


def _encode_chunk(chunk: str | bytes) -> bytes:
    return chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk)


async def send_response(response: FinalResponse, send: Send, *, head: bool = False) -> None:
    """Translate a FinalResponse into ASGI ``send()`` calls.

    *head* suppresses the body (``HEAD`` requests) while keeping the
    headers, including the ``content-length`` a ``GET`` would carry.
    """
    if response.kind is BodyKind.STREAM:
        if head or not _body_allowed(response.status):
            await _send_fixed(response, send, b"")
            return
        await send_streaming_response(response, send)
        return

    body = response.body_bytes
    raw_headers = _raw_headers(response)
    if _body_allowed(response.status):
        raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))
    else:
        body = b""
    await send({"type": "http.response.start", "status": response.status, "headers": raw_headers})
    await send({"type": "http.response.body", "body": b"" if head else body})


async def _send_fixed(response: FinalResponse, send: Send, body: bytes) -> None:
    await send(
        {"type": "http.response.start", "status": response.status, "headers": _raw_headers(response)}
    )
    await send({"type": "http.response.body", "body": body})


async def send_streaming_response(response: FinalResponse, send: Send) -> None:
    """Send a streaming body.

    Sends headers immediately, then each chunk as an ASGI body message
    with ``more_body=True``, and closes with an empty body. A chunk
    source that raises mid-stream is logged and the stream is closed;
    the status line has already gone out, so it cannot become a 500.
    """
    await send(
        {"type": "http.response.start", "status": response.status, "headers": _raw_headers(response)}
    )

    try:
        if isinstance(response.body, AsyncIterable):
            async for chunk in response.body:
                if chunk:
                    await send(
                        {"type": "http.response.body", "body": _encode_chunk(chunk), "more_body": True}
                    )
        else:
            for chunk in response.body:
                if chunk:
                    await send(
                        {"type": "http.response.body", "body": _encode_chunk(chunk), "more_body": True}
                    )
    except Exception as exc:
        from cyro.server.terminal_errors import log_error

        log_error(exc, "stream", "Error while streaming response body")

    await send({"type": "http.response.body", "body": b"", "more_body": False})
