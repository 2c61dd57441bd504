"""Tests for cyro.server.sender — FinalResponse to ASGI messages."""

import logging

from cyro.http.response import BodyKind, FinalResponse
from cyro.server.sender import send_response


def _collector():
    messages: list[dict] = []

    async def send(message: dict) -> None:
        messages.append(message)

    return messages, send


def _headers(message: dict) -> dict[bytes, bytes]:
    return dict(message["headers"])


class TestFixedBody:
    async def test_text_body_with_content_length(self) -> None:
        messages, send = _collector()
        response = FinalResponse(
            status=200,
            headers=(("Content-Type", "text/plain; charset=utf-8"),),
            body="héllo",
            kind=BodyKind.TEXT,
        )
        await send_response(response, send)

        start, body = messages
        assert start["type"] == "http.response.start"
        assert start["status"] == 200
        headers = _headers(start)
        assert headers[b"content-type"] == b"text/plain; charset=utf-8"
        assert headers[b"content-length"] == b"6"
        assert body == {"type": "http.response.body", "body": "héllo".encode()}

    async def test_stale_content_length_replaced(self) -> None:
        messages, send = _collector()
        response = FinalResponse(
            status=200, headers=(("Content-Length", "999"),), body=b"abc", kind=BodyKind.BINARY
        )
        await send_response(response, send)
        lengths = [v for k, v in messages[0]["headers"] if k == b"content-length"]
        assert lengths == [b"3"]

    async def test_repeated_headers_kept(self) -> None:
        messages, send = _collector()
        response = FinalResponse(
            status=200, headers=(("Set-Cookie", "a=1"), ("Set-Cookie", "b=2"))
        )
        await send_response(response, send)
        cookies = [v for k, v in messages[0]["headers"] if k == b"set-cookie"]
        assert cookies == [b"a=1", b"b=2"]

    async def test_no_body_statuses(self) -> None:
        for status in (101, 204, 304):
            messages, send = _collector()
            await send_response(
                FinalResponse(status=status, body="ignored", kind=BodyKind.TEXT), send
            )
            assert b"content-length" not in _headers(messages[0])
            assert messages[1]["body"] == b""

    async def test_head_keeps_length_drops_body(self) -> None:
        messages, send = _collector()
        response = FinalResponse(status=200, body="hello", kind=BodyKind.TEXT)
        await send_response(response, send, head=True)
        assert _headers(messages[0])[b"content-length"] == b"5"
        assert messages[1]["body"] == b""


class TestStreaming:
    async def test_sync_iterable(self) -> None:
        messages, send = _collector()
        response = FinalResponse(status=200, body=iter(["a", b"b", ""]), kind=BodyKind.STREAM)
        await send_response(response, send)

        assert b"content-length" not in _headers(messages[0])
        bodies = [m for m in messages[1:]]
        assert bodies == [
            {"type": "http.response.body", "body": b"a", "more_body": True},
            {"type": "http.response.body", "body": b"b", "more_body": True},
            {"type": "http.response.body", "body": b"", "more_body": False},
        ]

    async def test_async_iterable(self) -> None:
        async def chunks():
            yield "x"
            yield "y"

        messages, send = _collector()
        await send_response(FinalResponse(status=200, body=chunks(), kind=BodyKind.STREAM), send)
        assert b"".join(m["body"] for m in messages[1:]) == b"xy"
        assert messages[-1]["more_body"] is False

    async def test_error_mid_stream_closes(self, caplog) -> None:
        def chunks():
            yield "partial"
            raise RuntimeError("source failed")

        messages, send = _collector()
        with caplog.at_level(logging.ERROR, logger="cyro.server"):
            await send_response(
                FinalResponse(status=200, body=chunks(), kind=BodyKind.STREAM), send
            )
        assert messages[0]["status"] == 200
        assert messages[1]["body"] == b"partial"
        assert messages[-1] == {"type": "http.response.body", "body": b"", "more_body": False}
        assert any("STREAM ERROR" in r.getMessage() for r in caplog.records)

    async def test_head_stream_sends_no_body(self) -> None:
        messages, send = _collector()
        response = FinalResponse(status=200, body=iter(["a"]), kind=BodyKind.STREAM)
        await send_response(response, send, head=True)
        assert len(messages) == 2
        assert messages[1]["body"] == b""
