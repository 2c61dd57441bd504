"""ASGI handler: translates ASGI scope/messages to cyro types.

The only component that touches raw HTTP ASGI messages directly. Builds
a typed Request from the scope, hands it to the dispatcher, and writes
the FinalResponse back through ASGI ``send()``.
"""

from cyro._internal.asgi import Receive, Scope, Send
from cyro.http.request import Request
from cyro.server.dispatcher import Dispatcher
from cyro.server.sender import send_response


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    dispatcher: Dispatcher,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    response = await dispatcher.dispatch(request)
    await send_response(response, send, head=request.method.upper() == "HEAD")


async def reject_websocket(scope: Scope, receive: Receive, send: Send) -> None:
    """Close a WebSocket handshake without accepting it.

    Waits for ``websocket.connect`` and answers with a normal-closure
    ``websocket.close``.
    """
    message = await receive()
    if message.get("type") == "websocket.connect":
        await send({"type": "websocket.close", "code": 1000})
