"""ASGI adapter: serve a Router from any ASGI server.

The only component that touches raw ASGI. Converts the HTTP scope into
a ``Request``, dispatches it through the router, and sends the written
``Response`` back through ``send()``. Accepting connections and parsing
bytes stay with the server (uvicorn, pounce, hypercorn, ...)::

    app = ASGIAdapter(router)
    # uvicorn myservice:app
"""

import logging

from wren._internal.asgi import Receive, Scope, Send
from wren.http.request import Request
from wren.http.response import Response
from wren.routing.router import Router

logger = logging.getLogger("wren.server")


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


async def send_response(response: Response, send: Send) -> None:
    """Translate a written Response into ASGI send() calls."""
    status = response.status if response.status is not None else 500

    raw_headers: list[tuple[bytes, bytes]] = [
        (b"content-type", response.content_type.encode("latin-1")),
    ]
    for name, value in response.headers:
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))

    body = response.body_bytes if _body_allowed(status) else b""
    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": body,
        }
    )


class ASGIAdapter:
    """ASGI 3 application wrapping a ``Router``.

    Freezes the router at lifespan startup (or on the first request when
    the server does not speak lifespan).
    """

    __slots__ = ("router",)

    def __init__(self, router: Router) -> None:
        self.router = router

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            return

        request = Request.from_asgi(scope)
        response = await self.router.dispatch(request)
        await send_response(response, send)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self.router.freeze()
                except Exception as exc:
                    logger.exception("Router failed to freeze at startup")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return
