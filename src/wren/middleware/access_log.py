"""Access log middleware: one line per request, failures included.

Unlike ``TimingMiddleware`` this also logs requests whose inner chain
raised; the exception is re-raised untouched for the boundary to handle.
A failing log sink is logged on ``wren.middleware`` and never replaces
the request's own outcome.
"""

import logging

from wren.handler import Handler
from wren.http.request import Request
from wren.http.response import Response
from wren.sinks import LoggerSink, LogSink

logger = logging.getLogger("wren.middleware")


class AccessLogMiddleware:
    __slots__ = ("log",)

    def __init__(self, log: LogSink | None = None) -> None:
        self.log = log or LoggerSink()

    def wrap(self, next: Handler) -> Handler:
        return _AccessLogLayer(self.log, next)


class _AccessLogLayer:
    __slots__ = ("log", "next")

    def __init__(self, log: LogSink, next: Handler) -> None:
        self.log = log
        self.next = next

    def _emit(self, text: str) -> None:
        try:
            self.log.line(text)
        except Exception:
            logger.exception("Access log sink failed for %r", text)

    async def handle(self, request: Request, response: Response) -> None:
        target = f"{request.method} {request.host}{request.url}"
        try:
            await self.next.handle(request, response)
        except Exception as exc:
            self._emit(f"{target} raised {type(exc).__name__}")
            raise
        self._emit(f"{target} {response.status}")
