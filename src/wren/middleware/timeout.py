"""Timeout middleware: bound the time spent in the inner chain.

The inner chain runs under an anyio cancel scope. If the budget runs out
before anything was written, the request is answered with 504. A
response the inner chain already wrote is left alone.
"""

import logging
from dataclasses import dataclass

import anyio

from wren.errors import ConfigurationError, GatewayTimeout
from wren.handler import Handler
from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.protocol import reject_with

logger = logging.getLogger("wren.middleware")


@dataclass(frozen=True, slots=True)
class TimeoutConfig:
    seconds: float = 30.0
    # Body of the 504 written when the budget runs out
    detail: str = "Gateway Timeout"


class TimeoutMiddleware:
    """Cancel the inner chain after ``config.seconds``."""

    __slots__ = ("config", "name")

    def __init__(self, config: TimeoutConfig | None = None) -> None:
        self.config = config or TimeoutConfig()
        if self.config.seconds <= 0:
            msg = f"Timeout must be positive, got {self.config.seconds!r}."
            raise ConfigurationError(msg)
        self.name = "TimeoutMiddleware"

    def wrap(self, next: Handler) -> Handler:
        return _TimeoutLayer(self, next)


class _TimeoutLayer:
    __slots__ = ("next", "owner")

    def __init__(self, owner: TimeoutMiddleware, next: Handler) -> None:
        self.owner = owner
        self.next = next

    async def handle(self, request: Request, response: Response) -> None:
        cfg = self.owner.config
        with anyio.move_on_after(cfg.seconds) as scope:
            await self.next.handle(request, response)

        if not scope.cancelled_caught:
            return
        if response.written:
            logger.warning(
                "%s %s exceeded %.3fs after writing status %s",
                request.method,
                request.path,
                cfg.seconds,
                response.status,
            )
            return
        logger.warning("%s %s timed out after %.3fs", request.method, request.path, cfg.seconds)
        reject_with(request, response, GatewayTimeout(cfg.detail), by=self.owner.name)
