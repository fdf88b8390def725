"""Timing middleware: elapsed time to a metrics sink and a log line.

Register it first so its measurement covers every inner middleware::

    router.use(TimingMiddleware(metrics, LoggerSink()))
    router.use(HostFilterMiddleware("example.com"))

Post-processing only runs when ``next`` returns normally. A request that
fails with an exception is not timed; the boundary logs it instead.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from wren.handler import Handler
from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.protocol import rejected_by
from wren.sinks import LogSink, MetricsSink

logger = logging.getLogger("wren.middleware")


@dataclass(frozen=True, slots=True)
class TimingConfig:
    """Timing middleware configuration."""

    # Response header carrying the elapsed time; None disables it
    header: str | None = "X-Response-Time"
    # Report requests that a middleware rejected (403, 429, ...)
    report_rejected: bool = False


class TimingMiddleware:
    """Measure each request and report ``(route_key, seconds)``.

    Reporting is fire-and-forget: a failing metrics sink is logged and
    never fails the request.
    """

    __slots__ = ("clock", "config", "log", "metrics")

    def __init__(
        self,
        metrics: MetricsSink,
        log: LogSink | None = None,
        config: TimingConfig | None = None,
        *,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.metrics = metrics
        self.log = log
        self.config = config or TimingConfig()
        self.clock = clock

    def wrap(self, next: Handler) -> Handler:
        return _TimingLayer(self, next)

    def record(self, request: Request, response: Response, elapsed: float) -> None:
        """Post-processing for one completed request."""
        cfg = self.config
        if cfg.header:
            response.set_header(cfg.header, f"{elapsed * 1000:.3f}ms")

        rejector = rejected_by(request)
        if rejector is None or cfg.report_rejected:
            try:
                self.metrics.report(request.route_key, elapsed)
            except Exception:
                logger.exception("Metrics report failed for %r", request.route_key)

        if self.log is not None:
            line = (
                f"{request.method} {request.host}{request.path} "
                f"{response.status} {elapsed * 1000:.3f}ms"
            )
            if rejector is not None:
                line = f"{line} (rejected by {rejector})"
            try:
                self.log.line(line)
            except Exception:
                logger.exception("Log sink failed for %r", request.route_key)


class _TimingLayer:
    __slots__ = ("next", "owner")

    def __init__(self, owner: TimingMiddleware, next: Handler) -> None:
        self.owner = owner
        self.next = next

    async def handle(self, request: Request, response: Response) -> None:
        start = self.owner.clock()
        await self.next.handle(request, response)
        self.owner.record(request, response, self.owner.clock() - start)
