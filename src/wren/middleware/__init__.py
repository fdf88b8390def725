"""Middleware: Protocol-based, no inheritance required.

A middleware is any object with:
    def wrap(self, next: Handler) -> Handler

or an async function lifted by ``MiddlewareFunc``:
    async def mw(request: Request, response: Response, next: Next) -> None

Built-in middleware:
    AccessLogMiddleware -- One log line per request, failures included
    HostFilterMiddleware -- Reject requests for hosts not on an allow list
    RateLimitMiddleware -- In-memory fixed-window limiter (429)
    TimeoutMiddleware -- Bound inner-chain time (504)
    TimingMiddleware -- Elapsed time to a metrics sink and a log line
"""

from wren.middleware.access_log import AccessLogMiddleware
from wren.middleware.host_filter import HostFilterConfig, HostFilterMiddleware
from wren.middleware.protocol import (
    Middleware,
    MiddlewareFunc,
    Next,
    as_middleware,
    reject,
    reject_with,
    rejected_by,
)
from wren.middleware.rate_limit import RateLimitConfig, RateLimitMiddleware
from wren.middleware.timeout import TimeoutConfig, TimeoutMiddleware
from wren.middleware.timing import TimingConfig, TimingMiddleware

__all__ = [
    "AccessLogMiddleware",
    "HostFilterConfig",
    "HostFilterMiddleware",
    "Middleware",
    "MiddlewareFunc",
    "Next",
    "RateLimitConfig",
    "RateLimitMiddleware",
    "TimeoutConfig",
    "TimeoutMiddleware",
    "TimingConfig",
    "TimingMiddleware",
    "as_middleware",
    "reject",
    "reject_with",
    "rejected_by",
]
