"""Rate limiting middleware.

A small in-memory fixed-window limiter keyed by client identity. One
process only; workers do not share counts.

Identity is the transport address unless ``key_header`` names a header
set by a proxy you trust. Tracked windows are swept once they expire and
capped at ``max_identities``, so a stream of distinct clients cannot
grow the table without bound.
"""

import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from wren.errors import ConfigurationError, TooManyRequests
from wren.handler import Handler
from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.protocol import reject_with


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    """Configuration for rate limiting.

    ``paths`` limits only matching route keys (exact or prefix + ``/``);
    empty means every request counts.
    """

    requests: int = 60
    window_seconds: int = 60
    block_seconds: int = 60
    paths: tuple[str, ...] = ()
    # e.g. "x-forwarded-for" behind a trusted proxy; first hop wins
    key_header: str | None = None
    max_identities: int = 10_000


class _Window:
    __slots__ = ("blocked_until", "hits", "started")

    def __init__(self, started: float) -> None:
        self.started = started
        self.hits = 0
        self.blocked_until = 0.0

    def expired(self, now: float, length: int) -> bool:
        return now - self.started >= length and self.blocked_until <= now


class RateLimitMiddleware:
    """In-memory per-identity limiter. Over the limit writes 429 + Retry-After."""

    __slots__ = ("_lock", "_next_sweep", "_windows", "clock", "config", "name")

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        config = config or RateLimitConfig()
        if config.max_identities < 1:
            msg = f"max_identities must be at least 1, got {config.max_identities!r}."
            raise ConfigurationError(msg)
        self.config = config
        self.clock = clock
        self.name = "RateLimitMiddleware"
        self._lock = threading.Lock()
        self._windows: dict[str, _Window] = {}
        self._next_sweep = 0.0

    def wrap(self, next: Handler) -> Handler:
        return _RateLimitLayer(self, next)

    @property
    def tracked(self) -> int:
        """Number of identities currently holding a window."""
        return len(self._windows)

    def applies_to(self, key: str) -> bool:
        if not self.config.paths:
            return True
        return any(
            key == prefix or key.startswith(f"{prefix.rstrip('/')}/")
            for prefix in self.config.paths
        )

    def client_key(self, request: Request) -> str:
        if self.config.key_header:
            hops = request.headers.get(self.config.key_header) or ""
            first_hop = hops.partition(",")[0].strip()
            if first_hop:
                return first_hop
        return request.client[0] if request.client else "unknown"

    def hit(self, key: str) -> int:
        """Count one request for *key*.

        Returns 0 when the request may proceed, otherwise the number of
        seconds the client should wait.
        """
        cfg = self.config
        now = self.clock()
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)

            window = self._windows.get(key)
            if window is None or window.expired(now, cfg.window_seconds):
                self._windows.pop(key, None)
                if len(self._windows) >= cfg.max_identities:
                    # Oldest first: dicts keep insertion order
                    del self._windows[next(iter(self._windows))]
                window = self._windows[key] = _Window(now)

            if window.blocked_until > now:
                return max(1, math.ceil(window.blocked_until - now))

            window.hits += 1
            if window.hits > cfg.requests:
                window.blocked_until = now + cfg.block_seconds
                return max(1, cfg.block_seconds)
            return 0

    def _sweep(self, now: float) -> None:
        length = self.config.window_seconds
        stale = [key for key, window in self._windows.items() if window.expired(now, length)]
        for key in stale:
            del self._windows[key]
        self._next_sweep = now + length


class _RateLimitLayer:
    __slots__ = ("next", "owner")

    def __init__(self, owner: RateLimitMiddleware, next: Handler) -> None:
        self.owner = owner
        self.next = next

    async def handle(self, request: Request, response: Response) -> None:
        owner = self.owner
        if owner.applies_to(request.route_key):
            retry_after = owner.hit(owner.client_key(request))
            if retry_after:
                reject_with(request, response, TooManyRequests(retry_after), by=owner.name)
                return
        await self.next.handle(request, response)
