"""Host filter middleware: reject requests for hosts not on an allow list."""

import logging
from dataclasses import dataclass

from wren.errors import ConfigurationError
from wren.handler import Handler
from wren.http.request import Request, split_host
from wren.http.response import Response
from wren.middleware.protocol import reject

logger = logging.getLogger("wren.middleware")


@dataclass(frozen=True, slots=True)
class HostFilterConfig:
    """What a rejected request gets back."""

    status: int = 403
    body: str = "Forbidden"


class HostFilterMiddleware:
    """Pass requests whose host is allowed; short-circuit the rest.

    Hosts compare case-insensitively with any port stripped. A mismatch
    writes the configured status (403 by default) and never calls ``next``.

    Usage::

        router.use(HostFilterMiddleware("example.com", "www.example.com"))
    """

    __slots__ = ("allowed", "config", "name")

    def __init__(
        self,
        allowed_host: str,
        *more_hosts: str,
        config: HostFilterConfig | None = None,
    ) -> None:
        hosts = frozenset(split_host(h) for h in (allowed_host, *more_hosts))
        if "" in hosts:
            msg = "HostFilterMiddleware needs non-empty host names."
            raise ConfigurationError(msg)
        self.allowed = hosts
        self.config = config or HostFilterConfig()
        self.name = "HostFilterMiddleware"

    def allows(self, host: str) -> bool:
        return split_host(host) in self.allowed

    def wrap(self, next: Handler) -> Handler:
        return _HostFilterLayer(self, next)


class _HostFilterLayer:
    __slots__ = ("next", "owner")

    def __init__(self, owner: HostFilterMiddleware, next: Handler) -> None:
        self.owner = owner
        self.next = next

    async def handle(self, request: Request, response: Response) -> None:
        owner = self.owner
        if not owner.allows(request.host):
            logger.debug("Rejected host %r for %s", request.host, request.path)
            reject(request, response, owner.config.status, owner.config.body, by=owner.name)
            return
        await self.next.handle(request, response)
