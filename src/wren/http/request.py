"""Immutable request value.

Frozen metadata plus a private per-request scratch dict. The request is
honest about what it is: received data that doesn't change while it
travels through the chain.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from wren.http.headers import Headers

_EMPTY: Mapping[str, Any] = MappingProxyType({})


def split_host(value: str) -> str:
    """Lower-case a ``Host`` value and strip any port.

    Handles bracketed IPv6 literals (``[::1]:8000`` -> ``[::1]``).
    """
    value = value.strip().lower()
    if value.startswith("["):
        end = value.find("]")
        return value[: end + 1] if end != -1 else value
    host, _, _ = value.partition(":")
    return host


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable request.

    ``route_key`` is what the router uses to find a handler: the exact path.
    ``metadata`` carries arbitrary caller data and is exposed read-only.
    """

    path: str
    method: str = "GET"
    host: str = ""
    headers: Headers = field(default_factory=Headers)
    query: str = ""
    client: tuple[str, int] | None = None
    metadata: Mapping[str, Any] = _EMPTY

    # Private: scratch space for middleware (e.g. a resolved identity)
    # (dict contents are mutable even though the field reference is frozen)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def route_key(self) -> str:
        """The key the router resolves a handler by."""
        return self.path

    @property
    def url(self) -> str:
        """Path plus query string."""
        if self.query:
            return f"{self.path}?{self.query}"
        return self.path

    # -- Factories --

    @classmethod
    def build(
        cls,
        path: str,
        *,
        method: str = "GET",
        host: str | None = None,
        headers: Mapping[str, str] | None = None,
        query: str = "",
        client: tuple[str, int] | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> Request:
        """Create a request from plain values.

        When *host* is omitted it is taken from the ``Host`` header.
        """
        hdrs = Headers.from_mapping(headers)
        if host is None:
            host = hdrs.get("host", "") or ""
        return cls(
            path=path,
            method=method.upper(),
            host=split_host(host),
            headers=hdrs,
            query=query,
            client=client,
            metadata=MappingProxyType(dict(metadata)) if metadata else _EMPTY,
        )

    @classmethod
    def from_asgi(cls, scope: Mapping[str, Any]) -> Request:
        """Create a request from an ASGI HTTP scope."""
        headers = Headers.from_raw(scope.get("headers", ()))
        host = headers.get("host")
        if host is None:
            server = scope.get("server")
            host = server[0] if server else ""
        client = scope.get("client")
        return cls(
            path=scope["path"],
            method=scope["method"],
            host=split_host(host),
            headers=headers,
            query=scope.get("query_string", b"").decode("latin-1"),
            client=tuple(client) if client else None,
            metadata=MappingProxyType({"http_version": scope.get("http_version", "1.1")}),
        )
