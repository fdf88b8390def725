"""Write-once response sink.

Handlers and middleware produce output by writing to the response they
are handed, not by returning a value. Status and body are written
together, exactly once. Headers may be added at any point, so
post-processing middleware can annotate a response that an inner
handler already wrote.
"""

from __future__ import annotations

import logging

from wren.errors import DoubleWriteError

logger = logging.getLogger("wren.server")


class Response:
    """A write-once status/body sink.

    ``strict`` selects what a second ``write()`` does: raise
    ``DoubleWriteError`` (development) or keep the first write and log
    a warning (production). The router passes ``config.debug``.
    """

    __slots__ = ("_body", "_guards", "_headers", "_status", "content_type", "strict")

    def __init__(
        self,
        *,
        strict: bool = True,
        content_type: str = "text/plain; charset=utf-8",
    ) -> None:
        self.strict = strict
        self.content_type = content_type
        self._status: int | None = None
        self._body: str | bytes = ""
        self._headers: list[tuple[str, str]] = []
        # ids of one-shot ``next`` guards already passed for this request
        self._guards: set[int] = set()

    def __repr__(self) -> str:
        return f"Response(status={self._status!r}, body={self._body!r})"

    # -- Writing --

    def write(self, body: str | bytes = "", status: int = 200) -> None:
        """Set status and body. May only be called once."""
        if self._status is not None:
            if self.strict:
                msg = (
                    f"Response already written with status {self._status}; "
                    f"refusing second write with status {status}."
                )
                raise DoubleWriteError(msg)
            logger.warning(
                "Ignoring second response write (status %d); keeping first (status %d)",
                status,
                self._status,
            )
            return
        self._status = status
        self._body = body

    def set_header(self, name: str, value: str) -> None:
        """Append a header. Allowed before and after ``write()``."""
        self._headers.append((name, value))

    def set_content_type(self, content_type: str) -> None:
        self.content_type = content_type

    # -- Reading --

    @property
    def written(self) -> bool:
        """True once ``write()`` has succeeded."""
        return self._status is not None

    @property
    def status(self) -> int | None:
        """The written status, or ``None`` before the first write."""
        return self._status

    @property
    def body(self) -> str | bytes:
        return self._body

    @property
    def headers(self) -> tuple[tuple[str, str], ...]:
        return tuple(self._headers)

    def header(self, name: str, default: str | None = None) -> str | None:
        """Return the first value of header *name* (case-insensitive)."""
        name_lower = name.lower()
        for key, value in self._headers:
            if key.lower() == name_lower:
                return value
        return default

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self._body, str):
            return self._body.encode("utf-8")
        return self._body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self._body, bytes):
            return self._body.decode("utf-8")
        return self._body
