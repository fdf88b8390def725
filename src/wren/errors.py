"""Wren exception hierarchy.

Shared across Router, chain, handlers, and middleware so every module
raises and catches the same types.

Two families matter at the chain boundary:

- ``HTTPError`` and its subclasses are request-scoped. The boundary turns
  them into a response with the error's status.
- ``MisuseError`` and its subclasses are programming errors (writing a
  response twice, calling ``next`` twice). They fail loud in debug mode.
"""

from dataclasses import dataclass


class WrenError(Exception):
    """Base for all wren-specific errors."""


class ConfigurationError(WrenError):
    """Raised when router setup is invalid.

    Typically raised by ``Router.add()`` / ``Router.use()`` at startup.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(WrenError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, middleware, or handlers. The chain boundary
    catches these and writes the matching response.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class RouteNotFound(HTTPError):  # noqa: N818
    """404: no handler is registered for the request's route key."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class Forbidden(HTTPError):  # noqa: N818
    """403: a middleware refused the request."""

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(status=403, detail=detail)


class TooManyRequests(HTTPError):  # noqa: N818
    """429: rate limit exceeded. Carries a ``Retry-After`` header."""

    def __init__(self, retry_after: int, detail: str = "Too Many Requests") -> None:
        super().__init__(
            status=429,
            detail=detail,
            headers=(("Retry-After", str(retry_after)),),
        )


class GatewayTimeout(HTTPError):  # noqa: N818
    """504: the inner chain did not finish within its time budget."""

    def __init__(self, detail: str = "Gateway Timeout") -> None:
        super().__init__(status=504, detail=detail)


class HandlerFailure(HTTPError):
    """500: the terminal handler could not complete its work.

    Handlers raise this when they want a clean server-error response
    with a specific detail instead of a logged traceback.
    """

    def __init__(self, detail: str = "Internal Server Error") -> None:
        super().__init__(status=500, detail=detail)


class MisuseError(WrenError):
    """A handler or middleware broke the pipeline contract.

    Not a request-level failure: re-raised by the boundary in debug mode.
    """


class DoubleWriteError(MisuseError):
    """The response was written more than once."""


class NextCalledTwice(MisuseError):  # noqa: N818
    """A middleware invoked ``next`` more than once for one request."""


class NextAfterWrite(MisuseError):  # noqa: N818
    """A middleware wrote the response and then invoked ``next`` anyway."""
