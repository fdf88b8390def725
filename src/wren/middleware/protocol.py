"""Middleware protocol, the Next type alias, and the function adapter.

A middleware is anything with a ``wrap(next)`` method that returns a new
handler. ``wrap`` only builds; it never calls ``next``. The returned
handler decides at request time whether to call ``next`` (at most once)
or to short-circuit by writing the response itself.

Class middleware holds ``next`` and its settings explicitly::

    class HeaderStamp:
        def __init__(self, value: str) -> None:
            self.value = value

        def wrap(self, next: Handler) -> Handler:
            return _HeaderStampLayer(next, self.value)

Function middleware is lifted with ``MiddlewareFunc``. The function
receives ``next`` as an awaitable callable::

    async def timing(request: Request, response: Response, next: Next) -> None:
        start = time.monotonic()
        await next(request, response)
        response.set_header("X-Time", f"{time.monotonic() - start:.3f}")

    router.use(timing)
"""

import inspect
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeAlias, runtime_checkable

from wren.errors import ConfigurationError, HTTPError
from wren.handler import Handler
from wren.http.request import Request
from wren.http.response import Response

# The next handler in the chain, as seen by function middleware
Next: TypeAlias = Callable[[Request, Response], Awaitable[None]]

# A plain middleware function: async (request, response, next) -> None
MiddlewareFunction: TypeAlias = Callable[[Request, Response, Next], Awaitable[None]]


@runtime_checkable
class Middleware(Protocol):
    """Protocol for wren middleware."""

    def wrap(self, next: Handler) -> Handler: ...


class _FunctionLayer:
    """The handler a ``MiddlewareFunc`` produces for one ``next``."""

    __slots__ = ("func", "name", "next")

    def __init__(self, func: MiddlewareFunction, next: Handler, name: str) -> None:
        self.func = func
        self.next = next
        self.name = name

    async def handle(self, request: Request, response: Response) -> None:
        await self.func(request, response, self.next.handle)


class MiddlewareFunc:
    """Lift an ``async (request, response, next)`` function into a ``Middleware``."""

    __slots__ = ("func", "name")

    def __init__(self, func: MiddlewareFunction, name: str | None = None) -> None:
        if not inspect.iscoroutinefunction(func):
            msg = (
                f"Middleware function {func!r} must be declared with 'async def' "
                "so it can await next(request, response)."
            )
            raise ConfigurationError(msg)
        self.func = func
        self.name = name or getattr(func, "__qualname__", repr(func))

    def __repr__(self) -> str:
        return f"MiddlewareFunc({self.name})"

    def wrap(self, next: Handler) -> Handler:
        return _FunctionLayer(self.func, next, self.name)


def as_middleware(obj: Any) -> Middleware:
    """Return *obj* as a ``Middleware``, wrapping async functions.

    Raises ``ConfigurationError`` for anything that is neither.
    """
    if isinstance(obj, type):
        msg = f"{obj.__qualname__} is a class; pass an instance to use()."
        raise ConfigurationError(msg)
    if isinstance(obj, Middleware):
        return obj
    if callable(obj):
        return MiddlewareFunc(obj)
    msg = (
        f"{obj!r} is not a middleware: expected a wrap() method "
        "or an async (request, response, next) function."
    )
    raise ConfigurationError(msg)


_REJECTED_BY = "wren.rejected_by"


def reject(
    request: Request,
    response: Response,
    status: int,
    body: str = "",
    *,
    by: str,
) -> None:
    """Short-circuit: write the terminal response and mark the request rejected.

    Call this instead of ``next``. Outer middleware can tell a rejection
    from a handled request with ``rejected_by()``.
    """
    response.write(body, status=status)
    request._cache[_REJECTED_BY] = by


def reject_with(request: Request, response: Response, error: HTTPError, *, by: str) -> None:
    """Short-circuit with *error*'s status, detail and headers."""
    for name, value in error.headers:
        response.set_header(name, value)
    reject(request, response, error.status, error.detail, by=by)


def rejected_by(request: Request) -> str | None:
    """Name of the middleware that rejected *request*, if any."""
    return request._cache.get(_REJECTED_BY)


def middleware_name(middleware: Middleware) -> str:
    """Human-readable name for logs."""
    name = getattr(middleware, "name", None)
    if isinstance(name, str):
        return name
    return type(middleware).__qualname__
