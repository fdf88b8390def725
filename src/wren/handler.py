"""Handler protocol and the function adapter.

A handler is the terminal unit of a chain: anything with an async
``handle(request, response)`` method. It produces output by writing to
the response, at most once.

Plain functions qualify through ``HandlerFunc``::

    def greet(request: Request, response: Response) -> None:
        response.write("hello")

    handler = HandlerFunc(greet)

``as_handler()`` accepts either form and is what the router calls on
registration, so ``router.add("/", greet)`` just works.
"""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeAlias, runtime_checkable

from wren._internal.invoke import invoke
from wren.errors import ConfigurationError
from wren.http.request import Request
from wren.http.response import Response

# A plain handler function: sync or async, (request, response) -> None
HandlerFunction: TypeAlias = Callable[[Request, Response], Awaitable[None] | None]


@runtime_checkable
class Handler(Protocol):
    """Protocol for anything that can terminate (or continue) a chain."""

    async def handle(self, request: Request, response: Response) -> None: ...


class HandlerFunc:
    """Lift a plain ``(request, response)`` function into a ``Handler``."""

    __slots__ = ("func", "name")

    def __init__(self, func: HandlerFunction, name: str | None = None) -> None:
        self.func = func
        self.name = name or getattr(func, "__qualname__", repr(func))

    def __repr__(self) -> str:
        return f"HandlerFunc({self.name})"

    async def handle(self, request: Request, response: Response) -> None:
        await invoke(self.func, request, response)


def as_handler(obj: Any) -> Handler:
    """Return *obj* as a ``Handler``, wrapping plain callables.

    Raises ``ConfigurationError`` for anything that is neither.
    """
    if isinstance(obj, type):
        msg = f"{obj.__qualname__} is a class; register an instance or a function."
        raise ConfigurationError(msg)
    if isinstance(obj, Handler):
        return obj
    if callable(obj):
        return HandlerFunc(obj)
    msg = (
        f"{obj!r} is not a handler: expected a handle() method "
        "or a (request, response) callable."
    )
    raise ConfigurationError(msg)


def handler_name(handler: Handler) -> str:
    """Human-readable name for logs."""
    name = getattr(handler, "name", None)
    if isinstance(name, str):
        return name
    return type(handler).__qualname__
