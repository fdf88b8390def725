"""Chain composition.

Folds an ordered middleware sequence around a terminal handler,
right to left, so the first middleware is the outermost layer::

    compose([m1, m2], h)  ==  m1.wrap(m2.wrap(h))

Invoking the chain runs m1 pre, m2 pre, h, m2 post, m1 post: the same
stack discipline as nested function calls.

Every ``next`` handed to ``wrap()`` is a one-shot guard. A chain is
built once and shared by concurrent requests, so the guard keeps its
"already called" state on the per-request ``Response``, not on itself.
"""

from collections.abc import Iterable
from typing import Any

from wren.errors import ConfigurationError, NextAfterWrite, NextCalledTwice
from wren.handler import Handler, as_handler, handler_name
from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.protocol import Middleware, as_middleware, middleware_name


class OnceNext:
    """A ``next`` handler that may be entered at most once per request."""

    __slots__ = ("caller", "inner")

    def __init__(self, inner: Handler, caller: str) -> None:
        self.inner = inner
        self.caller = caller

    def __repr__(self) -> str:
        return f"OnceNext({self.caller} -> {handler_name(self.inner)})"

    async def handle(self, request: Request, response: Response) -> None:
        token = id(self)
        if token in response._guards:
            msg = f"{self.caller} called next more than once for {request.route_key!r}."
            raise NextCalledTwice(msg)
        if response.written:
            msg = (
                f"{self.caller} called next for {request.route_key!r} after the "
                f"response was already written (status {response.status})."
            )
            raise NextAfterWrite(msg)
        response._guards.add(token)
        await self.inner.handle(request, response)


class Chain:
    """The composed handler for one terminal handler and middleware sequence.

    A ``Chain`` is itself a ``Handler``. Composition is pure: building a
    chain runs every ``wrap()`` but never calls a handler.
    """

    __slots__ = ("_entry", "handler", "middleware")

    def __init__(self, middleware: Iterable[Any], handler: Any) -> None:
        self.middleware: tuple[Middleware, ...] = tuple(as_middleware(m) for m in middleware)
        self.handler: Handler = as_handler(handler)

        entry: Handler = self.handler
        for mw in reversed(self.middleware):
            name = middleware_name(mw)
            wrapped = mw.wrap(OnceNext(entry, name))
            if wrapped is None:
                msg = f"{name}.wrap() returned None; it must return a handler."
                raise ConfigurationError(msg)
            entry = as_handler(wrapped)
        self._entry = entry

    def __repr__(self) -> str:
        layers = " -> ".join(middleware_name(m) for m in self.middleware)
        terminal = handler_name(self.handler)
        return f"Chain({layers} -> {terminal})" if layers else f"Chain({terminal})"

    def __len__(self) -> int:
        return len(self.middleware)

    async def handle(self, request: Request, response: Response) -> None:
        await self._entry.handle(request, response)


def compose(middleware: Iterable[Any], handler: Any) -> Chain:
    """Compose *middleware* (outermost first) around *handler*.

    With no middleware the chain calls *handler* directly.
    """
    return Chain(middleware, handler)
