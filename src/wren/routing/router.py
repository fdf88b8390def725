"""Exact-key router with a uniform middleware chain.

Routes and middleware are registered during setup. The first dispatch
freezes the router: the middleware list becomes an immutable tuple and
further registration raises. Composed chains are then memoized per
route key, which is only sound because the middleware list can no
longer change.
"""

import logging
import threading
from collections.abc import Callable
from typing import Any

from wren.chain import Chain, compose
from wren.config import RouterConfig
from wren.errors import ConfigurationError, RouteNotFound
from wren.handler import as_handler, handler_name
from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.protocol import Middleware, as_middleware, middleware_name
from wren.routing.route import Route
from wren.server.errors import ErrorHandler, ErrorHandlers
from wren.server.handler import handle_request

logger = logging.getLogger("wren.routing")


class _NotFoundHandler:
    """Terminal handler for unknown route keys."""

    __slots__ = ("detail",)

    name = "not_found"

    def __init__(self, detail: str) -> None:
        self.detail = detail

    async def handle(self, request: Request, response: Response) -> None:
        raise RouteNotFound(self.detail)


class Router:
    """Registry of routes and globally applied middleware, with dispatch.

    Usage::

        router = Router()
        router.use(TimingMiddleware(metrics))
        router.use(HostFilterMiddleware("example.com"))

        @router.route("/")
        def greet(request, response):
            response.write("hello")

        response = await router.dispatch(Request.build("/", host="example.com"))

    Middleware order is registration order: the first ``use()`` is the
    outermost layer, sees the raw request first and finishes last.

    Registering a route key that already exists replaces its handler
    (last registration wins).

    Unknown route keys still run through every middleware. The terminal
    handler for them raises ``RouteNotFound``, so middleware observes the
    failure as an exception out of ``next`` and the boundary writes 404.

    Thread safety:
        Setup is single-threaded. The freeze transition uses a Lock +
        double-check so exactly one task compiles the router even when
        the first requests arrive concurrently.
    """

    __slots__ = (
        "_chains",
        "_error_handlers",
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_middleware_list",
        "_not_found",
        "_routes",
        "config",
    )

    def __init__(self, config: RouterConfig | None = None) -> None:
        self.config: RouterConfig = config or RouterConfig()
        self._middleware_list: list[Middleware] = []
        self._routes: dict[str, Route] = {}
        self._error_handlers: ErrorHandlers = {}
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state: set during freeze()
        self._middleware: tuple[Middleware, ...] = ()
        self._chains: dict[str, Chain] = {}
        self._not_found: Chain | None = None

    def __repr__(self) -> str:
        return f"Router(routes={len(self._routes)}, middleware={len(self._middleware_list)})"

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, key: object) -> bool:
        return key in self._routes

    # -- Middleware --

    def use(self, *middleware: Any) -> None:
        """Append middleware to the chain, in order.

        Accepts objects with a ``wrap()`` method or async
        ``(request, response, next)`` functions.
        """
        self._check_not_frozen()
        for mw in middleware:
            adapted = as_middleware(mw)
            self._middleware_list.append(adapted)
            logger.debug("Added middleware %s", middleware_name(adapted))

    @property
    def middleware(self) -> tuple[Middleware, ...]:
        """The registered middleware, outermost first."""
        return tuple(self._middleware_list)

    # -- Route registration --

    def add(self, key: str, handler: Any, *, name: str | None = None) -> Route:
        """Register *handler* for *key*, replacing any existing handler."""
        self._check_not_frozen()
        if not isinstance(key, str) or not key:
            msg = f"Route key must be a non-empty string, got {key!r}."
            raise ConfigurationError(msg)

        route = Route(key=key, handler=as_handler(handler), name=name)
        previous = self._routes.get(key)
        if previous is not None:
            logger.debug(
                "Route %r re-registered: %s replaces %s",
                key,
                handler_name(route.handler),
                handler_name(previous.handler),
            )
        self._routes[key] = route
        return route

    def route(self, key: str, *, name: str | None = None) -> Callable[[Any], Any]:
        """Register a route handler via decorator.

        Returns the decorated function unchanged.
        """

        def decorator(func: Any) -> Any:
            self.add(key, func, name=name or getattr(func, "__name__", None))
            return func

        return decorator

    @property
    def routes(self) -> tuple[Route, ...]:
        """All registered routes, in first-registration order."""
        return tuple(self._routes.values())

    # -- Error handlers --

    def error(self, code_or_exception: int | type) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler for a status code or exception type.

        The handler is called as ``handler(request, response, exc)`` and
        should write the response.
        """

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- Compilation --

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Freeze the router. No more routes or middleware can be added.

        Safe to call repeatedly; dispatch calls it on first use.
        """
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._middleware = tuple(self._middleware_list)
            self._not_found = compose(
                self._middleware,
                _NotFoundHandler(self.config.not_found_detail),
            )
            self._frozen = True
        logger.debug(
            "Router frozen with %d routes and %d middleware",
            len(self._routes),
            len(self._middleware),
        )

    def chain_for(self, key: str) -> Chain:
        """Return the composed chain for *key*, building it if needed.

        Unknown keys get the shared not-found chain.
        """
        self.freeze()
        route = self._routes.get(key)
        if route is None:
            assert self._not_found is not None
            return self._not_found

        if not self.config.memoize_chains:
            return compose(self._middleware, route.handler)

        chain = self._chains.get(key)
        if chain is None:
            # Composition is pure, so a racing duplicate build is harmless.
            chain = compose(self._middleware, route.handler)
            self._chains[key] = chain
        return chain

    # -- Dispatch --

    async def dispatch(self, request: Request) -> Response:
        """Run *request* through the chain for its route key.

        Always returns a written response; request-scoped failures are
        recovered into it.
        """
        chain = self.chain_for(request.route_key)
        return await handle_request(
            chain,
            request,
            config=self.config,
            error_handlers=self._error_handlers,
        )

    # -- Internal --

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the router after it has started dispatching requests. "
                "Register routes and middleware before the first dispatch."
            )
            raise RuntimeError(msg)
