"""Wren: a composable request-processing pipeline.

Attach cross-cutting behavior (timing, host filtering, rate limiting,
logging, timeouts) to terminal handlers without touching handler code.

Basic usage::

    from wren import Request, Router
    from wren.middleware import HostFilterMiddleware, TimingMiddleware
    from wren.sinks import LoggingMetricsSink

    router = Router()
    router.use(TimingMiddleware(LoggingMetricsSink()))
    router.use(HostFilterMiddleware("example.com"))

    @router.route("/")
    def greet(request, response):
        response.write("hello")

    response = await router.dispatch(Request.build("/", host="example.com"))

Serve it from any ASGI server::

    from wren.server.asgi import ASGIAdapter
    app = ASGIAdapter(router)
"""

from importlib import import_module

__version__ = "0.1.0"
__all__ = [
    "ASGIAdapter",
    "Chain",
    "ConfigurationError",
    "DoubleWriteError",
    "Forbidden",
    "HTTPError",
    "Handler",
    "HandlerFailure",
    "HandlerFunc",
    "Middleware",
    "MiddlewareFunc",
    "MisuseError",
    "Next",
    "NextAfterWrite",
    "NextCalledTwice",
    "Request",
    "Response",
    "RouteNotFound",
    "Router",
    "RouterConfig",
    "WrenError",
    "compose",
]

# name -> defining module
_LAZY_IMPORTS: dict[str, str] = {
    "ASGIAdapter": "wren.server.asgi",
    "Chain": "wren.chain",
    "ConfigurationError": "wren.errors",
    "DoubleWriteError": "wren.errors",
    "Forbidden": "wren.errors",
    "HTTPError": "wren.errors",
    "Handler": "wren.handler",
    "HandlerFailure": "wren.errors",
    "HandlerFunc": "wren.handler",
    "Middleware": "wren.middleware.protocol",
    "MiddlewareFunc": "wren.middleware.protocol",
    "MisuseError": "wren.errors",
    "Next": "wren.middleware.protocol",
    "NextAfterWrite": "wren.errors",
    "NextCalledTwice": "wren.errors",
    "Request": "wren.http.request",
    "Response": "wren.http.response",
    "RouteNotFound": "wren.errors",
    "Router": "wren.routing.router",
    "RouterConfig": "wren.config",
    "WrenError": "wren.errors",
    "compose": "wren.chain",
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import wren`` fast while providing a clean top-level API.
    """
    module_name = _LAZY_IMPORTS.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    return getattr(import_module(module_name), name)
