"""Error handling pipeline for wren requests.

Maps HTTPError exceptions and unexpected failures onto the request's
response, using registered error handlers or sensible defaults.

Error handlers have the same shape as handlers plus the exception::

    @router.error(404)
    def not_found(request, response, exc):
        response.write(f"nothing at {request.path}", status=404)
"""

import logging
from collections.abc import Callable
from typing import Any, TypeAlias

from wren._internal.invoke import invoke
from wren.config import RouterConfig
from wren.errors import HTTPError
from wren.http.request import Request
from wren.http.response import Response

logger = logging.getLogger("wren.server")

# Error handler: (request, response, exc), sync or async
ErrorHandler: TypeAlias = Callable[..., Any]
ErrorHandlers: TypeAlias = dict[int | type, ErrorHandler]


def _lookup(
    error_handlers: ErrorHandlers,
    exc: Exception,
    status: int,
) -> ErrorHandler | None:
    """Find a handler: exact exception type, then status, then base classes."""
    handler = error_handlers.get(type(exc)) or error_handlers.get(status)
    if handler is not None:
        return handler
    for klass in type(exc).__mro__[1:]:
        handler = error_handlers.get(klass)
        if handler is not None:
            return handler
    return None


async def _call_error_handler(
    handler: ErrorHandler,
    request: Request,
    response: Response,
    exc: Exception,
) -> bool:
    """Run a registered error handler. Returns False if it failed itself."""
    try:
        await invoke(handler, request, response, exc)
    except Exception:
        logger.exception("Error handler %r failed for %s %s", handler, request.method, request.path)
        return False
    return True


async def handle_http_error(
    exc: HTTPError,
    request: Request,
    response: Response,
    error_handlers: ErrorHandlers,
    config: RouterConfig,
) -> None:
    """Write the response for an HTTPError raised inside the chain."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)

    if response.written:
        # An inner layer already answered; the written response stands.
        return

    for name, value in exc.headers:
        response.set_header(name, value)

    handler = _lookup(error_handlers, exc, exc.status)
    if handler is not None and await _call_error_handler(handler, request, response, exc):
        if response.written:
            return

    detail = exc.detail or f"Error {exc.status}"
    if config.debug and exc.detail:
        detail = f"{exc.status}: {exc.detail}"
    response.write(detail, status=exc.status)


async def handle_internal_error(
    exc: Exception,
    request: Request,
    response: Response,
    error_handlers: ErrorHandlers,
    config: RouterConfig,
) -> None:
    """Handle unexpected exceptions as 500 errors."""
    logger.exception("500 %s %s", request.method, request.path)

    if response.written:
        return

    handler = _lookup(error_handlers, exc, 500)
    if handler is not None and await _call_error_handler(handler, request, response, exc):
        if response.written:
            return

    body = config.server_error_detail
    if config.debug:
        body = f"{body}\n\n{type(exc).__name__}: {exc}"
    response.write(body, status=500)
