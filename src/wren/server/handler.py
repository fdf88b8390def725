"""The chain boundary: run one request through a composed chain.

Owns the per-request ``Response`` and recovers every request-scoped
failure into it, so a failure never escapes into the caller or into
another request. Pipeline misuse is the exception: in debug mode it is
re-raised so broken middleware fails loud during development.
"""

import logging

from wren.config import RouterConfig
from wren.errors import HTTPError, MisuseError
from wren.handler import Handler
from wren.http.request import Request
from wren.http.response import Response
from wren.server.errors import ErrorHandlers, handle_http_error, handle_internal_error

logger = logging.getLogger("wren.server")


async def handle_request(
    chain: Handler,
    request: Request,
    *,
    config: RouterConfig,
    error_handlers: ErrorHandlers | None = None,
) -> Response:
    """Process a single request through *chain* and return its response."""
    handlers = error_handlers or {}
    response = Response(strict=config.debug, content_type=config.default_content_type)

    try:
        await chain.handle(request, response)
    except HTTPError as exc:
        await handle_http_error(exc, request, response, handlers, config)
    except MisuseError:
        if config.debug:
            raise
        logger.exception("Pipeline misuse on %s %s", request.method, request.path)
        if not response.written:
            response.write(config.server_error_detail, status=500)
    except Exception as exc:
        await handle_internal_error(exc, request, response, handlers, config)

    if not response.written:
        logger.error("No response written for %s %s", request.method, request.path)
        response.write(config.server_error_detail, status=500)

    return response
