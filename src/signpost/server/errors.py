"""Error handling pipeline for requests.

Maps HTTPError exceptions and unexpected failures to Response objects,
using registered error handlers or plain-text defaults. Every result
still goes through the header policy afterwards.
"""

import inspect
import logging
from collections.abc import Callable
from typing import Any

from signpost._internal.invoke import invoke
from signpost.errors import HTTPError
from signpost.http.request import Request
from signpost.http.response import Response
from signpost.server.negotiation import negotiate

logger = logging.getLogger("signpost.server")


async def call_error_handler(
    handler: Callable[..., Any],
    request: Request,
    exc: Exception,
) -> Response:
    """Invoke a user-registered error handler with introspected arguments.

    Error handlers may accept zero, one (request), or two (request, exc)
    args, and may be sync or async.
    """
    params = list(inspect.signature(handler).parameters.values())
    if len(params) >= 2:
        result = await invoke(handler, request, exc)
    elif len(params) == 1:
        result = await invoke(handler, request)
    else:
        result = await invoke(handler)
    return negotiate(result)


async def handle_http_error(
    exc: HTTPError,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> Response:
    """Map an HTTPError to a Response using registered error handlers."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.url, exc.detail)

    # Try exact exception type, then status code
    handler = error_handlers.get(type(exc)) or error_handlers.get(exc.status)
    if handler is not None:
        response = await call_error_handler(handler, request, exc)
        # Keep the error status unless the handler chose its own
        if response.status == 200:
            response = response.with_status(exc.status)
        return response

    detail = exc.detail or f"Error {exc.status}"
    if debug and exc.detail:
        detail = f"{exc.status}: {exc.detail}"
    if not debug and exc.status == 404:
        detail = "Not Found"

    response = Response(body=detail, status=exc.status, content_type="text/plain; charset=utf-8")
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response


async def handle_internal_error(
    exc: Exception,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> Response:
    """Handle unexpected exceptions as 500 errors."""
    logger.exception("500 %s %s", request.method, request.url)

    handler = error_handlers.get(500) or error_handlers.get(type(exc))
    if handler is not None:
        try:
            response = await call_error_handler(handler, request, exc)
        except Exception:
            logger.exception("error handler failed for %s %s", request.method, request.url)
        else:
            if response.status == 200:
                response = response.with_status(500)
            return response

    body = f"Internal Server Error: {exc!r}" if debug else "Internal Server Error"
    return Response(body=body, status=500, content_type="text/plain; charset=utf-8")
