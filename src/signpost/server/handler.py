"""ASGI handler — translates ASGI scope/messages to signpost types.

The only component that touches raw ASGI directly. Builds the Request,
runs it through the request router (rewrites, redirects, dispatch),
maps errors to responses, applies the header policy exactly once, and
sends the result.
"""

import inspect
from collections.abc import Callable
from typing import Any

from signpost._internal.asgi import Receive, Scope, Send
from signpost._internal.invoke import invoke
from signpost.errors import HTTPError
from signpost.http.request import Request
from signpost.http.response import Response
from signpost.middleware.protocol import Next
from signpost.policy.router import RequestRouter
from signpost.routing.route import RouteMatch
from signpost.routing.router import Router
from signpost.server.errors import handle_http_error, handle_internal_error
from signpost.server.negotiation import negotiate
from signpost.server.sender import send_response


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    request_router: RequestRouter,
    router: Router,
    middleware: tuple[Callable[..., Any], ...],
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    ctx = request_router.context_for(request)

    # Innermost handler: the compiled route table
    async def dispatch(req: Request) -> Response:
        match = router.match(req.method, req.path)
        return await _invoke_handler(match, req)

    # Wrap middleware around the dispatch
    handler: Next = dispatch
    for mw in reversed(middleware):

        async def make_next(req: Request, _mw: Any = mw, _next: Next = handler) -> Response:
            return await _mw(req, _next)

        handler = make_next

    try:
        response = await request_router.route(request, ctx, handler)
    except HTTPError as exc:
        try:
            response = await handle_http_error(exc, request, error_handlers, debug)
        except Exception as handler_exc:
            # A failing error handler gets the default 500, not another handler
            response = await handle_internal_error(handler_exc, request, {}, debug)
    except Exception as exc:
        response = await handle_internal_error(exc, request, error_handlers, debug)

    response = request_router.finalize(ctx, response)
    await send_response(response, send, head=request.method == "HEAD")


async def _invoke_handler(match: RouteMatch, request: Request) -> Response:
    """Call the matched route handler, converting path params and return value."""
    handler = match.route.handler
    request = request.with_path_params(match.path_params)
    kwargs = _build_handler_kwargs(handler, request, match.path_params)
    result = await invoke(handler, **kwargs)
    return negotiate(result)


def _build_handler_kwargs(
    handler: Callable[..., Any],
    request: Request,
    path_params: dict[str, str],
) -> dict[str, Any]:
    """Inspect handler signature and build kwargs from request + path params.

    ``request`` is passed by name or by ``Request`` annotation; path
    parameters by name, converted to the annotated type when possible.
    """
    sig = inspect.signature(handler, eval_str=True)
    kwargs: dict[str, Any] = {}

    for name, param in sig.parameters.items():
        if name == "request" or param.annotation is Request:
            kwargs[name] = request
        elif name in path_params:
            value = path_params[name]
            if param.annotation is not inspect.Parameter.empty:
                try:
                    kwargs[name] = param.annotation(value)
                except (ValueError, TypeError):
                    kwargs[name] = value
            else:
                kwargs[name] = value

    return kwargs
