"""``signpost resolve`` — show how a request path would be routed.

Runs the path through the app's request router without invoking any
handler: rewrites, redirects, route lookup, the fallback phase and the
header policy all run as they would for a live request, and every step
is printed.
"""

import argparse
import sys
from typing import Any

import anyio

from signpost.app import App
from signpost.cli._resolve import app_from_args
from signpost.errors import HTTPError
from signpost.http.request import Request
from signpost.http.response import Response
from signpost.policy.context import RequestContext


def run_resolve(args: argparse.Namespace) -> None:
    """Print the routing trace, final status, and response headers."""
    app = app_from_args(args)
    headers = _parse_headers(args.header)

    ctx, response = anyio.run(trace_request, app, args.method.upper(), args.path, headers)

    print(f"{args.method.upper()} {args.path}")
    for step in ctx.trace:
        print(f"  {step}")
    print(f"status: {response.status}")
    for name, value in response.headers:
        print(f"{name}: {value}")


async def trace_request(
    app: App,
    method: str,
    path: str,
    headers: dict[str, str] | None = None,
) -> tuple[RequestContext, Response]:
    """Route one synthetic request; return its context and final response.

    Normal dispatch stops at route lookup: a matched route yields an
    empty 200 naming the route instead of calling the handler.
    """
    router = app._router
    request_router = app.request_router
    assert router is not None

    path_part, _, query_string = path.partition("?")
    scope: dict[str, Any] = {
        "type": "http",
        "method": method,
        "path": path_part,
        "query_string": query_string.encode("latin-1"),
        "headers": [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in (headers or {}).items()
        ],
    }

    async def receive() -> dict[str, Any]:
        return {"type": "http.request", "body": b"", "more_body": False}

    request = Request.from_asgi(scope, receive)
    ctx = request_router.context_for(request)

    async def dispatch(req: Request) -> Response:
        try:
            match = router.match(req.method, req.path)
        except HTTPError as exc:
            ctx.trace.append(f"dispatch {req.path} -> {exc.status}")
            raise
        handler = getattr(match.route.handler, "__name__", repr(match.route.handler))
        ctx.trace.append(f"dispatch {req.path} -> {handler} ({match.route.path})")
        return Response(body="", content_type="text/plain; charset=utf-8")

    try:
        response = await request_router.route(request, ctx, dispatch)
    except HTTPError as exc:
        response = Response(
            body=exc.detail,
            status=exc.status,
            content_type="text/plain; charset=utf-8",
            headers=exc.headers,
        )

    response = request_router.finalize(ctx, response)
    return ctx, response


def _parse_headers(values: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for raw in values:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            print(f"Error: header {raw!r} must look like NAME:VALUE", file=sys.stderr)
            raise SystemExit(1)
        headers[name.strip()] = value.strip()
    return headers
