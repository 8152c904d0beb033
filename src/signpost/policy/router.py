"""Request router — runs one request through the routing policy.

Per request::

    Received
      -> rewrite (beforeFiles)
      -> redirect check   -> [Redirected]
      -> normal dispatch  -> [Served]
           | NotFound
           -> rewrite (fallback) -> dispatch again -> [Served] | [NotFound]
      -> header policy (exactly once, on every outcome)
      -> [ResponseSent]

``route`` covers everything up to the header policy. ``finalize`` is the
header policy; the ASGI handler calls it after error handling so 404s,
405s and 500s are covered too.
"""

from collections.abc import Awaitable, Callable
from typing import TypeAlias

from signpost.errors import NotFound
from signpost.http.request import Request
from signpost.http.response import Response
from signpost.policy.context import RequestContext
from signpost.policy.headers import HeaderPolicy
from signpost.policy.policy import RoutingPolicy
from signpost.policy.redirects import RedirectTable
from signpost.policy.rewrites import RewriteEngine
from signpost.policy.rules import BEFORE_FILES, FALLBACK

Dispatch: TypeAlias = Callable[[Request], Awaitable[Response]]


class RequestRouter:
    """Composes the rewrite engine, redirect table and header policy.

    Holds only immutable, process-wide state; safe to share across
    concurrent requests.
    """

    __slots__ = ("header_policy", "policy", "redirects", "rewrites")

    def __init__(self, policy: RoutingPolicy) -> None:
        self.policy = policy
        self.rewrites = RewriteEngine(policy.before_files, policy.fallback)
        self.redirects = RedirectTable(policy.redirects)
        self.header_policy = HeaderPolicy(policy.headers)

    def context_for(self, request: Request) -> RequestContext:
        return RequestContext.from_request(request)

    async def route(
        self,
        request: Request,
        ctx: RequestContext,
        dispatch: Dispatch,
    ) -> Response:
        """Rewrite, redirect or dispatch *request*.

        Raises whatever *dispatch* raises; a ``NotFound`` only escapes
        after the fallback phase had its chance.
        """
        self.rewrites.apply(BEFORE_FILES, ctx)

        target = self.redirects.lookup(ctx)
        if target is not None:
            return target.to_response()

        try:
            return await dispatch(_dispatched(request, ctx))
        except NotFound:
            if self.rewrites.apply(FALLBACK, ctx) is None:
                raise
        return await dispatch(_dispatched(request, ctx))

    def finalize(self, ctx: RequestContext, response: Response) -> Response:
        """Apply the header policy."""
        return self.header_policy.apply_to_response(response, ctx)


def _dispatched(request: Request, ctx: RequestContext) -> Request:
    if ctx.path == request.path and ctx.query_string == request.query.raw:
        return request
    return request.with_path(ctx.path, ctx.query_string)
