"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching::

    async def mw(request: Request, next: Next) -> Response

Middleware wraps normal dispatch only. Rewrites and redirects run before
it, and the header policy runs after it, so middleware always sees the
effective (rewritten) path.
"""

from signpost.middleware.protocol import Middleware, Next

__all__ = ["Middleware", "Next"]
