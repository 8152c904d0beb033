"""Immutable HTTP request.

Frozen metadata with async body access. A rewrite never mutates a
request: it produces a copy with a different ``path`` via ``with_path``.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field, replace
from typing import Any

from signpost._internal.asgi import Receive
from signpost.http.headers import Headers
from signpost.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``path`` is the effective dispatch path. ``original_path`` is what
    the client asked for and is never changed by rewrites.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    path_params: dict[str, str]
    http_version: str
    server: tuple[str, int] | None
    client: tuple[str, int] | None
    original_path: str

    # Private: ASGI receive callable for body streaming
    _receive: Receive

    # Private: mutable cache for the body (field reference is frozen)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Visible request URL (original path + query string)."""
        qs = self.query.raw
        if qs:
            return f"{self.original_path}?{qs.decode('latin-1')}"
        return self.original_path

    @property
    def is_rewritten(self) -> bool:
        """True when the dispatch path differs from the visible path."""
        return self.path != self.original_path

    def with_path(self, path: str, query_string: bytes | None = None) -> Request:
        """Return a copy dispatched to *path*; the body cache is shared."""
        query = self.query if query_string is None else QueryParams(query_string)
        return replace(self, path=path, query=query, path_params={})

    def with_path_params(self, path_params: dict[str, str]) -> Request:
        """Return a copy carrying the params captured by the route match."""
        return replace(self, path_params=path_params)

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body.

        Result is cached: the ASGI receive is consumed once, then
        the same bytes are returned on subsequent calls.
        """
        if "_body" in self._cache:
            return self._cache["_body"]
        chunks = [chunk async for chunk in self.stream()]
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks."""
        while True:
            message = await self._receive()
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    async def json(self) -> Any:
        """Parse the body as JSON."""
        raw = await self.body()
        return json_module.loads(raw)

    async def text(self) -> str:
        """Read the body as text (UTF-8)."""
        raw = await self.body()
        return raw.decode("utf-8")

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: dict[str, Any], receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        server = scope.get("server")
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            query=QueryParams(scope.get("query_string", b"")),
            path_params={},
            http_version=scope.get("http_version", "1.1"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            original_path=scope["path"],
            _receive=receive,
        )
