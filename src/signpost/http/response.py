"""HTTP response with chainable .with_*() transformation API.

Each transformation returns a new Response. Immutable by convention,
built incrementally by design.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations.

    Construct with a body, then chain ``.with_*()`` calls to set
    status and headers. Each call returns a new ``Response``.
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        """Return a new Response with additional headers."""
        new = tuple(headers.items())
        return replace(self, headers=(*self.headers, *new))

    def with_header_set(self, name: str, value: str) -> Response:
        """Return a new Response where *name* has exactly one value.

        Existing values for *name* (compared case-insensitively) are
        dropped before the new value is appended, so setting the same
        header twice never duplicates it.
        """
        lowered = name.lower()
        kept = tuple((n, v) for n, v in self.headers if n.lower() != lowered)
        return replace(self, headers=(*kept, (name, value)))

    def with_content_type(self, content_type: str) -> Response:
        """Return a new Response with a different content type."""
        return replace(self, content_type=content_type)

    # -- Lookup --

    def header(self, name: str, default: str | None = None) -> str | None:
        """Return the last value set for *name* (case-insensitive)."""
        lowered = name.lower()
        for n, v in reversed(self.headers):
            if n.lower() == lowered:
                return v
        return default

    @property
    def location(self) -> str | None:
        """The ``Location`` header, if this is a redirect."""
        return self.header("Location")

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status < 400 and self.location is not None

    # -- Body helpers --

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body


@dataclass(frozen=True, slots=True)
class Redirect:
    """A redirect a handler can return; negotiated into a Response."""

    url: str
    status: int = 302
    headers: tuple[tuple[str, str], ...] = ()
