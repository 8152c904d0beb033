"""Signpost exception hierarchy.

Shared across the policy engine, the router, the app and the ASGI
handler so every module raises and catches the same types.
"""

from dataclasses import dataclass


class SignpostError(Exception):
    """Base for all signpost-specific errors."""


class ConfigurationError(SignpostError):
    """Raised when startup configuration is invalid.

    Malformed rule patterns, unsupported condition types, non-numeric
    ports and unreadable policy files all end up here. Never recovered
    locally: the process refuses to start.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(SignpostError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, middleware, or handlers. The ASGI handler
    catches these and dispatches to the matching ``@app.error()`` handler.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — normal dispatch found no handler for the path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405 — route exists but not for this HTTP method.

    Includes an ``Allow`` header listing the valid methods.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )
