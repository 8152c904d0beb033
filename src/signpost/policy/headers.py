"""Header policy — path-scoped response headers set on every response.

Directives only set the headers they name. A directive value always
replaces whatever the handler set for the same name, and setting is
idempotent: applying the policy twice leaves the headers unchanged.

The stock directive carries the security hardening headers::

    X-Content-Type-Options: nosniff
    X-Frame-Options: DENY
    X-XSS-Protection: 1; mode=block
    Referrer-Policy: strict-origin-when-cross-origin
    Permissions-Policy: camera=(), microphone=(), geolocation=()
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from signpost.errors import ConfigurationError
from signpost.http.headers import Headers
from signpost.http.response import Response
from signpost.policy.context import RequestContext
from signpost.routing.patterns import MATCH_ALL, PathPattern, compile_pattern

_TOKEN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


@dataclass(frozen=True, slots=True)
class HeaderDirective:
    """An ordered set of headers applied to paths matching ``scope``.

    ``headers`` accepts a mapping or ``(name, value)`` pairs. Names must
    be unique (case-insensitive) within a directive.
    """

    headers: tuple[tuple[str, str], ...]
    scope: str = MATCH_ALL
    pattern: PathPattern = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        pairs = _as_pairs(self.headers)
        seen: set[str] = set()
        for name, value in pairs:
            if not _TOKEN.match(name):
                msg = f"Header name {name!r} in scope {self.scope!r} is not a valid token."
                raise ConfigurationError(msg)
            if "\r" in value or "\n" in value:
                msg = f"Header {name!r} in scope {self.scope!r} contains a line break."
                raise ConfigurationError(msg)
            if name.lower() in seen:
                msg = f"Header {name!r} is declared twice in scope {self.scope!r}."
                raise ConfigurationError(msg)
            seen.add(name.lower())
        object.__setattr__(self, "headers", pairs)
        object.__setattr__(self, "pattern", compile_pattern(self.scope))

    def applies_to(self, path: str) -> bool:
        return self.pattern.match(path) is not None


@dataclass(frozen=True, slots=True)
class SecurityHeadersConfig:
    """Values for the stock security directive.

    Optional headers are omitted when ``None``.
    """

    x_content_type_options: str = "nosniff"
    x_frame_options: str = "DENY"
    x_xss_protection: str = "1; mode=block"
    referrer_policy: str = "strict-origin-when-cross-origin"
    permissions_policy: str = "camera=(), microphone=(), geolocation=()"
    content_security_policy: str | None = None
    strict_transport_security: str | None = None

    def to_directive(self, scope: str = MATCH_ALL) -> HeaderDirective:
        headers = [
            ("X-Content-Type-Options", self.x_content_type_options),
            ("X-Frame-Options", self.x_frame_options),
            ("X-XSS-Protection", self.x_xss_protection),
            ("Referrer-Policy", self.referrer_policy),
            ("Permissions-Policy", self.permissions_policy),
        ]
        if self.content_security_policy:
            headers.append(("Content-Security-Policy", self.content_security_policy))
        if self.strict_transport_security:
            headers.append(("Strict-Transport-Security", self.strict_transport_security))
        return HeaderDirective(headers=tuple(headers), scope=scope)


class HeaderPolicy:
    """Applies every directive whose scope matches the visible path.

    Scopes are matched against the path the client requested, so a
    rewrite never changes which headers a URL gets.
    """

    __slots__ = ("directives",)

    def __init__(self, directives: Sequence[HeaderDirective]) -> None:
        self.directives: tuple[HeaderDirective, ...] = tuple(directives)

    def headers_for(self, path: str) -> dict[str, str]:
        """Merged headers for *path*; later directives win."""
        ctx = RequestContext(path=path, original_path=path, headers=Headers())
        return self.apply(ctx)

    def apply(self, ctx: RequestContext) -> dict[str, str]:
        """Merge matching directives into ``ctx.response_headers``."""
        for directive in self.directives:
            if directive.applies_to(ctx.original_path):
                for name, value in directive.headers:
                    ctx.set_response_header(name, value)
        return ctx.response_headers

    def apply_to_response(self, response: Response, ctx: RequestContext) -> Response:
        """Set the policy headers on *response*, replacing handler values."""
        for name, value in self.apply(ctx).items():
            response = response.with_header_set(name, value)
        return response


def _as_pairs(
    headers: Mapping[str, str] | Iterable[tuple[str, str]],
) -> tuple[tuple[str, str], ...]:
    if isinstance(headers, Mapping):
        return tuple((str(k), str(v)) for k, v in headers.items())
    return tuple((str(k), str(v)) for k, v in headers)
