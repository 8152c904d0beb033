"""Per-request routing state."""

from __future__ import annotations

from dataclasses import dataclass, field

from signpost.http.headers import Headers
from signpost.http.request import Request
from signpost.policy.rules import Rule


@dataclass(slots=True)
class RequestContext:
    """Mutable state for one request as it moves through the policy engine.

    Created per request and dropped once the response is sent; never
    shared between requests, so it needs no locking.

    Attributes:
        path: Effective dispatch path. Rewrites change it.
        original_path: Path the client asked for.
        headers: Request headers (case-insensitive).
        query_string: Effective query string.
        matched_rule: Last rule that changed the outcome, if any.
        trace: Human-readable steps taken, in order.
        response_headers: Headers the Header Policy decided on.
    """

    path: str
    original_path: str
    headers: Headers
    query_string: bytes = b""
    matched_rule: Rule | None = None
    trace: list[str] = field(default_factory=list)
    response_headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_request(cls, request: Request) -> RequestContext:
        return cls(
            path=request.path,
            original_path=request.original_path,
            headers=request.headers,
            query_string=request.query.raw,
        )

    def set_response_header(self, name: str, value: str) -> None:
        """Set *name*, replacing any entry that differs only in case."""
        lowered = name.lower()
        for existing in [k for k in self.response_headers if k.lower() == lowered]:
            del self.response_headers[existing]
        self.response_headers[name] = value
