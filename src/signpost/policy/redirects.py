"""Redirect table — exact source paths answered with a redirect."""

import logging
from dataclasses import dataclass

from signpost.http.response import Response
from signpost.policy.context import RequestContext
from signpost.policy.matcher import first_match
from signpost.policy.rules import REDIRECT, Rule, RuleSet

logger = logging.getLogger("signpost.policy")


@dataclass(frozen=True, slots=True)
class RedirectTarget:
    """Where to send the client, and with which status."""

    location: str
    status: int
    rule: Rule

    def to_response(self) -> Response:
        return Response(body="", content_type="text/plain; charset=utf-8").with_status(
            self.status
        ).with_header("Location", self.location)


class RedirectTable:
    """Linear, first-match-wins scan of redirect rules.

    Sources are exact paths. The table is consulted after ``beforeFiles``
    rewrites, so it sees the rewritten path.
    """

    __slots__ = ("rules",)

    def __init__(self, rules: RuleSet) -> None:
        if rules.phase != REDIRECT:
            msg = f"RedirectTable needs a {REDIRECT!r} rule set, got {rules.phase!r}."
            raise ValueError(msg)
        self.rules = rules

    def lookup(self, ctx: RequestContext) -> RedirectTarget | None:
        match = first_match(self.rules, ctx.path, ctx.headers)
        if match is None:
            return None

        location = match.destination
        if ctx.query_string and "?" not in location:
            location = f"{location}?{ctx.query_string.decode('latin-1')}"
        status = match.rule.redirect_status

        logger.debug("redirect %s -> %s (%d)", ctx.path, location, status)
        ctx.trace.append(f"redirect {ctx.path} -> {location} ({status})")
        ctx.matched_rule = match.rule
        return RedirectTarget(location=location, status=status, rule=match.rule)
