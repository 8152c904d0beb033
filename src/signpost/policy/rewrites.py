"""Rewrite engine — change the dispatch path, keep the visible URL.

Two phases. ``beforeFiles`` runs before normal dispatch and can preempt
it; ``fallback`` runs only after normal dispatch found nothing.
"""

import logging

from signpost.policy.context import RequestContext
from signpost.policy.matcher import RuleMatch, first_match
from signpost.policy.rules import BEFORE_FILES, FALLBACK, Phase, RuleSet

logger = logging.getLogger("signpost.policy")


class RewriteEngine:
    """Evaluates the rewrite phases against a request context."""

    __slots__ = ("_phases",)

    def __init__(self, before_files: RuleSet, fallback: RuleSet) -> None:
        self._phases: dict[Phase, RuleSet] = {
            BEFORE_FILES: before_files,
            FALLBACK: fallback,
        }

    def rules(self, phase: Phase) -> RuleSet:
        try:
            return self._phases[phase]
        except KeyError:
            msg = f"Rewrites have no {phase!r} phase."
            raise ValueError(msg) from None

    def apply(self, phase: Phase, ctx: RequestContext) -> RuleMatch | None:
        """Run *phase* against *ctx*; update it and return the match, if any."""
        match = first_match(self.rules(phase), ctx.path, ctx.headers)
        if match is None:
            return None

        target, _, query = match.destination.partition("?")
        logger.debug("rewrite [%s] %s -> %s", phase, ctx.path, target)
        ctx.trace.append(f"rewrite[{phase}] {ctx.path} -> {target}")
        if query:
            ctx.query_string = _merge_query(query.encode("latin-1"), ctx.query_string)
        ctx.path = target
        ctx.matched_rule = match.rule
        return match

    def rewrite(self, phase: Phase, ctx: RequestContext) -> str:
        """Return the rewritten path, or the current path when nothing matches."""
        self.apply(phase, ctx)
        return ctx.path


def _merge_query(first: bytes, second: bytes) -> bytes:
    if not second:
        return first
    return first + b"&" + second
