"""The routing table the service ships with."""

from signpost.policy.headers import SecurityHeadersConfig
from signpost.policy.policy import RoutingPolicy
from signpost.policy.rules import BEFORE_FILES, FALLBACK, REDIRECT, Condition, Rule, RuleSet

EMERGENCY_PAGE = "/emergency-access/emergency"


def default_policy() -> RoutingPolicy:
    """Rewrites, redirects and security headers for the stock deployment.

    - Any path carrying ``x-redirected: true`` is served from ``/``.
      The header is set upstream (an edge proxy); nothing here sets it.
    - ``/emergency-direct`` serves the emergency page without a redirect.
    - ``/emergency`` and ``/emergency-tool`` redirect (temporarily) to it.
    """
    return RoutingPolicy(
        before_files=RuleSet(
            BEFORE_FILES,
            (
                Rule.rewrite(
                    "/:path*",
                    "/",
                    conditions=(Condition(key="x-redirected", value="true"),),
                ),
                Rule.rewrite("/emergency-direct", EMERGENCY_PAGE),
            ),
        ),
        fallback=RuleSet(FALLBACK),
        redirects=RuleSet(
            REDIRECT,
            (
                Rule.redirect("/emergency", EMERGENCY_PAGE, permanent=False),
                Rule.redirect("/emergency-tool", EMERGENCY_PAGE, permanent=False),
            ),
        ),
        headers=(SecurityHeadersConfig().to_directive(),),
    )
