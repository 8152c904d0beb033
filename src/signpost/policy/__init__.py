"""Routing policy — rewrites, redirects and header policy.

Public API::

    from signpost.policy import RoutingPolicy, Rule, RuleSet, default_policy

    policy = RoutingPolicy.from_file("routing.toml")
"""

from signpost.policy.context import RequestContext
from signpost.policy.defaults import default_policy
from signpost.policy.headers import HeaderDirective, HeaderPolicy, SecurityHeadersConfig
from signpost.policy.loader import load_policy, policy_from_mapping
from signpost.policy.matcher import RuleMatch, first_match
from signpost.policy.policy import RoutingPolicy
from signpost.policy.redirects import RedirectTable, RedirectTarget
from signpost.policy.rewrites import RewriteEngine
from signpost.policy.router import RequestRouter
from signpost.policy.rules import (
    BEFORE_FILES,
    FALLBACK,
    REDIRECT,
    Condition,
    Rule,
    RuleSet,
)

__all__ = [
    "BEFORE_FILES",
    "FALLBACK",
    "REDIRECT",
    "Condition",
    "HeaderDirective",
    "HeaderPolicy",
    "RedirectTable",
    "RedirectTarget",
    "RequestContext",
    "RequestRouter",
    "RewriteEngine",
    "RoutingPolicy",
    "Rule",
    "RuleMatch",
    "RuleSet",
    "SecurityHeadersConfig",
    "default_policy",
    "first_match",
    "load_policy",
    "policy_from_mapping",
]
