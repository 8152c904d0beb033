"""RoutingPolicy — the immutable configuration the request router runs on."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from signpost.errors import ConfigurationError
from signpost.policy.headers import HeaderDirective
from signpost.policy.rules import BEFORE_FILES, FALLBACK, REDIRECT, RuleSet


@dataclass(frozen=True, slots=True)
class RoutingPolicy:
    """Both rewrite phases, the redirect table, and the header directives.

    Built once at startup and handed to the router by reference.
    Nothing in it changes while the process runs.
    """

    before_files: RuleSet = field(default_factory=lambda: RuleSet(BEFORE_FILES))
    fallback: RuleSet = field(default_factory=lambda: RuleSet(FALLBACK))
    redirects: RuleSet = field(default_factory=lambda: RuleSet(REDIRECT))
    headers: tuple[HeaderDirective, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", tuple(self.headers))
        for expected, ruleset in (
            (BEFORE_FILES, self.before_files),
            (FALLBACK, self.fallback),
            (REDIRECT, self.redirects),
        ):
            if ruleset.phase != expected:
                msg = f"Expected a {expected!r} rule set, got {ruleset.phase!r}."
                raise ConfigurationError(msg)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> RoutingPolicy:
        from signpost.policy.loader import policy_from_mapping

        return policy_from_mapping(data)

    @classmethod
    def from_file(cls, path: str | Path) -> RoutingPolicy:
        from signpost.policy.loader import load_policy

        return load_policy(path)

    @property
    def rule_count(self) -> int:
        return len(self.before_files) + len(self.fallback) + len(self.redirects)
