"""First-match-wins rule evaluation.

One matcher for every rule kind. Callers decide what a match means:
the rewrite engine replaces the dispatch path, the redirect table emits
a redirect.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from signpost.policy.rules import Rule


@dataclass(frozen=True, slots=True)
class RuleMatch:
    """A rule that matched, plus the captures it took from the path."""

    rule: Rule
    params: dict[str, str]

    @property
    def destination(self) -> str:
        return self.rule.resolve(self.params)


def first_match(
    rules: Iterable[Rule],
    path: str,
    headers: Mapping[str, str],
) -> RuleMatch | None:
    """Return the first rule in declaration order that matches, or ``None``.

    Later rules are never evaluated once one matches.
    """
    for rule in rules:
        params = rule.match(path, headers)
        if params is not None:
            return RuleMatch(rule=rule, params=params)
    return None
