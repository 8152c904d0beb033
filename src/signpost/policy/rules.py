"""Rule, Condition and RuleSet — the declarative routing table.

A ``Rule`` is a tagged variant: ``kind`` is ``"rewrite"`` or
``"redirect"``. Both kinds share one source matcher; only the action
taken on a match differs. Rules validate and compile themselves on
construction, so a malformed table fails at startup, never mid-request.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Literal, TypeAlias

from signpost.errors import ConfigurationError
from signpost.routing.patterns import PathPattern, compile_pattern

RuleKind: TypeAlias = Literal["rewrite", "redirect"]
Phase: TypeAlias = Literal["beforeFiles", "fallback", "redirect"]

BEFORE_FILES: Phase = "beforeFiles"
FALLBACK: Phase = "fallback"
REDIRECT: Phase = "redirect"

PERMANENT_REDIRECT = 301
TEMPORARY_REDIRECT = 307
REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})

CONDITION_TYPES = frozenset({"header"})


@dataclass(frozen=True, slots=True)
class Condition:
    """A predicate over request metadata.

    Only ``type="header"`` exists. ``key`` is looked up
    case-insensitively; ``value=None`` means "present", otherwise the
    header must equal ``value`` exactly (case-sensitive).
    """

    key: str
    value: str | None = None
    type: str = "header"

    def __post_init__(self) -> None:
        if self.type not in CONDITION_TYPES:
            msg = (
                f"Unsupported condition type {self.type!r}; "
                f"expected one of {sorted(CONDITION_TYPES)}."
            )
            raise ConfigurationError(msg)
        if not self.key:
            msg = "Condition key must be a non-empty header name."
            raise ConfigurationError(msg)

    def holds(self, headers: Mapping[str, str]) -> bool:
        """True when *headers* (a case-insensitive mapping) satisfy this."""
        actual = headers.get(self.key)
        if actual is None:
            return False
        return self.value is None or actual == self.value


@dataclass(frozen=True, slots=True)
class Rule:
    """One rewrite or redirect rule.

    Attributes:
        kind: ``"rewrite"`` or ``"redirect"``.
        source: Path pattern matched against the effective path.
        destination: Target path; may reference captures from *source*.
        conditions: All must hold for the rule to match.
        permanent: Redirect only. ``True`` → 301, ``False`` → 307.
        status_code: Redirect only. Explicit status override.
    """

    kind: RuleKind
    source: str
    destination: str
    conditions: tuple[Condition, ...] = ()
    permanent: bool = False
    status_code: int | None = None
    pattern: PathPattern = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "conditions", tuple(self.conditions))
        if self.kind not in ("rewrite", "redirect"):
            msg = f"Rule kind must be 'rewrite' or 'redirect', got {self.kind!r}."
            raise ConfigurationError(msg)
        if not isinstance(self.destination, str) or not self.destination:
            msg = f"Rule {self.source!r} needs a non-empty destination."
            raise ConfigurationError(msg)

        pattern = compile_pattern(self.source)
        pattern.check_destination(self.destination)

        if self.kind == "rewrite":
            if not self.destination.startswith("/"):
                msg = (
                    f"Rewrite {self.source!r} -> {self.destination!r}: "
                    "rewrite destinations must be internal paths."
                )
                raise ConfigurationError(msg)
            if self.permanent or self.status_code is not None:
                msg = f"Rewrite {self.source!r} cannot carry a redirect status."
                raise ConfigurationError(msg)
        else:
            if not pattern.is_exact:
                msg = (
                    f"Redirect source {self.source!r} must be an exact path; "
                    "parameters and wildcards are not supported for redirects."
                )
                raise ConfigurationError(msg)
            if self.status_code is not None and self.status_code not in REDIRECT_STATUSES:
                msg = (
                    f"Redirect {self.source!r} has status {self.status_code}; "
                    f"expected one of {sorted(REDIRECT_STATUSES)}."
                )
                raise ConfigurationError(msg)

        object.__setattr__(self, "pattern", pattern)

    @classmethod
    def rewrite(
        cls,
        source: str,
        destination: str,
        *,
        conditions: tuple[Condition, ...] = (),
    ) -> Rule:
        return cls("rewrite", source, destination, conditions)

    @classmethod
    def redirect(
        cls,
        source: str,
        destination: str,
        *,
        permanent: bool = False,
        status_code: int | None = None,
        conditions: tuple[Condition, ...] = (),
    ) -> Rule:
        return cls(
            "redirect",
            source,
            destination,
            conditions,
            permanent=permanent,
            status_code=status_code,
        )

    @property
    def redirect_status(self) -> int:
        """HTTP status emitted when this redirect matches."""
        if self.status_code is not None:
            return self.status_code
        return PERMANENT_REDIRECT if self.permanent else TEMPORARY_REDIRECT

    def match(self, path: str, headers: Mapping[str, str]) -> dict[str, str] | None:
        """Return captured params when *path* and every condition match."""
        params = self.pattern.match(path)
        if params is None:
            return None
        if not all(condition.holds(headers) for condition in self.conditions):
            return None
        return params

    def resolve(self, params: dict[str, str]) -> str:
        """Destination with captures substituted."""
        return self.pattern.substitute(self.destination, params)

    def describe(self) -> str:
        arrow = f"{self.source} -> {self.destination}"
        if self.kind == "redirect":
            arrow = f"{arrow} ({self.redirect_status})"
        if self.conditions:
            gates = ", ".join(
                f"{c.key}: {c.value}" if c.value is not None else f"{c.key} present"
                for c in self.conditions
            )
            arrow = f"{arrow} when {gates}"
        return arrow


@dataclass(frozen=True, slots=True)
class RuleSet:
    """An ordered sequence of rules evaluated in one phase.

    Declaration order is evaluation order. An empty set is a no-op phase.
    """

    phase: Phase
    rules: tuple[Rule, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "rules", tuple(self.rules))
        if self.phase not in (BEFORE_FILES, FALLBACK, REDIRECT):
            msg = f"Unknown phase {self.phase!r}."
            raise ConfigurationError(msg)
        expected = "redirect" if self.phase == REDIRECT else "rewrite"
        for rule in self.rules:
            if rule.kind != expected:
                msg = (
                    f"{rule.kind.capitalize()} rule {rule.source!r} cannot be "
                    f"placed in the {self.phase!r} phase."
                )
                raise ConfigurationError(msg)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)
