"""Build a RoutingPolicy from plain data or a TOML file.

The accepted shape::

    {
        "rewrites": {"beforeFiles": [...], "fallback": [...]},  # or a list
        "redirects": [...],
        "headers": [{"source": "/(.*)", "headers": [{"key": ..., "value": ...}]}],
    }

A bare list under ``rewrites`` is the ``beforeFiles`` phase. Rule
entries take ``source``, ``destination``, ``has`` (or ``conditions``),
and for redirects ``permanent`` / ``statusCode``. Every structural
problem raises ``ConfigurationError`` naming where it was found.
"""

import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from signpost.errors import ConfigurationError
from signpost.policy.headers import HeaderDirective
from signpost.policy.policy import RoutingPolicy
from signpost.policy.rules import (
    BEFORE_FILES,
    FALLBACK,
    REDIRECT,
    Condition,
    Rule,
    RuleKind,
    RuleSet,
)
from signpost.routing.patterns import MATCH_ALL

_TOP_LEVEL = frozenset({"rewrites", "redirects", "headers"})
_PHASE_KEYS = {
    "beforeFiles": BEFORE_FILES,
    "before_files": BEFORE_FILES,
    "fallback": FALLBACK,
}
_REWRITE_KEYS = frozenset({"source", "destination", "has", "conditions"})
_REDIRECT_KEYS = _REWRITE_KEYS | {"permanent", "statusCode", "status_code"}


def load_policy(path: str | Path) -> RoutingPolicy:
    """Read a TOML policy file."""
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except OSError as exc:
        msg = f"Cannot read policy file {str(path)!r}: {exc}"
        raise ConfigurationError(msg) from exc
    except tomllib.TOMLDecodeError as exc:
        msg = f"Policy file {str(path)!r} is not valid TOML: {exc}"
        raise ConfigurationError(msg) from exc
    return policy_from_mapping(data)


def policy_from_mapping(data: Mapping[str, Any]) -> RoutingPolicy:
    """Validate *data* and compile it into a RoutingPolicy."""
    if not isinstance(data, Mapping):
        msg = f"Policy must be a mapping, got {type(data).__name__}."
        raise ConfigurationError(msg)
    unknown = set(data) - _TOP_LEVEL
    if unknown:
        msg = f"Unknown policy keys: {', '.join(sorted(unknown))}."
        raise ConfigurationError(msg)

    before_files, fallback = _parse_rewrites(data.get("rewrites", {}))
    redirects = RuleSet(
        REDIRECT,
        tuple(
            _parse_rule("redirect", entry, f"redirects[{i}]")
            for i, entry in enumerate(_as_list(data.get("redirects", []), "redirects"))
        ),
    )
    headers = tuple(
        _parse_directive(entry, f"headers[{i}]")
        for i, entry in enumerate(_as_list(data.get("headers", []), "headers"))
    )
    return RoutingPolicy(
        before_files=before_files,
        fallback=fallback,
        redirects=redirects,
        headers=headers,
    )


def _parse_rewrites(value: Any) -> tuple[RuleSet, RuleSet]:
    if isinstance(value, list):
        value = {"beforeFiles": value}
    if not isinstance(value, Mapping):
        msg = f"'rewrites' must be a list or a table of phases, got {type(value).__name__}."
        raise ConfigurationError(msg)

    phases: dict[str, list[Rule]] = {BEFORE_FILES: [], FALLBACK: []}
    for key, entries in value.items():
        phase = _PHASE_KEYS.get(key)
        if phase is None:
            msg = (
                f"Unknown rewrite phase {key!r}; "
                "expected 'beforeFiles' or 'fallback'."
            )
            raise ConfigurationError(msg)
        for i, entry in enumerate(_as_list(entries, f"rewrites.{key}")):
            phases[phase].append(_parse_rule("rewrite", entry, f"rewrites.{key}[{i}]"))
    return (
        RuleSet(BEFORE_FILES, tuple(phases[BEFORE_FILES])),
        RuleSet(FALLBACK, tuple(phases[FALLBACK])),
    )


def _parse_rule(kind: RuleKind, entry: Any, where: str) -> Rule:
    if not isinstance(entry, Mapping):
        msg = f"{where}: a rule must be a table, got {type(entry).__name__}."
        raise ConfigurationError(msg)
    allowed = _REDIRECT_KEYS if kind == "redirect" else _REWRITE_KEYS
    unknown = set(entry) - allowed
    if unknown:
        msg = f"{where}: unknown keys {', '.join(sorted(unknown))}."
        raise ConfigurationError(msg)
    for key in ("source", "destination"):
        if not isinstance(entry.get(key), str):
            msg = f"{where}: {key!r} is required and must be a string."
            raise ConfigurationError(msg)

    raw_conditions = entry.get("has", entry.get("conditions", []))
    conditions = tuple(
        _parse_condition(c, f"{where}.has[{j}]")
        for j, c in enumerate(_as_list(raw_conditions, f"{where}.has"))
    )

    try:
        if kind == "rewrite":
            return Rule.rewrite(entry["source"], entry["destination"], conditions=conditions)
        permanent = entry.get("permanent", False)
        if not isinstance(permanent, bool):
            msg = f"{where}: 'permanent' must be true or false."
            raise ConfigurationError(msg)
        status = entry.get("statusCode", entry.get("status_code"))
        if status is not None and (isinstance(status, bool) or not isinstance(status, int)):
            msg = f"{where}: 'statusCode' must be an integer."
            raise ConfigurationError(msg)
        return Rule.redirect(
            entry["source"],
            entry["destination"],
            permanent=permanent,
            status_code=status,
            conditions=conditions,
        )
    except ConfigurationError as exc:
        if str(exc).startswith(where):
            raise
        msg = f"{where}: {exc}"
        raise ConfigurationError(msg) from exc


def _parse_condition(entry: Any, where: str) -> Condition:
    if not isinstance(entry, Mapping):
        msg = f"{where}: a condition must be a table, got {type(entry).__name__}."
        raise ConfigurationError(msg)
    unknown = set(entry) - {"type", "key", "value"}
    if unknown:
        msg = f"{where}: unknown keys {', '.join(sorted(unknown))}."
        raise ConfigurationError(msg)
    key = entry.get("key")
    value = entry.get("value")
    if not isinstance(key, str) or (value is not None and not isinstance(value, str)):
        msg = f"{where}: 'key' must be a string and 'value' a string when given."
        raise ConfigurationError(msg)
    try:
        return Condition(key=key, value=value, type=entry.get("type", "header"))
    except ConfigurationError as exc:
        msg = f"{where}: {exc}"
        raise ConfigurationError(msg) from exc


def _parse_directive(entry: Any, where: str) -> HeaderDirective:
    if not isinstance(entry, Mapping):
        msg = f"{where}: a header directive must be a table, got {type(entry).__name__}."
        raise ConfigurationError(msg)
    scope = entry.get("source", MATCH_ALL)
    raw = entry.get("headers")
    if isinstance(raw, Mapping):
        pairs = [(str(k), v) for k, v in raw.items()]
    elif isinstance(raw, list):
        pairs = []
        for j, item in enumerate(raw):
            if not isinstance(item, Mapping) or set(item) != {"key", "value"}:
                msg = f"{where}.headers[{j}]: expected a table with 'key' and 'value'."
                raise ConfigurationError(msg)
            pairs.append((item["key"], item["value"]))
    else:
        msg = f"{where}: 'headers' must be a list of {{key, value}} or a table."
        raise ConfigurationError(msg)
    for name, value in pairs:
        if not isinstance(name, str) or not isinstance(value, str):
            msg = f"{where}: header names and values must be strings."
            raise ConfigurationError(msg)
    try:
        return HeaderDirective(headers=tuple(pairs), scope=scope)
    except ConfigurationError as exc:
        msg = f"{where}: {exc}"
        raise ConfigurationError(msg) from exc


def _as_list(value: Any, where: str) -> list[Any]:
    if not isinstance(value, list | tuple):
        msg = f"{where!r} must be a list, got {type(value).__name__}."
        raise ConfigurationError(msg)
    return list(value)
