"""Path patterns for rewrite, redirect and header-scope sources.

Grammar, per ``/``-separated segment:

    literal        /emergency-direct
    :name          one segment                 /users/:id
    :name?         optional segment            /docs/:page?
    :name*         zero or more segments       /:path*
    :name+         one or more segments        /files/:rest+
    (regex)        numbered groups, ``$1``     /(.*)

Parameters occupy a whole segment. A pattern holds at most one wildcard
capture (``*``, ``+``, or a regex group). Destinations reference
captures as ``:name`` (modifier optional) or ``$n``.

Patterns are compiled once at startup. Every malformed source surfaces
as ``ConfigurationError`` with the offending pattern in the message.
"""

import re
from dataclasses import dataclass

from signpost.errors import ConfigurationError

_PARAM = re.compile(r":(?P<name>[A-Za-z][A-Za-z0-9_]*)(?P<mod>[*+?])?")
_REFERENCE = re.compile(
    r"(?P<slash>/)?(?::(?P<name>[A-Za-z][A-Za-z0-9_]*)(?P<mod>[*+?])?|\$(?P<index>\d+))"
)

MATCH_ALL = "/(.*)"


@dataclass(frozen=True, slots=True)
class PathPattern:
    """A compiled source pattern.

    ``param_names`` lists captures in declaration order; regex groups
    appear as ``"1"``, ``"2"``, ... ``wildcard`` names the capture that
    swallows the rest of the path, if any.
    """

    source: str
    regex: re.Pattern[str]
    param_names: tuple[str, ...]
    wildcard: str | None = None

    @property
    def is_exact(self) -> bool:
        """True when the pattern captures nothing (a literal path)."""
        return not self.param_names

    def match(self, path: str) -> dict[str, str] | None:
        """Full-match *path*; return captured params or ``None``."""
        m = self.regex.fullmatch(path)
        if m is None:
            return None
        return {
            _public_name(group): value or ""
            for group, value in m.groupdict().items()
        }

    def substitute(self, destination: str, params: dict[str, str]) -> str:
        """Fill capture references in *destination* from *params*.

        An empty optional capture also drops the slash in front of it,
        so ``/docs/:path*`` with no remainder becomes ``/docs``.
        """

        def _fill(m: re.Match[str]) -> str:
            key = m.group("name") or m.group("index")
            value = params.get(key, "")
            slash = m.group("slash") or ""
            if not value and slash and m.group("mod") in ("*", "?"):
                return ""
            return slash + value

        origin, path = _split_origin(destination)
        result = origin + _REFERENCE.sub(_fill, path)
        return result or "/"

    def check_destination(self, destination: str) -> None:
        """Raise if *destination* references a capture this pattern lacks."""
        for key in references(destination):
            if key not in self.param_names:
                msg = (
                    f"Destination {destination!r} references {key!r}, "
                    f"which source {self.source!r} does not capture."
                )
                raise ConfigurationError(msg)


def references(destination: str) -> list[str]:
    """Capture names referenced by *destination*, in order."""
    _, path = _split_origin(destination)
    return [m.group("name") or m.group("index") for m in _REFERENCE.finditer(path)]


def _split_origin(destination: str) -> tuple[str, str]:
    """Split an absolute URL into (scheme + authority, path).

    Only the path part can reference captures, so ``user:pass@host`` and
    ``host:8443`` are left alone.
    """
    if "://" not in destination:
        return "", destination
    scheme, _, rest = destination.partition("://")
    authority, slash, path = rest.partition("/")
    return f"{scheme}://{authority}", slash + path


def compile_pattern(source: str) -> PathPattern:
    """Compile *source* into a ``PathPattern``.

    Raises ``ConfigurationError`` when the source does not start with
    ``/``, has unbalanced groups, repeats a parameter name, mixes a
    parameter into a literal segment, holds more than one wildcard, or
    produces an invalid regular expression.
    """
    if not isinstance(source, str) or not source.startswith("/"):
        msg = f"Path pattern {source!r} must start with '/'."
        raise ConfigurationError(msg)

    names: list[str] = []
    wildcards: list[str] = []
    group_count = 0
    body: list[str] = []

    for segment in _split_segments(source):
        if segment == "":
            continue
        param = _PARAM.fullmatch(segment)
        if param is not None:
            name, mod = param.group("name"), param.group("mod")
            if name in names:
                msg = f"Path pattern {source!r} repeats parameter {name!r}."
                raise ConfigurationError(msg)
            names.append(name)
            if mod in ("*", "+"):
                wildcards.append(name)
            body.append(_param_regex(name, mod))
        elif "(" in segment or ")" in segment:
            regex, found = _number_groups(segment, source, group_count)
            names.extend(str(n) for n in range(group_count + 1, group_count + found + 1))
            wildcards.extend(str(n) for n in range(group_count + 1, group_count + found + 1))
            group_count += found
            body.append("/" + regex)
        elif ":" in segment:
            msg = (
                f"Path pattern {source!r}: parameter in segment {segment!r} "
                "must occupy the whole segment."
            )
            raise ConfigurationError(msg)
        else:
            body.append("/" + re.escape(segment))

    if len(wildcards) > 1:
        msg = (
            f"Path pattern {source!r} has {len(wildcards)} wildcard captures; "
            "at most one is allowed."
        )
        raise ConfigurationError(msg)

    expression = "".join(body)
    if source.endswith("/") and len(source) > 1:
        expression += "/"
    if not expression:
        expression = "/"

    try:
        regex = re.compile(expression, re.DOTALL)
    except re.error as exc:
        msg = f"Path pattern {source!r} is not a valid pattern: {exc}"
        raise ConfigurationError(msg) from exc

    return PathPattern(
        source=source,
        regex=regex,
        param_names=tuple(names),
        wildcard=wildcards[0] if wildcards else None,
    )


def _param_regex(name: str, mod: str | None) -> str:
    match mod:
        case "?":
            return f"(?:/(?P<{name}>[^/]+))?"
        case "+":
            return f"/(?P<{name}>.+)"
        case "*":
            return f"(?:/(?P<{name}>.*))?"
        case _:
            return f"/(?P<{name}>[^/]+)"


def _public_name(group: str) -> str:
    # Regex groups are compiled as _1, _2 ... and exposed as "1", "2" ...
    if group.startswith("_") and group[1:].isdigit():
        return group[1:]
    return group


def _split_segments(source: str) -> list[str]:
    """Split on ``/`` outside of regex groups."""
    segments: list[str] = []
    current: list[str] = []
    depth = 0
    escaped = False
    for char in source[1:]:
        if escaped:
            current.append(char)
            escaped = False
            continue
        if char == "\\":
            escaped = True
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if char == "/" and depth == 0:
            segments.append("".join(current))
            current = []
        else:
            current.append(char)
    segments.append("".join(current))
    return segments


def _number_groups(segment: str, source: str, offset: int) -> tuple[str, int]:
    """Rename capturing groups in *segment* to ``_n``; return (regex, count)."""
    out: list[str] = []
    depth = 0
    count = 0
    i = 0
    while i < len(segment):
        char = segment[i]
        if char == "\\" and i + 1 < len(segment):
            out.append(segment[i : i + 2])
            i += 2
            continue
        if char == "(":
            depth += 1
            if segment.startswith("(?", i):
                out.append(char)
            else:
                count += 1
                out.append(f"(?P<_{offset + count}>")
        elif char == ")":
            depth -= 1
            if depth < 0:
                break
            out.append(char)
        else:
            out.append(char)
        i += 1
    if depth != 0:
        msg = f"Path pattern {source!r} has unbalanced parentheses."
        raise ConfigurationError(msg)
    return "".join(out), count
