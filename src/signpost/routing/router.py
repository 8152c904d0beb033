"""Compiled handler table with trie-based path matching.

This is the "normal dispatch" step of the request pipeline: the policy
engine rewrites or redirects first, then asks the router whether the
effective path resolves to a handler.
"""

import re
from dataclasses import dataclass

from signpost.errors import ConfigurationError, MethodNotAllowed, NotFound
from signpost.routing.params import CONVERTERS
from signpost.routing.route import PathSegment, Route, RouteMatch


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Examples::

        "/users"             -> [PathSegment("users")]
        "/users/{id:int}"    -> [..., PathSegment("{id:int}", is_param=True, param_type="int")]
        "/files/{rest:path}" -> [..., PathSegment("{rest:path}", is_param=True, param_type="path")]

    Raises ``ConfigurationError`` for ``<param>`` placeholders, unknown
    converters, and catch-all segments that are not last.
    """
    if "<" in path and ">" in path:
        msg = f"Route {path!r} uses <param> placeholders; use {{param}} instead."
        raise ConfigurationError(msg)

    segments: list[PathSegment] = []
    parts = [p for p in path.strip("/").split("/") if p]
    for index, part in enumerate(parts):
        if not (part.startswith("{") and part.endswith("}")):
            segments.append(PathSegment(value=part))
            continue
        param_name, _, param_type = part[1:-1].partition(":")
        param_type = param_type or "str"
        if param_type not in CONVERTERS:
            msg = f"Route {path!r} uses unknown converter {param_type!r}."
            raise ConfigurationError(msg)
        if param_type == "path" and index != len(parts) - 1:
            msg = f"Route {path!r}: a {{name:path}} segment must be last."
            raise ConfigurationError(msg)
        segments.append(
            PathSegment(
                value=part,
                is_param=True,
                param_name=param_name,
                param_type=param_type,
            )
        )
    return segments


class _TrieNode:
    """A node in the route trie. Mutable during compilation only."""

    __slots__ = ("catch_all", "children", "param_child", "routes_by_method")

    def __init__(self) -> None:
        self.children: dict[str, _TrieNode] = {}
        # Only one param pattern per level
        self.param_child: _ParamEdge | None = None
        self.catch_all: _CatchAllEdge | None = None
        self.routes_by_method: dict[str, Route] = {}


@dataclass(slots=True)
class _ParamEdge:
    param_name: str
    regex: re.Pattern[str]
    node: _TrieNode


@dataclass(slots=True)
class _CatchAllEdge:
    """Consumes the remaining path."""

    param_name: str
    routes_by_method: dict[str, Route]


class Router:
    """Compiled router with trie-based path matching.

    Usage::

        router = Router()
        router.add(Route("/users/{id:int}", handler, frozenset({"GET"})))
        router.compile()
        match = router.match("GET", "/users/42")
    """

    __slots__ = ("_compiled", "_root", "_routes")

    def __init__(self) -> None:
        self._root = _TrieNode()
        self._routes: list[Route] = []
        self._compiled = False

    def add(self, route: Route) -> None:
        """Add a route. Must be called before compile()."""
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)

        node = self._root
        for seg in parse_path(route.path):
            if seg.is_param and seg.param_type == "path":
                if node.catch_all is None:
                    node.catch_all = _CatchAllEdge(seg.param_name or "path", {})
                for method in route.methods:
                    node.catch_all.routes_by_method[method] = route
                self._routes.append(route)
                return
            if seg.is_param:
                if node.param_child is None:
                    pattern, _ = CONVERTERS[seg.param_type]
                    node.param_child = _ParamEdge(
                        param_name=seg.param_name or "",
                        regex=re.compile(f"^{pattern}$"),
                        node=_TrieNode(),
                    )
                node = node.param_child.node
            else:
                node = node.children.setdefault(seg.value, _TrieNode())

        for method in route.methods:
            node.routes_by_method[method] = route
        self._routes.append(route)

    @property
    def routes(self) -> list[Route]:
        """All registered routes in registration order."""
        return list(self._routes)

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    def can_dispatch(self, path: str) -> bool:
        """True when some route (for any method) resolves *path*."""
        parts = [p for p in path.strip("/").split("/") if p]
        return self._match_node(self._root, parts, 0, {}) is not None

    def match(self, method: str, path: str) -> RouteMatch:
        """Match a request path and method against compiled routes.

        Raises ``NotFound`` if no route matches the path and
        ``MethodNotAllowed`` if the path matches but the method doesn't.
        ``HEAD`` falls back to ``GET``.
        """
        parts = [p for p in path.strip("/").split("/") if p]
        result = self._match_node(self._root, parts, 0, {})
        if result is None:
            raise NotFound(f"No route matches {method} {path!r}")

        routes_by_method, params = result
        route = routes_by_method.get(method)
        if route is None and method == "HEAD":
            route = routes_by_method.get("GET")
        if route is None:
            raise MethodNotAllowed(frozenset(routes_by_method))
        return RouteMatch(route=route, path_params=params)

    def _match_node(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        params: dict[str, str],
    ) -> tuple[dict[str, Route], dict[str, str]] | None:
        if index == len(parts):
            if node.routes_by_method:
                return node.routes_by_method, params
            return None

        part = parts[index]

        # Static beats param beats catch-all
        if part in node.children:
            result = self._match_node(node.children[part], parts, index + 1, params)
            if result is not None:
                return result

        edge = node.param_child
        if edge is not None and edge.regex.match(part):
            result = self._match_node(
                edge.node, parts, index + 1, {**params, edge.param_name: part}
            )
            if result is not None:
                return result

        if node.catch_all is not None:
            remaining = "/".join(parts[index:])
            return node.catch_all.routes_by_method, {
                **params,
                node.catch_all.param_name: remaining,
            }

        return None
