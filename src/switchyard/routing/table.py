"""Compiled route table with trie-based path matching.

Routes are added while the router is configured and the table is frozen
by ``compile()``. Matching never raises for routing failures: it returns
one of three outcomes and leaves the policy to the dispatcher.

    RouteFound(route, vars)
    RouteMethodNotAllowed(allowed)
    RouteNotFound()
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from urllib.parse import unquote

from switchyard.errors import ConfigurationError

if TYPE_CHECKING:
    from switchyard.routing.route import Route


# Named converters for ``{name:type}`` segments. Unknown types are
# treated as a raw regular expression, e.g. ``{year:[0-9]{4}}``.
CONVERTERS: dict[str, str] = {
    "str": r"[^/]+",
    "int": r"\d+",
    "number": r"\d+",
    "float": r"\d+(?:\.\d+)?",
    "word": r"\w+",
    "alpha": r"[A-Za-z]+",
    "alphanum_dash": r"[A-Za-z0-9-]+",
    "slug": r"[a-z0-9]+(?:-[a-z0-9]+)*",
    "uuid": r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}",
    "path": r".+",
}

_PARAM_RE = re.compile(r"^\{(?P<name>[A-Za-z_]\w*)(?::(?P<type>.+))?\}$")


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Static:  ``/users``  (is_param=False)
    Param:   ``/{id}``   (is_param=True, param_name="id")
    Typed:   ``/{id:int}`` (is_param=True, param_name="id", param_type="int")
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Examples::

        "/users"             -> [PathSegment("users")]
        "/users/{id}"        -> [PathSegment("users"), PathSegment("{id}", is_param=True, ...)]
        "/users/{id:int}"    -> [..., PathSegment("{id:int}", is_param=True, param_type="int")]
        "/files/{path:path}" -> [..., PathSegment("{path:path}", is_param=True, param_type="path")]

    Raises ``ConfigurationError`` for ``<param>`` style placeholders and
    malformed ``{...}`` segments.
    """
    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if part.startswith("<") and part.endswith(">"):
            msg = f"Route {path!r} uses <param> placeholders; write them as {{param}}."
            raise ConfigurationError(msg)
        if "{" in part or "}" in part:
            match = _PARAM_RE.match(part)
            if match is None:
                msg = f"Route {path!r} has a malformed parameter segment {part!r}."
                raise ConfigurationError(msg)
            param_type = match.group("type") or "str"
            _compile_segment(param_type, path)
            segments.append(
                PathSegment(
                    value=part,
                    is_param=True,
                    param_name=match.group("name"),
                    param_type=param_type,
                )
            )
        else:
            segments.append(PathSegment(value=part))
    return segments


def _compile_segment(param_type: str, path: str) -> re.Pattern[str]:
    try:
        return re.compile(f"^(?:{CONVERTERS.get(param_type, param_type)})$")
    except re.error as exc:
        msg = f"Route {path!r} has an invalid pattern {param_type!r}: {exc}"
        raise ConfigurationError(msg) from exc


# -- Match outcomes --


@dataclass(frozen=True, slots=True)
class RouteFound:
    """The path and method matched."""

    route: Route
    vars: dict[str, str]


@dataclass(frozen=True, slots=True)
class RouteMethodNotAllowed:
    """The path matched, but not for this method."""

    allowed: frozenset[str]


@dataclass(frozen=True, slots=True)
class RouteNotFound:
    """Nothing matched the path."""


type MatchResult = RouteFound | RouteMethodNotAllowed | RouteNotFound


# -- Trie --


class _TrieNode:
    """A node in the route trie. Mutable during compilation only."""

    __slots__ = ("catch_all", "children", "param_edges", "routes_by_method")

    def __init__(self) -> None:
        # Static segment children: "users" -> node
        self.children: dict[str, _TrieNode] = {}
        # Parameter edges, tried in registration order
        self.param_edges: list[_ParamEdge] = []
        # Catch-all edge (path converter)
        self.catch_all: _CatchAllEdge | None = None
        # Routes at this node, keyed by HTTP method
        self.routes_by_method: dict[str, Route] = {}


@dataclass(slots=True)
class _ParamEdge:
    """A parameter edge in the trie."""

    param_name: str
    param_type: str
    regex: re.Pattern[str]
    node: _TrieNode


@dataclass(slots=True)
class _CatchAllEdge:
    """A catch-all (path) edge — consumes remaining path."""

    param_name: str
    node: _TrieNode = field(default_factory=_TrieNode)


class RouteTable:
    """Compiled route table.

    Usage::

        table = RouteTable()
        table.add(route)
        table.compile()
        match table.match("GET", "/users/42"):
            case RouteFound(route, vars): ...
    """

    __slots__ = ("_compiled", "_root", "_routes")

    def __init__(self) -> None:
        self._root = _TrieNode()
        self._routes: list[Route] = []
        self._compiled = False

    def add(self, route: Route) -> None:
        """Add a route. Must be called before compile().

        Raises ``ConfigurationError`` if the same method and path
        pattern are already registered.
        """
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)

        node = self._root
        for seg in parse_path(route.path):
            if seg.is_param and seg.param_type == "path":
                if node.catch_all is None:
                    node.catch_all = _CatchAllEdge(param_name=seg.param_name or "path")
                node = node.catch_all.node
                break
            if seg.is_param:
                node = self._param_node(node, seg)
            else:
                node = node.children.setdefault(seg.value, _TrieNode())

        if route.method in node.routes_by_method:
            existing = node.routes_by_method[route.method]
            msg = f"Duplicate route: {route.method} {route.path!r} is already mapped to {existing!r}."
            raise ConfigurationError(msg)
        node.routes_by_method[route.method] = route
        self._routes.append(route)

    @staticmethod
    def _param_node(node: _TrieNode, seg: PathSegment) -> _TrieNode:
        for edge in node.param_edges:
            if edge.param_name == seg.param_name and edge.param_type == seg.param_type:
                return edge.node
        edge = _ParamEdge(
            param_name=seg.param_name or "",
            param_type=seg.param_type,
            regex=_compile_segment(seg.param_type, seg.value),
            node=_TrieNode(),
        )
        node.param_edges.append(edge)
        return edge.node

    @property
    def routes(self) -> list[Route]:
        """All registered routes, in registration order."""
        return list(self._routes)

    @property
    def compiled(self) -> bool:
        return self._compiled

    def compile(self) -> None:
        """Freeze the table. No more routes can be added."""
        self._compiled = True

    def match(self, method: str, path: str) -> MatchResult:
        """Match a request method and path against the table.

        Static segments beat parameters, parameters beat catch-alls. If
        several nodes match the path, the first one serving *method*
        wins; ``HEAD`` is served by ``GET`` routes when no explicit
        ``HEAD`` route exists.
        """
        method = method.upper()
        parts = [p for p in path.strip("/").split("/") if p]
        allowed: set[str] = set()

        for node, params in self._match_node(self._root, parts, 0, {}):
            route = node.routes_by_method.get(method)
            if route is None and method == "HEAD":
                route = node.routes_by_method.get("GET")
            if route is not None:
                return RouteFound(route=route, vars=params)
            allowed.update(node.routes_by_method)

        if allowed:
            return RouteMethodNotAllowed(frozenset(allowed))
        return RouteNotFound()

    def _match_node(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        params: dict[str, str],
    ) -> Iterator[tuple[_TrieNode, dict[str, str]]]:
        """Yield every node matching the remaining path parts, best first."""
        # All parts consumed — this node is a candidate
        if index == len(parts):
            if node.routes_by_method:
                yield node, params
            return

        part = parts[index]

        # 1. Static child (exact match)
        if part in node.children:
            yield from self._match_node(node.children[part], parts, index + 1, params)

        # 2. Parameter edges
        value = unquote(part)
        for edge in node.param_edges:
            if edge.regex.match(value):
                new_params = {**params, edge.param_name: value}
                yield from self._match_node(edge.node, parts, index + 1, new_params)

        # 3. Catch-all
        if node.catch_all is not None and node.catch_all.node.routes_by_method:
            remaining = unquote("/".join(parts[index:]))
            yield node.catch_all.node, {**params, node.catch_all.param_name: remaining}
