"""Tests for switchyard.routing.table — compiled trie matcher."""

import pytest

from switchyard.errors import ConfigurationError
from switchyard.routing.route import Route
from switchyard.routing.table import (
    RouteFound,
    RouteMethodNotAllowed,
    RouteNotFound,
    RouteTable,
    parse_path,
)


def _handler() -> str:
    return "ok"


def _table(*routes: tuple[str, str]) -> RouteTable:
    table = RouteTable()
    for method, path in routes:
        table.add(Route(method, path, _handler))
    table.compile()
    return table


class TestParsePath:
    def test_static(self) -> None:
        segments = parse_path("/api/v2/users")
        assert [s.value for s in segments] == ["api", "v2", "users"]
        assert not any(s.is_param for s in segments)

    def test_param(self) -> None:
        segments = parse_path("/users/{id}")
        assert segments[1].is_param is True
        assert segments[1].param_name == "id"
        assert segments[1].param_type == "str"

    def test_typed_param(self) -> None:
        assert parse_path("/users/{id:int}")[1].param_type == "int"

    def test_regex_param(self) -> None:
        assert parse_path("/archive/{year:[0-9]{4}}")[1].param_type == "[0-9]{4}"

    def test_root(self) -> None:
        assert parse_path("/") == []

    def test_rejects_angle_bracket_param(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            parse_path("/share/<slug>")
        assert "{param}" in str(exc_info.value)

    def test_rejects_malformed_segment(self) -> None:
        with pytest.raises(ConfigurationError):
            parse_path("/users/{id")

    def test_rejects_invalid_regex(self) -> None:
        with pytest.raises(ConfigurationError):
            parse_path("/users/{id:[0-9}")


class TestMatch:
    def test_static_route(self) -> None:
        result = _table(("GET", "/users")).match("GET", "/users")
        assert isinstance(result, RouteFound)
        assert result.route.path == "/users"
        assert result.vars == {}

    def test_root(self) -> None:
        assert isinstance(_table(("GET", "/")).match("GET", "/"), RouteFound)

    def test_trailing_slash_is_ignored(self) -> None:
        assert isinstance(_table(("GET", "/users")).match("GET", "/users/"), RouteFound)

    def test_param_vars(self) -> None:
        result = _table(("GET", "/users/{id}/posts/{slug}")).match("GET", "/users/7/posts/hello")
        assert isinstance(result, RouteFound)
        assert result.vars == {"id": "7", "slug": "hello"}

    def test_int_converter_rejects_text(self) -> None:
        table = _table(("GET", "/users/{id:int}"))
        assert isinstance(table.match("GET", "/users/abc"), RouteNotFound)
        assert isinstance(table.match("GET", "/users/12"), RouteFound)

    def test_vars_are_unquoted(self) -> None:
        result = _table(("GET", "/tags/{tag}")).match("GET", "/tags/hello%20world")
        assert isinstance(result, RouteFound)
        assert result.vars == {"tag": "hello world"}

    def test_static_beats_param(self) -> None:
        table = RouteTable()
        table.add(Route("GET", "/users/{id}", _handler))
        table.add(Route("GET", "/users/me", _handler))
        result = table.match("GET", "/users/me")
        assert isinstance(result, RouteFound)
        assert result.route.path == "/users/me"

    def test_falls_back_to_param_when_static_branch_dead_ends(self) -> None:
        table = _table(("GET", "/users/me/settings"), ("GET", "/users/{id}/posts"))
        result = table.match("GET", "/users/me/posts")
        assert isinstance(result, RouteFound)
        assert result.vars == {"id": "me"}

    def test_catch_all(self) -> None:
        result = _table(("GET", "/files/{rest:path}")).match("GET", "/files/a/b/c.txt")
        assert isinstance(result, RouteFound)
        assert result.vars == {"rest": "a/b/c.txt"}

    def test_unknown_path(self) -> None:
        assert isinstance(_table(("GET", "/users")).match("GET", "/posts"), RouteNotFound)

    def test_method_not_allowed_carries_allowed_set(self) -> None:
        table = _table(("GET", "/users"), ("POST", "/users"), ("DELETE", "/users/{id}"))
        result = table.match("PUT", "/users")
        assert isinstance(result, RouteMethodNotAllowed)
        assert result.allowed == frozenset({"GET", "POST"})

    def test_head_falls_back_to_get(self) -> None:
        result = _table(("GET", "/users")).match("HEAD", "/users")
        assert isinstance(result, RouteFound)
        assert result.route.method == "GET"

    def test_explicit_head_wins(self) -> None:
        table = _table(("GET", "/users"), ("HEAD", "/users"))
        result = table.match("HEAD", "/users")
        assert isinstance(result, RouteFound)
        assert result.route.method == "HEAD"

    def test_method_is_case_insensitive(self) -> None:
        assert isinstance(_table(("GET", "/users")).match("get", "/users"), RouteFound)


class TestTableLifecycle:
    def test_duplicate_route_raises(self) -> None:
        table = RouteTable()
        table.add(Route("GET", "/users", _handler))
        with pytest.raises(ConfigurationError, match="Duplicate route"):
            table.add(Route("GET", "/users", _handler))

    def test_same_path_different_method_is_fine(self) -> None:
        table = RouteTable()
        table.add(Route("GET", "/users", _handler))
        table.add(Route("POST", "/users", _handler))
        assert len(table.routes) == 2

    def test_add_after_compile_raises(self) -> None:
        table = _table(("GET", "/users"))
        assert table.compiled
        with pytest.raises(RuntimeError):
            table.add(Route("GET", "/posts", _handler))
