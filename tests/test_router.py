"""Tests for switchyard.routing.router — registration, prepare, dispatch."""

import sys
import types

import pytest

from switchyard.config import RouterConfig
from switchyard.errors import ConfigurationError, MethodNotAllowed, NotFound
from switchyard.hooks import ROUTER_CONFIG, ROUTER_DISPATCH, Hooks
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.routing.group import RouteGroup
from switchyard.routing.router import Router
from switchyard.strategy.application import ApplicationStrategy
from switchyard.strategy.json import JsonStrategy


def _ok() -> str:
    return "ok"


def _get(router: Router, url: str, method: str = "GET", **kwargs: object) -> Response:
    return router.dispatch(Request.build(method, url, **kwargs))  # type: ignore[arg-type]


class TestMap:
    def test_path_gets_leading_slash(self) -> None:
        router = Router()
        assert router.map("GET", "users", _ok).path == "/users"

    def test_method_upper_cased(self) -> None:
        router = Router()
        assert router.map("post", "/users", _ok).method == "POST"

    @pytest.mark.parametrize("verb", ["get", "post", "put", "patch", "delete", "head", "options"])
    def test_verb_shortcuts(self, verb: str) -> None:
        router = Router()
        route = getattr(router, verb)("/thing", _ok)
        assert route.method == verb.upper()

    def test_rejects_uncallable_handler(self) -> None:
        router = Router()
        with pytest.raises(ConfigurationError):
            router.get("/bad", 42)

    def test_route_count_includes_group_routes(self) -> None:
        router = Router()
        router.get("/", _ok)

        def api(group: RouteGroup) -> None:
            group.get("/users", _ok)
            group.post("/users", _ok)

        router.group("/api", api)
        assert len(router.get_routes()) == 3

    def test_named_route(self) -> None:
        router = Router()
        route = router.get("/users", _ok).set_name("users.index")
        assert router.get_named_route("users.index") is route

    def test_unknown_named_route(self) -> None:
        with pytest.raises(KeyError):
            Router().get_named_route("missing")


class TestPrepare:
    def test_prepare_is_idempotent(self) -> None:
        router = Router()
        router.get("/", _ok)
        router.prepare()
        router.prepare()
        assert router.prepared
        assert _get(router, "/").text == "ok"

    def test_map_after_prepare_raises(self) -> None:
        router = Router()
        router.prepare()
        with pytest.raises(RuntimeError):
            router.get("/late", _ok)

    def test_group_after_prepare_raises(self) -> None:
        router = Router()
        router.prepare()
        with pytest.raises(RuntimeError):
            router.group("/late", lambda group: None)

    def test_duplicate_routes_fail_prepare(self) -> None:
        router = Router()
        router.get("/users", _ok)
        router.get("/users", _ok)
        with pytest.raises(ConfigurationError):
            router.prepare()

    def test_routes_without_strategy_get_router_strategy(self) -> None:
        router = Router()
        plain = router.get("/plain", _ok)
        api = router.get("/api", _ok).json()
        router.prepare()
        assert plain.get_strategy() is router.get_strategy()
        assert isinstance(api.get_strategy(), JsonStrategy)

    def test_strategies_receive_container(self) -> None:
        router = Router()
        route = router.get("/api", _ok).json()
        router.prepare()
        strategy = route.get_strategy()
        assert isinstance(strategy, JsonStrategy)
        assert strategy.container is router.container

    def test_builtin_aliases_registered(self) -> None:
        router = Router()
        router.prepare()
        registry = router.registry.get_registry()
        assert registry["json"].origin == "switchyard"
        assert registry["validation"].origin == "switchyard"

    def test_configured_aliases_registered_first(self) -> None:
        class CustomJson:
            def process(self, request, next):
                return next(request)

        router = Router(RouterConfig(middleware={"json": CustomJson}))
        router.prepare()
        entry = router.registry.get_registry()["json"]
        assert entry.concrete is CustomJson
        assert entry.origin == "configuration"

    def test_loads_configured_routes(self, monkeypatch: pytest.MonkeyPatch) -> None:
        module = types.ModuleType("switchyard_test_routes")

        def configure(router: Router) -> None:
            router.get("/configured", lambda: "from config")

        module.configure = configure  # type: ignore[attr-defined]
        monkeypatch.setitem(sys.modules, "switchyard_test_routes", module)

        router = Router(RouterConfig(routes="switchyard_test_routes:configure"))
        assert _get(router, "/configured").text == "from config"

    def test_bad_routes_reference(self) -> None:
        router = Router(RouterConfig(routes="switchyard_no_such_module:configure"))
        with pytest.raises(ConfigurationError):
            router.prepare()

    def test_config_hook_fires_once(self) -> None:
        seen: list[Router] = []
        hooks = Hooks()
        hooks.register(ROUTER_CONFIG, seen.append)
        router = Router(hooks=hooks)
        router.prepare()
        router.prepare()
        assert seen == [router]

    def test_config_hook_can_look_up_routes_by_type(self) -> None:
        found: list[list[str]] = []
        hooks = Hooks()
        router = Router(hooks=hooks)
        router.get("/api", _ok).set_definition(type="api")
        router.get("/page", _ok).set_definition(type="page")
        hooks.register(
            ROUTER_CONFIG,
            lambda r: found.append([route.path for route in r.get_routes_by_definition_type("api")]),
        )
        router.prepare()
        assert found == [["/api"]]
        assert router.prepared

    def test_config_hook_cannot_dispatch(self) -> None:
        hooks = Hooks()
        router = Router(hooks=hooks)
        router.get("/", _ok)
        hooks.register(ROUTER_CONFIG, lambda r: r.dispatch(Request.build("GET", "/")))
        with pytest.raises(ConfigurationError, match="router.config hook"):
            router.prepare()
        assert not router.prepared

    def test_default_strategy_uses_config_indent(self) -> None:
        router = Router(RouterConfig(env="development"))
        strategy = router.get_strategy()
        assert isinstance(strategy, ApplicationStrategy)
        assert strategy.json_indent == 4


class TestDispatch:
    def test_dispatches_to_handler(self) -> None:
        router = Router()
        router.get("/hello", lambda: "Hello")
        response = _get(router, "/hello")
        assert response.status == 200
        assert response.text == "Hello"

    def test_route_vars_reach_handler(self) -> None:
        router = Router()

        def show(id: int) -> dict:
            return {"id": id}

        router.get("/users/{id:int}", show)
        assert _get(router, "/users/42").json() == {"id": 42}

    def test_vars_copied_to_request_attributes(self) -> None:
        router = Router()
        router.get("/users/{name}", lambda request: request.attribute("name"))
        assert _get(router, "/users/ada").text == "ada"

    def test_unknown_path_raises_not_found(self) -> None:
        router = Router()
        router.get("/users", _ok)
        with pytest.raises(NotFound):
            _get(router, "/posts")

    def test_wrong_method_raises_method_not_allowed(self) -> None:
        router = Router()
        router.get("/users", _ok)
        router.post("/users", _ok)
        with pytest.raises(MethodNotAllowed) as exc_info:
            _get(router, "/users", method="DELETE")
        assert exc_info.value.allowed == frozenset({"GET", "POST"})
        assert ("Allow", "GET, POST") in exc_info.value.headers

    def test_dispatch_is_deterministic(self) -> None:
        router = Router()
        router.get("/users/{id}", lambda id: {"id": id, "ok": True})
        first = _get(router, "/users/3")
        second = _get(router, "/users/3")
        assert first == second

    def test_dispatch_hook_can_replace_request(self) -> None:
        hooks = Hooks()
        hooks.register(ROUTER_DISPATCH, lambda request: request.with_attribute("tenant", "acme"))
        router = Router(hooks=hooks)
        router.get("/", lambda request: request.attribute("tenant"))
        assert _get(router, "/").text == "acme"

    def test_set_strategy_changes_default(self) -> None:
        router = Router().set_strategy(JsonStrategy())
        router.get("/", lambda: "text")
        response = _get(router, "/")
        assert response.content_type == "application/json"
        assert response.json() == "text"

    def test_route_strategy_beats_router_strategy(self) -> None:
        router = Router()
        router.get("/json", lambda: "text").json()
        router.get("/html", lambda: "text")
        assert _get(router, "/json").content_type == "application/json"
        assert _get(router, "/html").content_type.startswith("text/html")


class TestRoutesByDefinitionType:
    def test_filters_on_route_type(self) -> None:
        router = Router()
        api = router.get("/api", _ok).set_definition(type="api")
        router.get("/page", _ok).set_definition(type="page")
        assert router.get_routes_by_definition_type("api") == [api]

    def test_falls_back_to_group_type(self) -> None:
        router = Router()

        def api(group: RouteGroup) -> None:
            group.get("/users", _ok)
            group.get("/page", _ok).set_definition(type="page")

        group = router.group("/api", api).set_definition(type="api")
        matches = router.get_routes_by_definition_type("api")
        assert [r.path for r in matches] == ["/api/users"]
        assert group.routes[0] in matches

    def test_prepares_first(self, monkeypatch: pytest.MonkeyPatch) -> None:
        module = types.ModuleType("switchyard_test_typed_routes")

        def configure(router: Router) -> None:
            router.get("/typed", _ok).set_definition(type="api")

        module.configure = configure  # type: ignore[attr-defined]
        monkeypatch.setitem(sys.modules, "switchyard_test_typed_routes", module)

        router = Router(RouterConfig(routes="switchyard_test_typed_routes:configure"))
        assert [r.path for r in router.get_routes_by_definition_type("api")] == ["/typed"]
