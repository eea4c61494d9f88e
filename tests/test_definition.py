"""Tests for switchyard.routing.definition — metadata with parent fallback."""

from switchyard.routing.definition import DefinitionFacade, ResponseDefinition, RouteDefinition
from switchyard.routing.params import ParamDefinition, ParamType


class TestRouteDefinition:
    def test_unset_fields_are_empty(self) -> None:
        definition = RouteDefinition()
        assert definition.title() == ""
        assert definition.description() == ""
        assert definition.type() == ""

    def test_falls_back_to_parent(self) -> None:
        parent = DefinitionFacade(RouteDefinition(title="Users", description="All users", type="api"))
        child = RouteDefinition(title="Show user", parent=parent)
        assert child.title() == "Show user"
        assert child.description() == "All users"
        assert child.type() == "api"

    def test_meta_never_falls_back(self) -> None:
        parent = DefinitionFacade(RouteDefinition(meta={"auth": True}))
        child = DefinitionFacade(RouteDefinition(), parent=parent)
        assert child.meta("auth") is None
        assert child.meta("auth", "default") == "default"
        assert parent.meta("auth") is True


class TestDefinitionFacade:
    def test_fallback_chain(self) -> None:
        root = DefinitionFacade(RouteDefinition(type="api"))
        group = DefinitionFacade(RouteDefinition(title="Users"), parent=root)
        route = DefinitionFacade(RouteDefinition(), parent=group)
        assert route.title == "Users"
        assert route.type == "api"
        assert route.description == ""

    def test_own_value_wins(self) -> None:
        parent = DefinitionFacade(RouteDefinition(type="api"))
        route = DefinitionFacade(RouteDefinition(type="page"), parent=parent)
        assert route.type == "page"

    def test_params_from_mapping(self) -> None:
        facade = DefinitionFacade(
            RouteDefinition(params={"page": {"type": "int", "default": 1}, "q": {}})
        )
        params = facade.params()
        assert [(p.name, p.type) for p in params] == [
            ("page", ParamType.INT),
            ("q", ParamType.STRING),
        ]
        assert params[0].default == 1

    def test_params_from_sequence(self) -> None:
        p = ParamDefinition("q", validation="required")
        assert DefinitionFacade(RouteDefinition(params=[p])).params() == (p,)

    def test_params_cached(self) -> None:
        facade = DefinitionFacade(RouteDefinition(params={"q": {}}))
        assert facade.params() is facade.params()

    def test_extra_params_appended(self) -> None:
        facade = DefinitionFacade(
            RouteDefinition(params={"q": {"validation": "required"}}),
            extra_params=[ParamDefinition("q"), ParamDefinition("page", "int")],
        )
        params = facade.params()
        assert [p.name for p in params] == ["q", "page"]
        assert params[0].required

    def test_params_do_not_fall_back(self) -> None:
        parent = DefinitionFacade(RouteDefinition(params={"q": {}}))
        assert DefinitionFacade(RouteDefinition(), parent=parent).params() == ()

    def test_responses_sorted(self) -> None:
        facade = DefinitionFacade(
            RouteDefinition(responses={404: "Missing", 200: {"description": "Found"}})
        )
        responses = facade.responses()
        assert [(r.status, r.description) for r in responses] == [(200, "Found"), (404, "Missing")]

    def test_response_default_description(self) -> None:
        assert ResponseDefinition(201).description == "Created"

    def test_to_dict(self) -> None:
        facade = DefinitionFacade(
            RouteDefinition(
                title="Search",
                type="api",
                meta={"tag": "search"},
                params={"q": {"validation": "required"}},
                responses={200: "Results"},
            )
        )
        data = facade.to_dict()
        assert data["title"] == "Search"
        assert data["meta"] == {"tag": "search"}
        assert data["params"][0]["name"] == "q"
        assert data["params"][0]["required"] is True
        assert data["responses"] == [{"status": 200, "description": "Results", "schema": []}]
