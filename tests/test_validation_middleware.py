"""Tests for switchyard.middleware.validation — params to rules to responses."""

import pytest

from switchyard.errors import ValidationFailed
from switchyard.hooks import (
    VALIDATION_FAIL,
    VALIDATION_RULES,
    VALIDATION_SUCCESS,
    Hooks,
)
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.middleware.validation import (
    ValidationMiddleware,
    coerce_literals,
    derive_rules,
    filter_to_rules,
    flatten_params,
)
from switchyard.routing.params import ParamDefinition, ParamDefinitionFactory as F, ParamType
from switchyard.routing.router import Router
from switchyard.testing import TestClient, assert_json_error
from switchyard.validation import Validator


def _echo_validated(request: Request) -> dict:
    return request.attribute("validated")


class TestDeriveRules:
    def test_int_rule_comes_first(self) -> None:
        param = ParamDefinition("age", ParamType.INT, validation="required|min:18")
        assert derive_rules(param) == ["integer", "required", "min:18"]

    @pytest.mark.parametrize(
        ("param_type", "rule"),
        [
            (ParamType.NUMBER, "numeric"),
            (ParamType.BOOLEAN, "boolean"),
            (ParamType.ARRAY, "array"),
            (ParamType.OBJECT, "array"),
        ],
    )
    def test_type_rules(self, param_type: ParamType, rule: str) -> None:
        assert derive_rules(ParamDefinition("x", param_type))[0] == rule

    def test_string_has_no_type_rule(self) -> None:
        assert derive_rules(ParamDefinition("name", validation="required")) == ["required"]

    def test_enum_becomes_in_rule(self) -> None:
        param = ParamDefinition("sort", enum=("asc", "desc"), validation="required")
        assert derive_rules(param) == ["required", "in:asc,desc"]

    def test_boolean_enum_text(self) -> None:
        param = ParamDefinition("flag", ParamType.BOOLEAN, enum=(True, False))
        assert derive_rules(param) == ["boolean", "in:true,false"]


class TestFlattenParams:
    def test_single_inner_is_wildcard(self) -> None:
        items = F.array("items", inner=[F.string("name")])
        assert flatten_params([items]) == {"items": ["array"], "items.*": []}

    def test_many_inner_are_named_fields(self) -> None:
        user = F.object("user", inner=[F.string("name"), F.integer("age")])
        assert flatten_params([user]) == {
            "user": ["array"],
            "user.name": [],
            "user.age": ["integer"],
        }

    def test_branch_depends_on_count_not_type(self) -> None:
        single = F.object("filter", inner=[F.string("term")])
        several = F.array("pair", inner=[F.string("a"), F.string("b")])
        rules = flatten_params([single, several])
        assert "filter.*" in rules
        assert "pair.a" in rules
        assert "pair.b" in rules

    def test_list_of_objects(self) -> None:
        line = F.object("line", inner=[F.string("sku", validation="required"), F.integer("qty")])
        rules = flatten_params([F.array("lines", inner=[line])])
        assert rules == {
            "lines": ["array"],
            "lines.*": ["array"],
            "lines.*.sku": ["required"],
            "lines.*.qty": ["integer"],
        }

    def test_list_of_lists(self) -> None:
        grid = F.array("grid", inner=[F.array("row", inner=[F.integer("cell")])])
        assert flatten_params([grid]) == {
            "grid": ["array"],
            "grid.*": ["array"],
            "grid.*.*": ["integer"],
        }


class TestDataPreparation:
    def test_coerce_literals(self) -> None:
        data = {"a": "true", "b": ["false", "null", "x"], "c": {"d": "true"}, "e": 1}
        assert coerce_literals(data) == {
            "a": True,
            "b": [False, None, "x"],
            "c": {"d": True},
            "e": 1,
        }

    def test_filter_drops_unknown_keys(self) -> None:
        data = {"q": "x", "extra": "y", "user": {"name": "a", "secret": "b"}}
        assert filter_to_rules(data, {"q", "user", "user.name"}) == {
            "q": "x",
            "user": {"name": "a"},
        }

    def test_filter_keeps_list_items_under_wildcard(self) -> None:
        data = {"items": [{"name": "a", "junk": 1}, {"name": "b"}]}
        assert filter_to_rules(data, {"items", "items.*", "items.*.name"}) == {
            "items": [{"name": "a"}, {"name": "b"}]
        }

    def test_filter_keeps_whole_value_without_child_rules(self) -> None:
        data = {"tags": ["a", "b"]}
        assert filter_to_rules(data, {"tags"}) == {"tags": ["a", "b"]}

    def test_query_wins_over_body(self) -> None:
        middleware = ValidationMiddleware(Validator(), params=[F.string("q")])
        request = Request.build("POST", "/?q=query", json={"q": "body"})
        request = request.with_parsed_body({"q": "body"})
        assert middleware.request_data(request) == {"q": "query"}

    def test_bracket_notation_in_query(self) -> None:
        middleware = ValidationMiddleware(
            Validator(),
            params=[F.array("ids", inner=[F.integer("id")])],
        )
        request = Request.build("GET", "/?ids[]=1&ids[]=2")
        assert middleware.request_data(request) == {"ids": ["1", "2"]}


class TestSchemaRoundTrip:
    def _router(self) -> Router:
        router = Router()
        router.get("/search", _echo_validated).set_definition(
            params={"query": {"type": "string", "validation": "required"}}
        )
        return router

    def test_missing_required_param_is_400(self) -> None:
        response = TestClient(self._router()).get("/search", headers={"accept": "application/json"})
        body = assert_json_error(response, 400, error="validation_failed", field="query")
        assert body["errors"]["query"] == ["This field is required"]

    def test_present_param_reaches_handler(self) -> None:
        response = TestClient(self._router()).get("/search", query={"query": "value"})
        assert response.status == 200
        assert response.json() == {"query": "value"}

    def test_non_json_request_raises_validation_failed(self) -> None:
        with pytest.raises(ValidationFailed) as exc_info:
            self._router().dispatch(Request.build("GET", "/search"))
        assert "query" in exc_info.value.errors

    def test_json_request_gets_json_error_without_raising(self) -> None:
        calls: list[str] = []
        router = Router()
        router.post("/users", lambda: calls.append("handler") or "ok").set_definition(
            params={"email": {"validation": "required|email"}}
        )
        response = router.dispatch(Request.build("POST", "/users", json={"email": "nope"}))
        assert_json_error(response, 400, field="email")
        assert calls == []


class TestValidatedData:
    def test_handler_sees_coerced_values(self) -> None:
        router = Router()
        router.get("/items", _echo_validated).set_definition(
            params={"active": {"type": "boolean"}, "page": {"type": "int"}}
        )
        response = TestClient(router).get("/items", query={"active": "true", "page": "2", "x": "1"})
        assert response.json() == {"active": True, "page": "2"}

    def test_raw_query_is_untouched(self) -> None:
        router = Router()
        router.get("/items", lambda request: request.query["active"]).set_definition(
            params={"active": {"type": "boolean"}}
        )
        assert TestClient(router).get("/items", query={"active": "true"}).text == "true"

    def test_json_body_validated(self) -> None:
        router = Router()
        router.post("/orders", _echo_validated).set_definition(
            params={
                "lines": {
                    "type": "array",
                    "validation": "required",
                    "inner": {
                        "line": {
                            "type": "object",
                            "inner": {
                                "sku": {"validation": "required"},
                                "qty": {"type": "int", "validation": "min:1"},
                            },
                        }
                    },
                }
            }
        )
        client = TestClient(router)
        ok = client.post("/orders", json={"lines": [{"sku": "A1", "qty": 2}]})
        assert ok.status == 200
        bad = client.post("/orders", json={"lines": [{"sku": "A1", "qty": 0}, {"qty": 1}]})
        body = assert_json_error(bad, 400)
        assert set(body["errors"]) == {"lines.0.qty", "lines.1.sku"}

    def test_invalid_json_body(self) -> None:
        router = Router()
        router.post("/users", lambda: "ok").set_definition(params={"name": {}})
        response = TestClient(router).post(
            "/users", body=b"{not json", headers={"content-type": "application/json"}
        )
        assert_json_error(response, 400, error="invalid_json")

    def test_undecodable_form_body_reports_form_error(self) -> None:
        router = Router()
        router.post("/users", lambda: "ok").set_definition(params={"name": {}})
        response = TestClient(router).post(
            "/users",
            body=b"name=ada",
            headers={"content-type": "multipart/form-data", "accept": "application/json"},
        )
        assert_json_error(response, 400, error="invalid_form")
        assert "boundary" in response.json()["message"]

    def test_enum_rejects_other_values(self) -> None:
        router = Router()
        router.get("/list", lambda: "ok").set_definition(
            params={"sort": {"enum": ["asc", "desc"]}}
        )
        client = TestClient(router)
        assert client.get("/list", query={"sort": "asc"}).status == 200
        assert client.get("/list", query={"sort": "sideways"}).status == 400


class TestHooks:
    def test_success_and_fail_hooks(self) -> None:
        events: list[str] = []
        hooks = Hooks()
        hooks.register(VALIDATION_SUCCESS, lambda data, request: events.append("success"))
        hooks.register(VALIDATION_FAIL, lambda errors, request: events.append("fail"))
        router = Router(hooks=hooks)
        router.get("/", lambda: "ok").set_definition(params={"q": {"validation": "required"}})
        client = TestClient(router)
        client.get("/", query={"q": "x"})
        client.get("/")
        assert events == ["success", "fail"]

    def test_rules_hook_can_add_custom_rule(self) -> None:
        def add_rule(validator: Validator, rules: dict) -> None:
            validator.add_rule("even", lambda value: None if int(value) % 2 == 0 else "Must be even")

        hooks = Hooks()
        hooks.register(VALIDATION_RULES, add_rule)
        router = Router(hooks=hooks)
        router.get("/", lambda: "ok").set_definition(
            params={"n": {"type": "int", "validation": "even"}}
        )
        client = TestClient(router)
        assert client.get("/", query={"n": "4"}).status == 200
        assert client.get("/", query={"n": "3"}).status == 400

    def test_middleware_used_directly(self) -> None:
        middleware = ValidationMiddleware(Validator(), rules={"q": "required"})

        def terminal(request: Request) -> Response:
            return Response(str(request.attribute("validated")))

        response = middleware.process(Request.build("GET", "/?q=1"), terminal)
        assert response.text == "{'q': '1'}"
