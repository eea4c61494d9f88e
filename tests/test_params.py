"""Tests for switchyard.routing.params — parameter schema nodes."""

from dataclasses import dataclass, field

import pytest

from switchyard.errors import ConfigurationError
from switchyard.routing.params import (
    MAX_DEPTH,
    ParamDefinition,
    ParamDefinitionFactory,
    ParamType,
    declared_params,
    entity_params,
    param,
)


class TestParamType:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("string", ParamType.STRING),
            ("str", ParamType.STRING),
            ("int", ParamType.INT),
            ("integer", ParamType.INT),
            ("float", ParamType.NUMBER),
            ("BOOL", ParamType.BOOLEAN),
            ("list", ParamType.ARRAY),
            ("dict", ParamType.OBJECT),
            (int, ParamType.INT),
            (bool, ParamType.BOOLEAN),
            (float, ParamType.NUMBER),
            (list, ParamType.ARRAY),
            (ParamType.OBJECT, ParamType.OBJECT),
        ],
    )
    def test_coerce(self, value: object, expected: ParamType) -> None:
        assert ParamType.coerce(value) is expected

    def test_unknown(self) -> None:
        with pytest.raises(ConfigurationError):
            ParamType.coerce("uuid")

    def test_is_container(self) -> None:
        assert ParamType.ARRAY.is_container
        assert ParamType.OBJECT.is_container
        assert not ParamType.STRING.is_container


class TestParamDefinition:
    def test_defaults(self) -> None:
        p = ParamDefinition("query")
        assert p.type is ParamType.STRING
        assert p.title == "query"
        assert p.validation == ()
        assert not p.required

    def test_validation_string_is_split(self) -> None:
        p = ParamDefinition("age", "int", validation="required|min:18")
        assert p.validation == ("required", "min:18")
        assert p.required

    def test_inner_on_scalar_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            ParamDefinition("name", inner=(ParamDefinition("x"),))

    def test_with_inner(self) -> None:
        tags = ParamDefinition("tags", ParamType.ARRAY)
        nested = tags.with_inner(ParamDefinition("tag"))
        assert [c.name for c in nested.inner] == ["tag"]
        assert tags.inner == ()

    def test_with_inner_on_scalar_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            ParamDefinition("name").with_inner(ParamDefinition("x"))

    def test_with_validation(self) -> None:
        p = ParamDefinition("q").with_validation("required|max:5")
        assert p.validation == ("required", "max:5")

    def test_frozen(self) -> None:
        p = ParamDefinition("q")
        with pytest.raises(AttributeError):
            p.name = "other"  # type: ignore[misc]

    def test_from_spec(self) -> None:
        p = ParamDefinition.from_spec(
            "user",
            {
                "type": "object",
                "description": "The user",
                "inner": {"name": {"validation": "required"}, "age": {"type": "int"}},
            },
        )
        assert p.type is ParamType.OBJECT
        assert p.description == "The user"
        assert [(c.name, c.type) for c in p.inner] == [
            ("name", ParamType.STRING),
            ("age", ParamType.INT),
        ]

    def test_from_spec_renames_definition(self) -> None:
        p = ParamDefinition.from_spec("renamed", ParamDefinition("original", "int"))
        assert p.name == "renamed"
        assert p.type is ParamType.INT

    def test_to_dict(self) -> None:
        p = ParamDefinitionFactory.array("tags", inner=[ParamDefinitionFactory.string("tag")])
        data = p.to_dict()
        assert data["type"] == "array"
        assert data["required"] is False
        assert data["inner"][0]["name"] == "tag"


class TestFactory:
    def test_types(self) -> None:
        f = ParamDefinitionFactory
        assert f.string("a").type is ParamType.STRING
        assert f.integer("a").type is ParamType.INT
        assert f.number("a").type is ParamType.NUMBER
        assert f.boolean("a").type is ParamType.BOOLEAN
        assert f.array("a").type is ParamType.ARRAY
        assert f.object("a").type is ParamType.OBJECT

    def test_options_pass_through(self) -> None:
        p = ParamDefinitionFactory.integer("page", default=1, validation="min:1")
        assert p.default == 1
        assert p.validation == ("min:1",)


@dataclass
class Address:
    street: str
    city: str = "Springfield"


@dataclass
class UserController:
    name: str
    address: Address
    nickname: str | None = None
    tags: list[str] = field(default_factory=list)


class TestParamDecorator:
    def test_outermost_first(self) -> None:
        @param("a")
        @param("b")
        def handler() -> None: ...

        assert [p.name for p in declared_params(handler)] == ["a", "b"]

    def test_python_type(self) -> None:
        @param("limit", int, validation="max:100")
        def handler() -> None: ...

        (limit,) = declared_params(handler)
        assert limit.type is ParamType.INT
        assert limit.validation == ("max:100",)

    def test_entity_type_becomes_object(self) -> None:
        @param("address", Address, validation="required")
        def handler() -> None: ...

        (address,) = declared_params(handler)
        assert address.type is ParamType.OBJECT
        assert [c.name for c in address.inner] == ["street", "city"]

    def test_first_declaration_wins(self) -> None:
        @param("q", validation="required")
        def first() -> None: ...

        @param("q", validation="min:2")
        def second() -> None: ...

        (q,) = declared_params(first, second)
        assert q.validation == ("required",)

    def test_none_targets_ignored(self) -> None:
        assert declared_params(None, None) == ()


class TestEntityParams:
    def test_dataclass_fields(self) -> None:
        params = {p.name: p for p in entity_params(UserController)}
        assert set(params) == {"name", "address", "nickname", "tags"}
        assert params["name"].required
        assert not params["nickname"].required
        assert not params["tags"].required
        assert params["tags"].type is ParamType.ARRAY

    def test_description_names_owner(self) -> None:
        params = {p.name: p for p in entity_params(UserController)}
        assert params["name"].description == "The name of the User"

    def test_nested_entity(self) -> None:
        params = {p.name: p for p in entity_params(UserController)}
        address = params["address"]
        assert address.type is ParamType.OBJECT
        assert address.required
        city = {c.name: c for c in address.inner}["city"]
        assert city.default == "Springfield"
        assert not city.required

    def test_depth_limit(self) -> None:
        assert entity_params(UserController, depth=MAX_DEPTH) == ()
