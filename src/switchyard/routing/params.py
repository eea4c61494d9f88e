"""Parameter schema — typed, nestable descriptions of request data.

A ``ParamDefinition`` describes one request parameter: its type,
validation rules, default, and (for arrays and objects) its children.
Route definitions hold them, ``ValidationMiddleware`` flattens them into
rule sets, and documentation generators read them back.

Parameters can be declared three ways::

    # 1. Directly
    ParamDefinition("limit", ParamType.INT, validation="min:1|max:100")

    # 2. Through the factory
    ParamDefinitionFactory.array("tags", inner=[ParamDefinitionFactory.string("tag")])

    # 3. On handlers, with the ``param`` decorator
    @param("query", validation="required")
    def search(request): ...
"""

from __future__ import annotations

import dataclasses
import types
import typing
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

from switchyard.errors import ConfigurationError

# Attribute on handlers, controller classes, and entities holding declared params
PARAMS_ATTR = "__switchyard_params__"

# Nesting beyond this depth is not expanded
MAX_DEPTH = 10


class ParamType(StrEnum):
    """The JSON-ish type of a parameter."""

    STRING = "string"
    INT = "int"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"

    @property
    def is_container(self) -> bool:
        """True for types that may hold inner parameters."""
        return self in (ParamType.ARRAY, ParamType.OBJECT)

    @classmethod
    def coerce(cls, value: Any) -> ParamType:
        """Accept a ParamType, its value, a common alias, or a Python type.

        Raises ``ConfigurationError`` for anything unrecognised.
        """
        if isinstance(value, ParamType):
            return value
        if isinstance(value, str):
            key = value.lower()
            if key in _ALIASES:
                return _ALIASES[key]
            try:
                return cls(key)
            except ValueError:
                pass
        if isinstance(value, type):
            for python_type, param_type in _PYTHON_TYPES:
                if issubclass(value, python_type):
                    return param_type
        msg = f"Unknown parameter type: {value!r}"
        raise ConfigurationError(msg)


_ALIASES: dict[str, ParamType] = {
    "str": ParamType.STRING,
    "integer": ParamType.INT,
    "float": ParamType.NUMBER,
    "numeric": ParamType.NUMBER,
    "bool": ParamType.BOOLEAN,
    "list": ParamType.ARRAY,
    "dict": ParamType.OBJECT,
}

# bool before int: bool is an int subclass
_PYTHON_TYPES: tuple[tuple[type, ParamType], ...] = (
    (bool, ParamType.BOOLEAN),
    (int, ParamType.INT),
    (float, ParamType.NUMBER),
    (str, ParamType.STRING),
    (list, ParamType.ARRAY),
    (tuple, ParamType.ARRAY),
    (dict, ParamType.OBJECT),
)


def _split_rules(validation: str | Iterable[str] | None) -> tuple[str, ...]:
    if validation is None:
        return ()
    if isinstance(validation, str):
        return tuple(rule for rule in validation.split("|") if rule)
    return tuple(validation)


@dataclass(frozen=True, slots=True)
class ParamDefinition:
    """One schema node.

    ``validation`` accepts a ``"required|min:3"`` string or a list of
    rules and is stored as a tuple. ``inner`` is only legal for arrays
    and objects. ``title`` defaults to ``name``.
    """

    name: str
    type: ParamType = ParamType.STRING
    title: str = ""
    description: str = ""
    default: Any = None
    validation: tuple[str, ...] = ()
    enum: tuple[Any, ...] = ()
    inner: tuple[ParamDefinition, ...] = field(default=())

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", ParamType.coerce(self.type))
        object.__setattr__(self, "validation", _split_rules(self.validation))
        object.__setattr__(self, "enum", tuple(self.enum or ()))
        object.__setattr__(self, "inner", tuple(self.inner or ()))
        if not self.title:
            object.__setattr__(self, "title", self.name)
        if self.inner and not self.type.is_container:
            msg = f"Parameter {self.name!r} of type {self.type} cannot have inner parameters"
            raise ConfigurationError(msg)

    @property
    def required(self) -> bool:
        """True iff ``required`` is among the validation rules."""
        return "required" in self.validation

    def with_inner(self, *params: ParamDefinition) -> ParamDefinition:
        """Return a copy with *params* as children.

        Raises ``ConfigurationError`` unless this is an array or object.
        """
        if not self.type.is_container:
            msg = f"Only array and object parameters accept inner parameters, not {self.type}"
            raise ConfigurationError(msg)
        return replace(self, inner=params)

    def with_validation(self, validation: str | Iterable[str]) -> ParamDefinition:
        """Return a copy with the given rules."""
        return replace(self, validation=_split_rules(validation))

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form, e.g. for documentation output."""
        return {
            "name": self.name,
            "type": str(self.type),
            "title": self.title,
            "description": self.description,
            "default": self.default,
            "required": self.required,
            "validation": list(self.validation),
            "enum": list(self.enum),
            "inner": [child.to_dict() for child in self.inner],
        }

    @classmethod
    def from_spec(cls, name: str, spec: Mapping[str, Any] | ParamDefinition) -> ParamDefinition:
        """Build a definition from a ``{"type": ..., "validation": ...}`` mapping.

        ``inner`` may be a mapping of child name to spec, or a sequence
        of ``ParamDefinition``. Missing ``type`` means string.
        """
        if isinstance(spec, ParamDefinition):
            return spec if spec.name == name else replace(spec, name=name)
        raw_inner = spec.get("inner") or ()
        if isinstance(raw_inner, Mapping):
            inner = tuple(cls.from_spec(k, v) for k, v in raw_inner.items())
        else:
            inner = tuple(raw_inner)
        return cls(
            name=name,
            type=spec.get("type", ParamType.STRING),
            title=spec.get("title", ""),
            description=spec.get("description", ""),
            default=spec.get("default"),
            validation=spec.get("validation"),  # type: ignore[arg-type]
            enum=spec.get("enum", ()),
            inner=inner,
        )


class ParamDefinitionFactory:
    """Typed constructors for parameter definitions.

    Usage::

        F = ParamDefinitionFactory
        params = [
            F.string("query", validation="required"),
            F.integer("page", default=1),
            F.object("filter", inner=[F.boolean("archived")]),
        ]
    """

    @staticmethod
    def string(name: str, **options: Any) -> ParamDefinition:
        return ParamDefinition(name, ParamType.STRING, **options)

    @staticmethod
    def integer(name: str, **options: Any) -> ParamDefinition:
        return ParamDefinition(name, ParamType.INT, **options)

    @staticmethod
    def number(name: str, **options: Any) -> ParamDefinition:
        return ParamDefinition(name, ParamType.NUMBER, **options)

    @staticmethod
    def boolean(name: str, **options: Any) -> ParamDefinition:
        return ParamDefinition(name, ParamType.BOOLEAN, **options)

    @staticmethod
    def array(name: str, inner: Sequence[ParamDefinition] = (), **options: Any) -> ParamDefinition:
        return ParamDefinition(name, ParamType.ARRAY, inner=tuple(inner), **options)

    @staticmethod
    def object(name: str, inner: Sequence[ParamDefinition] = (), **options: Any) -> ParamDefinition:
        return ParamDefinition(name, ParamType.OBJECT, inner=tuple(inner), **options)


# -- Declaring params on handlers --


def param(
    name: str,
    type: Any = ParamType.STRING,
    *,
    title: str = "",
    description: str = "",
    default: Any = None,
    validation: str | Iterable[str] | None = None,
    enum: Iterable[Any] = (),
    inner: Sequence[ParamDefinition] = (),
) -> Callable[[Any], Any]:
    """Declare a request parameter on a handler, controller, or entity.

    ``type`` may be a ``ParamType``, a type name, a Python type, or a
    class that itself declares params (or is a dataclass), which yields
    an object parameter with those children::

        @param("user", UserEntity, validation="required")
        @param("notify", bool)
        class CreateUserController(Controller): ...

    Decorators read top-down: the outermost ``@param`` comes first.
    """

    def decorator(target: Any) -> Any:
        definition = _param_for(name, type, title, description, default, validation, enum, inner)
        existing = tuple(target.__dict__.get(PARAMS_ATTR, ())) if hasattr(target, "__dict__") else ()
        setattr(target, PARAMS_ATTR, (definition, *existing))
        return target

    return decorator


def _param_for(
    name: str,
    type_: Any,
    title: str,
    description: str,
    default: Any,
    validation: str | Iterable[str] | None,
    enum: Iterable[Any],
    inner: Sequence[ParamDefinition],
) -> ParamDefinition:
    if isinstance(type_, type) and _is_entity(type_):
        return ParamDefinition(
            name,
            ParamType.OBJECT,
            title=title,
            description=description,
            default=default,
            validation=_split_rules(validation),
            inner=tuple(inner) or entity_params(type_),
        )
    return ParamDefinition(
        name,
        type_,
        title=title,
        description=description,
        default=default,
        validation=_split_rules(validation),
        enum=tuple(enum),
        inner=tuple(inner),
    )


def _is_entity(cls: type) -> bool:
    return PARAMS_ATTR in cls.__dict__ or dataclasses.is_dataclass(cls)


def entity_params(cls: type, depth: int = 0) -> tuple[ParamDefinition, ...]:
    """Parameters described by a class: declared ``@param``s plus dataclass fields.

    Dataclass fields without a default are required. Field types that are
    themselves entities become nested objects, down to ``MAX_DEPTH``.
    """
    if depth >= MAX_DEPTH:
        return ()
    declared = list(getattr(cls, PARAMS_ATTR, ()))
    if dataclasses.is_dataclass(cls):
        hints = typing.get_type_hints(cls)
        owner = cls.__name__.removesuffix("Controller")
        for f in dataclasses.fields(cls):
            if not f.init or any(p.name == f.name for p in declared):
                continue
            declared.append(_field_param(f, hints.get(f.name, str), owner, depth))
    return tuple(declared)


def _field_param(f: dataclasses.Field[Any], hint: Any, owner: str, depth: int) -> ParamDefinition:
    optional = False
    if isinstance(hint, types.UnionType) or typing.get_origin(hint) is typing.Union:
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        optional = len(args) < len(typing.get_args(hint))
        hint = args[0] if args else str
    origin = typing.get_origin(hint) or hint
    has_default = f.default is not dataclasses.MISSING or f.default_factory is not dataclasses.MISSING
    rules = () if has_default or optional else ("required",)
    default = f.default if f.default is not dataclasses.MISSING else None
    description = f"The {f.name} of the {owner}"

    if isinstance(origin, type) and _is_entity(origin):
        return ParamDefinition(
            f.name,
            ParamType.OBJECT,
            description=description,
            validation=rules,
            inner=entity_params(origin, depth + 1),
        )
    try:
        param_type = ParamType.coerce(origin)
    except ConfigurationError:
        param_type = ParamType.STRING
    return ParamDefinition(f.name, param_type, description=description, default=default, validation=rules)


def declared_params(*targets: Any) -> tuple[ParamDefinition, ...]:
    """Collect ``@param`` declarations from classes, functions, and methods.

    Later targets do not override earlier ones: the first declaration of
    a name wins.
    """
    seen: set[str] = set()
    result: list[ParamDefinition] = []
    for target in targets:
        if target is None:
            continue
        for definition in getattr(target, PARAMS_ATTR, ()):
            if definition.name not in seen:
                seen.add(definition.name)
                result.append(definition)
    return tuple(result)
