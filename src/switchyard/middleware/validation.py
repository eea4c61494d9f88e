"""ValidationMiddleware — gate a route on its declared parameters.

The dispatcher installs this automatically for any route whose
definition declares parameters. The parameter tree is flattened into
dotted rule keys:

    items: array, inner [name]         -> items, items.*
    user:  object, inner [name, age]   -> user, user.name, user.age

A single inner parameter is treated as the element schema of a list
(``key.*``); several are treated as the fields of an object
(``key.<child>``). The branch depends on the count alone, whatever the
declared type.

Request data is the query string merged with the decoded body (query
wins on collisions), narrowed to the keys the rules know about, with the
strings ``"true"``, ``"false"`` and ``"null"`` coerced. On success the
handler sees the coerced data as ``request.attribute("validated")``;
the raw query and body are untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from switchyard.errors import BadRequest, ValidationFailed
from switchyard.hooks import (
    VALIDATION_AFTER,
    VALIDATION_BEFORE,
    VALIDATION_FAIL,
    VALIDATION_RULES,
    VALIDATION_SUCCESS,
    HookBus,
)
from switchyard.http.forms import is_form_content_type
from switchyard.middleware.base import BaseMiddleware
from switchyard.middleware.json import invalid_json
from switchyard.routing.params import ParamDefinition, ParamType

if TYPE_CHECKING:
    from switchyard.http.request import Request
    from switchyard.http.response import Response
    from switchyard.middleware.protocol import Next
    from switchyard.validation import RuleSpec, ValidatorProtocol

logger = logging.getLogger("switchyard.middleware")

# Implicit rule each type contributes ahead of the declared rules
_TYPE_RULES: dict[ParamType, str] = {
    ParamType.INT: "integer",
    ParamType.NUMBER: "numeric",
    ParamType.BOOLEAN: "boolean",
    ParamType.ARRAY: "array",
    ParamType.OBJECT: "array",
}

_LITERALS: dict[str, Any] = {"true": True, "false": False, "null": None}


def derive_rules(param: ParamDefinition) -> list[str]:
    """Rule list for one parameter: type rule, declared rules, then ``in:`` from enum."""
    rules: list[str] = []
    type_rule = _TYPE_RULES.get(param.type)
    if type_rule is not None:
        rules.append(type_rule)
    rules.extend(param.validation)
    if param.enum:
        rules.append("in:" + ",".join(_enum_text(v) for v in param.enum))
    return rules


def _enum_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def flatten_params(params: Sequence[ParamDefinition], prefix: str = "") -> dict[str, list[str]]:
    """Flatten a parameter tree into ``{dotted key: rules}``.

    Every parameter gets its own key. Exactly one inner parameter is
    flattened under ``key.*``; more than one under ``key.<child name>``.
    """
    rules: dict[str, list[str]] = {}
    for param in params:
        key = prefix + param.name
        rules[key] = derive_rules(param)
        if len(param.inner) == 1:
            child = param.inner[0]
            rules[key + ".*"] = derive_rules(child)
            if child.inner:
                rules.update(_flatten_children(child, key + ".*."))
        elif len(param.inner) > 1:
            rules.update(flatten_params(param.inner, key + "."))
    return rules


def _flatten_children(param: ParamDefinition, prefix: str) -> dict[str, list[str]]:
    """Flatten the children of a list element schema under *prefix*."""
    if len(param.inner) == 1:
        child = param.inner[0]
        key = prefix + "*"
        rules = {key: derive_rules(child)}
        if child.inner:
            rules.update(_flatten_children(child, key + "."))
        return rules
    return flatten_params(param.inner, prefix)


def coerce_literals(value: Any) -> Any:
    """Recursively turn ``"true"``/``"false"``/``"null"`` strings into Python values."""
    if isinstance(value, str):
        return _LITERALS.get(value, value)
    if isinstance(value, list):
        return [coerce_literals(v) for v in value]
    if isinstance(value, Mapping):
        return {k: coerce_literals(v) for k, v in value.items()}
    return value


def filter_to_rules(data: Mapping[str, Any], keys: Sequence[str] | set[str]) -> dict[str, Any]:
    """Keep only the parts of *data* addressed by a rule key.

    List indices and mapping keys below a ``*`` segment are kept whole.
    """
    return _filter(data, {tuple(k.split(".")) for k in keys}, ())


def _filter(data: Any, paths: set[tuple[str, ...]], prefix: tuple[str, ...]) -> Any:
    depth = len(prefix)
    children = {p for p in paths if len(p) > depth and _matches(p[:depth], prefix)}
    if not children:
        return data
    if isinstance(data, Mapping):
        result: dict[str, Any] = {}
        for key, value in data.items():
            segment = str(key)
            if any(p[depth] in (segment, "*") for p in children):
                result[key] = _filter(value, children, (*prefix, segment))
        return result
    if isinstance(data, list):
        if any(p[depth] == "*" or p[depth].isdigit() for p in children):
            return [
                _filter(v, children, (*prefix, str(i)))
                for i, v in enumerate(data)
                if any(p[depth] in ("*", str(i)) for p in children)
            ]
    return data


def _matches(pattern: tuple[str, ...], path: tuple[str, ...]) -> bool:
    return all(p == "*" or p == s for p, s in zip(pattern, path, strict=True))


def invalid_form(exc: ValueError) -> BadRequest:
    """The error for a form body that cannot be decoded."""
    return BadRequest(
        f"The form data in the request body is invalid: {exc}",
        error="invalid_form",
        title="Invalid form data",
    )


class ValidationMiddleware(BaseMiddleware):
    """Validate merged request data against flattened parameter rules.

    Pass either prebuilt ``rules`` or the ``params`` to flatten.
    """

    __slots__ = ("params", "rules", "validator")

    def __init__(
        self,
        validator: ValidatorProtocol,
        rules: Mapping[str, RuleSpec] | None = None,
        params: Sequence[ParamDefinition] = (),
        hooks: HookBus | None = None,
    ) -> None:
        super().__init__(hooks)
        self.validator = validator
        self.params = tuple(params)
        self.rules: dict[str, RuleSpec] = dict(rules) if rules is not None else dict(flatten_params(self.params))

    def request_data(self, request: Request) -> dict[str, Any]:
        """Query merged over the decoded body, filtered and coerced."""
        body = request.input()
        data: dict[str, Any] = dict(body) if isinstance(body, Mapping) else {}
        data.update(request.query.to_dict())
        return coerce_literals(filter_to_rules(data, self.rules.keys()))

    def process(self, request: Request, next: Next) -> Response:
        try:
            data = self.request_data(request)
        except ValueError as exc:
            if is_form_content_type(request.content_type):
                return self.error_response(request, invalid_form(exc))
            return self.error_response(request, invalid_json())
        hooks = self.hooks

        if hooks is not None:
            hooks.call(VALIDATION_RULES, self.validator, self.rules)
            hooks.call(VALIDATION_BEFORE, data, self.rules)
        result = self.validator.validate(data, self.rules)
        if hooks is not None:
            hooks.call(VALIDATION_AFTER, result)

        if result.fails():
            errors = dict(result.errors)
            logger.debug("Validation failed for %s %s: %s", request.method, request.path, errors)
            if hooks is not None:
                hooks.call(VALIDATION_FAIL, errors, request)
            return self.error_response(request, ValidationFailed(errors))

        if hooks is not None:
            hooks.call(VALIDATION_SUCCESS, data, request)
        return next(request.with_attribute("validated", data))
