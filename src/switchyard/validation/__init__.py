"""Request validation — rule strings over nested data, clean results.

Usage::

    from switchyard.validation import validate

    result = validate(request.input(), {
        "title": "required|max:200",
        "tags": "array",
        "tags.*": "alpha_dash",
        "author.email": "required|email",
    })
    if not result:
        # result.errors == {"author.email": ["Must be a valid email address"]}
        ...

The router's ``ValidationMiddleware`` builds these rule sets from route
parameter definitions, so most handlers never call this directly.
"""

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from switchyard.validation.result import ValidationResult
from switchyard.validation.rules import RULES, Rule
from switchyard.validation.validator import RuleSpec, Validator, parse_rules, resolve_path

__all__ = [
    "RULES",
    "Rule",
    "RuleSpec",
    "ValidationResult",
    "Validator",
    "ValidatorProtocol",
    "parse_rules",
    "resolve_path",
    "validate",
]


@runtime_checkable
class ValidatorProtocol(Protocol):
    """What ``ValidationMiddleware`` needs from a validator.

    The returned result must offer ``fails()`` and an ``errors`` mapping
    of field name to messages.
    """

    def validate(self, data: Mapping[str, Any], rules: Mapping[str, RuleSpec]) -> Any: ...


def validate(data: Mapping[str, Any], rules: Mapping[str, RuleSpec]) -> ValidationResult:
    """Validate *data* against *rules* with the built-in rule set."""
    return Validator().validate(data, rules)
