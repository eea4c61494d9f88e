"""Rule-string validator for nested request data.

Rules are keyed by dotted paths. ``*`` matches every item of a list or
every value of a mapping, and errors are reported under the concrete
path that failed::

    validator = Validator()
    result = validator.validate(
        {"items": [{"qty": "2"}, {"qty": "x"}]},
        {"items": "array", "items.*.qty": "required|integer"},
    )
    result.errors  # {"items.1.qty": ["Must be a whole number"]}
"""

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from switchyard.errors import ConfigurationError
from switchyard.validation.result import ValidationResult
from switchyard.validation.rules import (
    IMPLICIT_RULES,
    NUMERIC_RULES,
    RULES,
    SIZE_RULES,
    Rule,
    is_empty,
    required,
)

# A rule set entry: "a|b:c", or a list of single rules and plain checks
type RuleSpec = str | Sequence[str | Callable[[Any], str | None]]

_MISSING = object()


class Validator:
    """Validates data against rule strings.

    Each field's rules run in order. Missing or empty optional fields
    skip everything except ``required`` and ``present``; ``nullable``
    lets an explicit ``None`` through.
    """

    __slots__ = ("_rules",)

    def __init__(self, rules: Mapping[str, Rule] | None = None) -> None:
        self._rules: dict[str, Rule] = {**RULES, **(rules or {})}

    def add_rule(self, name: str, rule: Rule) -> None:
        """Register (or replace) a named rule."""
        self._rules[name] = rule

    def has_rule(self, name: str) -> bool:
        return name in self._rules

    def validate(self, data: Mapping[str, Any], rules: Mapping[str, RuleSpec]) -> ValidationResult:
        """Validate *data* against *rules*.

        Raises:
            ConfigurationError: If a rule string names an unknown rule.
        """
        errors: dict[str, list[str]] = {}
        for path, spec in rules.items():
            parsed = parse_rules(spec)
            names = {entry[0] for entry in parsed if isinstance(entry, tuple)}
            numeric = bool(names & NUMERIC_RULES)
            for key, value in resolve_path(data, path):
                messages = self._check(value, parsed, names, numeric=numeric)
                if messages:
                    errors.setdefault(key, []).extend(messages)
        return ValidationResult(data=dict(data), errors=errors)

    def _check(
        self,
        value: Any,
        parsed: list[tuple[str, tuple[str, ...]] | Callable[[Any], str | None]],
        names: set[str],
        *,
        numeric: bool,
    ) -> list[str]:
        if value is _MISSING:
            if "required" in names:
                return [required(None) or ""]
            if "present" in names:
                return ["This field must be present"]
            return []
        if value is None and "nullable" in names:
            return []

        empty = is_empty(value)
        messages: list[str] = []
        for entry in parsed:
            if not isinstance(entry, tuple):
                message = None if empty else entry(value)
            else:
                name, params = entry
                if name == "nullable" or (empty and name not in IMPLICIT_RULES):
                    continue
                rule = self._rules.get(name)
                if rule is None:
                    msg = f"Unknown validation rule {name!r}"
                    raise ConfigurationError(msg)
                if name in SIZE_RULES:
                    message = rule(value, *params, numeric=numeric)
                else:
                    message = rule(value, *params)
                if message is not None and name == "required":
                    return [message]
            if message is not None:
                messages.append(message)
        return messages


def parse_rules(spec: RuleSpec) -> list[tuple[str, tuple[str, ...]] | Callable[[Any], str | None]]:
    """Split a rule spec into ``(name, params)`` pairs.

    A string is split on ``|``; list entries are single rules, so a
    ``regex`` in a list may itself contain ``|``.
    """
    entries = [part for part in spec.split("|") if part] if isinstance(spec, str) else list(spec)
    parsed: list[tuple[str, tuple[str, ...]] | Callable[[Any], str | None]] = []
    for entry in entries:
        if not isinstance(entry, str):
            parsed.append(entry)
            continue
        name, _, arg = entry.partition(":")
        if not arg:
            params: tuple[str, ...] = ()
        elif name == "regex":
            params = (arg,)
        else:
            params = tuple(p.strip() for p in arg.split(","))
        parsed.append((name.strip(), params))
    return parsed


def resolve_path(data: Any, path: str) -> list[tuple[str, Any]]:
    """Expand a dotted, possibly wildcarded path into concrete keys.

    Returns ``(key, value)`` pairs; ``value`` is a private sentinel when
    the key is absent. Wildcards over missing or scalar data expand to
    nothing.
    """
    return _resolve(data, path.split("."), "")


def _resolve(data: Any, parts: list[str], prefix: str) -> list[tuple[str, Any]]:
    if not parts:
        return [(prefix, data)]
    head, rest = parts[0], parts[1:]

    if head == "*":
        if isinstance(data, Mapping):
            items = [(str(k), v) for k, v in data.items()]
        elif isinstance(data, (list, tuple)):
            items = [(str(i), v) for i, v in enumerate(data)]
        else:
            return []
        results: list[tuple[str, Any]] = []
        for key, value in items:
            results.extend(_resolve(value, rest, _join(prefix, key)))
        return results

    child: Any = _MISSING
    if isinstance(data, Mapping):
        child = data.get(head, _MISSING)
    elif isinstance(data, (list, tuple)) and head.isdigit() and int(head) < len(data):
        child = data[int(head)]

    if child is _MISSING:
        if "*" in rest:
            return []
        return [(_join(prefix, ".".join(parts)), _MISSING)]
    return _resolve(child, rest, _join(prefix, head))


def _join(prefix: str, key: str) -> str:
    return f"{prefix}.{key}" if prefix else key
