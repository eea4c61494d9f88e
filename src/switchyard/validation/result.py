"""Validation result — immutable container for validated data or errors."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """The outcome of validating request data against a set of rules.

    ``is_valid`` is True when there are no errors.
    The result is falsy when invalid, so you can write::

        result = validator.validate(data, rules)
        if not result:
            return error_response(result.errors)

    ``data`` is the data that was validated.

    ``errors`` maps field names (dotted for nested data) to lists of
    error messages::

        {"title": ["This field is required"],
         "items.0.qty": ["Must be a whole number"]}
    """

    data: dict[str, Any]
    errors: dict[str, list[str]]

    @property
    def is_valid(self) -> bool:
        """True if validation passed with no errors."""
        return not self.errors

    def fails(self) -> bool:
        """True if any field failed."""
        return bool(self.errors)

    def passes(self) -> bool:
        """True if every field passed."""
        return not self.errors

    def __bool__(self) -> bool:
        """Falsy when invalid — enables ``if not result:`` pattern."""
        return self.is_valid
