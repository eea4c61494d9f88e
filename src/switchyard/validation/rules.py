"""Built-in validation rules.

Rules are addressed by name in pipe-separated rule strings such as
``"required|integer|between:1,10"``. Each rule is a plain function::

    def rule(value: Any, *params: str) -> str | None:
        '''Return error message, or None if valid.'''

``params`` are the comma-separated arguments after the colon. Size rules
(``min``, ``max``, ``between``, ``size``) also receive ``numeric=True``
when the field carries an ``integer`` or ``numeric`` rule, so ``min:3``
means "at least 3" for numbers and "at least 3 characters" for strings.

Custom rules follow the same protocol; register them with
``Validator.add_rule()``.
"""

import math
import re
from collections.abc import Callable
from typing import Any

# Type alias for a rule function
type Rule = Callable[..., str | None]

# Rules whose value is measured rather than inspected
SIZE_RULES = frozenset({"min", "max", "between", "size"})

# Rules that make a field count as numeric for size comparisons
NUMERIC_RULES = frozenset({"integer", "numeric"})

# Rules that run even when the field is missing or empty
IMPLICIT_RULES = frozenset({"required", "present"})


# ---------------------------------------------------------------------------
# Presence
# ---------------------------------------------------------------------------


def is_empty(value: Any) -> bool:
    """None, blank strings, and empty containers count as empty."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return not value
    return False


def required(value: Any) -> str | None:
    """Field must be present and non-empty."""
    if is_empty(value):
        return "This field is required"
    return None


def present(value: Any) -> str | None:
    """Field must be present; the validator handles absence before calling."""
    return None


# ---------------------------------------------------------------------------
# Type
# ---------------------------------------------------------------------------

_INT_RE = re.compile(r"^[+-]?\d+$")


def integer(value: Any) -> str | None:
    """Value must be a whole number (or a string holding one)."""
    if isinstance(value, bool):
        return "Must be a whole number"
    if isinstance(value, int):
        return None
    if isinstance(value, float) and value.is_integer():
        return None
    if isinstance(value, str) and _INT_RE.match(value.strip()):
        return None
    return "Must be a whole number"


def numeric(value: Any) -> str | None:
    """Value must be a number (int, float, or a string holding one)."""
    if _as_number(value) is None:
        return "Must be a number"
    return None


_BOOLEAN_VALUES = frozenset({"1", "0", "true", "false", "on", "off", "yes", "no"})


def boolean(value: Any) -> str | None:
    """Value must be a boolean or a conventional boolean spelling."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int) and value in (0, 1):
        return None
    if isinstance(value, str) and value.strip().lower() in _BOOLEAN_VALUES:
        return None
    return "Must be true or false"


def array(value: Any) -> str | None:
    """Value must be a list or a mapping."""
    if isinstance(value, (list, tuple, dict)):
        return None
    return "Must be an array"


def string(value: Any) -> str | None:
    """Value must be text."""
    if isinstance(value, str):
        return None
    return "Must be a string"


# ---------------------------------------------------------------------------
# Size
# ---------------------------------------------------------------------------


def min_size(value: Any, limit: str, *, numeric: bool = False) -> str | None:
    """Number, length, or item count must be at least *limit*."""
    size = _size(value, numeric)
    if size is not None and size < float(limit):
        return f"Must be at least {limit}{_unit(value, numeric)}"
    return None


def max_size(value: Any, limit: str, *, numeric: bool = False) -> str | None:
    """Number, length, or item count must be at most *limit*."""
    size = _size(value, numeric)
    if size is not None and size > float(limit):
        return f"Must be at most {limit}{_unit(value, numeric)}"
    return None


def between(value: Any, low: str, high: str, *, numeric: bool = False) -> str | None:
    """Number, length, or item count must lie within ``low..high``."""
    size = _size(value, numeric)
    if size is not None and not float(low) <= size <= float(high):
        return f"Must be between {low} and {high}{_unit(value, numeric)}"
    return None


def exact_size(value: Any, expected: str, *, numeric: bool = False) -> str | None:
    """Number, length, or item count must equal *expected*."""
    size = _size(value, numeric)
    if size is not None and size != float(expected):
        return f"Must be exactly {expected}{_unit(value, numeric)}"
    return None


def digits(value: Any, count: str) -> str | None:
    """Value must consist of exactly *count* digits."""
    text = str(value)
    if not text.isdigit() or len(text) != int(count):
        return f"Must be {count} digits"
    return None


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return None if math.isnan(number) else number
    return None


def _size(value: Any, numeric: bool) -> float | None:
    if numeric:
        return _as_number(value)
    if isinstance(value, (str, list, tuple, dict)):
        return float(len(value))
    return _as_number(value)


def _unit(value: Any, numeric: bool) -> str:
    if numeric:
        return ""
    if isinstance(value, str):
        return " characters"
    if isinstance(value, (list, tuple, dict)):
        return " items"
    return ""


# ---------------------------------------------------------------------------
# Choice
# ---------------------------------------------------------------------------


def scalar_text(value: Any) -> str:
    """Textual form used when comparing against ``in`` / ``not_in`` options."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def one_of(value: Any, *choices: str) -> str | None:
    """Value must be one of the given choices."""
    if scalar_text(value) not in choices:
        return f"Must be one of: {', '.join(choices)}"
    return None


def none_of(value: Any, *choices: str) -> str | None:
    """Value must not be any of the given choices."""
    if scalar_text(value) in choices:
        return f"Must not be one of: {', '.join(choices)}"
    return None


# ---------------------------------------------------------------------------
# Format
# ---------------------------------------------------------------------------

# Basic email pattern — checks structure, not deliverability
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")

# Basic URL pattern — checks scheme + host structure
_URL_RE = re.compile(r"^https?://[^\s/$.?#].\S*$", re.IGNORECASE)

_ALPHA_RE = re.compile(r"^[^\W\d_]+$")
_ALPHA_NUM_RE = re.compile(r"^[^\W_]+$")
_ALPHA_DASH_RE = re.compile(r"^[\w-]+$")


def email(value: Any) -> str | None:
    """Value must be a valid email address (basic format check)."""
    if not isinstance(value, str) or not _EMAIL_RE.match(value):
        return "Must be a valid email address"
    return None


def url(value: Any) -> str | None:
    """Value must be a valid URL (http/https)."""
    if not isinstance(value, str) or not _URL_RE.match(value):
        return "Must be a valid URL"
    return None


def alpha(value: Any) -> str | None:
    """Value must contain only letters."""
    if not isinstance(value, str) or not _ALPHA_RE.match(value):
        return "Must contain only letters"
    return None


def alpha_num(value: Any) -> str | None:
    """Value must contain only letters and digits."""
    if not _ALPHA_NUM_RE.match(scalar_text(value)):
        return "Must contain only letters and numbers"
    return None


def alpha_dash(value: Any) -> str | None:
    """Value must contain only letters, digits, dashes, and underscores."""
    if not _ALPHA_DASH_RE.match(scalar_text(value)):
        return "Must contain only letters, numbers, dashes and underscores"
    return None


def matches(value: Any, pattern: str) -> str | None:
    """Value must match the given regex pattern.

    Accepts bare patterns or delimited ones such as ``/^[a-z]+$/i``.
    """
    if not compile_pattern(pattern).search(scalar_text(value)):
        return f"Must match pattern: {pattern}"
    return None


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a bare or ``/delimited/flags`` pattern."""
    if len(pattern) > 1 and pattern.startswith("/") and pattern.rfind("/") > 0:
        end = pattern.rfind("/")
        flags = re.IGNORECASE if "i" in pattern[end + 1 :] else 0
        return re.compile(pattern[1:end], flags)
    return re.compile(pattern)


# Name -> rule function, as used in rule strings
RULES: dict[str, Rule] = {
    "required": required,
    "present": present,
    "integer": integer,
    "numeric": numeric,
    "boolean": boolean,
    "array": array,
    "string": string,
    "min": min_size,
    "max": max_size,
    "between": between,
    "size": exact_size,
    "digits": digits,
    "in": one_of,
    "not_in": none_of,
    "email": email,
    "url": url,
    "alpha": alpha,
    "alpha_num": alpha_num,
    "alpha_dash": alpha_dash,
    "regex": matches,
}
