"""Immutable query string parameters.

Implements ``Mapping[str, str]`` for flat access and decodes bracket
notation (``items[]=a``, ``user[name]=b``) into nested data via
``to_dict()``.
"""

import re
from collections.abc import Iterator, Mapping
from typing import Any
from urllib.parse import parse_qsl

_KEY_RE = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])+)$")
_PART_RE = re.compile(r"\[([^\[\]]*)\]")


class QueryParams(Mapping[str, str]):
    """Immutable query string parameters.

    Attributes:
        _data: Parsed query string as field name -> list of values.
        _pairs: Parsed name/value pairs in their original order.
        _raw: Raw query string.

    ``__getitem__`` returns the first value for a key.
    ``get_list`` returns all values for a key.
    """

    _data: dict[str, list[str]]
    _pairs: tuple[tuple[str, str], ...]
    _raw: str

    __slots__ = ("_data", "_pairs", "_raw")

    def __init__(self, query_string: str | bytes = "") -> None:
        if isinstance(query_string, bytes):
            query_string = query_string.decode("latin-1")
        pairs = tuple(parse_qsl(query_string, keep_blank_values=True))
        data: dict[str, list[str]] = {}
        for key, value in pairs:
            data.setdefault(key, []).append(value)
        object.__setattr__(self, "_raw", query_string)
        object.__setattr__(self, "_pairs", pairs)
        object.__setattr__(self, "_data", data)

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"QueryParams({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        values = self._data.get(key)
        if values:
            return values[0]
        return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        return list(self._data.get(key, []))

    @property
    def raw(self) -> str:
        """The undecoded query string."""
        return self._raw

    def to_dict(self) -> dict[str, Any]:
        """Decode into nested data, honouring bracket notation.

        ``?q=a&items[]=x&items[]=y&user[name]=z`` becomes::

            {"q": "a", "items": ["x", "y"], "user": {"name": "z"}}

        Repeated plain keys keep their first value.
        """
        return parse_nested(self._pairs)


def parse_nested(pairs: tuple[tuple[str, str], ...] | list[tuple[str, str]]) -> dict[str, Any]:
    """Decode bracket-notation name/value pairs into nested dicts and lists."""
    result: dict[str, Any] = {}
    for key, value in pairs:
        _assign(result, _split_key(key), value)
    return {k: _listify(v) for k, v in result.items()}


def _split_key(key: str) -> list[str]:
    match = _KEY_RE.match(key)
    if match is None:
        return [key]
    return [match.group(1), *_PART_RE.findall(match.group(2))]


def _assign(container: dict[str, Any], parts: list[str], value: str) -> None:
    key = parts[0] or str(len(container))
    if len(parts) == 1:
        container.setdefault(key, value)
        return
    child = container.get(key)
    if not isinstance(child, dict):
        child = {}
        container[key] = child
    _assign(child, parts[1:], value)


def _listify(value: Any) -> Any:
    """Turn dicts keyed ``"0".."n-1"`` into lists, recursively."""
    if not isinstance(value, dict):
        return value
    converted = {k: _listify(v) for k, v in value.items()}
    if converted and sorted(converted, key=_sort_key) == [str(i) for i in range(len(converted))]:
        return [converted[str(i)] for i in range(len(converted))]
    return converted


def _sort_key(key: str) -> tuple[int, str]:
    return (int(key), "") if key.isdigit() else (-1, key)
