"""Ordered middleware entries with push/prepend/shift.

Routers, groups, and routes each hold one stack; the dispatcher builds
a request-scoped working stack from them and shifts entries off the
front as the chain runs.

Entries are stored unresolved: an instance, a class, a function, or a
registry alias, together with constructor args for the latter two kinds.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from switchyard.errors import EndOfMiddlewareStack


@dataclass(frozen=True, slots=True)
class MiddlewareEntry:
    """One unresolved middleware plus the args to build it with."""

    middleware: Any
    args: tuple[Any, ...] = ()


class MiddlewareStack:
    """A deque of ``MiddlewareEntry``.

    Usage::

        stack = MiddlewareStack()
        stack.push("auth", "admin").push(TimingMiddleware())
        stack.prepend(cors)
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[MiddlewareEntry] = ()) -> None:
        self._entries: deque[MiddlewareEntry] = deque(entries)

    def push(self, middleware: Any, *args: Any) -> MiddlewareStack:
        """Append *middleware* to the end of the stack."""
        self._entries.append(_entry(middleware, args))
        return self

    def prepend(self, middleware: Any, *args: Any) -> MiddlewareStack:
        """Insert *middleware* at the front of the stack."""
        self._entries.appendleft(_entry(middleware, args))
        return self

    def extend(self, entries: Iterable[MiddlewareEntry]) -> MiddlewareStack:
        """Append entries from another stack, keeping their order."""
        self._entries.extend(entries)
        return self

    def shift(self) -> MiddlewareEntry:
        """Remove and return the first entry.

        Raises ``EndOfMiddlewareStack`` when the stack is empty.
        """
        if not self._entries:
            raise EndOfMiddlewareStack
        return self._entries.popleft()

    def copy(self) -> MiddlewareStack:
        return MiddlewareStack(self._entries)

    def __iter__(self) -> Iterator[MiddlewareEntry]:
        return iter(tuple(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        names = ", ".join(_name(e.middleware) for e in self._entries)
        return f"MiddlewareStack([{names}])"


def _entry(middleware: Any, args: tuple[Any, ...]) -> MiddlewareEntry:
    if isinstance(middleware, MiddlewareEntry):
        return middleware
    return MiddlewareEntry(middleware, tuple(args))


def _name(middleware: Any) -> str:
    if isinstance(middleware, str):
        return repr(middleware)
    if isinstance(middleware, type):
        return middleware.__name__
    return getattr(middleware, "__qualname__", None) or type(middleware).__name__
