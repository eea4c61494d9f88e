"""Hook bus — named notification and filter points.

The router and its middleware fire hooks at fixed points (route
configuration, dispatch, validation). A hook bus is always optional:
every caller checks for ``None`` and carries on without one.

Two kinds of hook:
    call(tag, *args)         -- notification, return values ignored
    query(tag, value, *args) -- filter, each callback returns the new value

Thread safety:
    - Registration is guarded by a Lock
    - Firing iterates over a snapshot, so callbacks may register or remove hooks
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

# Tags fired by the router and built-in middleware
ROUTER_CONFIG = "router.config"
ROUTER_DISPATCH = "router.dispatch"
DISPATCHER_MATCH = "dispatcher.match"
MIDDLEWARE_ERROR = "middleware.error"
VALIDATION_RULES = "middleware.validation.rules"
VALIDATION_BEFORE = "middleware.validation.before"
VALIDATION_AFTER = "middleware.validation.after"
VALIDATION_FAIL = "middleware.validation.fail"
VALIDATION_SUCCESS = "middleware.validation.success"


@runtime_checkable
class HookBus(Protocol):
    """What the router needs from a hook bus."""

    def call(self, tag: str, *args: Any) -> None: ...

    def query(self, tag: str, value: Any, *args: Any) -> Any: ...


@dataclass(frozen=True, slots=True)
class _Registration:
    callback: Callable[..., Any]
    priority: int
    order: int


class Hooks:
    """In-process hook bus with priorities.

    Lower priorities run first; equal priorities run in registration order.

    Usage::

        hooks = Hooks()
        hooks.register("router.dispatch", lambda request: request.with_attribute("t", 1))
        router = Router(hooks=hooks)
    """

    __slots__ = ("_counter", "_hooks", "_lock")

    def __init__(self) -> None:
        self._hooks: dict[str, list[_Registration]] = {}
        self._counter = 0
        self._lock = threading.Lock()

    def register(self, tag: str, callback: Callable[..., Any], priority: int = 10) -> None:
        """Attach *callback* to *tag*."""
        with self._lock:
            self._counter += 1
            entries = self._hooks.setdefault(tag, [])
            entries.append(_Registration(callback, priority, self._counter))
            entries.sort(key=lambda r: (r.priority, r.order))

    def remove(self, tag: str, callback: Callable[..., Any]) -> bool:
        """Detach *callback* from *tag*. Returns False if it was not attached."""
        with self._lock:
            entries = self._hooks.get(tag, [])
            kept = [r for r in entries if r.callback != callback]
            if len(kept) == len(entries):
                return False
            self._hooks[tag] = kept
            return True

    def has(self, tag: str) -> bool:
        """True if anything is attached to *tag*."""
        return bool(self._hooks.get(tag))

    def call(self, tag: str, *args: Any) -> None:
        """Notify every callback attached to *tag*."""
        for registration in self._snapshot(tag):
            registration.callback(*args)

    def query(self, tag: str, value: Any, *args: Any) -> Any:
        """Pass *value* through every callback attached to *tag*.

        Each callback receives the current value (plus *args*) and
        returns the next one.
        """
        for registration in self._snapshot(tag):
            value = registration.callback(value, *args)
        return value

    def _snapshot(self, tag: str) -> tuple[_Registration, ...]:
        with self._lock:
            return tuple(self._hooks.get(tag, ()))
