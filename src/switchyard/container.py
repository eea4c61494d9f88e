"""Service container — the minimal locator the router builds things with.

The router only needs three operations: ``get`` (shared instance),
``make`` (fresh instance), and ``has``. Anything that provides them
satisfies ``ContainerProtocol``; ``Container`` is the small built-in
implementation used when none is supplied.

Usage::

    container = Container()
    container.provide(Database, lambda: Database("sqlite:///app.db"))
    container.provide("auth", AuthMiddleware)

    db = container.get(Database)        # built once, then reused
    mw = container.make("auth", "admin")  # built fresh with args
"""

import threading
from collections.abc import Callable
from pkgutil import resolve_name
from typing import Any, Protocol, runtime_checkable

from switchyard.errors import ConfigurationError


@runtime_checkable
class ContainerProtocol(Protocol):
    """What the router needs from a service container."""

    def get(self, key: Any, *args: Any, **kwargs: Any) -> Any: ...

    def make(self, key: Any, *args: Any, **kwargs: Any) -> Any: ...

    def has(self, key: Any) -> bool: ...


class Container:
    """Factory registry with shared-instance caching.

    Keys are types or strings. Unregistered classes are constructed
    directly; unregistered ``"package.module:Name"`` strings are
    imported first.
    """

    __slots__ = ("_factories", "_instances", "_lock")

    def __init__(self) -> None:
        self._factories: dict[Any, Callable[..., Any]] = {}
        self._instances: dict[Any, Any] = {}
        self._lock = threading.Lock()

    def provide(self, key: Any, factory: Callable[..., Any]) -> None:
        """Register a factory for *key*, replacing any earlier one."""
        with self._lock:
            self._factories[key] = factory
            self._instances.pop(key, None)

    def instance(self, key: Any, value: Any) -> None:
        """Register an already-built shared instance for *key*."""
        with self._lock:
            self._factories[key] = lambda *a, **kw: value
            self._instances[key] = value

    def has(self, key: Any) -> bool:
        """True if *key* was registered explicitly."""
        return key in self._factories

    def get(self, key: Any, *args: Any, **kwargs: Any) -> Any:
        """Return the shared instance for *key*, building it on first use."""
        if key in self._instances:
            return self._instances[key]
        value = self.make(key, *args, **kwargs)
        with self._lock:
            return self._instances.setdefault(key, value)

    def make(self, key: Any, *args: Any, **kwargs: Any) -> Any:
        """Build a new instance for *key*.

        Raises:
            ConfigurationError: If *key* is neither registered, a class,
                nor an importable ``"package.module:Name"`` reference.
        """
        factory = self._factories.get(key)
        if factory is None:
            factory = resolve_type(key)
        return factory(*args, **kwargs)


def resolve_type(ref: Any) -> Any:
    """Turn a class, factory, or ``"package.module:Name"`` reference into a callable.

    Raises ``ConfigurationError`` for anything else.
    """
    if callable(ref):
        return ref
    if isinstance(ref, str) and ("." in ref or ":" in ref):
        try:
            return resolve_name(ref)
        except (ImportError, AttributeError, ValueError) as exc:
            msg = f"Cannot import {ref!r}: {exc}"
            raise ConfigurationError(msg) from exc
    msg = f"Cannot resolve {ref!r} to a class. Register it with Container.provide()."
    raise ConfigurationError(msg)
