"""Middleware alias registry.

Maps short aliases (``"auth"``, ``"json"``) to concrete middleware types
so routes can name middleware without importing it::

    registry.registry(AuthMiddleware, "auth", origin="myapp")
    router.get("/admin", admin).middleware("auth", "admin")

Entries are write-once: the first registrant of an alias keeps it, and
later ``registry()`` calls for the same alias are ignored. Aliases from
configuration are registered before the built-ins, so configuration can
replace a built-in by claiming its alias first.
"""

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from switchyard.container import ContainerProtocol, resolve_type
from switchyard.errors import MiddlewareNotFound

logger = logging.getLogger("switchyard.middleware")


@dataclass(frozen=True, slots=True)
class RegistryEntry:
    """A registered alias: what it builds and who registered it."""

    concrete: Any
    origin: str = "undefined"


class MiddlewareRegistry:
    """Write-once alias table with lazy construction.

    ``make()`` asks the container first, so anything the container can
    build by alias needs no registry entry at all.
    """

    __slots__ = ("_container", "_entries", "_lock")

    def __init__(self, container: ContainerProtocol | None = None) -> None:
        self._container = container
        self._entries: dict[str, RegistryEntry] = {}
        self._lock = threading.Lock()

    def registry(self, concrete: Any, alias: str, origin: str = "undefined") -> None:
        """Register *concrete* under *alias* unless the alias is taken."""
        with self._lock:
            existing = self._entries.get(alias)
            if existing is not None:
                logger.debug(
                    "Middleware alias %r already registered by %r; ignoring %r",
                    alias,
                    existing.origin,
                    origin,
                )
                return
            self._entries[alias] = RegistryEntry(concrete, origin)

    def has(self, alias: str) -> bool:
        return alias in self._entries

    def get_registry(self) -> Mapping[str, RegistryEntry]:
        """Read-only snapshot of all registered aliases."""
        with self._lock:
            return MappingProxyType(dict(self._entries))

    def make(self, alias: str, args: tuple[Any, ...] | list[Any] = ()) -> Any:
        """Build the middleware registered as *alias*.

        Resolution order: the container (if it has *alias*), then the
        registry entry's concrete type.

        Raises:
            MiddlewareNotFound: If neither knows *alias*.
        """
        if self._container is not None and self._container.has(alias):
            return self._container.make(alias, *args)

        entry = self._entries.get(alias)
        if entry is None:
            raise MiddlewareNotFound(alias)

        if self._container is not None:
            return self._container.make(entry.concrete, *args)
        return resolve_type(entry.concrete)(*args)
