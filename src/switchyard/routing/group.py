"""Route groups — a path prefix plus shared conditions, strategy, and middleware.

A group's configure callback runs once, when the group is created. Each
route mapped inside it gets the prefix and a snapshot of the group's
host/scheme/port and strategy as they are at that moment::

    def api(group: RouteGroup) -> None:
        group.set_scheme("https")
        group.get("/", index)          # -> GET /api, scheme https
        group.get("/users", users)     # -> GET /api/users, scheme https

    router.group("/api", api).middleware("auth")

Group middleware runs for every route of the group, after the router's
middleware and before the route's own.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from switchyard.middleware.stack import MiddlewareStack
from switchyard.routing.conditions import Conditions
from switchyard.routing.definition import Definition, DefinitionFacade
from switchyard.routing.route import Route, coerce_definition, instantiate_definition

if TYPE_CHECKING:
    from switchyard.routing.router import Router
    from switchyard.strategy.base import Strategy


def join_path(prefix: str, path: str) -> str:
    """Join a group prefix and a child path.

    A child of ``/`` maps to the prefix itself; anything else is
    ``prefix + "/" + path`` with the child's slashes trimmed.
    """
    base = "/" + prefix.strip("/")
    child = path.strip("/")
    if not child:
        return base
    return base.rstrip("/") + "/" + child


class RouteMapper:
    """HTTP-verb shortcuts over ``map()``."""

    __slots__ = ()

    def map(self, method: str, path: str, handler: Any) -> Route:
        raise NotImplementedError

    def get(self, path: str, handler: Any) -> Route:
        return self.map("GET", path, handler)

    def post(self, path: str, handler: Any) -> Route:
        return self.map("POST", path, handler)

    def put(self, path: str, handler: Any) -> Route:
        return self.map("PUT", path, handler)

    def patch(self, path: str, handler: Any) -> Route:
        return self.map("PATCH", path, handler)

    def delete(self, path: str, handler: Any) -> Route:
        return self.map("DELETE", path, handler)

    def head(self, path: str, handler: Any) -> Route:
        return self.map("HEAD", path, handler)

    def options(self, path: str, handler: Any) -> Route:
        return self.map("OPTIONS", path, handler)


class RouteGroup(RouteMapper):
    """A prefix and shared settings that register child routes on a router."""

    __slots__ = (
        "__weakref__",
        "_collection",
        "_conditions",
        "_definition",
        "_facade",
        "_lock",
        "_middleware",
        "_routes",
        "_strategy",
        "prefix",
    )

    def __init__(
        self,
        prefix: str,
        configure: Callable[[RouteGroup], Any],
        collection: Router,
    ) -> None:
        self.prefix = "/" + prefix.strip("/")
        self._collection = collection
        self._conditions = Conditions()
        self._strategy: Strategy | None = None
        self._middleware = MiddlewareStack()
        self._definition: Definition | type | None = None
        self._facade: DefinitionFacade | None = None
        self._routes: list[Route] = []
        self._lock = threading.Lock()
        configure(self)

    def __repr__(self) -> str:
        return f"RouteGroup({self.prefix!r}, routes={len(self._routes)})"

    def map(self, method: str, path: str, handler: Any) -> Route:
        """Map a child route under this group's prefix."""
        route = self._collection.map(method, join_path(self.prefix, path), handler)
        route.set_parent_group(self)
        route.set_conditions(route.conditions.over(self._conditions))
        if self._strategy is not None and route.get_strategy() is None:
            route.set_strategy(self._strategy)
        self._routes.append(route)
        return route

    @property
    def routes(self) -> list[Route]:
        """Routes created through this group."""
        return list(self._routes)

    # -- Conditions --

    @property
    def conditions(self) -> Conditions:
        return self._conditions

    @property
    def host(self) -> str | None:
        return self._conditions.host

    def set_host(self, host: str | None) -> RouteGroup:
        self._conditions = self._conditions.with_host(host)
        return self

    @property
    def scheme(self) -> str | None:
        return self._conditions.scheme

    def set_scheme(self, scheme: str | None) -> RouteGroup:
        self._conditions = self._conditions.with_scheme(scheme)
        return self

    @property
    def port(self) -> int | None:
        return self._conditions.port

    def set_port(self, port: int | None) -> RouteGroup:
        self._conditions = self._conditions.with_port(port)
        return self

    # -- Strategy --

    def get_strategy(self) -> Strategy | None:
        return self._strategy

    def set_strategy(self, strategy: Strategy) -> RouteGroup:
        self._strategy = strategy
        return self

    def json(self) -> RouteGroup:
        """Use ``JsonStrategy`` for routes created after this call."""
        from switchyard.strategy.json import JsonStrategy

        return self.set_strategy(JsonStrategy())

    # -- Middleware --

    def get_middleware_stack(self) -> MiddlewareStack:
        return self._middleware

    def middleware(self, middleware: Any, *args: Any) -> RouteGroup:
        self._middleware.push(middleware, *args)
        return self

    def prepend_middleware(self, middleware: Any, *args: Any) -> RouteGroup:
        self._middleware.prepend(middleware, *args)
        return self

    # -- Definition --

    def set_definition(
        self,
        definition: Definition | type | Mapping[str, Any] | None = None,
        /,
        **kwargs: Any,
    ) -> RouteGroup:
        """Attach a definition the group's routes fall back to."""
        self._definition = coerce_definition(definition, kwargs)
        self._facade = None
        return self

    def get_definition(self) -> DefinitionFacade:
        facade = self._facade
        if facade is None:
            with self._lock:
                if self._facade is None:
                    self._facade = DefinitionFacade(instantiate_definition(self._definition))
                facade = self._facade
        return facade
