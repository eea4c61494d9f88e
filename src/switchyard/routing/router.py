"""Router — route collection, configuration, and dispatch entry point.

The router has two phases:

    Setup     map routes, create groups, attach middleware and strategies
    Prepared  prepare() has run: aliases registered, configured routes
              loaded, strategies assigned, the route table compiled

``dispatch()`` prepares on first use, so most applications never call
``prepare()`` themselves. Once prepared the route set is frozen; mapping
more routes raises.

Usage::

    def api_routes(group):
        group.json()
        group.get("/status", status)

    router = Router()
    router.get("/users/{id:int}", show_user).set_name("users.show")
    router.group("/api", api_routes)

    response = router.dispatch(Request.build("GET", "/users/42"))
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from functools import partial
from pkgutil import resolve_name
from typing import Any

from switchyard.config import RouterConfig
from switchyard.container import Container, ContainerProtocol
from switchyard.errors import ConfigurationError
from switchyard.hooks import ROUTER_CONFIG, ROUTER_DISPATCH, HookBus
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.middleware.json import JsonMiddleware
from switchyard.middleware.registry import MiddlewareRegistry
from switchyard.middleware.stack import MiddlewareStack
from switchyard.middleware.validation import ValidationMiddleware
from switchyard.routing.dispatcher import Dispatcher
from switchyard.routing.group import RouteGroup, RouteMapper
from switchyard.routing.route import Route
from switchyard.routing.table import RouteTable
from switchyard.strategy.application import ApplicationStrategy
from switchyard.strategy.base import BaseStrategy, Strategy
from switchyard.validation import Validator, ValidatorProtocol

logger = logging.getLogger("switchyard.routing")


class Router(RouteMapper):
    """The route collection and the ``dispatch()`` entry point.

    Every collaborator is optional. Without them the router uses a fresh
    ``Container``, ``MiddlewareRegistry``, ``Validator`` and an
    ``ApplicationStrategy``, and fires no hooks.
    """

    __slots__ = (
        "_groups",
        "_lock",
        "_middleware",
        "_prepared",
        "_preparing",
        "_routes",
        "_strategy",
        "_table",
        "config",
        "container",
        "hooks",
        "registry",
        "validator",
    )

    def __init__(
        self,
        config: RouterConfig | None = None,
        *,
        container: ContainerProtocol | None = None,
        registry: MiddlewareRegistry | None = None,
        validator: ValidatorProtocol | None = None,
        hooks: HookBus | None = None,
        strategy: Strategy | None = None,
    ) -> None:
        self.config = config or RouterConfig()
        self.container = container if container is not None else Container()
        self.registry = registry if registry is not None else MiddlewareRegistry(self.container)
        self.validator = validator if validator is not None else Validator()
        self.hooks = hooks
        self._strategy: Strategy = strategy or ApplicationStrategy(
            self.container, json_indent=self.config.json_indent
        )
        self._routes: list[Route] = []
        self._groups: list[RouteGroup] = []
        self._middleware = MiddlewareStack()
        self._table = RouteTable()
        self._prepared = False
        self._preparing: int | None = None
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        state = "prepared" if self._prepared else "setup"
        return f"Router(routes={len(self._routes)}, {state})"

    # -- Setup --

    def _check_not_prepared(self) -> None:
        if self._prepared:
            msg = "Cannot modify routes after the router has been prepared."
            raise RuntimeError(msg)

    def map(self, method: str, path: str, handler: Any) -> Route:
        """Register *handler* for *method* on *path*.

        Raises ``ConfigurationError`` if *handler* is not a usable
        handler, and ``RuntimeError`` once the router is prepared.
        """
        self._check_not_prepared()
        route = Route(method, path, handler)
        route.get_parsed_handler()
        self._routes.append(route)
        return route

    def group(self, prefix: str, configure: Callable[[RouteGroup], Any]) -> RouteGroup:
        """Create a group; *configure* maps its routes immediately."""
        self._check_not_prepared()
        group = RouteGroup(prefix, configure, self)
        self._groups.append(group)
        return group

    # -- Lookup --

    def get_routes(self) -> list[Route]:
        return list(self._routes)

    def get_named_route(self, name: str) -> Route:
        """The route registered with ``set_name(name)``.

        Raises ``KeyError`` if no route has that name.
        """
        for route in self._routes:
            if route.name == name:
                return route
        msg = f"No route named {name!r}"
        raise KeyError(msg)

    def get_routes_by_definition_type(self, type: str) -> list[Route]:
        """Routes whose resolved definition type equals *type*.

        Prepares the router first, so configured routes are included.
        Called from a ``router.config`` hook it searches the routes
        mapped so far instead.
        """
        if not self._preparing_here():
            self.prepare()
        return [r for r in self._routes if r.get_definition().type == type]

    # -- Middleware --

    def get_middleware_stack(self) -> MiddlewareStack:
        return self._middleware

    def middleware(self, middleware: Any, *args: Any) -> Router:
        """Append middleware that runs for every matched route."""
        self._middleware.push(middleware, *args)
        return self

    def prepend_middleware(self, middleware: Any, *args: Any) -> Router:
        self._middleware.prepend(middleware, *args)
        return self

    # -- Strategy --

    def get_strategy(self) -> Strategy:
        return self._strategy

    def set_strategy(self, strategy: Strategy) -> Router:
        """Default strategy for routes without their own."""
        self._strategy = strategy
        return self

    # -- Prepare --

    @property
    def prepared(self) -> bool:
        return self._prepared

    def prepare(self) -> None:
        """Finish configuration and compile the route table. Idempotent.

        Order:
            1. Register configured middleware aliases, then the built-ins
            2. Load routes from ``config.routes``
            3. Fire the ``router.config`` hook
            4. Give every route a strategy, and every strategy a container
            5. Resolve definitions and compile the table

        Raises ``ConfigurationError`` when a ``router.config`` hook calls
        back into ``prepare()`` (or ``dispatch()``) before the table exists.
        """
        if self._prepared:
            return
        if self._preparing_here():
            msg = (
                "Router cannot dispatch from a router.config hook; "
                "the route table is compiled after the hook returns"
            )
            raise ConfigurationError(msg)
        with self._lock:
            if self._prepared:
                return
            self._preparing = threading.get_ident()
            try:
                self._prepare()
            finally:
                self._preparing = None

    def _preparing_here(self) -> bool:
        return self._preparing == threading.get_ident()

    def _prepare(self) -> None:
        self._register_middleware()
        self._load_configured_routes()
        if self.hooks is not None:
            self.hooks.call(ROUTER_CONFIG, self)

        table = RouteTable()
        for route in self._routes:
            if route.get_strategy() is None:
                route.set_strategy(self._strategy)
            self._attach_container(route.get_strategy())
            route.get_definition()
            table.add(route)
        self._attach_container(self._strategy)
        table.compile()

        self._table = table
        self._prepared = True
        logger.debug("Router prepared with %d routes", len(self._routes))

    def _register_middleware(self) -> None:
        for alias, concrete in self.config.middleware.items():
            self.registry.registry(concrete, alias, origin="configuration")
        self.registry.registry(partial(JsonMiddleware, hooks=self.hooks), "json", origin="switchyard")
        self.registry.registry(
            partial(ValidationMiddleware, self.validator, hooks=self.hooks),
            "validation",
            origin="switchyard",
        )

    def _load_configured_routes(self) -> None:
        ref = self.config.routes
        if not ref:
            return
        try:
            configure = resolve_name(ref)
        except (ImportError, AttributeError, ValueError) as exc:
            msg = f"Cannot import routes from {ref!r}: {exc}"
            raise ConfigurationError(msg) from exc
        if not callable(configure):
            msg = f"Routes reference {ref!r} is not callable"
            raise ConfigurationError(msg)
        configure(self)

    def _attach_container(self, strategy: Strategy | None) -> None:
        if isinstance(strategy, BaseStrategy) and strategy.container is None:
            strategy.set_container(self.container)

    # -- Dispatch --

    def dispatch(self, request: Request) -> Response:
        """Route *request* and return the response.

        Failures the active strategy does not render (``NotFound``,
        ``MethodNotAllowed``, ``ValidationFailed``, handler exceptions
        under ``ApplicationStrategy``) propagate to the caller.
        """
        self.prepare()
        if self.hooks is not None:
            request = self.hooks.query(ROUTER_DISPATCH, request)
        dispatcher = Dispatcher(
            self._table,
            strategy=self._strategy,
            registry=self.registry,
            validator=self.validator,
            middleware=self._middleware,
            container=self.container,
            hooks=self.hooks,
        )
        return dispatcher.dispatch(request)
