"""Dispatcher — the per-request match, compose, and run state machine.

One dispatcher is built per request. It matches the request against the
compiled table, turns the outcome into a working middleware stack, and
runs the stack as a chain of responsibility:

    NotFound          -> [not-found decorator, router middleware...]
    MethodNotAllowed  -> [method-not-allowed decorator, router middleware...]
    Found             -> [throwable handler, router middleware, group middleware,
                          route middleware, ValidationMiddleware?, route]

A found route whose host/scheme/port conditions reject the request is
treated as not found. The dispatcher itself never catches anything.
"""

from __future__ import annotations

import copy
import logging
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from switchyard.errors import ConfigurationError, MethodNotAllowed, NotFound
from switchyard.hooks import DISPATCHER_MATCH, HookBus
from switchyard.middleware.protocol import RouteAware
from switchyard.middleware.stack import MiddlewareEntry, MiddlewareStack
from switchyard.middleware.validation import ValidationMiddleware
from switchyard.routing.table import RouteFound, RouteMethodNotAllowed, RouteTable

if TYPE_CHECKING:
    from switchyard.container import ContainerProtocol
    from switchyard.http.request import Request
    from switchyard.http.response import Response
    from switchyard.middleware.registry import MiddlewareRegistry
    from switchyard.routing.route import Route
    from switchyard.strategy.base import Strategy
    from switchyard.validation import ValidatorProtocol

logger = logging.getLogger("switchyard.routing")


class DispatchState(StrEnum):
    """Where a dispatcher is in its lifecycle."""

    UNRESOLVED = "unresolved"
    NOT_FOUND = "not_found"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    FOUND = "found"


class Dispatcher:
    """Resolve one request and run its middleware chain.

    ``middleware`` is the router's stack; it is copied, never consumed.
    """

    __slots__ = (
        "_container",
        "_hooks",
        "_registry",
        "_stack",
        "_strategy",
        "_table",
        "_validator",
        "route",
        "state",
    )

    def __init__(
        self,
        table: RouteTable,
        *,
        strategy: Strategy,
        registry: MiddlewareRegistry,
        validator: ValidatorProtocol,
        middleware: MiddlewareStack | None = None,
        container: ContainerProtocol | None = None,
        hooks: HookBus | None = None,
    ) -> None:
        self._table = table
        self._strategy = strategy
        self._registry = registry
        self._validator = validator
        self._container = container
        self._hooks = hooks
        self._stack = middleware.copy() if middleware is not None else MiddlewareStack()
        self.route: Route | None = None
        self.state = DispatchState.UNRESOLVED

    def dispatch(self, request: Request) -> Response:
        """Match *request*, assemble the working stack, and run it."""
        match self._table.match(request.method, request.path):
            case RouteFound(route, vars):
                route.set_vars(vars)
                if route.conditions.matches(request):
                    request = self._set_found(route, vars, request)
                else:
                    self._set_not_found(request)
            case RouteMethodNotAllowed(allowed):
                self._set_method_not_allowed(allowed)
            case _:
                self._set_not_found(request)

        logger.debug("%s %s -> %s", request.method, request.path, self.state)
        if self._hooks is not None:
            self._hooks.call(DISPATCHER_MATCH, self.state, self.route, request)
        return self.handle(request)

    # -- Outcomes --

    def _set_not_found(self, request: Request) -> None:
        self.state = DispatchState.NOT_FOUND
        self.route = None
        exception = NotFound(f"No route matches {request.method} {request.path!r}")
        self._stack.prepend(self._strategy.get_not_found_decorator(exception))

    def _set_method_not_allowed(self, allowed: frozenset[str]) -> None:
        self.state = DispatchState.METHOD_NOT_ALLOWED
        exception = MethodNotAllowed(allowed)
        self._stack.prepend(self._strategy.get_method_not_allowed_decorator(exception))

    def _set_found(self, route: Route, vars: dict[str, str], request: Request) -> Request:
        self.state = DispatchState.FOUND
        self.route = route
        strategy = route.get_strategy() or self._strategy

        self._stack.prepend(strategy.get_throwable_handler())
        group = route.parent_group
        if group is not None:
            self._stack.extend(group.get_middleware_stack())
        self._stack.extend(route.get_middleware_stack())

        params = route.get_definition().params()
        if params:
            self._stack.push(ValidationMiddleware(self._validator, params=params, hooks=self._hooks))
        self._stack.push(route)

        return request.with_attributes(vars) if vars else request

    # -- Chain --

    def handle(self, request: Request) -> Response:
        """Run the next entry of the working stack.

        This bound method is the ``next`` every middleware receives.

        Raises ``EndOfMiddlewareStack`` if the chain runs out before
        anything produced a response.
        """
        middleware = self.resolve(self._stack.shift())
        process = getattr(middleware, "process", None)
        if process is not None:
            return process(request, self.handle)
        if callable(middleware):
            return middleware(request, self.handle)
        msg = f"Middleware {middleware!r} has no process() and is not callable"
        raise ConfigurationError(msg)

    def resolve(self, entry: MiddlewareEntry) -> Any:
        """Turn a stack entry into something runnable.

        Aliases go through the registry, classes through the container;
        instances and functions are used as they are. Route-aware results
        are copied for this dispatch and the copy receives the matched
        route.
        """
        middleware = entry.middleware
        if isinstance(middleware, str):
            middleware = self._registry.make(middleware, entry.args)
        elif isinstance(middleware, type):
            if self._container is not None:
                middleware = self._container.make(middleware, *entry.args)
            else:
                middleware = middleware(*entry.args)
        elif entry.args and not hasattr(middleware, "process"):
            # a function factory with args, e.g. .middleware(rate_limit, 10)
            middleware = middleware(*entry.args)

        if self.route is not None and isinstance(middleware, RouteAware):
            # the stack entry itself is never bound to a route
            middleware = copy.copy(middleware)
            middleware.set_route(self.route)
        return middleware
