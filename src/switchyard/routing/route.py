"""Route — one method + path + handler, plus everything attached to it.

A route carries its own middleware stack, match conditions, strategy,
and definition. Routes created inside a group keep a weak reference to
it; the group is consulted only for definition fallback.

Handlers come in four shapes, classified once into a tagged union. A
string naming a module-level function is imported and becomes a
Closure; any other string names a controller type::

    router.get("/a", lambda request: "hi")             # Closure
    router.get("/b", "myapp.users.UserController::show")  # MethodRef
    router.get("/c", (UserController, "show"))          # MethodRef
    router.get("/d", ShowUserAction)                    # InvokableType
    router.get("/e", HealthCheck())                     # HandlerObject (has .handle)
    router.get("/f", "myapp.views:index")               # Closure (module function)
"""

from __future__ import annotations

import copy
import inspect
import threading
import weakref
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from switchyard.container import ContainerProtocol, resolve_type
from switchyard.errors import ConfigurationError
from switchyard.middleware.protocol import Next, RouteAware
from switchyard.middleware.stack import MiddlewareStack
from switchyard.routing.conditions import Conditions
from switchyard.routing.definition import Definition, DefinitionFacade, RouteDefinition
from switchyard.routing.params import declared_params

if TYPE_CHECKING:
    from switchyard.http.request import Request
    from switchyard.http.response import Response
    from switchyard.routing.group import RouteGroup
    from switchyard.strategy.base import Strategy


# -- Parsed handler shapes --


@dataclass(frozen=True, slots=True)
class Closure:
    """A plain callable."""

    fn: Callable[..., Any]


@dataclass(frozen=True, slots=True)
class MethodRef:
    """A method on a controller type, built per dispatch."""

    type: Any
    method: str


@dataclass(frozen=True, slots=True)
class InvokableType:
    """A controller type whose instances are callable (or expose ``handle``)."""

    type: Any


@dataclass(frozen=True, slots=True)
class HandlerObject:
    """A prebuilt object exposing ``handle``."""

    obj: Any


type ParsedHandler = Closure | MethodRef | InvokableType | HandlerObject


def parse_handler(handler: Any) -> ParsedHandler:
    """Classify *handler* into one of the four handler shapes.

    Raises ``ConfigurationError`` for anything that cannot be called.
    """
    if isinstance(handler, tuple) and len(handler) == 2 and isinstance(handler[1], str):
        return MethodRef(handler[0], handler[1])
    if isinstance(handler, str):
        if "::" in handler:
            type_ref, _, method = handler.partition("::")
            return MethodRef(type_ref, method)
        fn = _try_resolve_routine(handler)
        if fn is not None:
            return Closure(fn)
        return InvokableType(handler)
    if isinstance(handler, type):
        return InvokableType(handler)
    if not inspect.isroutine(handler) and callable(getattr(handler, "handle", None)):
        return HandlerObject(handler)
    if callable(handler):
        return Closure(handler)
    msg = f"Route handler {handler!r} is not callable"
    raise ConfigurationError(msg)


class Route:
    """A single method + path registration.

    Setters return the route, so configuration chains::

        router.post("/users", create_user) \\
            .set_name("users.create") \\
            .middleware("auth") \\
            .set_definition(params={"email": {"validation": "required|email"}})

    ``vars`` holds the path vars of the current dispatch on this thread.
    """

    __slots__ = (
        "__weakref__",
        "_conditions",
        "_definition",
        "_facade",
        "_handler",
        "_local",
        "_lock",
        "_middleware",
        "_name",
        "_parent_group",
        "_parsed",
        "_strategy",
        "method",
        "path",
    )

    def __init__(self, method: str, path: str, handler: Any) -> None:
        self.method = method.upper()
        self.path = "/" + path.lstrip("/")
        self._handler = handler
        self._parsed: ParsedHandler | None = None
        self._parent_group: weakref.ref[RouteGroup] | None = None
        self._middleware = MiddlewareStack()
        self._strategy: Strategy | None = None
        self._conditions = Conditions()
        self._definition: Definition | type | None = None
        self._facade: DefinitionFacade | None = None
        self._name: str | None = None
        self._local = threading.local()
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"Route({self.method} {self.path!r})"

    # -- Handler --

    @property
    def handler(self) -> Any:
        return self._handler

    def get_parsed_handler(self) -> ParsedHandler:
        """The classified handler, computed on first use."""
        if self._parsed is None:
            self._parsed = parse_handler(self._handler)
        return self._parsed

    def get_callable(self, container: ContainerProtocol | None = None) -> Callable[..., Any]:
        """Build the callable to invoke for this dispatch.

        Controller types are built through *container* (or constructed
        directly without one). Instances that are ``RouteAware`` receive
        this route before they run; a prebuilt handler object is copied
        first so the registered instance is never bound.
        """
        match self.get_parsed_handler():
            case Closure(fn):
                return fn
            case MethodRef(type_ref, method):
                instance = self._inject(_build(type_ref, container))
                return getattr(instance, method)
            case InvokableType(type_ref):
                instance = self._inject(_build(type_ref, container))
                if callable(instance):
                    return instance
                return instance.handle
            case HandlerObject(obj):
                return self._inject(obj, shared=True).handle
        msg = f"Unhandled handler shape for {self!r}"
        raise ConfigurationError(msg)

    def _inject(self, instance: Any, *, shared: bool = False) -> Any:
        if isinstance(instance, RouteAware):
            if shared:
                instance = copy.copy(instance)
            instance.set_route(self)
        return instance

    def handler_targets(self) -> tuple[Any, ...]:
        """Objects that may carry ``@param`` declarations for this handler."""
        match self.get_parsed_handler():
            case Closure(fn):
                return (fn,)
            case MethodRef(type_ref, method):
                cls = _try_resolve(type_ref)
                return (cls, getattr(cls, method, None)) if cls is not None else ()
            case InvokableType(type_ref):
                cls = _try_resolve(type_ref)
                if cls is None:
                    return ()
                return (cls, getattr(cls, "__call__", None), getattr(cls, "handle", None))
            case HandlerObject(obj):
                return (type(obj), getattr(type(obj), "handle", None))
        return ()

    # -- Per-dispatch vars --

    @property
    def vars(self) -> dict[str, str]:
        """Path vars of the dispatch running on this thread."""
        return getattr(self._local, "vars", {})

    def set_vars(self, vars: Mapping[str, str]) -> Route:
        self._local.vars = dict(vars)
        return self

    # -- Name --

    @property
    def name(self) -> str | None:
        return self._name

    def set_name(self, name: str) -> Route:
        self._name = name
        return self

    # -- Group --

    @property
    def parent_group(self) -> RouteGroup | None:
        """The group this route was created in, if it is still alive."""
        if self._parent_group is None:
            return None
        return self._parent_group()

    def set_parent_group(self, group: RouteGroup) -> Route:
        self._parent_group = weakref.ref(group)
        self._facade = None
        return self

    # -- Conditions --

    @property
    def conditions(self) -> Conditions:
        return self._conditions

    def set_conditions(self, conditions: Conditions) -> Route:
        self._conditions = conditions
        return self

    @property
    def host(self) -> str | None:
        return self._conditions.host

    def set_host(self, host: str | None) -> Route:
        self._conditions = self._conditions.with_host(host)
        return self

    @property
    def scheme(self) -> str | None:
        return self._conditions.scheme

    def set_scheme(self, scheme: str | None) -> Route:
        self._conditions = self._conditions.with_scheme(scheme)
        return self

    @property
    def port(self) -> int | None:
        return self._conditions.port

    def set_port(self, port: int | None) -> Route:
        self._conditions = self._conditions.with_port(port)
        return self

    # -- Strategy --

    def get_strategy(self) -> Strategy | None:
        return self._strategy

    def set_strategy(self, strategy: Strategy) -> Route:
        self._strategy = strategy
        return self

    def json(self) -> Route:
        """Use ``JsonStrategy`` for this route."""
        from switchyard.strategy.json import JsonStrategy

        return self.set_strategy(JsonStrategy())

    # -- Middleware --

    def get_middleware_stack(self) -> MiddlewareStack:
        return self._middleware

    def middleware(self, middleware: Any, *args: Any) -> Route:
        """Append middleware (instance, class, function, or alias) to this route."""
        self._middleware.push(middleware, *args)
        return self

    def prepend_middleware(self, middleware: Any, *args: Any) -> Route:
        self._middleware.prepend(middleware, *args)
        return self

    # -- Definition --

    def set_definition(
        self,
        definition: Definition | type | Mapping[str, Any] | None = None,
        /,
        **kwargs: Any,
    ) -> Route:
        """Attach a definition: a ``Definition`` instance or class, a mapping, or keywords.

        Raises ``ConfigurationError`` for a class or object that does not
        implement ``Definition``.
        """
        self._definition = coerce_definition(definition, kwargs)
        self._facade = None
        return self

    def get_definition(self) -> DefinitionFacade:
        """The resolved definition, built on first use.

        Falls back to the parent group's definition and includes params
        declared on the handler with ``@param``.
        """
        facade = self._facade
        if facade is None:
            with self._lock:
                if self._facade is None:
                    group = self.parent_group
                    self._facade = DefinitionFacade(
                        instantiate_definition(self._definition),
                        parent=group.get_definition() if group is not None else None,
                        extra_params=declared_params(*self.handler_targets()),
                    )
                facade = self._facade
        return facade

    # -- Terminal middleware --

    def process(self, request: Request, next: Next) -> Response:
        """Run the handler through this route's strategy.

        The route is always the innermost entry of the chain, so *next*
        is never called.
        """
        strategy = self._strategy
        if strategy is None:
            msg = f"{self!r} has no strategy; dispatch it through a Router"
            raise ConfigurationError(msg)
        return strategy.invoke_route_callable(self, request)


def coerce_definition(
    definition: Definition | type | Mapping[str, Any] | None,
    kwargs: Mapping[str, Any],
) -> Definition | type | None:
    """Validate a definition argument without instantiating classes."""
    if definition is None:
        return RouteDefinition(**kwargs) if kwargs else None
    if isinstance(definition, Mapping):
        return RouteDefinition(**{**definition, **kwargs})
    if isinstance(definition, type):
        if not issubclass(definition, Definition):
            msg = f"{definition.__name__} does not implement the Definition protocol"
            raise ConfigurationError(msg)
        return definition
    if not isinstance(definition, Definition):
        msg = f"{definition!r} does not implement the Definition protocol"
        raise ConfigurationError(msg)
    return definition


def instantiate_definition(definition: Definition | type | None) -> Definition:
    if definition is None:
        return RouteDefinition()
    if isinstance(definition, type):
        return definition()
    return definition


def _build(type_ref: Any, container: ContainerProtocol | None) -> Any:
    if container is not None:
        return container.make(type_ref)
    return resolve_type(type_ref)()


def _try_resolve(type_ref: Any) -> type | None:
    try:
        resolved = resolve_type(type_ref)
    except ConfigurationError:
        return None
    return resolved if isinstance(resolved, type) else None


def _try_resolve_routine(ref: str) -> Callable[..., Any] | None:
    # Unimportable names stay type references for the container
    if "." not in ref and ":" not in ref:
        return None
    try:
        resolved = resolve_type(ref)
    except ConfigurationError:
        return None
    return resolved if inspect.isroutine(resolved) else None
