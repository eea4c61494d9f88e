"""Switchyard — an in-process HTTP router and dispatch pipeline.

Matches a method and path to a route, runs the route's middleware chain,
validates request data against declared parameters, and turns whatever
the handler returns into a response.

Basic usage::

    from switchyard import Request, Router

    router = Router()

    def show_user(id: int) -> dict:
        return {"id": id}

    router.get("/users/{id:int}", show_user)

    response = router.dispatch(Request.build("GET", "/users/42"))
    assert response.json() == {"id": 42}

Declared parameters become validation::

    router.get("/search", search).set_definition(
        params={"query": {"validation": "required|min:2"}},
    )
"""

__version__ = "0.1.0.dev0"
__all__ = [
    "ApiController",
    "ApplicationStrategy",
    "ConfigurationError",
    "Container",
    "Controller",
    "HTTPError",
    "Hooks",
    "JsonStrategy",
    "MethodNotAllowed",
    "Middleware",
    "Next",
    "NotFound",
    "ParamDefinition",
    "ParamType",
    "Request",
    "Response",
    "RouteDefinition",
    "RouteGroup",
    "Router",
    "RouterConfig",
    "SwitchyardError",
    "ValidationFailed",
    "handle_request",
    "param",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import switchyard`` fast while providing a clean top-level API.
    """
    if name == "Router":
        from switchyard.routing.router import Router

        return Router

    if name == "RouteGroup":
        from switchyard.routing.group import RouteGroup

        return RouteGroup

    if name == "RouterConfig":
        from switchyard.config import RouterConfig

        return RouterConfig

    if name == "Request":
        from switchyard.http.request import Request

        return Request

    if name == "Response":
        from switchyard.http.response import Response

        return Response

    if name in ("ParamDefinition", "ParamType", "param"):
        from switchyard.routing import params as _params

        return getattr(_params, name)

    if name == "RouteDefinition":
        from switchyard.routing.definition import RouteDefinition

        return RouteDefinition

    if name in ("ApplicationStrategy", "JsonStrategy"):
        from switchyard import strategy as _strategy

        return getattr(_strategy, name)

    if name in ("Middleware", "Next"):
        from switchyard.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in ("Controller", "ApiController"):
        from switchyard import controllers as _controllers

        return getattr(_controllers, name)

    if name == "Container":
        from switchyard.container import Container

        return Container

    if name == "Hooks":
        from switchyard.hooks import Hooks

        return Hooks

    if name == "handle_request":
        from switchyard.server.handler import handle_request

        return handle_request

    if name in (
        "ConfigurationError",
        "HTTPError",
        "MethodNotAllowed",
        "NotFound",
        "SwitchyardError",
        "ValidationFailed",
    ):
        from switchyard import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
