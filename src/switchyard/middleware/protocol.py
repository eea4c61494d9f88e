"""Middleware protocol and Next type alias.

A middleware is anything exposing::

    def process(self, request: Request, next: Next) -> Response: ...

or a plain function with the same shape::

    def timing(request: Request, next: Next) -> Response:
        start = time.monotonic()
        response = next(request)
        return response.with_header("X-Time", f"{time.monotonic() - start:.3f}")

No base class required. The dispatcher checks the shape, not the lineage.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from switchyard.http.request import Request
from switchyard.http.response import Response

if TYPE_CHECKING:
    from switchyard.routing.route import Route

# The next handler in the middleware chain
type Next = Callable[[Request], Response]

# A function middleware
type MiddlewareFunction = Callable[[Request, Next], Response]


@runtime_checkable
class Middleware(Protocol):
    """Protocol for object middleware."""

    def process(self, request: Request, next: Next) -> Response: ...


@runtime_checkable
class RouteAware(Protocol):
    """Capability: receives the matched route before it runs.

    Controllers and middleware that implement ``set_route`` can read the
    route's vars and definition while handling the request.
    """

    def set_route(self, route: Route) -> Any: ...
