"""Shared base for route-aware middleware.

Subclassing is optional (any object with ``process`` is middleware), but
the base gives middleware the matched route and a uniform way to fail.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from switchyard.errors import HTTPError
from switchyard.hooks import MIDDLEWARE_ERROR, HookBus
from switchyard.http.response import json_response

if TYPE_CHECKING:
    from switchyard.http.request import Request
    from switchyard.http.response import Response
    from switchyard.middleware.protocol import Next
    from switchyard.routing.route import Route


class BaseMiddleware:
    """Route-aware middleware with ``error_response()``.

    Subclasses implement ``process(request, next)``.
    """

    __slots__ = ("_route", "hooks")

    def __init__(self, hooks: HookBus | None = None) -> None:
        self.hooks = hooks
        self._route: Route | None = None

    @property
    def route(self) -> Route | None:
        """The route being dispatched, once the dispatcher has set it."""
        return self._route

    def set_route(self, route: Route) -> BaseMiddleware:
        self._route = route
        return self

    def process(self, request: Request, next: Next) -> Response:
        raise NotImplementedError

    def error_response(self, request: Request, error: HTTPError) -> Response:
        """Fail the request with *error*.

        JSON requests get the JSON error body straight back and the chain
        stops here. Anything else raises *error* for the host to render.
        """
        if self.hooks is not None:
            self.hooks.call(MIDDLEWARE_ERROR, self, request, error)
        if request.is_json:
            return json_response(error.to_dict(), error.status, headers=error.headers)
        raise error
