"""ApplicationStrategy — normalise return values, let failures propagate.

Return values become responses:

    Response -> returned unchanged
    str      -> body of a default response
    bytes    -> body of a default response
    other    -> JSON body with an ``application/json`` content type

Match failures and exceptions are never formatted here. The not-found
and method-not-allowed decorators raise the condition, and the
throwable handler re-raises whatever reaches it, so one outer boundary
(``switchyard.server.handle_request``) renders every failure the same way.
"""

import logging

from switchyard.errors import MethodNotAllowed, NotFound
from switchyard.http.request import Request
from switchyard.http.response import Response, json_response
from switchyard.middleware.protocol import Next
from switchyard.routing.route import Route
from switchyard.strategy.base import BaseStrategy

logger = logging.getLogger("switchyard.routing")


class RaiseMiddleware:
    """Terminal middleware that raises a prepared exception."""

    __slots__ = ("exception",)

    def __init__(self, exception: Exception) -> None:
        self.exception = exception

    def process(self, request: Request, next: Next) -> Response:
        raise self.exception


class ThrowableHandler:
    """Outermost middleware: runs the chain and re-raises anything unchanged."""

    __slots__ = ()

    def process(self, request: Request, next: Next) -> Response:
        try:
            return next(request)
        except Exception as exc:
            logger.debug("Dispatch of %s %s raised %r", request.method, request.path, exc)
            raise


class ApplicationStrategy(BaseStrategy):
    """The default strategy: see the module docstring."""

    __slots__ = ()

    def invoke_route_callable(self, route: Route, request: Request) -> Response:
        return self.decorate(self.to_response(self.call_handler(route, request)))

    def to_response(self, result: object) -> Response:
        match result:
            case Response():
                return result
            case str() | bytes():
                return Response(body=result)
            case _:
                return json_response(result, indent=self.json_indent)

    def get_not_found_decorator(self, exception: NotFound) -> RaiseMiddleware:
        return RaiseMiddleware(exception)

    def get_method_not_allowed_decorator(self, exception: MethodNotAllowed) -> RaiseMiddleware:
        return RaiseMiddleware(exception)

    def get_throwable_handler(self) -> ThrowableHandler:
        return ThrowableHandler()
