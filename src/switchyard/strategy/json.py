"""JsonStrategy — JSON everything, including failures.

For API routes that should never hand an exception to the host. Return
values other than ``Response`` are serialised as JSON, match failures
become JSON error bodies, and the throwable handler turns exceptions into
JSON error responses (``HTTPError`` keeps its status; anything else is
logged and becomes a 500).

Select it per route with ``route.json()``, per group with
``group.json()``, or for everything with ``router.set_strategy(JsonStrategy())``.
"""

import logging

from switchyard.container import ContainerProtocol
from switchyard.errors import HTTPError, MethodNotAllowed, NotFound
from switchyard.http.request import Request
from switchyard.http.response import Response, error_body, json_response
from switchyard.middleware.protocol import Next
from switchyard.routing.route import Route
from switchyard.strategy.base import BaseStrategy

logger = logging.getLogger("switchyard.routing")


class JsonErrorMiddleware:
    """Terminal middleware that answers with an error's JSON body."""

    __slots__ = ("exception", "indent")

    def __init__(self, exception: HTTPError, indent: int | None = None) -> None:
        self.exception = exception
        self.indent = indent

    def process(self, request: Request, next: Next) -> Response:
        exc = self.exception
        return json_response(exc.to_dict(), exc.status, headers=exc.headers, indent=self.indent)


class JsonThrowableHandler:
    """Outermost middleware converting exceptions into JSON responses."""

    __slots__ = ("debug", "indent")

    def __init__(self, *, debug: bool = False, indent: int | None = None) -> None:
        self.debug = debug
        self.indent = indent

    def process(self, request: Request, next: Next) -> Response:
        try:
            return next(request)
        except HTTPError as exc:
            logger.debug("%s %s -> %d", request.method, request.path, exc.status)
            return json_response(exc.to_dict(), exc.status, headers=exc.headers, indent=self.indent)
        except Exception as exc:
            logger.exception("Unhandled error in %s %s", request.method, request.path)
            body = error_body(
                500,
                "internal_server_error",
                "Internal Server Error",
                f"{type(exc).__name__}: {exc}" if self.debug else "",
            )
            return json_response(body, 500, indent=self.indent)


class JsonStrategy(BaseStrategy):
    """JSON responses and JSON error bodies."""

    __slots__ = ("debug",)

    def __init__(
        self,
        container: ContainerProtocol | None = None,
        *,
        json_indent: int | None = None,
        debug: bool = False,
    ) -> None:
        super().__init__(container, json_indent=json_indent)
        self.debug = debug

    def invoke_route_callable(self, route: Route, request: Request) -> Response:
        result = self.call_handler(route, request)
        if isinstance(result, Response):
            return self.decorate(result)
        return self.decorate(json_response(result, indent=self.json_indent))

    def get_not_found_decorator(self, exception: NotFound) -> JsonErrorMiddleware:
        return JsonErrorMiddleware(exception, self.json_indent)

    def get_method_not_allowed_decorator(self, exception: MethodNotAllowed) -> JsonErrorMiddleware:
        return JsonErrorMiddleware(exception, self.json_indent)

    def get_throwable_handler(self) -> JsonThrowableHandler:
        return JsonThrowableHandler(debug=self.debug, indent=self.json_indent)
