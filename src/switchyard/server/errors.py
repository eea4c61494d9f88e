"""Error rendering for the host boundary.

Maps HTTPError exceptions and unexpected failures to Response objects,
using registered error handlers or the default bodies. JSON clients get
the standard JSON error body; everyone else gets plain text.
"""

import inspect
import logging
from collections.abc import Callable, Mapping
from typing import Any

from switchyard.errors import HTTPError
from switchyard.http.request import Request
from switchyard.http.response import Response, error_body, json_response

logger = logging.getLogger("switchyard.server")

type ErrorHandlers = Mapping[int | type, Callable[..., Any]]


def call_error_handler(handler: Callable[..., Any], request: Request, exc: Exception) -> Response:
    """Invoke a user-registered error handler with introspected arguments.

    Error handlers may accept zero, one (request), or two (request, exc) args.
    A non-Response return value becomes the body of a default response.
    """
    params = list(inspect.signature(handler).parameters.values())

    if len(params) >= 2:
        result = handler(request, exc)
    elif len(params) == 1:
        result = handler(request)
    else:
        result = handler()

    if isinstance(result, Response):
        return result
    if isinstance(result, (str, bytes)):
        return Response(body=result)
    return json_response(result)


def handle_http_error(
    exc: HTTPError,
    request: Request,
    error_handlers: ErrorHandlers,
    debug: bool,
) -> Response:
    """Map an HTTPError to a Response."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)

    # Exact exception type, then status code
    handler = error_handlers.get(type(exc)) or error_handlers.get(exc.status)
    if handler is not None:
        response = call_error_handler(handler, request, exc)
        # Keep the error's status unless the handler chose its own
        if response.status == 200:
            response = response.with_status(exc.status)
        return response

    if request.wants_json:
        return json_response(exc.to_dict(), exc.status, headers=exc.headers)

    detail = exc.detail or f"Error {exc.status}"
    if debug and exc.detail:
        detail = f"{exc.status}: {exc.detail}"
    return Response(body=detail, status=exc.status, content_type="text/plain; charset=utf-8").with_headers(
        exc.headers
    )


def handle_internal_error(
    exc: Exception,
    request: Request,
    error_handlers: ErrorHandlers,
    debug: bool,
) -> Response:
    """Handle unexpected exceptions as 500 errors."""
    logger.exception("500 %s %s", request.method, request.path)

    handler = error_handlers.get(500) or error_handlers.get(type(exc))
    if handler is not None:
        return call_error_handler(handler, request, exc)

    description = f"{type(exc).__name__}: {exc}" if debug else ""
    if request.wants_json:
        body = error_body(500, "internal_server_error", "Internal Server Error", description)
        return json_response(body, 500)
    text = f"Internal Server Error\n\n{description}" if description else "Internal Server Error"
    return Response(body=text, status=500, content_type="text/plain; charset=utf-8")
