"""Host boundary — one place where every failure becomes a response.

The router never catches what its strategy does not render. A host
(an ASGI/WSGI adapter, a job runner, the test client) calls
``handle_request`` and always gets a ``Response`` back.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from switchyard.errors import HTTPError
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.routing.router import Router
from switchyard.server.errors import handle_http_error, handle_internal_error

logger = logging.getLogger("switchyard.server")


def handle_request(
    router: Router,
    request: Request,
    *,
    debug: bool | None = None,
    error_handlers: Mapping[int | type, Callable[..., Any]] | None = None,
) -> Response:
    """Dispatch *request* through *router* and render any failure.

    ``debug`` defaults to the router's ``config.debug``. ``error_handlers``
    maps a status code or exception type to a handler taking up to
    ``(request, exc)``.
    """
    if debug is None:
        debug = router.config.debug
    handlers = error_handlers or {}
    try:
        response = router.dispatch(request)
    except HTTPError as exc:
        return handle_http_error(exc, request, handlers, debug)
    except Exception as exc:
        return handle_internal_error(exc, request, handlers, debug)

    logger.debug("%d %s %s", response.status, request.method, request.path)
    return response
