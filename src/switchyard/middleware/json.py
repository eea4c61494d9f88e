"""JsonMiddleware — decode JSON request bodies once, up front.

Runs for requests that declare a JSON body, and for every request to a
route using ``JsonStrategy``. The decoded value is attached with
``request.with_parsed_body()``, so handlers and ``ValidationMiddleware``
read it from ``request.input()``. Empty bodies pass through untouched.
"""

from __future__ import annotations

import json as json_module
from typing import TYPE_CHECKING

from switchyard.errors import BadRequest
from switchyard.middleware.base import BaseMiddleware

if TYPE_CHECKING:
    from switchyard.http.request import Request
    from switchyard.http.response import Response
    from switchyard.middleware.protocol import Next


def invalid_json() -> BadRequest:
    """The error for a body that claims to be JSON but is not."""
    return BadRequest(
        "The JSON data in the request body is invalid.",
        error="invalid_json",
        title="Invalid JSON",
    )


class JsonMiddleware(BaseMiddleware):
    """Parse JSON bodies; reject malformed ones with 400."""

    __slots__ = ()

    def process(self, request: Request, next: Next) -> Response:
        if not request.body.strip() or not self._applies(request):
            return next(request)
        try:
            data = json_module.loads(request.body)
        except ValueError:
            return self.error_response(request, invalid_json())
        return next(request.with_parsed_body(data))

    def _applies(self, request: Request) -> bool:
        if request.is_json:
            return True
        if self.route is None:
            return False
        from switchyard.strategy.json import JsonStrategy

        return isinstance(self.route.get_strategy(), JsonStrategy)
