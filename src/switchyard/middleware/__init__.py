"""Middleware — Protocol-based, no inheritance required.

A middleware is any object with ``process(request, next)``, or a plain
function with the same shape::

    def mw(request: Request, next: Next) -> Response

Built-in middleware:
    JsonMiddleware -- Decode JSON request bodies (alias "json")
    ValidationMiddleware -- Validate request data against route params (alias "validation")
"""

from switchyard.middleware.base import BaseMiddleware
from switchyard.middleware.json import JsonMiddleware
from switchyard.middleware.protocol import Middleware, MiddlewareFunction, Next, RouteAware
from switchyard.middleware.registry import MiddlewareRegistry, RegistryEntry
from switchyard.middleware.stack import MiddlewareEntry, MiddlewareStack
from switchyard.middleware.validation import ValidationMiddleware

__all__ = [
    "BaseMiddleware",
    "JsonMiddleware",
    "Middleware",
    "MiddlewareEntry",
    "MiddlewareFunction",
    "MiddlewareRegistry",
    "MiddlewareStack",
    "Next",
    "RegistryEntry",
    "RouteAware",
    "ValidationMiddleware",
]
