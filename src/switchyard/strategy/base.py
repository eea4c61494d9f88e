"""Strategy protocol and shared strategy plumbing.

A strategy decides two things for the routes that use it: how a
handler's return value becomes a ``Response``, and what happens when
matching fails or something raises. The dispatcher asks the strategy for
small middleware objects that implement those policies.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from switchyard._internal.invoke import invoke_handler

if TYPE_CHECKING:
    from switchyard.container import ContainerProtocol
    from switchyard.errors import MethodNotAllowed, NotFound
    from switchyard.http.request import Request
    from switchyard.http.response import Response
    from switchyard.middleware.protocol import Middleware
    from switchyard.routing.route import Route

# Post-processes every response a strategy produces
type ResponseDecorator = Callable[[Response], Response]


@runtime_checkable
class Strategy(Protocol):
    """What the router and dispatcher need from a strategy."""

    def invoke_route_callable(self, route: Route, request: Request) -> Response: ...

    def get_not_found_decorator(self, exception: NotFound) -> Middleware: ...

    def get_method_not_allowed_decorator(self, exception: MethodNotAllowed) -> Middleware: ...

    def get_throwable_handler(self) -> Middleware: ...

    def set_container(self, container: ContainerProtocol | None) -> Any: ...


class BaseStrategy:
    """Container access, response decorators, and handler invocation.

    Subclasses implement the four policy methods of ``Strategy``.
    """

    __slots__ = ("_container", "_decorators", "json_indent")

    def __init__(
        self,
        container: ContainerProtocol | None = None,
        *,
        json_indent: int | None = None,
    ) -> None:
        self._container = container
        self._decorators: list[ResponseDecorator] = []
        self.json_indent = json_indent

    @property
    def container(self) -> ContainerProtocol | None:
        return self._container

    def set_container(self, container: ContainerProtocol | None) -> BaseStrategy:
        self._container = container
        return self

    def add_response_decorator(self, decorator: ResponseDecorator) -> BaseStrategy:
        """Apply *decorator* to every response this strategy produces."""
        self._decorators.append(decorator)
        return self

    def decorate(self, response: Response) -> Response:
        for decorator in self._decorators:
            response = decorator(response)
        return response

    def call_handler(self, route: Route, request: Request) -> Any:
        """Build the route's callable and call it with what it asks for."""
        handler = route.get_callable(self._container)
        return invoke_handler(handler, request, route.vars)
