"""Controller bases — route-aware handler classes.

Controllers are optional; any callable is a handler. Subclassing gives a
handler class the matched route before it runs::

    class ShowUser(Controller):
        def __call__(self, request: Request) -> dict:
            return {"id": self.vars["id"], "title": self.definition.title}

    router.get("/users/{id:int}", ShowUser).set_definition(title="Show user")

Controller classes are built fresh for every dispatch (through the
container when the router has one), so instance state never leaks
between requests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from switchyard.errors import HTTPError
from switchyard.http.response import Response, json_response

if TYPE_CHECKING:
    from switchyard.routing.definition import DefinitionFacade
    from switchyard.routing.route import Route


class Controller:
    """Base for handler classes that need their route."""

    route: Route | None = None

    def set_route(self, route: Route) -> Controller:
        self.route = route
        return self

    @property
    def vars(self) -> dict[str, str]:
        """Path vars of the current dispatch."""
        return self.route.vars if self.route is not None else {}

    @property
    def definition(self) -> DefinitionFacade | None:
        return self.route.get_definition() if self.route is not None else None


class ApiController(Controller):
    """Controller for JSON endpoints.

    ``status`` is the status ``respond()`` uses; handlers may change it
    with ``set_status()`` before responding.
    """

    status: int = 200

    def set_status(self, status: int) -> ApiController:
        self.status = status
        return self

    def respond(self, data: Any, *, headers: tuple[tuple[str, str], ...] = ()) -> Response:
        """JSON response with the controller's current status."""
        return json_response(data, self.status, headers=headers)

    def error_response(self, error: HTTPError) -> Response:
        """JSON error body for *error*, with its status and headers."""
        return json_response(error.to_dict(), error.status, headers=error.headers)
