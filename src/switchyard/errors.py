"""Switchyard exception hierarchy.

Shared across Router, Dispatcher, strategies, and middleware so every
module raises and catches the same types.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any

from switchyard.http.response import error_body


class SwitchyardError(Exception):
    """Base for all switchyard-specific errors."""


class ConfigurationError(SwitchyardError):
    """Raised when router configuration is invalid.

    Typically surfaced while routes are mapped or during ``Router.prepare()``.
    """


class MiddlewareNotFound(ConfigurationError):  # noqa: N818 — mirrors NotFound naming
    """An alias could not be resolved by the container or the registry."""

    def __init__(self, alias: str) -> None:
        self.alias = alias
        super().__init__(f"Middleware {alias!r} not found in registry.")


class EndOfMiddlewareStack(SwitchyardError):  # noqa: N818
    """The working stack ran dry before anything produced a response."""

    def __init__(self) -> None:
        super().__init__("Reached end of middleware stack. Does your handler return a response?")


@dataclass(frozen=True, slots=True)
class HTTPError(SwitchyardError):
    """An error that maps directly to an HTTP status code.

    Raised by the dispatcher, middleware, or handlers. The host boundary
    in ``switchyard.server`` catches these and renders them uniformly.

    ``error`` is the machine-readable slug, ``title`` the short human
    message. Both default to values derived from ``status``.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()
    error: str = ""
    title: str = ""
    errors: Mapping[str, list[str]] = field(default_factory=dict, hash=False)

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)

    @property
    def slug(self) -> str:
        """Machine-readable error name, e.g. ``not_found``."""
        if self.error:
            return self.error
        return self.message.lower().replace(" ", "_").replace("-", "_")

    @property
    def message(self) -> str:
        """Short human message; the status phrase unless overridden."""
        if self.title:
            return self.title
        try:
            return HTTPStatus(self.status).phrase
        except ValueError:
            return "Error"

    def to_dict(self) -> dict[str, Any]:
        """The JSON error body for this error."""
        return error_body(self.status, self.slug, self.message, self.detail, self.errors)


class BadRequest(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """400 — the request data could not be accepted."""

    def __init__(
        self,
        detail: str = "Bad Request",
        *,
        error: str = "",
        title: str = "",
        errors: Mapping[str, list[str]] | None = None,
    ) -> None:
        super().__init__(status=400, detail=detail, error=error, title=title, errors=errors or {})


class ValidationFailed(BadRequest):
    """400 — request parameters failed their declared rules.

    ``errors`` maps each failing field (dotted for nested data) to its
    messages.
    """

    def __init__(
        self,
        errors: Mapping[str, list[str]],
        detail: str = "There's one or more errors in your request data",
    ) -> None:
        super().__init__(
            detail,
            error="validation_failed",
            title="Validation failed",
            errors=errors,
        )


class NotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404 — no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """405 — route exists but not for this HTTP method.

    Includes an ``Allow`` header listing the valid methods and embeds
    the allowed methods in the detail string for developer visibility.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )
        object.__setattr__(self, "allowed", frozenset(allowed))
