"""HTTP response with chainable .with_*() transformation API.

Each transformation returns a new Response. Immutable by convention,
built incrementally by design.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations.

    Construct with a body, then chain ``.with_*()`` calls to set
    status and headers. Each call returns a new ``Response``.
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str] | tuple[tuple[str, str], ...]) -> Response:
        """Return a new Response with additional headers."""
        new = tuple(headers.items()) if isinstance(headers, Mapping) else tuple(headers)
        return replace(self, headers=(*self.headers, *new))

    def with_content_type(self, content_type: str) -> Response:
        """Return a new Response with a different content type."""
        return replace(self, content_type=content_type)

    def with_body(self, body: str | bytes) -> Response:
        """Return a new Response with a different body."""
        return replace(self, body=body)

    # -- Accessors --

    def header(self, name: str, default: str | None = None) -> str | None:
        """First value of a response header (case-insensitive)."""
        name_lower = name.lower()
        if name_lower == "content-type":
            return self.content_type
        for key, value in self.headers:
            if key.lower() == name_lower:
                return value
        return default

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body

    def json(self) -> Any:
        """Body parsed as JSON."""
        return json_module.loads(self.body_bytes)


def json_response(
    data: Any,
    status: int = 200,
    *,
    headers: Mapping[str, str] | tuple[tuple[str, str], ...] = (),
    indent: int | None = None,
) -> Response:
    """Serialise *data* into a JSON ``Response``.

    Values ``json`` cannot encode natively fall back to ``str()``.
    """
    body = json_module.dumps(data, indent=indent, default=str)
    return Response(body=body, status=status, content_type=JSON_CONTENT_TYPE).with_headers(headers)


def error_body(
    code: int,
    error: str,
    message: str,
    description: str = "",
    errors: Mapping[str, list[str]] | None = None,
) -> dict[str, Any]:
    """The JSON error envelope shared by middleware, strategies, and the host boundary."""
    return {
        "status": "error",
        "code": code,
        "error": error,
        "message": message,
        "description": description,
        "errors": dict(errors or {}),
    }
