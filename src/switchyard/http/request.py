"""Immutable HTTP request.

Frozen metadata plus the raw body. The request is honest about what it
is: received data that doesn't change. Middleware that needs to pass
something along derives a new request with ``with_attribute()``.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from switchyard.http.headers import Headers
from switchyard.http.query import QueryParams

if TYPE_CHECKING:
    from switchyard.http.forms import FormData

_DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``attributes`` carries per-dispatch values (route vars, validated
    data). ``parsed_body`` is set by body-parsing middleware; until then
    ``input()`` decodes the raw body on demand.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query: QueryParams = field(default_factory=QueryParams)
    body: bytes = b""
    scheme: str = "http"
    host: str = "localhost"
    port: int | None = None
    parsed_body: Any = None
    attributes: Mapping[str, Any] = field(default_factory=dict)

    # Private: mutable cache for decoded body data
    # (dict contents are mutable even though the field reference is frozen)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def is_json(self) -> bool:
        """True if the body is declared as JSON."""
        ct = (self.content_type or "").lower().split(";")[0].strip()
        return ct == "application/json" or ct.endswith("+json")

    @property
    def wants_json(self) -> bool:
        """True if the client sends JSON or lists JSON in ``Accept``."""
        return self.is_json or "application/json" in (self.headers.get("accept") or "")

    @property
    def effective_port(self) -> int | None:
        """The explicit port, or the scheme's default."""
        if self.port is not None:
            return self.port
        return _DEFAULT_PORTS.get(self.scheme)

    @property
    def url(self) -> str:
        """Request path plus query string."""
        if self.query.raw:
            return f"{self.path}?{self.query.raw}"
        return self.path

    def attribute(self, name: str, default: Any = None) -> Any:
        """Return a per-dispatch attribute, or *default*."""
        return self.attributes.get(name, default)

    # -- Derivation --

    def with_attribute(self, name: str, value: Any) -> Request:
        """Return a new Request with one more attribute."""
        return replace(self, attributes={**self.attributes, name: value}, _cache=self._cache)

    def with_attributes(self, values: Mapping[str, Any]) -> Request:
        """Return a new Request with several more attributes."""
        return replace(self, attributes={**self.attributes, **values}, _cache=self._cache)

    def with_parsed_body(self, data: Any) -> Request:
        """Return a new Request carrying decoded body data."""
        return replace(self, parsed_body=data, _cache=self._cache)

    # -- Body access --

    def text(self) -> str:
        """The body as text (UTF-8)."""
        return self.body.decode("utf-8")

    def json(self) -> Any:
        """Parse the body as JSON. An empty body yields ``None``.

        Raises ``ValueError`` on malformed JSON.
        """
        if "_json" not in self._cache:
            self._cache["_json"] = json_module.loads(self.body) if self.body.strip() else None
        return self._cache["_json"]

    def form(self) -> FormData:
        """Parse the body as form data (URL-encoded or multipart).

        Result is cached — the body is parsed once, then the same
        ``FormData`` is returned on subsequent calls.

        Raises:
            ValueError: If Content-Type is not a form encoding.
        """
        if "_form" not in self._cache:
            from switchyard.http.forms import parse_form_data

            ct = self.content_type or "application/x-www-form-urlencoded"
            self._cache["_form"] = parse_form_data(self.body, ct)
        return self._cache["_form"]

    def input(self) -> Any:
        """Decoded body data: parsed body, JSON, or form fields.

        Returns an empty dict when the body is empty or of an
        unrecognised type.
        """
        if self.parsed_body is not None:
            return self.parsed_body
        if not self.body:
            return {}
        if self.is_json:
            data = self.json()
            return {} if data is None else data

        from switchyard.http.forms import is_form_content_type

        if is_form_content_type(self.content_type):
            return self.form().to_dict()
        return {}

    # -- Factory --

    @classmethod
    def build(
        cls,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes | str = b"",
        json: Any = None,
    ) -> Request:
        """Create a Request from a method and a path or absolute URL.

        ``json`` serialises a payload and sets the JSON content type.
        Without an absolute URL, the host comes from the ``Host`` header.
        """
        header_map = dict(headers or {})
        if json is not None:
            body = json_module.dumps(json)
            if not any(k.lower() == "content-type" for k in header_map):
                header_map["content-type"] = "application/json"
        if isinstance(body, str):
            body = body.encode("utf-8")

        parts = urlsplit(url)
        host_header = next((v for k, v in header_map.items() if k.lower() == "host"), None)
        if parts.netloc:
            host = parts.hostname or "localhost"
            port = parts.port
        elif host_header:
            host, _, port_text = host_header.partition(":")
            port = int(port_text) if port_text.isdigit() else None
        else:
            host, port = "localhost", None

        return cls(
            method=method.upper(),
            path=parts.path or "/",
            headers=Headers.from_mapping(header_map),
            query=QueryParams(parts.query),
            body=body,
            scheme=parts.scheme or "http",
            host=host,
            port=port,
        )
