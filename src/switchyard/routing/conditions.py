"""Host/scheme/port constraints shared by routes and groups."""

from __future__ import annotations

from dataclasses import dataclass, replace

from switchyard.http.request import Request


@dataclass(frozen=True, slots=True)
class Conditions:
    """Extra match conditions checked after the path matched.

    ``None`` means "any". Hosts and schemes compare case-insensitively;
    ports compare against the request's explicit or scheme-default port.
    """

    host: str | None = None
    scheme: str | None = None
    port: int | None = None

    @property
    def is_empty(self) -> bool:
        return self.host is None and self.scheme is None and self.port is None

    def with_host(self, host: str | None) -> Conditions:
        return replace(self, host=host)

    def with_scheme(self, scheme: str | None) -> Conditions:
        return replace(self, scheme=scheme)

    def with_port(self, port: int | None) -> Conditions:
        return replace(self, port=port)

    def over(self, base: Conditions) -> Conditions:
        """These conditions, with unset fields taken from *base*."""
        return Conditions(
            host=self.host if self.host is not None else base.host,
            scheme=self.scheme if self.scheme is not None else base.scheme,
            port=self.port if self.port is not None else base.port,
        )

    def matches(self, request: Request) -> bool:
        """True if *request* satisfies every set condition."""
        if self.host is not None and self.host.lower() != request.host.lower():
            return False
        if self.scheme is not None and self.scheme.lower() != request.scheme.lower():
            return False
        return self.port is None or self.port == request.effective_port
