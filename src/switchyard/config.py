"""Router configuration.

RouterConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Router configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RouterConfig(
            env="development",
            routes="myapp.routes:configure",
            middleware={"auth": "myapp.middleware:AuthMiddleware"},
        )
    """

    # Environment
    env: str = "production"
    debug: bool = False

    # Routes: "package.module:function", called with the router during prepare()
    routes: str | None = None

    # Middleware aliases: alias -> class, container key, or "package.module:Class"
    middleware: Mapping[str, Any] = field(default_factory=dict, hash=False)

    # JSON rendering (None = pretty outside production)
    json_pretty: bool | None = None

    @property
    def json_indent(self) -> int | None:
        """Indent used for JSON bodies produced by the strategies."""
        pretty = self.json_pretty if self.json_pretty is not None else self.env != "production"
        return 4 if pretty else None
