"""Route definitions — named metadata, parameter schema, documented responses.

A definition answers "what is this endpoint?" for validation and for
documentation tooling. Routes and groups hold one; a route's definition
falls back to its group's for ``title``, ``description`` and ``type``.

Definitions can be plain data::

    router.get("/search", search).set_definition(
        title="Search",
        type="api",
        params={"query": {"validation": "required"}},
    )

or classes satisfying ``Definition``::

    class SearchDefinition:
        def title(self): return "Search"
        def description(self): return None
        def type(self): return "api"
        def meta(self): return {}
        def params(self): return {"query": {"validation": "required"}}
        def responses(self): return {200: {"description": "Matches"}}
"""

from __future__ import annotations

import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Protocol, runtime_checkable

from switchyard.routing.params import ParamDefinition

type ParamSpecs = Mapping[str, Mapping[str, Any] | ParamDefinition] | Sequence[ParamDefinition]
type ResponseSpecs = Mapping[int, Mapping[str, Any] | str] | Sequence[ResponseDefinition]


@runtime_checkable
class Definition(Protocol):
    """Anything that can describe a route."""

    def title(self) -> str | None: ...

    def description(self) -> str | None: ...

    def type(self) -> str | None: ...

    def meta(self) -> Mapping[str, Any]: ...

    def params(self) -> ParamSpecs: ...

    def responses(self) -> ResponseSpecs: ...


@dataclass(frozen=True, slots=True)
class ResponseDefinition:
    """A documented response: status, description, and body schema."""

    status: int
    description: str = ""
    schema: tuple[ParamDefinition, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", int(self.status))
        if not self.description:
            try:
                object.__setattr__(self, "description", HTTPStatus(self.status).phrase)
            except ValueError:
                pass
        object.__setattr__(self, "schema", _to_params(self.schema))


class RouteDefinition:
    """Plain-data definition with parent fallback.

    Unset ``title``, ``description`` and ``type`` resolve through
    ``parent``, else to ``""``. ``meta`` never falls back.
    """

    __slots__ = ("_description", "_meta", "_params", "_responses", "_title", "_type", "parent")

    def __init__(
        self,
        title: str | None = None,
        description: str | None = None,
        type: str | None = None,
        meta: Mapping[str, Any] | None = None,
        params: ParamSpecs | None = None,
        responses: ResponseSpecs | None = None,
        parent: DefinitionFacade | None = None,
    ) -> None:
        self._title = title
        self._description = description
        self._type = type
        self._meta = dict(meta or {})
        self._params = params if params is not None else {}
        self._responses = responses if responses is not None else {}
        self.parent = parent

    def title(self) -> str:
        return self._fallback(self._title, "title")

    def description(self) -> str:
        return self._fallback(self._description, "description")

    def type(self) -> str:
        return self._fallback(self._type, "type")

    def meta(self) -> Mapping[str, Any]:
        return self._meta

    def params(self) -> ParamSpecs:
        return self._params

    def responses(self) -> ResponseSpecs:
        return self._responses

    def _fallback(self, value: str | None, name: str) -> str:
        if value:
            return value
        if self.parent is not None:
            return getattr(self.parent, name)
        return ""

    def __repr__(self) -> str:
        return f"RouteDefinition(title={self._title!r}, type={self._type!r})"


class DefinitionFacade:
    """Normalised, cached view over a ``Definition``.

    Adds parent fallback for any definition (not just ``RouteDefinition``),
    converts parameter and response specs into ``ParamDefinition`` and
    ``ResponseDefinition`` tuples once, and merges parameters declared
    on the handler with ``@param``. Definition params win on name clashes.
    """

    __slots__ = ("_definition", "_extra_params", "_lock", "_params", "_responses", "parent")

    def __init__(
        self,
        definition: Definition,
        parent: DefinitionFacade | None = None,
        extra_params: Sequence[ParamDefinition] = (),
    ) -> None:
        self._definition = definition
        self._extra_params = tuple(extra_params)
        self._params: tuple[ParamDefinition, ...] | None = None
        self._responses: tuple[ResponseDefinition, ...] | None = None
        self._lock = threading.Lock()
        self.parent = parent

    @property
    def definition(self) -> Definition:
        return self._definition

    @property
    def title(self) -> str:
        return self._resolve(self._definition.title(), "title")

    @property
    def description(self) -> str:
        return self._resolve(self._definition.description(), "description")

    @property
    def type(self) -> str:
        return self._resolve(self._definition.type(), "type")

    def meta(self, key: str, default: Any = None) -> Any:
        """Look up a meta value on this definition only."""
        return self._definition.meta().get(key, default)

    def params(self) -> tuple[ParamDefinition, ...]:
        """All parameters, definition first, then handler-declared ones."""
        if self._params is None:
            with self._lock:
                if self._params is None:
                    params = list(_to_params(self._definition.params()))
                    names = {p.name for p in params}
                    params.extend(p for p in self._extra_params if p.name not in names)
                    self._params = tuple(params)
        return self._params

    def responses(self) -> tuple[ResponseDefinition, ...]:
        """Documented responses, ordered by status."""
        if self._responses is None:
            with self._lock:
                if self._responses is None:
                    self._responses = _to_responses(self._definition.responses())
        return self._responses

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form for documentation output."""
        return {
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "meta": dict(self._definition.meta()),
            "params": [p.to_dict() for p in self.params()],
            "responses": [
                {
                    "status": r.status,
                    "description": r.description,
                    "schema": [p.to_dict() for p in r.schema],
                }
                for r in self.responses()
            ],
        }

    def _resolve(self, value: str | None, name: str) -> str:
        if value:
            return value
        if self.parent is not None:
            return getattr(self.parent, name)
        return ""


def _to_params(specs: ParamSpecs | None) -> tuple[ParamDefinition, ...]:
    if not specs:
        return ()
    if isinstance(specs, Mapping):
        return tuple(ParamDefinition.from_spec(name, spec) for name, spec in specs.items())
    return tuple(specs)


def _to_responses(specs: ResponseSpecs | None) -> tuple[ResponseDefinition, ...]:
    if not specs:
        return ()
    if isinstance(specs, Mapping):
        responses = []
        for status, spec in specs.items():
            if isinstance(spec, str):
                responses.append(ResponseDefinition(status, spec))
            else:
                responses.append(
                    ResponseDefinition(status, spec.get("description", ""), spec.get("schema", ()))
                )
    else:
        responses = list(specs)
    return tuple(sorted(responses, key=lambda r: r.status))
