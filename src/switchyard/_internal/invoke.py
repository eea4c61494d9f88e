"""Invoke helpers — call route handlers with what they ask for.

Handlers can take the request, the matched route vars as a mapping, or
individual vars by name. Signature inspection lives here so strategies
and controllers share one set of rules.

Usage::

    from switchyard._internal.invoke import invoke_handler

    result = invoke_handler(handler, request, vars)
"""

import inspect
from collections.abc import Callable, Mapping
from typing import Any

from switchyard.http.request import Request


def invoke_handler(handler: Callable[..., Any], request: Request, vars: Mapping[str, str]) -> Any:
    """Call *handler*, building its arguments from its signature.

    Resolution order:
    1. ``request`` parameter (by name or ``Request`` annotation)
    2. ``vars`` parameter (the full mapping of matched route vars)
    3. Route vars (by name, with conversion to the annotated type)

    Callables whose signature cannot be inspected are called as
    ``handler(request, vars)``.
    """
    try:
        sig = inspect.signature(handler, eval_str=True)
    except (TypeError, ValueError, NameError):
        return handler(request, dict(vars))

    args: list[Any] = []
    kwargs: dict[str, Any] = {}

    for name, param in sig.parameters.items():
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        if name == "request" or param.annotation is Request:
            value: Any = request
        elif name == "vars":
            value = dict(vars)
        elif name in vars:
            value = _convert(vars[name], param.annotation)
        elif param.default is not inspect.Parameter.empty:
            continue
        else:
            msg = f"Cannot supply argument {name!r} to handler {_describe(handler)}"
            raise TypeError(msg)

        if param.kind is inspect.Parameter.POSITIONAL_ONLY:
            args.append(value)
        else:
            kwargs[name] = value

    return handler(*args, **kwargs)


def _convert(value: str, annotation: Any) -> Any:
    """Convert a route var to the annotated type if possible."""
    if annotation is inspect.Parameter.empty or annotation is str:
        return value
    if annotation is bool:
        return value.lower() in ("true", "1", "yes", "on")
    try:
        return annotation(value)
    except (ValueError, TypeError):
        return value


def _describe(handler: Callable[..., Any]) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)
