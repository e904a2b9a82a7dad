"""Context store helpers: shallow merges and dotted-path parameter resolution."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeAlias

from pydantic import JsonValue

Context: TypeAlias = dict[str, JsonValue]


def merge_context(context: Mapping[str, Any], updates: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return a new context with ``updates`` applied as top-level overwrites.

    Nested objects are replaced, never deep-merged: merging ``{"a": {"y": 2}}``
    into ``{"a": {"x": 1}}`` yields ``{"a": {"y": 2}}``.
    """
    merged = dict(context)
    if updates:
        merged.update(updates)
    return merged


def resolve_path(context: Mapping[str, Any], path: str) -> Any:
    """Walk ``path`` (split on ``.``) through ``context``.

    Missing keys yield ``None`` rather than raising. Numeric segments index into
    lists and tuples.
    """
    current: Any = context
    for part in path.split("."):
        if isinstance(current, Mapping):
            current = current.get(part)
        elif isinstance(current, (list, tuple)) and part.isdigit():
            idx = int(part)
            current = current[idx] if idx < len(current) else None
        else:
            return None
        if current is None:
            return None
    return current


def resolve_params(params: Mapping[str, Any], context: Mapping[str, Any]) -> dict[str, Any]:
    """Resolve action parameters against the context.

    String values containing a ``.`` are treated as context paths; everything
    else passes through unchanged.
    """
    resolved: dict[str, Any] = {}
    for key, value in params.items():
        if isinstance(value, str) and "." in value:
            resolved[key] = resolve_path(context, value)
        else:
            resolved[key] = value
    return resolved
