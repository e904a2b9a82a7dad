from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from workflow_runtime.context import resolve_path


class ValidationHandler:
    """Checks simple structural rules against the context.

    Params:
      - ``minItems``: minimum length of ``items`` (defaults to the context's
        ``cart.items``). A non-list value cannot be checked and passes.
      - ``items``: usually a context path such as ``"cart.items"``, which the
        engine resolves before the handler runs.
      - ``required``: list of context paths that must be present and non-empty.
      - ``message``: overrides the ``minItems`` error message.

    Result: ``{"validation": {"isValid": bool, "errors": [str, ...]}}``
    """

    async def execute(
        self, params: Mapping[str, Any], context: Mapping[str, Any]
    ) -> dict[str, Any]:
        errors: list[str] = []

        min_items = params.get("minItems")
        if min_items:
            items = params["items"] if "items" in params else resolve_path(context, "cart.items")
            if isinstance(items, list) and len(items) < int(min_items):
                errors.append(
                    params.get("message") or f"Cart must have at least {min_items} item(s)"
                )

        required = params.get("required") or []
        if isinstance(required, str):
            required = [required]
        for path in required:
            if resolve_path(context, path) in (None, "", [], {}):
                errors.append(f"{path} is required")

        return {"validation": {"isValid": not errors, "errors": errors}}
