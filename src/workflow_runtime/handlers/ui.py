from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

logger = logging.getLogger(__name__)


class UiHandler:
    """Surfaces a user-facing message.

    Rendering is up to the host: pass ``display`` to forward messages to a real
    notification surface. Without it the message is only logged.
    """

    def __init__(self, display: Callable[[str, str], None] | None = None) -> None:
        self._display = display

    async def execute(
        self, params: Mapping[str, Any], context: Mapping[str, Any]
    ) -> dict[str, Any]:
        message = params.get("message")
        if not message:
            return {"ui": {"displayed": False}}

        kind = params.get("type") or "info"
        logger.info("UI message", extra={"ui_message": message, "ui_type": kind})
        if self._display is not None:
            self._display(str(message), str(kind))
        return {"ui": {"displayed": True, "message": message, "type": kind}}
