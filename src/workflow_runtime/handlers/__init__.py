"""Reference action handlers and the bootstrap that registers them."""

from __future__ import annotations

import logging

from workflow_runtime.config import RuntimeSettings
from workflow_runtime.handlers.api import ApiHandler
from workflow_runtime.handlers.data import DataHandler
from workflow_runtime.handlers.ui import UiHandler
from workflow_runtime.handlers.validation import ValidationHandler
from workflow_runtime.registry import ActionHandlerRegistry

logger = logging.getLogger(__name__)

__all__ = [
    "ApiHandler",
    "DataHandler",
    "UiHandler",
    "ValidationHandler",
    "register_default_handlers",
]


def register_default_handlers(
    registry: ActionHandlerRegistry, settings: RuntimeSettings | None = None
) -> ActionHandlerRegistry:
    """Register the ``validation``, ``ui``, ``data`` and ``api`` handlers."""
    timeout = settings.api_timeout_seconds if settings is not None else 10.0
    registry.register("validation", ValidationHandler())
    registry.register("ui", UiHandler())
    registry.register("data", DataHandler())
    registry.register("api", ApiHandler(timeout=timeout))
    logger.info("Logic handlers registered", extra={"categories": registry.categories()})
    return registry
