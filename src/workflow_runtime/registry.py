"""Action handler registry.

Handlers are keyed by *category* (the ``type`` of an action definition, e.g.
``"validation"`` or ``"api"``). Each handler exposes a single asynchronous
``execute`` capability; whatever mapping it returns is merged into the state
machine's context by the engine.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

HandlerResult = Mapping[str, Any] | None


@runtime_checkable
class ActionHandler(Protocol):
    """A single-capability, asynchronous action executor.

    Handlers receive resolved parameters and a snapshot of the context. They must
    not mutate engine state directly; they return a result mapping instead.
    """

    async def execute(
        self, params: Mapping[str, Any], context: Mapping[str, Any]
    ) -> HandlerResult: ...


class FunctionHandler:
    """Adapt a plain ``async def fn(params, context)`` into an :class:`ActionHandler`."""

    def __init__(
        self, func: Callable[[Mapping[str, Any], Mapping[str, Any]], Awaitable[HandlerResult]]
    ) -> None:
        self.func = func

    async def execute(
        self, params: Mapping[str, Any], context: Mapping[str, Any]
    ) -> HandlerResult:
        return await self.func(params, context)

    def __repr__(self) -> str:
        return f"FunctionHandler({getattr(self.func, '__name__', self.func)!r})"


class ActionHandlerRegistry:
    """Category -> handler mapping, populated at bootstrap and read thereafter.

    Registries are plain objects passed to the catalog explicitly, so tests and
    separate engines never share handlers by accident.
    """

    def __init__(self, handlers: Mapping[str, ActionHandler] | None = None) -> None:
        self._handlers: dict[str, ActionHandler] = {}
        for category, handler in (handlers or {}).items():
            self.register(category, handler)

    def register(self, category: str, handler: ActionHandler) -> None:
        """Register ``handler`` for ``category``; the last registration wins.

        Raises:
            TypeError: If ``handler`` has no ``execute`` method.
        """
        if not callable(getattr(handler, "execute", None)):
            raise TypeError(f"Handler for {category!r} must define execute(params, context)")
        if category in self._handlers and self._handlers[category] is not handler:
            logger.info("Replacing action handler", extra={"category": category})
        self._handlers[category] = handler
        logger.debug("Action handler registered", extra={"category": category})

    def handler(self, category: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator registering an async function as the handler for ``category``.

        Example:
            @registry.handler("notification")
            async def notify(params, context):
                return {"notified": True}
        """

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self.register(category, FunctionHandler(func))
            return func

        return decorator

    def unregister(self, category: str) -> None:
        self._handlers.pop(category, None)

    def resolve(self, category: str) -> ActionHandler | None:
        return self._handlers.get(category)

    def categories(self) -> list[str]:
        return list(self._handlers)

    def __contains__(self, category: object) -> bool:
        return category in self._handlers
