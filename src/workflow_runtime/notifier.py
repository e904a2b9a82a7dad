"""In-process observer list used for state/context change notifications."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

ListenerT = TypeVar("ListenerT", bound=Callable[..., Any])


class _Subscription(Generic[ListenerT]):
    __slots__ = ("listener", "active")

    def __init__(self, listener: ListenerT) -> None:
        self.listener = listener
        self.active = True


class Notifier(Generic[ListenerT]):
    """Synchronous fan-out to subscribers, in subscription order.

    No priorities, no deduplication: subscribing the same callable twice yields
    two independent subscriptions.
    """

    def __init__(self) -> None:
        self._subscriptions: list[_Subscription[ListenerT]] = []

    def subscribe(self, listener: ListenerT) -> Callable[[], None]:
        """Add ``listener``; returns an idempotent unsubscribe function."""
        subscription = _Subscription(listener)
        self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            if not subscription.active:
                return
            subscription.active = False
            self._subscriptions.remove(subscription)

        return unsubscribe

    def emit(self, *args: Any, snapshot: Callable[[], tuple[Any, ...]] | None = None) -> None:
        """Call every active listener.

        If ``snapshot`` is given it is called once per listener to build that
        listener's arguments, so one listener cannot corrupt what the next sees.
        A listener that raises is logged and skipped.
        """
        for subscription in list(self._subscriptions):
            if not subscription.active:
                continue
            call_args = snapshot() if snapshot is not None else args
            try:
                subscription.listener(*call_args)
            except Exception:
                logger.exception(
                    "Listener raised during notification",
                    extra={"listener": repr(subscription.listener)},
                )

    def __len__(self) -> int:
        return len(self._subscriptions)
