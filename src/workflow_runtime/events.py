from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Event:
    """A named signal sent into a state machine.

    The optional payload is a partial context that is merged (shallowly) into the
    machine's context when the event causes a transition.
    """

    type: str
    payload: Mapping[str, Any] | None = None

    @staticmethod
    def from_json(obj: Mapping[str, Any]) -> Event:
        type_raw = obj.get("type")
        if not isinstance(type_raw, str) or not type_raw:
            raise ValueError("Event requires a non-empty string 'type'")
        payload_raw = obj.get("payload")
        if payload_raw is not None and not isinstance(payload_raw, Mapping):
            raise ValueError("Event 'payload' must be an object")
        return Event(type=type_raw, payload=payload_raw)
