"""Test configuration and fixtures."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from workflow_runtime.catalog import WorkflowCatalog
from workflow_runtime.conditions import ConditionEvaluator
from workflow_runtime.registry import ActionHandlerRegistry


class RecordingHandler:
    """Test handler that records calls and returns (or raises) a fixed outcome."""

    def __init__(self, result: Any = None, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.calls: list[tuple[dict[str, Any], dict[str, Any]]] = []

    async def execute(self, params: Mapping[str, Any], context: Mapping[str, Any]) -> Any:
        self.calls.append((dict(params), dict(context)))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def make_handler() -> type[RecordingHandler]:
    """Provide the recording handler class, e.g. ``make_handler(result={"ok": True})``."""
    return RecordingHandler


@pytest.fixture
def registry() -> ActionHandlerRegistry:
    """Provide an empty, isolated handler registry."""
    return ActionHandlerRegistry()


@pytest.fixture
def evaluator() -> ConditionEvaluator:
    return ConditionEvaluator()


@pytest.fixture
def simple_document() -> dict[str, Any]:
    """The canonical two-state workflow: start --FINISH--> end."""
    return {
        "workflows": {
            "wf": {
                "initialState": "start",
                "states": {
                    "start": {
                        "actions": [],
                        "transitions": [{"event": "FINISH", "target": "end"}],
                    },
                    "end": {"actions": [], "transitions": []},
                },
            }
        },
        "actions": {},
    }


@pytest.fixture
def simple_catalog(
    simple_document: dict[str, Any], registry: ActionHandlerRegistry
) -> WorkflowCatalog:
    return WorkflowCatalog.from_mapping(simple_document, registry=registry)
