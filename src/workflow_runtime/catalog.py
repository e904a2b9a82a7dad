"""Workflow catalog: static definitions plus the state machine factory."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from workflow_runtime.conditions import ConditionEvaluator
from workflow_runtime.config import RuntimeSettings
from workflow_runtime.errors import WorkflowNotFound
from workflow_runtime.models import (
    ActionDefinition,
    LogicDocument,
    ServiceDefinition,
    WorkflowDefinition,
    default_logic_document,
)
from workflow_runtime.registry import ActionHandler, ActionHandlerRegistry
from workflow_runtime.state_machine import ActionFailurePolicy, SendPolicy, StateMachine

logger = logging.getLogger(__name__)


def load_logic_document(path: Path | str, *, fallback: bool = True) -> LogicDocument:
    """Load and validate a JSON logic document.

    Args:
        path: Location of the JSON document.
        fallback: If true, a missing or invalid document is logged and the
            built-in default document (a single ``simple`` workflow) is returned.

    Returns:
        The parsed document.

    Raises:
        OSError: If the file cannot be read and ``fallback`` is false.
        ValueError: If the content is not a valid document and ``fallback`` is false.
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        document = LogicDocument.model_validate(raw)
    except (OSError, ValueError) as e:
        if not fallback:
            raise
        logger.error(
            "Failed to load logic configuration; using default",
            extra={"path": str(path), "error": str(e)},
        )
        return default_logic_document()

    logger.info(
        "Logic configuration loaded",
        extra={
            "path": str(path),
            "workflows": len(document.workflows),
            "actions": len(document.actions),
        },
    )
    return document


class WorkflowCatalog:
    """Holds parsed workflow/action definitions and creates state machines from them.

    Definitions are read-only once the catalog is built, so a single catalog can
    serve any number of concurrently running machines.
    """

    def __init__(
        self,
        document: LogicDocument | None = None,
        *,
        registry: ActionHandlerRegistry | None = None,
        evaluator: ConditionEvaluator | None = None,
        failure_policy: ActionFailurePolicy | str = ActionFailurePolicy.CONTINUE,
        send_policy: SendPolicy | str = SendPolicy.QUEUE,
    ) -> None:
        """Initialize the catalog.

        Args:
            document: Parsed logic document. Defaults to an empty document.
            registry: Handler registry shared by every machine this catalog creates.
            evaluator: Condition evaluator shared by every machine.
            failure_policy: Action failure policy applied to new machines.
            send_policy: Overlapping-send policy applied to new machines.
        """
        self._document = document if document is not None else LogicDocument()
        self.registry = registry if registry is not None else ActionHandlerRegistry()
        self.evaluator = evaluator if evaluator is not None else ConditionEvaluator()
        self.failure_policy = ActionFailurePolicy(failure_policy)
        self.send_policy = SendPolicy(send_policy)

        for name, workflow in self._document.workflows.items():
            for state, target in workflow.dangling_targets():
                logger.warning(
                    "Transition targets an undefined state",
                    extra={"workflow": name, "state": state, "target": target},
                )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], **kwargs: Any) -> WorkflowCatalog:
        """Build a catalog from an already-parsed logic document."""
        return cls(LogicDocument.model_validate(data), **kwargs)

    @classmethod
    def from_settings(
        cls,
        settings: RuntimeSettings,
        *,
        registry: ActionHandlerRegistry | None = None,
        evaluator: ConditionEvaluator | None = None,
    ) -> WorkflowCatalog:
        return cls(
            load_logic_document(settings.logic_path),
            registry=registry,
            evaluator=evaluator,
            failure_policy=settings.action_failure_policy,
            send_policy=settings.send_policy,
        )

    @property
    def document(self) -> LogicDocument:
        return self._document

    def workflow_names(self) -> list[str]:
        return list(self._document.workflows)

    def get_workflow(self, name: str) -> WorkflowDefinition | None:
        return self._document.workflows.get(name)

    def get_action_definition(self, name: str) -> ActionDefinition | None:
        return self._document.actions.get(name)

    def get_service(self, name: str) -> ServiceDefinition | None:
        return self._document.services.get(name)

    def register_action_handler(self, category: str, handler: ActionHandler) -> None:
        self.registry.register(category, handler)

    async def create(
        self, workflow_name: str, initial_context: Mapping[str, Any] | None = None
    ) -> StateMachine:
        """Create a new state machine and run its initial entry actions.

        Args:
            workflow_name: Name of the workflow to instantiate.
            initial_context: Seed context; it is copied, never shared.

        Returns:
            A started state machine in the workflow's initial state.

        Raises:
            WorkflowNotFound: If no workflow has that name.
        """
        workflow = self.get_workflow(workflow_name)
        if workflow is None:
            raise WorkflowNotFound(workflow_name)

        machine = StateMachine(
            workflow,
            actions=self._document.actions,
            registry=self.registry,
            evaluator=self.evaluator,
            initial_context=initial_context,
            name=workflow_name,
            failure_policy=self.failure_policy,
            send_policy=self.send_policy,
        )
        await machine.start()
        logger.info(
            "State machine created",
            extra={"workflow": workflow_name, "state": machine.get_state()},
        )
        return machine
