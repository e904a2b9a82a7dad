"""Error taxonomy for the workflow runtime.

Only `WorkflowNotFound` (and `MachineBusy` under the reject send policy) is raised
to callers by default. The others are reported to logs and error listeners and
recovered locally by the engine.
"""

from __future__ import annotations


class WorkflowRuntimeError(Exception):
    """Base class for every error the runtime raises or reports."""


class WorkflowNotFound(WorkflowRuntimeError, LookupError):
    def __init__(self, workflow: str) -> None:
        super().__init__(f'Workflow "{workflow}" not found')
        self.workflow = workflow


class StateNotFound(WorkflowRuntimeError, LookupError):
    def __init__(self, state: str, workflow: str | None = None) -> None:
        super().__init__(f'State "{state}" not found in workflow')
        self.state = state
        self.workflow = workflow


class NoMatchingTransition(WorkflowRuntimeError):
    def __init__(self, event: str, state: str) -> None:
        super().__init__(f'No valid transition found for event "{event}" in state "{state}"')
        self.event = event
        self.state = state


class ConditionEvaluationError(WorkflowRuntimeError, ValueError):
    """A guard expression could not be parsed or evaluated."""

    def __init__(self, expression: str, reason: str) -> None:
        super().__init__(f'Error evaluating condition "{expression}": {reason}')
        self.expression = expression
        self.reason = reason


class ActionFailure(WorkflowRuntimeError):
    """A single action invocation failed; its context effects were skipped."""

    def __init__(self, message: str, action: str) -> None:
        super().__init__(message)
        self.action = action


class UndefinedAction(ActionFailure):
    def __init__(self, action: str) -> None:
        super().__init__(f'Action "{action}" not found', action=action)


class UnregisteredHandlerCategory(ActionFailure):
    def __init__(self, action: str, category: str) -> None:
        super().__init__(f'No handler registered for action type "{category}"', action=action)
        self.category = category


class HandlerExecutionError(ActionFailure):
    """The handler raised, or returned something other than a mapping.

    The original exception (if any) is chained as ``__cause__``.
    """

    def __init__(self, action: str, category: str, reason: str) -> None:
        super().__init__(f'Error executing action "{action}": {reason}', action=action)
        self.category = category
        self.reason = reason


class MachineBusy(WorkflowRuntimeError):
    def __init__(self, workflow: str | None) -> None:
        super().__init__(f'State machine for "{workflow}" is already processing an event')
        self.workflow = workflow
