"""Workflow Runtime.

A small interpreter for declarative workflow state machines:
- workflow and action definitions loaded from a logic document
- independent state machine instances with their own context
- pluggable, asynchronous action handlers keyed by category
- guarded transitions using a restricted condition language
"""

__version__ = "0.1.0"

from workflow_runtime.catalog import WorkflowCatalog, load_logic_document
from workflow_runtime.conditions import ConditionEvaluator
from workflow_runtime.config import RuntimeSettings
from workflow_runtime.events import Event
from workflow_runtime.registry import ActionHandler, ActionHandlerRegistry
from workflow_runtime.state_machine import ActionFailurePolicy, SendPolicy, StateMachine

__all__ = [
    "__version__",
    "ActionFailurePolicy",
    "ActionHandler",
    "ActionHandlerRegistry",
    "ConditionEvaluator",
    "Event",
    "RuntimeSettings",
    "SendPolicy",
    "StateMachine",
    "WorkflowCatalog",
    "load_logic_document",
]
