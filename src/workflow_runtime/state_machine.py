"""State machine engine.

A :class:`StateMachine` is one running instance of a workflow definition. It
owns the current state, a private context and its subscribers; the definitions,
handler registry and condition evaluator are shared read-only with every other
instance.

Processing an event is a single atomic unit from an observer's point of view:

1. the first transition (in declared order) whose event and guard both match is
   selected;
2. the transition's actions run, in order;
3. the event payload is merged into the context;
4. the machine enters the target state and runs its entry actions, in order;
5. subscribers are notified once.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any

from workflow_runtime.conditions import ConditionEvaluator
from workflow_runtime.context import Context, merge_context, resolve_params
from workflow_runtime.errors import (
    ActionFailure,
    ConditionEvaluationError,
    HandlerExecutionError,
    MachineBusy,
    NoMatchingTransition,
    StateNotFound,
    UndefinedAction,
    UnregisteredHandlerCategory,
    WorkflowRuntimeError,
)
from workflow_runtime.events import Event
from workflow_runtime.models import (
    ActionDefinition,
    ActionInvocation,
    StateDefinition,
    TransitionDefinition,
    WorkflowDefinition,
)
from workflow_runtime.notifier import Notifier
from workflow_runtime.registry import ActionHandlerRegistry

logger = logging.getLogger(__name__)

StateListener = Callable[[str, dict[str, Any]], None]
ErrorListener = Callable[[WorkflowRuntimeError], None]


class ActionFailurePolicy(str, Enum):
    """What happens when a single action fails.

    CONTINUE: report the failure, skip that action's context merge and carry on
    with the remaining actions and the transition.
    ABORT: report the failure, then raise it from ``send``/``start``.
    """

    CONTINUE = "continue"
    ABORT = "abort"


class SendPolicy(str, Enum):
    """How a ``send`` issued while another is still in flight is handled."""

    QUEUE = "queue"
    REJECT = "reject"


@dataclass(frozen=True, slots=True)
class MachineSnapshot:
    state: str
    context: Context

    def to_json(self) -> dict[str, object]:
        return {"state": self.state, "context": dict(self.context)}


class StateMachine:
    """A live, independently-owned execution of one workflow."""

    def __init__(
        self,
        workflow: WorkflowDefinition,
        *,
        actions: Mapping[str, ActionDefinition],
        registry: ActionHandlerRegistry,
        evaluator: ConditionEvaluator,
        initial_context: Mapping[str, Any] | None = None,
        name: str | None = None,
        failure_policy: ActionFailurePolicy | str = ActionFailurePolicy.CONTINUE,
        send_policy: SendPolicy | str = SendPolicy.QUEUE,
    ) -> None:
        self.name = name
        self.failure_policy = ActionFailurePolicy(failure_policy)
        self.send_policy = SendPolicy(send_policy)

        self._workflow = workflow
        self._actions = actions
        self._registry = registry
        self._evaluator = evaluator

        self._state = workflow.initial_state
        self._context: Context = merge_context({}, initial_context)
        self._listeners: Notifier[StateListener] = Notifier()
        self._error_listeners: Notifier[ErrorListener] = Notifier()
        self._lock = asyncio.Lock()
        self._started = False

    # -- read side -----------------------------------------------------------

    @property
    def workflow(self) -> WorkflowDefinition:
        return self._workflow

    @property
    def current_state(self) -> str:
        return self._state

    def get_state(self) -> str:
        return self._state

    def get_context(self) -> Context:
        """Return a shallow copy of the context."""
        return dict(self._context)

    def snapshot(self) -> MachineSnapshot:
        return MachineSnapshot(state=self._state, context=dict(self._context))

    # -- subscriptions -------------------------------------------------------

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener(state, context)`` now and after every transition.

        Returns:
            An unsubscribe function; calling it more than once is a no-op.
        """
        listener(self._state, dict(self._context))
        return self._listeners.subscribe(listener)

    def on_error(self, listener: ErrorListener) -> Callable[[], None]:
        """Receive every error this machine reports (in addition to logging)."""
        return self._error_listeners.subscribe(listener)

    # -- write side ----------------------------------------------------------

    async def start(self) -> None:
        """Run the initial state's entry actions.

        Does nothing once the machine has started or has already processed an
        event, so entry actions never run for a state the machine has moved to.
        """
        async with self._exclusive():
            if self._started:
                return
            self._started = True
            state_def = self._workflow.states.get(self._state)
            if state_def is None:
                self._report(StateNotFound(self._state, self.name))
                return
            try:
                await self._run_actions(state_def.actions, phase="entry")
            finally:
                self._notify()

    async def send(self, event: Event | str, payload: Mapping[str, Any] | None = None) -> bool:
        """Process one event.

        ``event`` is an :class:`Event` or an event name (with an optional
        ``payload``). Calls on the same machine are processed one at a time.

        Returns:
            True if a transition was taken, False if the event was a no-op.

        Raises:
            MachineBusy: Under ``SendPolicy.REJECT`` while another event is in flight.
            ActionFailure: Under ``ActionFailurePolicy.ABORT`` when an action fails.
        """
        if isinstance(event, str):
            event = Event(type=event, payload=payload)
        async with self._exclusive():
            return await self._process(event)

    @asynccontextmanager
    async def _exclusive(self) -> AsyncIterator[None]:
        if self.send_policy is SendPolicy.REJECT and self._lock.locked():
            raise MachineBusy(self.name)
        # asyncio.Lock wakes waiters in FIFO order, which keeps queued events ordered.
        async with self._lock:
            yield

    async def _process(self, event: Event) -> bool:
        self._started = True
        source = self._state
        state_def = self._workflow.states.get(source)
        if state_def is None:
            self._report(StateNotFound(source, self.name))
            return False

        transition = self._select_transition(state_def, event)
        if transition is None:
            self._report(NoMatchingTransition(event.type, source), level=logging.WARNING)
            return False

        target_def = self._workflow.states.get(transition.target)
        if target_def is None:
            self._report(StateNotFound(transition.target, self.name))
            return False

        await self._run_actions(transition.actions, phase="transition")

        if event.payload:
            self._context = merge_context(self._context, event.payload)

        self._state = transition.target
        logger.info(
            "State machine transitioned",
            extra={
                "workflow": self.name,
                "from_state": source,
                "to_state": transition.target,
                "event": event.type,
            },
        )
        try:
            await self._run_actions(target_def.actions, phase="entry")
        finally:
            self._notify()
        return True

    def _select_transition(
        self, state_def: StateDefinition, event: Event
    ) -> TransitionDefinition | None:
        # First match in declared order wins.
        for transition in state_def.transitions:
            if transition.event != event.type:
                continue
            try:
                if self._evaluator.check(transition.condition, dict(self._context)):
                    return transition
            except ConditionEvaluationError as e:
                self._report(e)
        return None

    async def _run_actions(self, invocations: tuple[ActionInvocation, ...], *, phase: str) -> None:
        for invocation in invocations:
            try:
                await self._execute_action(invocation, phase=phase)
            except ActionFailure as e:
                self._report(e)
                if self.failure_policy is ActionFailurePolicy.ABORT:
                    raise

    async def _execute_action(self, invocation: ActionInvocation, *, phase: str) -> None:
        definition = self._actions.get(invocation.type)
        if definition is None:
            raise UndefinedAction(invocation.type)

        handler = self._registry.resolve(definition.type)
        if handler is None:
            raise UnregisteredHandlerCategory(invocation.type, definition.type)

        params = resolve_params(invocation.params, self._context)
        logger.debug(
            "Executing action",
            extra={
                "workflow": self.name,
                "state": self._state,
                "action": invocation.type,
                "category": definition.type,
                "phase": phase,
            },
        )
        try:
            result = await handler.execute(params, dict(self._context))
        except Exception as e:
            raise HandlerExecutionError(
                invocation.type, definition.type, str(e) or type(e).__name__
            ) from e

        if result is None:
            return
        if not isinstance(result, Mapping):
            raise HandlerExecutionError(
                invocation.type,
                definition.type,
                f"expected a mapping result, got {type(result).__name__}",
            )
        if result:
            self._context = merge_context(self._context, result)

    def _notify(self) -> None:
        self._listeners.emit(snapshot=lambda: (self._state, dict(self._context)))

    def _report(self, error: WorkflowRuntimeError, *, level: int = logging.ERROR) -> None:
        extra: dict[str, object] = {
            "workflow": self.name,
            "state": self._state,
            "error_type": type(error).__name__,
        }
        for attr in ("action", "category", "event", "expression"):
            value = getattr(error, attr, None)
            if value is not None:
                extra[attr] = value

        cause = error.__cause__
        exc_info = (type(cause), cause, cause.__traceback__) if cause is not None else None
        logger.log(level, str(error), exc_info=exc_info, extra=extra)
        self._error_listeners.emit(error)
