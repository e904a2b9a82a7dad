"""Static workflow, action and service definitions.

These models mirror the logic document format (camelCase keys are accepted as
aliases) and are frozen once loaded, so every state machine created from a
workflow shares the same read-only definition.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

_DEFINITION_CONFIG = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class ActionInvocation(BaseModel):
    """A reference to a named action plus its parameters.

    Parameter values are literals, or context paths such as ``"user.email"``.
    """

    model_config = _DEFINITION_CONFIG

    type: str = Field(min_length=1, description="Name of the action definition to run")
    params: dict[str, Any] = Field(default_factory=dict)


class TransitionDefinition(BaseModel):
    model_config = _DEFINITION_CONFIG

    target: str
    event: str
    condition: str | None = Field(
        default=None, description="Optional guard expression over the context"
    )
    actions: tuple[ActionInvocation, ...] = ()


class StateDefinition(BaseModel):
    model_config = _DEFINITION_CONFIG

    actions: tuple[ActionInvocation, ...] = Field(
        default=(), description="Entry actions, run in order when the state is entered"
    )
    transitions: tuple[TransitionDefinition, ...] = Field(
        default=(), description="Outgoing transitions; the first match wins"
    )


class WorkflowDefinition(BaseModel):
    model_config = _DEFINITION_CONFIG

    initial_state: str = Field(alias="initialState")
    states: dict[str, StateDefinition]

    @model_validator(mode="after")
    def _require_initial_state(self) -> WorkflowDefinition:
        if self.initial_state not in self.states:
            raise ValueError(f'initialState "{self.initial_state}" is not a defined state')
        return self

    def dangling_targets(self) -> list[tuple[str, str]]:
        """Return ``(state, target)`` pairs whose target state is not defined."""
        return [
            (name, transition.target)
            for name, state in self.states.items()
            for transition in state.transitions
            if transition.target not in self.states
        ]


class ActionDefinition(BaseModel):
    """Maps an action name to the handler category that executes it."""

    model_config = _DEFINITION_CONFIG

    type: str = Field(min_length=1, description="Handler category, e.g. 'validation' or 'api'")
    handler: str = Field(default="", description="Informational handler reference")
    description: str | None = None


class ServiceDefinition(BaseModel):
    model_config = _DEFINITION_CONFIG

    methods: tuple[str, ...] = ()
    description: str | None = None


class LogicDocument(BaseModel):
    """The whole parsed logic configuration."""

    model_config = _DEFINITION_CONFIG

    workflows: dict[str, WorkflowDefinition] = Field(default_factory=dict)
    actions: dict[str, ActionDefinition] = Field(default_factory=dict)
    services: dict[str, ServiceDefinition] = Field(default_factory=dict)


def default_logic_document() -> LogicDocument:
    """The document used when no logic file can be loaded."""

    return LogicDocument.model_validate(
        {
            "workflows": {
                "simple": {
                    "initialState": "start",
                    "states": {
                        "start": {
                            "actions": [],
                            "transitions": [{"target": "end", "event": "FINISH"}],
                        },
                        "end": {"actions": [], "transitions": []},
                    },
                }
            },
            "actions": {},
            "services": {},
        }
    )
