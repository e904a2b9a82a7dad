"""Configuration for the workflow runtime.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from workflow_runtime.state_machine import ActionFailurePolicy, SendPolicy


class RuntimeSettings(BaseSettings):
    """Settings for the runtime and its CLI.

    Environment variables:
    - LOG_LEVEL                        (optional)
    - WORKFLOW_LOGIC_PATH              (optional)
    - WORKFLOW_ACTION_FAILURE_POLICY   (optional: continue | abort)
    - WORKFLOW_SEND_POLICY             (optional: queue | reject)
    - WORKFLOW_API_TIMEOUT_SECONDS     (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `RuntimeSettings(_env_file=path_to_env)`.
    """

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    logic_path: Path = Field(
        default=Path("logic.json"),
        validation_alias="WORKFLOW_LOGIC_PATH",
        description="Path to the JSON logic document (workflows, actions, services)",
    )

    action_failure_policy: ActionFailurePolicy = Field(
        default=ActionFailurePolicy.CONTINUE,
        validation_alias="WORKFLOW_ACTION_FAILURE_POLICY",
        description=(
            "'continue' reports a failed action and keeps going; "
            "'abort' reports it and raises from send()"
        ),
    )

    send_policy: SendPolicy = Field(
        default=SendPolicy.QUEUE,
        validation_alias="WORKFLOW_SEND_POLICY",
        description="How overlapping send() calls on one machine are handled",
    )

    api_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        validation_alias="WORKFLOW_API_TIMEOUT_SECONDS",
        description="Request timeout used by the built-in 'api' action handler",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )
