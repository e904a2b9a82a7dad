"""CLI entrypoint for the workflow runtime.

Loads a logic document, drives one state machine through a list of events with
the reference handlers registered, and prints the final snapshot as JSON.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from workflow_runtime import __version__
from workflow_runtime.catalog import WorkflowCatalog, load_logic_document
from workflow_runtime.config import RuntimeSettings
from workflow_runtime.errors import WorkflowNotFound
from workflow_runtime.events import Event
from workflow_runtime.handlers import register_default_handlers
from workflow_runtime.logging import configure_logging
from workflow_runtime.registry import ActionHandlerRegistry
from workflow_runtime.state_machine import MachineSnapshot

logger = logging.getLogger(__name__)


def _parse_context(value: str) -> dict[str, Any]:
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"invalid JSON context: {e}") from e
    if not isinstance(parsed, dict):
        raise argparse.ArgumentTypeError("context must be a JSON object")
    return parsed


def _parse_event(value: str) -> Event:
    """Parse ``TYPE`` or ``TYPE:{json payload}``."""
    name, sep, raw = value.partition(":")
    if not name.strip():
        raise argparse.ArgumentTypeError("event type is required")
    payload = _parse_context(raw) if sep else None
    return Event.from_json({"type": name.strip(), "payload": payload})


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workflow-runtime",
        description="Run declarative workflow state machines",
    )
    parser.add_argument("--version", action="version", version=f"workflow-runtime {__version__}")
    parser.add_argument(
        "--logic",
        type=Path,
        default=None,
        help="Path to the JSON logic document (defaults to WORKFLOW_LOGIC_PATH)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="List workflow names")
    subparsers.add_parser("validate", help="Report transitions that target undefined states")

    run = subparsers.add_parser("run", help="Create a state machine and send events to it")
    run.add_argument("--workflow", required=True, help="Workflow name")
    run.add_argument(
        "--context",
        type=_parse_context,
        default=None,
        help='Initial context as a JSON object, e.g. \'{"cart": {"items": []}}\'',
    )
    run.add_argument(
        "--event",
        dest="events",
        type=_parse_event,
        action="append",
        default=[],
        help="Event to send, as TYPE or TYPE:{json payload}; repeatable, sent in order",
    )
    return parser


async def _run_workflow(
    catalog: WorkflowCatalog,
    workflow: str,
    initial_context: dict[str, Any] | None,
    events: Sequence[Event],
) -> MachineSnapshot:
    machine = await catalog.create(workflow, initial_context)
    for event in events:
        taken = await machine.send(event)
        logger.debug(
            "Event processed",
            extra={"event": event.type, "taken": taken, "state": machine.get_state()},
        )
    return machine.snapshot()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = RuntimeSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)
    logic_path: Path = args.logic or settings.logic_path

    try:
        if args.command == "list":
            for name in load_logic_document(logic_path).workflows:
                print(name)
            return 0

        if args.command == "validate":
            document = load_logic_document(logic_path, fallback=False)
            problems = [
                (name, state, target)
                for name, workflow in document.workflows.items()
                for state, target in workflow.dangling_targets()
            ]
            for name, state, target in problems:
                print(f"{name}: {state} -> {target} (undefined state)")
            if problems:
                return 1
            print(f"OK: {len(document.workflows)} workflow(s)")
            return 0

        if args.command == "run":
            registry = register_default_handlers(ActionHandlerRegistry(), settings)
            catalog = WorkflowCatalog(
                load_logic_document(logic_path),
                registry=registry,
                failure_policy=settings.action_failure_policy,
                send_policy=settings.send_policy,
            )
            snapshot = asyncio.run(
                _run_workflow(catalog, args.workflow, args.context, args.events)
            )
            print(json.dumps(snapshot.to_json(), indent=2, ensure_ascii=False, default=str))
            return 0

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except WorkflowNotFound as e:
        logger.warning(str(e), extra={"workflow": e.workflow})
        print(str(e), file=sys.stderr)
        return 2

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
