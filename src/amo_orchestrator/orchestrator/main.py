"""CLI entrypoint for the AMO workflow orchestrator.

Dispatches a single trigger against the live API and prints every event the
workflows produced as JSON lines.
"""

from __future__ import annotations

import argparse
import asyncio
import inspect
import json
import logging
import sys
from typing import Any

from pydantic import ValidationError

from amo_orchestrator import __version__
from amo_orchestrator.core.orchestrator import Orchestrator
from amo_orchestrator.orchestrator.config import OrchestratorSettings
from amo_orchestrator.orchestrator.logging import configure_logging
from amo_orchestrator.orchestrator.workflow.errors import OperationFailure
from amo_orchestrator.orchestrator.workflow.events import Event
from amo_orchestrator.orchestrator.workflow.root import TRIGGERS

logger = logging.getLogger(__name__)

DEFAULT_ERROR_HANDLER_ID = "cli"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_WORKFLOW_ERROR = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="amo-orchestrator",
        description="Run add-ons collections and user account workflows",
    )
    parser.add_argument("--version", action="version", version=f"amo-orchestrator {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("kinds", help="List the triggers accepted by 'dispatch'")

    dispatch = subparsers.add_parser("dispatch", help="Dispatch one trigger and wait for it")
    dispatch.add_argument("trigger", choices=sorted(TRIGGERS), help="Trigger name")
    dispatch.add_argument(
        "--payload",
        default="{}",
        help='Trigger fields as a JSON object, e.g. \'{"username": "alice", "slug": "tabs"}\'',
    )
    dispatch.add_argument(
        "--error-handler-id",
        default=DEFAULT_ERROR_HANDLER_ID,
        help="Error surface the workflow reports failures to",
    )

    return parser


def build_trigger(name: str, payload: dict[str, Any], error_handler_id: str) -> Event:
    """Build the trigger event ``name`` from CLI input.

    Raises:
        ValueError: for unknown triggers, unknown fields or missing values.
    """
    try:
        factory = TRIGGERS[name]
    except KeyError:
        raise ValueError(f"Unknown trigger: {name}") from None

    fields = dict(payload)
    if "error_handler_id" in inspect.signature(factory).parameters:
        fields.setdefault("error_handler_id", error_handler_id)
    try:
        return factory(**fields)
    except TypeError as e:
        raise ValueError(f"Invalid fields for {name}: {e}") from e


def _parse_payload(value: str) -> dict[str, Any]:
    try:
        payload = json.loads(value)
    except json.JSONDecodeError as e:
        raise ValueError(f"--payload is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise ValueError("--payload must be a JSON object")
    return payload


async def _dispatch(settings: OrchestratorSettings, event: Event, error_handler_id: str) -> int:
    orchestrator = Orchestrator(settings)
    try:
        state = await orchestrator.run(event)
    except OperationFailure as e:
        logger.error("Workflow failed", extra={"trigger": event.type, "status_code": e.status_code})
        print(f"Failed: {e}", file=sys.stderr)
        return EXIT_FAILURE
    finally:
        for dispatched in orchestrator.store.history:
            print(json.dumps(dispatched.to_json(), ensure_ascii=False))
        await orchestrator.close()

    error = state["errors"].get(error_handler_id)
    summary = {
        "location": state["router"].location,
        "error": error.model_dump(mode="json") if error is not None else None,
    }
    print(json.dumps({"summary": summary}, ensure_ascii=False))

    for defect in orchestrator.scheduler.defects:
        print(f"Defect: {defect}", file=sys.stderr)

    if error is not None:
        return EXIT_WORKFLOW_ERROR
    return EXIT_FAILURE if orchestrator.scheduler.defects else EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "kinds":
        for name in sorted(TRIGGERS):
            print(name)
        return EXIT_OK

    try:
        event = build_trigger(
            args.trigger, _parse_payload(args.payload), args.error_handler_id
        )
    except ValueError as e:
        print(f"Invalid trigger: {e}", file=sys.stderr)
        return EXIT_USAGE

    try:
        settings = OrchestratorSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return EXIT_USAGE

    configure_logging(settings.log_level)

    return asyncio.run(_dispatch(settings, event, args.error_handler_id))


if __name__ == "__main__":
    raise SystemExit(main())
