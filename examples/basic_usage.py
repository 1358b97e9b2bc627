#!/usr/bin/env python3
"""Programmatic collection fetch example.

This demonstrates using the orchestrator components directly:

* load settings from `.env`
* start the root workflow against the live API
* fetch one collection and print what ended up in the store

The collection owner and slug are passed as arguments (not read from `.env`).
"""

from __future__ import annotations

import argparse
import asyncio
from typing import Sequence

from amo_orchestrator.core import Orchestrator
from amo_orchestrator.orchestrator.config import OrchestratorSettings
from amo_orchestrator.orchestrator.logging import configure_logging
from amo_orchestrator.state.collections import fetch_current_collection

ERROR_HANDLER_ID = "basic-usage"


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch a collection (programmatic example).")
    parser.add_argument("--username", required=True, help="Collection owner")
    parser.add_argument("--slug", required=True, help="Collection slug")
    parser.add_argument("--page", type=int, default=1, help="Page of add-ons to load")
    return parser.parse_args(argv)


async def _run(settings: OrchestratorSettings, args: argparse.Namespace) -> int:
    orchestrator = Orchestrator(settings)
    try:
        state = await orchestrator.run(
            fetch_current_collection(
                error_handler_id=ERROR_HANDLER_ID,
                username=args.username,
                slug=args.slug,
                page=args.page,
            )
        )
    finally:
        await orchestrator.close()

    error = state["errors"].get(ERROR_HANDLER_ID)
    if error is not None:
        print(f"Could not load collection: {error.message}")
        return 1

    collections = state["collections"]
    detail = collections.collection_by_slug(args.slug)
    print(f"Loaded collection {detail['id'] if detail else '?'}")
    for addon in collections.current.addons or ():
        print(f"- {addon.get('addon', {}).get('name', addon)}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = OrchestratorSettings()
    configure_logging(settings.log_level)

    return asyncio.run(_run(settings, args))


if __name__ == "__main__":
    raise SystemExit(main())
