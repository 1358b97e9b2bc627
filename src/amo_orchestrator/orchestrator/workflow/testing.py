"""Harness for exercising workflow procedures in tests.

Usage::

    async with WorkflowTester(collections_workflow, client) as tester:
        tester.dispatch(fetch_current_collection(...))
        await tester.wait_for(LOAD_CURRENT_COLLECTION)
        assert tester.called_events[1] == clear_error(error_handler_id)
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

from amo_orchestrator.orchestrator.workflow.effects import Procedure
from amo_orchestrator.orchestrator.workflow.events import Event
from amo_orchestrator.orchestrator.workflow.scheduler import Scheduler
from amo_orchestrator.state import create_store
from amo_orchestrator.state.store import Reducer, StoreState


class WorkflowTester:
    def __init__(
        self,
        procedure: Procedure,
        *args: Any,
        initial_state: Mapping[str, Any] | None = None,
        reducers: Mapping[str, Reducer] | None = None,
        history_limit: int | None = None,
    ) -> None:
        self._procedure = procedure
        self._args = args
        self.store = create_store(initial_state, reducers=reducers, history_limit=history_limit)
        self.scheduler = Scheduler(self.store)

    async def __aenter__(self) -> WorkflowTester:
        await self.scheduler.run(self._procedure, *self._args)
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.scheduler.shutdown()

    def dispatch(self, event: Event) -> Event:
        return self.store.dispatch(event)

    def get_state(self) -> StoreState:
        return self.store.get_state()

    @property
    def called_events(self) -> list[Event]:
        return self.store.history

    def was_called(self, kind: str) -> bool:
        return any(event.type == kind for event in self.store.history)

    async def wait_for(self, kind: str, timeout: float = 2.0) -> Event:
        """Return the first event of ``kind``, waiting for it if needed."""

        for event in self.store.history:
            if event.type == kind:
                return event

        future: asyncio.Future[Event] = asyncio.get_running_loop().create_future()

        def listener(event: Event) -> None:
            if event.type == kind and not future.done():
                future.set_result(event)

        unsubscribe = self.store.subscribe(listener)
        try:
            return await asyncio.wait_for(future, timeout)
        finally:
            unsubscribe()

    async def join(self) -> None:
        await self.scheduler.join()
