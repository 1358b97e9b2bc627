"""Main orchestrator implementation."""

from __future__ import annotations

import logging

from amo_orchestrator.orchestrator.api.client import AmoApiClient
from amo_orchestrator.orchestrator.config import OrchestratorSettings
from amo_orchestrator.orchestrator.workflow.events import Event
from amo_orchestrator.orchestrator.workflow.root import root_workflow
from amo_orchestrator.orchestrator.workflow.scheduler import Scheduler
from amo_orchestrator.state import create_store
from amo_orchestrator.state.api import set_auth_token
from amo_orchestrator.state.store import Store, StoreState

logger = logging.getLogger(__name__)


class Orchestrator:
    """Wires the API client, the store and the scheduler together.

    The orchestrator owns one event loop's worth of workflows: the root
    workflow registers every collections and users procedure, after which
    events dispatched through :meth:`dispatch` start them.
    """

    def __init__(
        self,
        settings: OrchestratorSettings,
        client: AmoApiClient | None = None,
        store: Store | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            settings: Loaded settings.
            client: API client. If None, one is built from ``settings``.
            store: Store to drive. If None, a new one starts with the
                ``api`` slice from ``settings``.
        """
        self.settings = settings
        self._owns_client = client is None
        self.client = client or AmoApiClient(
            base_url=settings.api_base_url, timeout=settings.request_timeout_seconds
        )
        self.store = store or create_store(
            {"api": settings.initial_api_state()}, history_limit=settings.history_limit
        )
        self.scheduler = Scheduler(self.store)
        self._started = False

    async def start(self) -> None:
        if self._started:
            return
        await self.scheduler.run(root_workflow, self.client)
        self._started = True
        logger.info("Orchestrator started", extra={"api_base_url": self.client.base_url})

    def dispatch(self, event: Event) -> Event:
        return self.store.dispatch(event)

    async def run(self, *events: Event) -> StoreState:
        """Dispatch ``events`` and wait until every workflow they started has finished.

        When a token is configured, the session-token-set event is dispatched
        first so the current user is loaded alongside the requested work.
        Raises the propagated failure if a workflow without a local error path
        failed.
        """
        await self.start()
        if self.settings.api_token:
            self.dispatch(set_auth_token(self.settings.api_token))
        for event in events:
            self.dispatch(event)
        await self.scheduler.join()
        return self.store.get_state()

    async def close(self) -> None:
        await self.scheduler.shutdown()
        if self._owns_client:
            self.client.close()
