"""AMO workflow orchestrator.

Coordinates cancellable workflows that keep a local store in sync with the
add-ons API:
- collections (fetch, create, update, delete, add and remove add-ons)
- user accounts and notification preferences
- the current user once a session token arrives
"""

__version__ = "0.1.0"

from amo_orchestrator.orchestrator.config import OrchestratorSettings

__all__ = ["__version__", "OrchestratorSettings"]
