"""Client for the add-ons REST API."""

from amo_orchestrator.orchestrator.api.client import AmoApiClient

__all__ = ["AmoApiClient"]
