"""Core package initialization."""

from amo_orchestrator.core.orchestrator import Orchestrator

__all__ = [
    "Orchestrator",
]
