"""Declarative effects yielded by workflow procedures.

Effects are inert descriptions of one step. They carry no execution logic; the
:class:`~amo_orchestrator.orchestrator.workflow.scheduler.Scheduler` interprets
them and resumes the procedure with the result.
"""

from __future__ import annotations

from collections.abc import Callable, Generator, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from amo_orchestrator.orchestrator.workflow.events import Event


@dataclass(frozen=True, slots=True)
class Invoke:
    """Call an external operation and resume with its result (or its failure)."""

    operation: Callable[..., Any]
    args: tuple[Any, ...] = ()
    kwargs: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class All:
    """Run several :class:`Invoke` effects concurrently; resume with ``{name: result}``."""

    effects: Mapping[str, Invoke]


@dataclass(frozen=True, slots=True)
class ReadState:
    """Read a projection of the current store state. Never suspends."""

    selector: Callable[[Mapping[str, Any]], Any] | None = None


@dataclass(frozen=True, slots=True)
class Emit:
    """Dispatch an event to the store (and to workflows watching its kind)."""

    event: Event


@dataclass(frozen=True, slots=True)
class AwaitLatest:
    """Register ``handler`` for ``kind``; a new trigger cancels the previous run."""

    kind: str
    handler: Procedure
    args: tuple[Any, ...] = ()


Effect: TypeAlias = Invoke | All | ReadState | Emit | AwaitLatest
EFFECT_TYPES = (Invoke, All, ReadState, Emit, AwaitLatest)

WorkflowGenerator: TypeAlias = Generator[Effect, Any, Any]
Procedure: TypeAlias = Callable[..., WorkflowGenerator]


def invoke(operation: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Invoke:
    return Invoke(operation=operation, args=args, kwargs=kwargs)


def await_latest(kind: str, handler: Procedure, *args: Any) -> AwaitLatest:
    return AwaitLatest(kind=kind, handler=handler, args=args)
