"""Cooperative scheduler interpreting workflow effects.

All procedures run on one event loop. A procedure only suspends while an
:class:`Invoke` (or :class:`All`) is in flight; reading state and emitting
events happen synchronously, so two procedures interleave only around network
calls.

Concurrency policy is latest-wins per registration: a new trigger for a kind
cancels the unfinished invocation started by the previous trigger of that kind.
Events already emitted by the cancelled run stay applied. Its ``finally``
blocks still run (their effects are executed) but its error path does not.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Coroutine
from dataclasses import dataclass, field
from typing import Any

from amo_orchestrator.orchestrator.workflow.effects import (
    EFFECT_TYPES,
    All,
    AwaitLatest,
    Effect,
    Emit,
    Invoke,
    Procedure,
    ReadState,
    WorkflowGenerator,
)
from amo_orchestrator.orchestrator.workflow.errors import OperationFailure, ProcedureDefect
from amo_orchestrator.orchestrator.workflow.events import Event
from amo_orchestrator.state.store import Store

logger = logging.getLogger(__name__)


class CancellationToken:
    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


@dataclass(eq=False, slots=True)
class Registration:
    kind: str
    handler: Procedure
    args: tuple[Any, ...] = ()

    @property
    def name(self) -> str:
        return getattr(self.handler, "__name__", repr(self.handler))


@dataclass(eq=False, slots=True)
class Invocation:
    name: str
    token: CancellationToken = field(default_factory=CancellationToken)
    task: asyncio.Task[Any] | None = None

    def cancel(self) -> None:
        self.token.cancel()
        if self.task is not None and not self.task.done():
            self.task.cancel()


class Scheduler:
    """Drive workflow procedures against a :class:`Store`."""

    def __init__(self, store: Store) -> None:
        self._store = store
        self._registrations: list[Registration] = []
        self._latest: dict[Registration, Invocation] = {}
        self._tasks: set[asyncio.Task[Any]] = set()
        self._failure: BaseException | None = None
        self._unsubscribe = store.subscribe(self._on_event)
        self.defects: list[ProcedureDefect] = []

    @property
    def store(self) -> Store:
        return self._store

    @property
    def failure(self) -> BaseException | None:
        """The failure that escaped a procedure and halted the scheduler, if any."""

        return self._failure

    @property
    def running(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    async def run(self, procedure: Procedure, *args: Any) -> Any:
        """Run a root procedure to completion in the calling task.

        Root procedures usually only register watchers with ``AwaitLatest``.
        Failures propagate to the caller.
        """

        invocation = Invocation(name=getattr(procedure, "__name__", repr(procedure)))
        return await self._drive(self._start_procedure(procedure, args), invocation)

    def take_latest(self, kind: str, handler: Procedure, *args: Any) -> Registration:
        if self._failure is not None:
            raise RuntimeError("Scheduler halted after an unhandled failure") from self._failure
        registration = Registration(kind=kind, handler=handler, args=args)
        self._registrations.append(registration)
        logger.debug(
            "Workflow registered", extra={"workflow": registration.name, "trigger": kind}
        )
        return registration

    async def join(self) -> None:
        """Wait until no invocation is running; re-raise a propagated failure."""

        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                break
            # Cancelling join() must not cancel the workflows themselves.
            await asyncio.wait(pending)

        if self._failure is not None:
            raise self._failure

    async def shutdown(self) -> None:
        self._unsubscribe()
        self._registrations.clear()
        pending = [task for task in self._tasks if not task.done()]
        for invocation in list(self._latest.values()):
            invocation.token.cancel()
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def _on_event(self, event: Event) -> None:
        for registration in list(self._registrations):
            if registration.kind == event.type:
                self._start(registration, event)

    def _start(self, registration: Registration, event: Event) -> None:
        previous = self._latest.get(registration)
        if previous is not None:
            logger.debug(
                "Cancelling superseded workflow",
                extra={"workflow": registration.name, "trigger": event.type},
            )
            previous.cancel()

        invocation = Invocation(name=registration.name)
        self._latest[registration] = invocation
        invocation.task = self._spawn(
            self._run_invocation(registration, invocation, event), name=registration.name
        )

    def _spawn(self, coro: Coroutine[Any, Any, Any], *, name: str) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro, name=f"workflow:{name}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_invocation(
        self, registration: Registration, invocation: Invocation, event: Event
    ) -> None:
        logger.debug(
            "Workflow started", extra={"workflow": invocation.name, "trigger": event.type}
        )
        try:
            procedure = self._start_procedure(registration.handler, (*registration.args, event))
            await self._drive(procedure, invocation)
        except asyncio.CancelledError:
            logger.debug("Workflow cancelled", extra={"workflow": invocation.name})
            raise
        except OperationFailure as e:
            logger.error(
                "Workflow failed without a local error path",
                extra={"workflow": invocation.name, "trigger": event.type},
                exc_info=True,
            )
            self._halt(e)
        except Exception as e:
            defect = ProcedureDefect(invocation.name, e)
            self.defects.append(defect)
            logger.exception(
                "Workflow defect", extra={"workflow": invocation.name, "trigger": event.type}
            )
        finally:
            if self._latest.get(registration) is invocation:
                del self._latest[registration]

    def _halt(self, failure: BaseException) -> None:
        if self._failure is not None:
            return
        self._failure = failure
        self._unsubscribe()
        self._registrations.clear()
        current = asyncio.current_task()
        for task in self._tasks:
            if task is not current and not task.done():
                task.cancel()

    @staticmethod
    def _start_procedure(procedure: Procedure, args: tuple[Any, ...]) -> WorkflowGenerator:
        generator = procedure(*args)
        if not inspect.isgenerator(generator):
            raise TypeError(f"{procedure!r} is not a generator procedure")
        return generator

    async def _drive(self, procedure: WorkflowGenerator, invocation: Invocation) -> Any:
        value: Any = None
        error: BaseException | None = None
        try:
            while True:
                try:
                    if error is not None:
                        effect = procedure.throw(error)
                    else:
                        effect = procedure.send(value)
                except StopIteration as stop:
                    return stop.value

                value, error = None, None
                if not isinstance(effect, EFFECT_TYPES):
                    raise TypeError(f"{invocation.name} yielded {effect!r}, which is not an effect")

                try:
                    value = await self._execute(effect)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    error = e

                # An emit may have superseded this very invocation.
                if invocation.token.cancelled:
                    raise asyncio.CancelledError()
        except BaseException:
            if inspect.getgeneratorstate(procedure) == inspect.GEN_SUSPENDED:
                await self._cleanup(procedure, invocation)
            raise

    async def _cleanup(self, procedure: WorkflowGenerator, invocation: Invocation) -> None:
        """Close a suspended procedure, executing the effects its ``finally`` blocks yield."""

        try:
            effect = procedure.throw(GeneratorExit())
            while True:
                if not isinstance(effect, EFFECT_TYPES):
                    raise TypeError(f"{invocation.name} yielded {effect!r}, which is not an effect")
                result = await self._execute(effect)
                effect = procedure.send(result)
        except (GeneratorExit, StopIteration):
            return
        except Exception:
            logger.exception("Workflow cleanup failed", extra={"workflow": invocation.name})
            procedure.close()

    async def _execute(self, effect: Effect) -> Any:
        if isinstance(effect, Invoke):
            return await self._call(effect)

        if isinstance(effect, All):
            names = list(effect.effects)
            tasks = [asyncio.ensure_future(self._call(effect.effects[n])) for n in names]
            try:
                results = await asyncio.gather(*tasks)
            except BaseException:
                for task in tasks:
                    task.cancel()
                raise
            return dict(zip(names, results))

        if isinstance(effect, ReadState):
            state = self._store.get_state()
            return state if effect.selector is None else effect.selector(state)

        if isinstance(effect, Emit):
            return self._store.dispatch(effect.event)

        if isinstance(effect, AwaitLatest):
            return self.take_latest(effect.kind, effect.handler, *effect.args)

        raise TypeError(f"Unsupported effect: {effect!r}")

    @staticmethod
    async def _call(effect: Invoke) -> Any:
        operation = effect.operation
        if inspect.iscoroutinefunction(operation):
            return await operation(*effect.args, **effect.kwargs)
        # Blocking operations (the HTTP client) run off the event loop.
        result = await asyncio.to_thread(operation, *effect.args, **effect.kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result
