"""In-process store owning all shared state.

Every mutation goes through :meth:`Store.dispatch`. Reducers are pure
functions ``(slice_state, event) -> slice_state``; each dispatch produces a new
read-only state mapping so a snapshot taken earlier never changes.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from amo_orchestrator.orchestrator.workflow.events import Event

logger = logging.getLogger(__name__)

INIT = "@@store/INIT"

Reducer = Callable[[Any, Event], Any]
Listener = Callable[[Event], None]
StoreState = Mapping[str, Any]


def readonly(mapping: Mapping[Any, Any]) -> Mapping[Any, Any]:
    """Return a read-only copy of ``mapping`` for keeping in state."""

    return MappingProxyType(dict(mapping))


class Store:
    def __init__(
        self,
        reducers: Mapping[str, Reducer],
        initial_state: Mapping[str, Any] | None = None,
        *,
        history_limit: int | None = 1000,
    ) -> None:
        if not reducers:
            raise ValueError("at least one reducer is required")

        self._reducers = dict(reducers)
        self._listeners: list[Listener] = []
        self._history: deque[Event] = deque(maxlen=history_limit)
        self._dispatching = False

        initial = dict(initial_state or {})
        unknown = set(initial) - set(self._reducers)
        if unknown:
            raise ValueError(f"No reducer for initial state keys: {sorted(unknown)}")

        init = Event(type=INIT)
        self._state: StoreState = MappingProxyType(
            {key: reducer(initial.get(key), init) for key, reducer in self._reducers.items()}
        )

    def get_state(self) -> StoreState:
        return self._state

    @property
    def history(self) -> list[Event]:
        """Events dispatched so far, oldest first (bounded by ``history_limit``)."""

        return list(self._history)

    def dispatch(self, event: Event) -> Event:
        if not isinstance(event, Event):
            raise TypeError(f"Expected an Event, got {type(event).__name__}")
        if self._dispatching:
            raise RuntimeError("Reducers may not dispatch events")

        self._dispatching = True
        try:
            current = self._state
            self._state = MappingProxyType(
                {key: reducer(current[key], event) for key, reducer in self._reducers.items()}
            )
        finally:
            self._dispatching = False

        self._history.append(event)
        logger.debug("Event dispatched", extra={"event_type": event.type})

        for listener in list(self._listeners):
            listener(event)
        return event

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
