"""Navigation requests emitted by workflows."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from amo_orchestrator.orchestrator.workflow.events import Event, require

NAVIGATE = "@@router/NAVIGATE"


class RouterState(BaseModel):
    model_config = ConfigDict(frozen=True)

    location: str | None = None
    history: tuple[str, ...] = Field(default_factory=tuple)


def navigate(path: str) -> Event:
    require(path=path)
    return Event(type=NAVIGATE, payload={"path": path})


def router_reducer(state: RouterState | None, event: Event) -> RouterState:
    state = state or RouterState()

    if event.type == NAVIGATE:
        path = event.payload["path"]
        return state.model_copy(update={"location": path, "history": (*state.history, path)})
    return state
