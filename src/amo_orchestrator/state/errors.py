"""Per error-handler error records read by UI layers."""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

from amo_orchestrator.orchestrator.workflow.events import Event, require
from amo_orchestrator.state.store import readonly

CLEAR_ERROR = "core/errors/CLEAR_ERROR"
SET_ERROR = "core/errors/SET_ERROR"


class ErrorRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    status_code: int | None = None
    messages: tuple[str, ...] = Field(default_factory=tuple)

    @classmethod
    def from_error(cls, error: BaseException) -> ErrorRecord:
        status_code = getattr(error, "status_code", None)
        messages = getattr(error, "messages", None) or [str(error)]
        return cls(
            message=str(error) or type(error).__name__,
            status_code=status_code if isinstance(status_code, int) else None,
            messages=tuple(str(m) for m in messages),
        )


ErrorsState = Mapping[str, ErrorRecord | None]


def clear_error(error_handler_id: str) -> Event:
    require(error_handler_id=error_handler_id)
    return Event(type=CLEAR_ERROR, payload={"id": error_handler_id})


def set_error(error_handler_id: str, error: BaseException) -> Event:
    require(error_handler_id=error_handler_id, error=error)
    return Event(type=SET_ERROR, payload={"id": error_handler_id, "error": error})


def errors_reducer(state: ErrorsState | None, event: Event) -> ErrorsState:
    state = readonly(state or {})

    if event.type == CLEAR_ERROR:
        return readonly({**state, event.payload["id"]: None})
    if event.type == SET_ERROR:
        record = ErrorRecord.from_error(event.payload["error"])
        return readonly({**state, event.payload["id"]: record})
    return state
