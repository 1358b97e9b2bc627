from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel


@dataclass(frozen=True, slots=True)
class Event:
    """A message dispatched to the store.

    Triggers start workflows; mutation events are applied by reducers. Both are
    consumed once and never modified after creation.
    """

    type: str
    payload: dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> dict[str, object]:
        return {"type": self.type, "payload": {k: _jsonable(v) for k, v in self.payload.items()}}


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, BaseException):
        return str(value)
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return repr(value)


def require(**fields: object) -> None:
    """Raise ValueError naming the first missing identity field."""

    for name, value in fields.items():
        if value is None or value == "":
            raise ValueError(f"{name} is required")
