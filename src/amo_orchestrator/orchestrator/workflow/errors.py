"""Failure types and the error-handler contract shared by workflows."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import requests

from amo_orchestrator.orchestrator.workflow.events import Event
from amo_orchestrator.state.errors import clear_error, set_error


class OperationFailure(Exception):
    """An external operation failed (network, validation or server rejection)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        response_data: object = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data

    @property
    def messages(self) -> list[str]:
        """Human readable messages returned by the server, if any."""

        return list(_flatten_messages(self.response_data))

    @classmethod
    def from_response(cls, response: requests.Response) -> OperationFailure:
        try:
            data: Any = response.json()
        except ValueError:
            data = None
        reason = response.reason or "error"
        return cls(
            f"{response.request.method if response.request else 'HTTP'} {response.url} "
            f"returned {response.status_code} {reason}",
            status_code=response.status_code,
            response_data=data,
        )


def _flatten_messages(data: object) -> list[str]:
    if data is None:
        return []
    if isinstance(data, str):
        return [data]
    if isinstance(data, Mapping):
        values = list(data.values())
    elif isinstance(data, (list, tuple)):
        values = list(data)
    else:
        return [str(data)]
    return [message for value in values for message in _flatten_messages(value)]


class ProcedureDefect(Exception):
    """A workflow procedure raised without a local error path."""

    def __init__(self, workflow: str, cause: BaseException) -> None:
        super().__init__(f"Workflow {workflow} failed: {cause!r}")
        self.workflow = workflow
        self.cause = cause


@dataclass(frozen=True, slots=True)
class ErrorHandler:
    """Builds the clear/set error events for one UI error surface.

    A failure event for an id is always preceded, within the same attempt, by
    the clearing event for that id.
    """

    id: str

    def clearing_event(self) -> Event:
        return clear_error(self.id)

    def error_event(self, error: BaseException) -> Event:
        return set_error(self.id, error)
