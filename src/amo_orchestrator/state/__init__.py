"""Process-wide state: the store and the reducers for each slice."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from amo_orchestrator.state.api import ApiState, api_reducer
from amo_orchestrator.state.collections import CollectionsState, collections_reducer
from amo_orchestrator.state.errors import ErrorRecord, errors_reducer
from amo_orchestrator.state.router import RouterState, router_reducer
from amo_orchestrator.state.store import Reducer, Store, StoreState
from amo_orchestrator.state.users import UsersState, users_reducer

DEFAULT_REDUCERS: Mapping[str, Reducer] = {
    "api": api_reducer,
    "collections": collections_reducer,
    "errors": errors_reducer,
    "router": router_reducer,
    "users": users_reducer,
}


def create_store(
    initial_state: Mapping[str, Any] | None = None,
    *,
    reducers: Mapping[str, Reducer] | None = None,
    history_limit: int | None = 1000,
) -> Store:
    return Store(
        reducers if reducers is not None else DEFAULT_REDUCERS,
        initial_state,
        history_limit=history_limit,
    )


__all__ = [
    "ApiState",
    "CollectionsState",
    "DEFAULT_REDUCERS",
    "ErrorRecord",
    "RouterState",
    "Store",
    "StoreState",
    "UsersState",
    "create_store",
]
