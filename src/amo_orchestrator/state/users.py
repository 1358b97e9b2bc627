"""Users slice: event kinds, constructors and reducer."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from amo_orchestrator.orchestrator.workflow.events import Event, require
from amo_orchestrator.state.store import readonly

FETCH_USER_ACCOUNT = "amo/users/FETCH_USER_ACCOUNT"
EDIT_USER_ACCOUNT = "amo/users/EDIT_USER_ACCOUNT"
DELETE_USER_ACCOUNT = "amo/users/DELETE_USER_ACCOUNT"
DELETE_USER_PICTURE = "amo/users/DELETE_USER_PICTURE"
FETCH_USER_NOTIFICATIONS = "amo/users/FETCH_USER_NOTIFICATIONS"

LOAD_USER_ACCOUNT = "amo/users/LOAD_USER_ACCOUNT"
LOAD_CURRENT_USER_ACCOUNT = "amo/users/LOAD_CURRENT_USER_ACCOUNT"
LOAD_USER_NOTIFICATIONS = "amo/users/LOAD_USER_NOTIFICATIONS"
UNLOAD_USER_ACCOUNT = "amo/users/UNLOAD_USER_ACCOUNT"
FINISH_EDIT_USER_ACCOUNT = "amo/users/FINISH_EDIT_USER_ACCOUNT"

UserAccount = Mapping[str, Any]
Notification = Mapping[str, Any]


def _readonly_items(values: Sequence[Mapping[str, Any]]) -> tuple[Mapping[str, Any], ...]:
    return tuple(readonly(value) for value in values)


class UsersState(BaseModel):
    """Users slice. Its maps are read-only; reducers replace them whole."""

    model_config = ConfigDict(frozen=True)

    by_id: Mapping[int, UserAccount] = Field(default_factory=lambda: readonly({}))
    by_username: Mapping[str, int] = Field(default_factory=lambda: readonly({}))
    current_user_id: int | None = None
    notifications: Mapping[str, tuple[Notification, ...]] = Field(
        default_factory=lambda: readonly({})
    )
    is_updating: bool = False

    @field_validator("by_id")
    @classmethod
    def _read_only_users(cls, value: Mapping[int, UserAccount]) -> Mapping[int, UserAccount]:
        return readonly({user_id: readonly(user) for user_id, user in value.items()})

    @field_validator("by_username")
    @classmethod
    def _read_only(cls, value: Mapping[str, int]) -> Mapping[str, int]:
        return readonly(value)

    @field_validator("notifications")
    @classmethod
    def _read_only_notifications(
        cls, value: Mapping[str, tuple[Notification, ...]]
    ) -> Mapping[str, tuple[Notification, ...]]:
        return readonly({name: _readonly_items(items) for name, items in value.items()})

    def user_by_username(self, username: str) -> UserAccount | None:
        user_id = self.by_username.get(username.lower())
        return self.by_id.get(user_id) if user_id is not None else None

    @property
    def current_user(self) -> UserAccount | None:
        if self.current_user_id is None:
            return None
        return self.by_id.get(self.current_user_id)


# Triggers


def fetch_user_account(*, error_handler_id: str, username: str) -> Event:
    require(error_handler_id=error_handler_id, username=username)
    return Event(
        type=FETCH_USER_ACCOUNT,
        payload={"error_handler_id": error_handler_id, "username": username},
    )


def edit_user_account(
    *,
    error_handler_id: str,
    user_id: int,
    user_fields: Mapping[str, Any] | None = None,
    notifications: Mapping[str, bool] | None = None,
    picture: Any = None,
) -> Event:
    require(error_handler_id=error_handler_id, user_id=user_id)
    return Event(
        type=EDIT_USER_ACCOUNT,
        payload={
            "error_handler_id": error_handler_id,
            "notifications": dict(notifications or {}),
            "picture": picture,
            "user_fields": dict(user_fields or {}),
            "user_id": user_id,
        },
    )


def delete_user_account(*, error_handler_id: str, user_id: int) -> Event:
    require(error_handler_id=error_handler_id, user_id=user_id)
    return Event(
        type=DELETE_USER_ACCOUNT,
        payload={"error_handler_id": error_handler_id, "user_id": user_id},
    )


def delete_user_picture(*, error_handler_id: str, user_id: int) -> Event:
    require(error_handler_id=error_handler_id, user_id=user_id)
    return Event(
        type=DELETE_USER_PICTURE,
        payload={"error_handler_id": error_handler_id, "user_id": user_id},
    )


def fetch_user_notifications(*, error_handler_id: str, username: str) -> Event:
    require(error_handler_id=error_handler_id, username=username)
    return Event(
        type=FETCH_USER_NOTIFICATIONS,
        payload={"error_handler_id": error_handler_id, "username": username},
    )


# Outcomes


def load_user_account(*, user: Mapping[str, Any]) -> Event:
    require(user=user)
    return Event(type=LOAD_USER_ACCOUNT, payload={"user": dict(user)})


def load_current_user_account(*, user: Mapping[str, Any]) -> Event:
    require(user=user)
    return Event(type=LOAD_CURRENT_USER_ACCOUNT, payload={"user": dict(user)})


def load_user_notifications(*, username: str, notifications: Sequence[Notification]) -> Event:
    require(username=username)
    return Event(
        type=LOAD_USER_NOTIFICATIONS,
        payload={"notifications": list(notifications), "username": username},
    )


def unload_user_account(*, user_id: int) -> Event:
    require(user_id=user_id)
    return Event(type=UNLOAD_USER_ACCOUNT, payload={"user_id": user_id})


def finish_edit_user_account() -> Event:
    return Event(type=FINISH_EDIT_USER_ACCOUNT)


def _add_user(state: UsersState, user: UserAccount, **updates: object) -> UsersState:
    return state.model_copy(
        update={
            "by_id": readonly({**state.by_id, user["id"]: readonly(user)}),
            "by_username": readonly({**state.by_username, user["username"].lower(): user["id"]}),
            **updates,
        }
    )


def users_reducer(state: UsersState | None, event: Event) -> UsersState:
    state = state or UsersState()
    payload = event.payload

    if event.type == LOAD_USER_ACCOUNT:
        return _add_user(state, payload["user"])

    if event.type == LOAD_CURRENT_USER_ACCOUNT:
        user = payload["user"]
        return _add_user(state, user, current_user_id=user["id"])

    if event.type == LOAD_USER_NOTIFICATIONS:
        return state.model_copy(
            update={
                "notifications": readonly(
                    {
                        **state.notifications,
                        payload["username"].lower(): _readonly_items(payload["notifications"]),
                    }
                )
            }
        )

    if event.type == EDIT_USER_ACCOUNT:
        return state.model_copy(update={"is_updating": True})

    if event.type == FINISH_EDIT_USER_ACCOUNT:
        return state.model_copy(update={"is_updating": False})

    if event.type == UNLOAD_USER_ACCOUNT:
        user_id = payload["user_id"]
        user = state.by_id.get(user_id)
        if user is None:
            return state
        by_id = {k: v for k, v in state.by_id.items() if k != user_id}
        by_username = {k: v for k, v in state.by_username.items() if v != user_id}
        notifications = {
            k: v for k, v in state.notifications.items() if k != user["username"].lower()
        }
        return state.model_copy(
            update={
                "by_id": readonly(by_id),
                "by_username": readonly(by_username),
                "current_user_id": (
                    None if state.current_user_id == user_id else state.current_user_id
                ),
                "notifications": readonly(notifications),
            }
        )

    return state
