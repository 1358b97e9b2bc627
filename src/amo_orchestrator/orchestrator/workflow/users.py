"""Workflow procedures for user accounts."""

from __future__ import annotations

import logging

from amo_orchestrator.orchestrator.api.client import AmoApiClient
from amo_orchestrator.orchestrator.workflow.effects import (
    Emit,
    ReadState,
    WorkflowGenerator,
    await_latest,
    invoke,
)
from amo_orchestrator.orchestrator.workflow.errors import ErrorHandler, OperationFailure
from amo_orchestrator.orchestrator.workflow.events import Event
from amo_orchestrator.state.api import SET_AUTH_TOKEN
from amo_orchestrator.state.users import (
    DELETE_USER_ACCOUNT,
    DELETE_USER_PICTURE,
    EDIT_USER_ACCOUNT,
    FETCH_USER_ACCOUNT,
    FETCH_USER_NOTIFICATIONS,
    finish_edit_user_account,
    load_current_user_account,
    load_user_account,
    load_user_notifications,
    unload_user_account,
)

logger = logging.getLogger(__name__)


def fetch_current_user_account(client: AmoApiClient, event: Event) -> WorkflowGenerator:
    """Load the signed-in user when a session token is set.

    There is no local error path: a failure here means the session itself is
    unusable, so it propagates and halts the scheduler.
    """

    state = yield ReadState()
    api = state["api"].model_copy(update={"token": event.payload["token"]})

    user = yield invoke(client.get_current_user_account, api=api)
    yield Emit(load_current_user_account(user=user))


def fetch_user_account(client: AmoApiClient, event: Event) -> WorkflowGenerator:
    payload = event.payload
    error_handler = ErrorHandler(payload["error_handler_id"])

    yield Emit(error_handler.clearing_event())

    try:
        state = yield ReadState()
        user = yield invoke(
            client.get_user_account, api=state["api"], username=payload["username"]
        )
        yield Emit(load_user_account(user=user))
    except OperationFailure as error:
        logger.warning(f"User account failed to load: {error}")
        yield Emit(error_handler.error_event(error))


def edit_user_account(client: AmoApiClient, event: Event) -> WorkflowGenerator:
    payload = event.payload
    error_handler = ErrorHandler(payload["error_handler_id"])
    user_id = payload["user_id"]
    notifications = payload["notifications"]

    yield Emit(error_handler.clearing_event())

    try:
        state = yield ReadState()
        api = state["api"]
        user = yield invoke(
            client.edit_user_account,
            api=api,
            picture=payload["picture"],
            user_id=user_id,
            **payload["user_fields"],
        )
        yield Emit(load_user_account(user=user))

        if notifications:
            all_notifications = yield invoke(
                client.update_user_notifications,
                api=api,
                notifications=notifications,
                user_id=user_id,
            )
            yield Emit(
                load_user_notifications(
                    notifications=all_notifications, username=user["username"]
                )
            )
    except OperationFailure as error:
        logger.warning(f"Could not edit user account: {error}")
        yield Emit(error_handler.error_event(error))
    finally:
        yield Emit(finish_edit_user_account())


def fetch_user_notifications(client: AmoApiClient, event: Event) -> WorkflowGenerator:
    payload = event.payload
    username = payload["username"]
    error_handler = ErrorHandler(payload["error_handler_id"])

    yield Emit(error_handler.clearing_event())

    try:
        state = yield ReadState()
        notifications = yield invoke(
            client.get_user_notifications, api=state["api"], username=username
        )
        yield Emit(load_user_notifications(notifications=notifications, username=username))
    except OperationFailure as error:
        logger.warning(f"Could not load user notifications: {error}")
        yield Emit(error_handler.error_event(error))


def delete_user_picture(client: AmoApiClient, event: Event) -> WorkflowGenerator:
    payload = event.payload
    error_handler = ErrorHandler(payload["error_handler_id"])

    yield Emit(error_handler.clearing_event())

    try:
        state = yield ReadState()
        user = yield invoke(
            client.delete_user_picture, api=state["api"], user_id=payload["user_id"]
        )
        yield Emit(load_user_account(user=user))
    except OperationFailure as error:
        logger.warning(f"Could not delete user picture: {error}")
        yield Emit(error_handler.error_event(error))


def delete_user_account(client: AmoApiClient, event: Event) -> WorkflowGenerator:
    payload = event.payload
    user_id = payload["user_id"]
    error_handler = ErrorHandler(payload["error_handler_id"])

    yield Emit(error_handler.clearing_event())

    try:
        state = yield ReadState()
        yield invoke(client.delete_user_account, api=state["api"], user_id=user_id)
        yield Emit(unload_user_account(user_id=user_id))
    except OperationFailure as error:
        logger.warning(f"Could not delete user account: {error}")
        yield Emit(error_handler.error_event(error))


def users_workflow(client: AmoApiClient) -> WorkflowGenerator:
    yield await_latest(SET_AUTH_TOKEN, fetch_current_user_account, client)
    yield await_latest(FETCH_USER_ACCOUNT, fetch_user_account, client)
    yield await_latest(EDIT_USER_ACCOUNT, edit_user_account, client)
    yield await_latest(FETCH_USER_NOTIFICATIONS, fetch_user_notifications, client)
    yield await_latest(DELETE_USER_PICTURE, delete_user_picture, client)
    yield await_latest(DELETE_USER_ACCOUNT, delete_user_account, client)
