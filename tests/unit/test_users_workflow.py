"""Unit tests for the user account workflows (mocked API)."""

from __future__ import annotations

from typing import Any
from unittest.mock import Mock

import pytest

from amo_orchestrator.orchestrator.workflow.errors import OperationFailure, ProcedureDefect
from amo_orchestrator.orchestrator.workflow.testing import WorkflowTester
from amo_orchestrator.orchestrator.workflow.users import users_workflow
from amo_orchestrator.state.api import ApiState, set_auth_token
from amo_orchestrator.state.errors import SET_ERROR, clear_error, set_error
from amo_orchestrator.state.users import (
    LOAD_USER_NOTIFICATIONS,
    delete_user_account,
    delete_user_picture,
    edit_user_account,
    fetch_user_account,
    fetch_user_notifications,
    finish_edit_user_account,
    load_current_user_account,
    load_user_account,
    load_user_notifications,
    unload_user_account,
)


def _tester(client: Mock, initial_state: dict[str, Any]) -> WorkflowTester:
    return WorkflowTester(users_workflow, client, initial_state=initial_state)


@pytest.mark.asyncio
async def test_session_token_loads_current_user(
    client: Mock, user_account: dict[str, Any]
) -> None:
    client.get_current_user_account.return_value = user_account

    async with _tester(client, {"api": ApiState(lang="de")}) as tester:
        tester.dispatch(set_auth_token("new-token"))
        await tester.join()

        assert tester.called_events[1] == load_current_user_account(user=user_account)
        client.get_current_user_account.assert_called_once_with(
            api=ApiState(lang="de", token="new-token")
        )
        assert tester.get_state()["users"].current_user == user_account


@pytest.mark.asyncio
async def test_session_token_failure_propagates_and_halts(client: Mock) -> None:
    error = OperationFailure("invalid token", status_code=401)
    client.get_current_user_account.side_effect = error

    async with _tester(client, {}) as tester:
        tester.dispatch(set_auth_token("bad-token"))

        with pytest.raises(OperationFailure) as excinfo:
            await tester.join()

        assert excinfo.value is error
        assert tester.scheduler.failure is error
        # Nothing reports the failure to an error surface.
        assert tester.get_state()["errors"] == {}

        # Once halted, further triggers start nothing.
        tester.dispatch(fetch_user_account(error_handler_id="h", username="someone"))
        assert tester.scheduler.running == 0
        client.get_user_account.assert_not_called()


@pytest.mark.asyncio
async def test_fetch_user_account(
    client: Mock,
    initial_state: dict[str, Any],
    api_state: ApiState,
    error_handler_id: str,
    user_account: dict[str, Any],
) -> None:
    client.get_user_account.return_value = user_account

    async with _tester(client, initial_state) as tester:
        tester.dispatch(fetch_user_account(error_handler_id=error_handler_id, username="some-user"))
        await tester.join()

        assert tester.called_events[1] == clear_error(error_handler_id)
        assert tester.called_events[2] == load_user_account(user=user_account)
        client.get_user_account.assert_called_once_with(api=api_state, username="some-user")
        # Usernames are matched case-insensitively.
        assert tester.get_state()["users"].user_by_username("some-user") == user_account


@pytest.mark.asyncio
async def test_fetch_user_account_failure(
    client: Mock, initial_state: dict[str, Any], error_handler_id: str
) -> None:
    error = OperationFailure("not found", status_code=404)
    client.get_user_account.side_effect = error

    async with _tester(client, initial_state) as tester:
        tester.dispatch(fetch_user_account(error_handler_id=error_handler_id, username="ghost"))
        await tester.join()

        assert tester.called_events[2] == set_error(error_handler_id, error)
        assert len(tester.called_events) == 3


@pytest.mark.asyncio
async def test_fetch_user_account_programming_error_is_a_defect(
    client: Mock, initial_state: dict[str, Any], error_handler_id: str
) -> None:
    # A missing account is a broken response contract, not an API failure.
    client.get_user_account.return_value = None

    async with _tester(client, initial_state) as tester:
        tester.dispatch(fetch_user_account(error_handler_id=error_handler_id, username="ghost"))
        await tester.join()

        [defect] = tester.scheduler.defects
        assert isinstance(defect, ProcedureDefect)
        assert isinstance(defect.cause, ValueError)
        assert not tester.was_called(SET_ERROR)
        assert tester.get_state()["errors"][error_handler_id] is None


@pytest.mark.asyncio
async def test_edit_user_account_updates_notifications(
    client: Mock,
    initial_state: dict[str, Any],
    api_state: ApiState,
    error_handler_id: str,
    user_account: dict[str, Any],
    notifications: list[dict[str, Any]],
) -> None:
    client.edit_user_account.return_value = user_account
    client.update_user_notifications.return_value = notifications

    async with _tester(client, initial_state) as tester:
        tester.dispatch(
            edit_user_account(
                error_handler_id=error_handler_id,
                user_id=user_account["id"],
                user_fields={"biography": "Hello"},
                notifications={"reply": True},
            )
        )
        assert tester.get_state()["users"].is_updating is True
        await tester.join()

        assert tester.called_events[1] == clear_error(error_handler_id)
        assert tester.called_events[2] == load_user_account(user=user_account)
        assert tester.called_events[3] == load_user_notifications(
            notifications=notifications, username=user_account["username"]
        )
        assert tester.called_events[4] == finish_edit_user_account()

        client.edit_user_account.assert_called_once_with(
            api=api_state, picture=None, user_id=user_account["id"], biography="Hello"
        )
        client.update_user_notifications.assert_called_once_with(
            api=api_state, notifications={"reply": True}, user_id=user_account["id"]
        )
        users = tester.get_state()["users"]
        assert users.is_updating is False
        assert users.notifications["some-user"] == tuple(notifications)


@pytest.mark.asyncio
async def test_edit_user_account_without_notifications_skips_update(
    client: Mock,
    initial_state: dict[str, Any],
    error_handler_id: str,
    user_account: dict[str, Any],
) -> None:
    client.edit_user_account.return_value = user_account

    async with _tester(client, initial_state) as tester:
        tester.dispatch(
            edit_user_account(error_handler_id=error_handler_id, user_id=user_account["id"])
        )
        await tester.join()

        assert tester.called_events[3] == finish_edit_user_account()
        assert not tester.was_called(LOAD_USER_NOTIFICATIONS)
        client.update_user_notifications.assert_not_called()


@pytest.mark.asyncio
async def test_edit_user_account_failure_still_finishes(
    client: Mock, initial_state: dict[str, Any], error_handler_id: str
) -> None:
    error = OperationFailure("bad picture", status_code=400)
    client.edit_user_account.side_effect = error

    async with _tester(client, initial_state) as tester:
        tester.dispatch(
            edit_user_account(error_handler_id=error_handler_id, user_id=500, picture=b"png")
        )
        await tester.join()

        assert tester.called_events[2] == set_error(error_handler_id, error)
        assert tester.called_events[3] == finish_edit_user_account()
        assert tester.get_state()["users"].is_updating is False


@pytest.mark.asyncio
async def test_fetch_user_notifications(
    client: Mock,
    initial_state: dict[str, Any],
    api_state: ApiState,
    error_handler_id: str,
    notifications: list[dict[str, Any]],
) -> None:
    client.get_user_notifications.return_value = notifications

    async with _tester(client, initial_state) as tester:
        tester.dispatch(
            fetch_user_notifications(error_handler_id=error_handler_id, username="some-user")
        )
        await tester.join()

        assert tester.called_events[2] == load_user_notifications(
            notifications=notifications, username="some-user"
        )
        client.get_user_notifications.assert_called_once_with(
            api=api_state, username="some-user"
        )


@pytest.mark.asyncio
async def test_fetch_user_notifications_failure(
    client: Mock, initial_state: dict[str, Any], error_handler_id: str
) -> None:
    error = OperationFailure("boom")
    client.get_user_notifications.side_effect = error

    async with _tester(client, initial_state) as tester:
        tester.dispatch(
            fetch_user_notifications(error_handler_id=error_handler_id, username="some-user")
        )
        await tester.join()

        assert tester.called_events[2] == set_error(error_handler_id, error)


@pytest.mark.asyncio
async def test_delete_user_picture_reloads_account(
    client: Mock,
    initial_state: dict[str, Any],
    api_state: ApiState,
    error_handler_id: str,
    user_account: dict[str, Any],
) -> None:
    client.delete_user_picture.return_value = user_account

    async with _tester(client, initial_state) as tester:
        tester.dispatch(delete_user_picture(error_handler_id=error_handler_id, user_id=500))
        await tester.join()

        assert tester.called_events[2] == load_user_account(user=user_account)
        client.delete_user_picture.assert_called_once_with(api=api_state, user_id=500)


@pytest.mark.asyncio
async def test_delete_user_account_unloads_it(
    client: Mock,
    initial_state: dict[str, Any],
    api_state: ApiState,
    error_handler_id: str,
    user_account: dict[str, Any],
) -> None:
    client.delete_user_account.return_value = None

    async with _tester(client, initial_state) as tester:
        tester.dispatch(load_user_account(user=user_account))
        tester.dispatch(delete_user_account(error_handler_id=error_handler_id, user_id=500))
        await tester.join()

        assert tester.called_events[3] == unload_user_account(user_id=500)
        client.delete_user_account.assert_called_once_with(api=api_state, user_id=500)
        assert tester.get_state()["users"].user_by_username("some-user") is None


@pytest.mark.asyncio
async def test_delete_user_account_failure(
    client: Mock, initial_state: dict[str, Any], error_handler_id: str
) -> None:
    error = OperationFailure("forbidden", status_code=403)
    client.delete_user_account.side_effect = error

    async with _tester(client, initial_state) as tester:
        tester.dispatch(delete_user_account(error_handler_id=error_handler_id, user_id=500))
        await tester.join()

        assert tester.called_events[2] == set_error(error_handler_id, error)
        assert len(tester.called_events) == 3
