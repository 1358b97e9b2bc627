"""Test configuration and fixtures."""

from __future__ import annotations

from typing import Any
from unittest.mock import Mock

import pytest

from amo_orchestrator.orchestrator.api.client import AmoApiClient
from amo_orchestrator.state.api import ApiState


@pytest.fixture
def api_state() -> ApiState:
    """Provide a signed-in session."""
    return ApiState(lang="en-US", client_app="firefox", token="secret-token")


@pytest.fixture
def initial_state(api_state: ApiState) -> dict[str, Any]:
    """Provide the initial store state used by workflow tests."""
    return {"api": api_state}


@pytest.fixture
def client() -> Mock:
    """Provide a mocked API client."""
    return Mock(spec=AmoApiClient)


@pytest.fixture
def error_handler_id() -> str:
    return "some-error-handler"


@pytest.fixture
def collection_detail() -> dict[str, Any]:
    """Provide a collection as returned by the detail endpoint."""
    return {
        "id": 1234,
        "slug": "my-collection",
        "name": {"en-US": "My collection", "fr": "Ma collection"},
        "description": {"en-US": "Some add-ons"},
        "default_locale": "en-US",
        "addon_count": 2,
        "author": {"id": 99, "username": "some-user"},
    }


@pytest.fixture
def collection_addons() -> list[dict[str, Any]]:
    """Provide one page of collection add-ons."""
    return [
        {"addon": {"id": 1, "slug": "first-addon"}, "notes": None},
        {"addon": {"id": 2, "slug": "second-addon"}, "notes": "Great"},
    ]


@pytest.fixture
def user_account() -> dict[str, Any]:
    """Provide a user account as returned by the accounts endpoint."""
    return {
        "id": 500,
        "username": "Some-User",
        "name": "Some User",
        "picture_url": None,
    }


@pytest.fixture
def notifications() -> list[dict[str, Any]]:
    return [
        {"name": "reply", "enabled": True, "mandatory": False},
        {"name": "new_features", "enabled": False, "mandatory": False},
    ]
