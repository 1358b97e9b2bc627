"""Root procedure and the public trigger catalogue."""

from __future__ import annotations

from collections.abc import Callable, Mapping

from amo_orchestrator.orchestrator.api.client import AmoApiClient
from amo_orchestrator.orchestrator.workflow.collections import collections_workflow
from amo_orchestrator.orchestrator.workflow.effects import WorkflowGenerator
from amo_orchestrator.orchestrator.workflow.events import Event
from amo_orchestrator.orchestrator.workflow.users import users_workflow
from amo_orchestrator.state import api, collections, users

# Trigger constructors by the name used on the command line.
TRIGGERS: Mapping[str, Callable[..., Event]] = {
    "fetch-current-collection": collections.fetch_current_collection,
    "fetch-current-collection-page": collections.fetch_current_collection_page,
    "fetch-user-collections": collections.fetch_user_collections,
    "add-addon-to-collection": collections.add_addon_to_collection,
    "remove-addon-from-collection": collections.remove_addon_from_collection,
    "create-collection": collections.create_collection,
    "update-collection": collections.update_collection,
    "delete-collection": collections.delete_collection,
    "fetch-user-account": users.fetch_user_account,
    "edit-user-account": users.edit_user_account,
    "fetch-user-notifications": users.fetch_user_notifications,
    "delete-user-picture": users.delete_user_picture,
    "delete-user-account": users.delete_user_account,
    "session-token-set": api.set_auth_token,
}


def root_workflow(client: AmoApiClient) -> WorkflowGenerator:
    """Register every collections and users workflow against ``client``."""

    yield from collections_workflow(client)
    yield from users_workflow(client)
