"""Workflow procedures for collections.

Each procedure follows the same shape: clear the caller's error surface, read
the session from the store, call the API, then record the outcome (or the
failure) with events.
"""

from __future__ import annotations

import logging

from amo_orchestrator.orchestrator.api.client import AmoApiClient
from amo_orchestrator.orchestrator.workflow.effects import (
    All,
    Emit,
    ReadState,
    WorkflowGenerator,
    await_latest,
    invoke,
)
from amo_orchestrator.orchestrator.workflow.errors import ErrorHandler, OperationFailure
from amo_orchestrator.orchestrator.workflow.events import Event
from amo_orchestrator.state.collections import (
    ADD_ADDON_TO_COLLECTION,
    CREATE_COLLECTION,
    DELETE_COLLECTION,
    FETCH_CURRENT_COLLECTION,
    FETCH_CURRENT_COLLECTION_PAGE,
    FETCH_USER_COLLECTIONS,
    REMOVE_ADDON_FROM_COLLECTION,
    UPDATE_COLLECTION,
    abort_add_addon_to_collection,
    abort_fetch_current_collection,
    abort_fetch_user_collections,
    addon_added_to_collection,
    begin_collection_modification,
    fetch_current_collection_page as fetch_current_collection_page_event,
    fetch_user_collections as fetch_user_collections_event,
    finish_collection_modification,
    load_current_collection,
    load_current_collection_page,
    load_user_collections,
    localize_collection_detail,
    unload_collection_by_slug,
)
from amo_orchestrator.state.router import navigate

logger = logging.getLogger(__name__)


def fetch_current_collection(client: AmoApiClient, event: Event) -> WorkflowGenerator:
    payload = event.payload
    error_handler = ErrorHandler(payload["error_handler_id"])

    yield Emit(error_handler.clearing_event())

    try:
        state = yield ReadState()
        params = {"api": state["api"], "slug": payload["slug"], "username": payload["username"]}

        results = yield All(
            {
                "detail": invoke(client.get_collection_detail, **params),
                "addons": invoke(client.get_collection_addons, **params, page=payload["page"]),
            }
        )

        yield Emit(
            load_current_collection(
                addons=results["addons"]["results"], detail=results["detail"]
            )
        )
    except OperationFailure as error:
        logger.warning(f"Collection failed to load: {error}")
        yield Emit(error_handler.error_event(error))
        yield Emit(abort_fetch_current_collection())


def fetch_current_collection_page(client: AmoApiClient, event: Event) -> WorkflowGenerator:
    payload = event.payload
    error_handler = ErrorHandler(payload["error_handler_id"])

    yield Emit(error_handler.clearing_event())

    try:
        state = yield ReadState()
        addons = yield invoke(
            client.get_collection_addons,
            api=state["api"],
            page=payload["page"],
            slug=payload["slug"],
            username=payload["username"],
        )
        yield Emit(load_current_collection_page(addons=addons["results"]))
    except OperationFailure as error:
        logger.warning(f"Collection page failed to load: {error}")
        yield Emit(error_handler.error_event(error))
        yield Emit(abort_fetch_current_collection())


def fetch_user_collections(client: AmoApiClient, event: Event) -> WorkflowGenerator:
    payload = event.payload
    username = payload["username"]
    error_handler = ErrorHandler(payload["error_handler_id"])

    yield Emit(error_handler.clearing_event())

    try:
        state = yield ReadState()
        collections = yield invoke(
            client.get_all_user_collections, api=state["api"], username=username
        )
        yield Emit(load_user_collections(username=username, collections=collections))
    except OperationFailure as error:
        logger.warning(f"Failed to fetch user collections: {error}")
        yield Emit(error_handler.error_event(error))
        yield Emit(abort_fetch_user_collections(username=username))


def add_addon_to_collection(client: AmoApiClient, event: Event) -> WorkflowGenerator:
    payload = event.payload
    error_handler = ErrorHandler(payload["error_handler_id"])
    addon_id = payload["addon_id"]
    username = payload["username"]

    yield Emit(error_handler.clearing_event())

    try:
        state = yield ReadState()
        yield invoke(
            client.create_collection_addon,
            addon_id=addon_id,
            api=state["api"],
            notes=payload["notes"],
            slug=payload["slug"],
            username=username,
        )

        # Refresh the visible list only while the collection is open for editing.
        if payload["editing"]:
            yield Emit(
                fetch_current_collection_page_event(
                    error_handler_id=error_handler.id,
                    page=payload["page"],
                    slug=payload["slug"],
                    username=username,
                )
            )

        yield Emit(
            addon_added_to_collection(
                addon_id=addon_id, collection_id=payload["collection_id"], username=username
            )
        )
    except OperationFailure as error:
        logger.warning(f"Failed to add add-on to collection: {error}")
        yield Emit(error_handler.error_event(error))
        yield Emit(abort_add_addon_to_collection(addon_id=addon_id, username=username))


def remove_addon_from_collection(client: AmoApiClient, event: Event) -> WorkflowGenerator:
    payload = event.payload
    error_handler = ErrorHandler(payload["error_handler_id"])

    yield Emit(error_handler.clearing_event())

    try:
        state = yield ReadState()
        yield invoke(
            client.remove_collection_addon,
            addon_id=payload["addon_id"],
            api=state["api"],
            slug=payload["slug"],
            username=payload["username"],
        )
        yield Emit(
            fetch_current_collection_page_event(
                error_handler_id=error_handler.id,
                page=payload["page"],
                slug=payload["slug"],
                username=payload["username"],
            )
        )
    except OperationFailure as error:
        logger.warning(f"Failed to remove add-on from collection: {error}")
        yield Emit(error_handler.error_event(error))


def modify_collection(client: AmoApiClient, event: Event) -> WorkflowGenerator:
    """Create or update a collection inside a begin/finish modification bracket."""

    payload = event.payload
    creating = event.type == CREATE_COLLECTION
    error_handler = ErrorHandler(payload["error_handler_id"])
    username = payload["username"]
    slug = payload["slug"]

    yield Emit(error_handler.clearing_event())
    yield Emit(begin_collection_modification())

    try:
        state = yield ReadState()
        api = state["api"]
        fields = {
            "api": api,
            "default_locale": payload["default_locale"],
            "description": payload["description"],
            "name": payload["name"],
            "slug": slug,
            "username": username,
        }

        if creating:
            detail = yield invoke(client.create_collection, **fields)
            yield Emit(
                load_current_collection(
                    addons=[], detail=localize_collection_detail(detail=detail, lang=api.lang)
                )
            )
            yield Emit(
                navigate(f"/{api.lang}/{api.client_app}/collections/{username}/{slug}/edit/")
            )
        else:
            collection_slug = payload["collection_slug"]
            yield invoke(client.update_collection, collection_slug=collection_slug, **fields)

            # A renamed collection is cached under its new slug; an unchanged one is stale.
            if not slug or slug == collection_slug:
                yield Emit(unload_collection_by_slug(collection_slug))

            new_slug = slug or collection_slug
            yield Emit(
                navigate(f"/{api.lang}/{api.client_app}/collections/{username}/{new_slug}/")
            )
    except OperationFailure as error:
        action = "create" if creating else "update"
        logger.warning(f"Failed to {action} collection: {error}")
        yield Emit(error_handler.error_event(error))
    finally:
        yield Emit(finish_collection_modification())


def delete_collection(client: AmoApiClient, event: Event) -> WorkflowGenerator:
    payload = event.payload
    error_handler = ErrorHandler(payload["error_handler_id"])
    username = payload["username"]
    slug = payload["slug"]

    yield Emit(error_handler.clearing_event())

    try:
        state = yield ReadState()
        api = state["api"]
        yield invoke(client.delete_collection, api=api, slug=slug, username=username)

        # Unload before refetching so the stale entry is never shown again.
        yield Emit(unload_collection_by_slug(slug))
        yield Emit(
            fetch_user_collections_event(error_handler_id=error_handler.id, username=username)
        )
        yield Emit(navigate(f"/{api.lang}/{api.client_app}"))
    except OperationFailure as error:
        logger.warning(f"Failed to delete collection: {error}")
        yield Emit(error_handler.error_event(error))


def collections_workflow(client: AmoApiClient) -> WorkflowGenerator:
    yield await_latest(FETCH_CURRENT_COLLECTION, fetch_current_collection, client)
    yield await_latest(FETCH_CURRENT_COLLECTION_PAGE, fetch_current_collection_page, client)
    yield await_latest(FETCH_USER_COLLECTIONS, fetch_user_collections, client)
    yield await_latest(ADD_ADDON_TO_COLLECTION, add_addon_to_collection, client)
    yield await_latest(REMOVE_ADDON_FROM_COLLECTION, remove_addon_from_collection, client)
    yield await_latest(CREATE_COLLECTION, modify_collection, client)
    yield await_latest(UPDATE_COLLECTION, modify_collection, client)
    yield await_latest(DELETE_COLLECTION, delete_collection, client)
