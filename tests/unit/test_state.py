"""Unit tests for the store, the slice reducers and the event constructors."""

from __future__ import annotations

from typing import Any

import pytest

from amo_orchestrator.orchestrator.workflow.errors import OperationFailure
from amo_orchestrator.orchestrator.workflow.events import Event
from amo_orchestrator.state import ApiState, create_store
from amo_orchestrator.state.api import log_out_user, set_auth_token, set_client_app, set_lang
from amo_orchestrator.state.collections import (
    CollectionsState,
    add_addon_to_collection,
    addon_added_to_collection,
    fetch_current_collection,
    load_current_collection,
    load_user_collections,
    localize_collection_detail,
    unload_collection_by_slug,
)
from amo_orchestrator.state.errors import ErrorRecord, clear_error, set_error
from amo_orchestrator.state.router import navigate
from amo_orchestrator.state.store import Store
from amo_orchestrator.state.users import (
    UsersState,
    load_current_user_account,
    load_user_notifications,
    unload_user_account,
)


def _counter(state: int | None, event: Event) -> int:
    state = state or 0
    return state + 1 if event.type == "inc" else state


def test_store_initializes_every_slice() -> None:
    store = create_store()
    state = store.get_state()

    assert set(state) == {"api", "collections", "errors", "router", "users"}
    assert state["api"] == ApiState()
    assert state["errors"] == {}
    assert store.history == []


def test_store_rejects_unknown_initial_keys() -> None:
    with pytest.raises(ValueError, match="nope"):
        Store({"count": _counter}, {"nope": 1})


def test_store_requires_reducers() -> None:
    with pytest.raises(ValueError):
        Store({})


def test_dispatch_produces_new_read_only_snapshot() -> None:
    store = Store({"count": _counter}, {"count": 5})
    before = store.get_state()

    store.dispatch(Event("inc"))

    assert before["count"] == 5
    assert store.get_state()["count"] == 6
    with pytest.raises(TypeError):
        store.get_state()["count"] = 0  # type: ignore[index]


def test_dispatch_rejects_non_events() -> None:
    store = Store({"count": _counter})
    with pytest.raises(TypeError):
        store.dispatch({"type": "inc"})  # type: ignore[arg-type]


def test_reducers_may_not_dispatch() -> None:
    store: Store

    def reentrant(state: Any, event: Event) -> Any:
        if event.type == "go":
            store.dispatch(Event("inc"))
        return state

    store = Store({"bad": reentrant})
    with pytest.raises(RuntimeError):
        store.dispatch(Event("go"))


def test_listeners_see_state_after_reducers() -> None:
    store = Store({"count": _counter})
    seen: list[tuple[str, int]] = []

    unsubscribe = store.subscribe(lambda e: seen.append((e.type, store.get_state()["count"])))
    store.dispatch(Event("inc"))
    unsubscribe()
    store.dispatch(Event("inc"))

    assert seen == [("inc", 1)]


def test_history_is_bounded() -> None:
    store = Store({"count": _counter}, history_limit=2)
    for _ in range(3):
        store.dispatch(Event("inc"))

    assert len(store.history) == 2
    assert store.get_state()["count"] == 3


def test_api_reducer_tracks_session() -> None:
    store = create_store()
    store.dispatch(set_auth_token("token"))
    store.dispatch(set_lang("fr"))
    store.dispatch(set_client_app("android"))

    assert store.get_state()["api"] == ApiState(lang="fr", client_app="android", token="token")

    store.dispatch(log_out_user())
    assert store.get_state()["api"].token is None


def test_errors_reducer_records_and_clears() -> None:
    store = create_store()
    error = OperationFailure(
        "POST /collections/ returned 400 Bad Request",
        status_code=400,
        response_data={"name": ["This field is required."], "non_field_errors": ["Nope"]},
    )

    store.dispatch(set_error("handler", error))
    record = store.get_state()["errors"]["handler"]
    assert record == ErrorRecord(
        message=str(error),
        status_code=400,
        messages=("This field is required.", "Nope"),
    )

    store.dispatch(clear_error("handler"))
    assert store.get_state()["errors"]["handler"] is None


def test_error_record_from_plain_exception() -> None:
    record = ErrorRecord.from_error(KeyError("id"))
    assert record.status_code is None
    assert record.messages == ("'id'",)


def test_collections_reducer_load_and_unload(collection_detail: dict[str, Any]) -> None:
    store = create_store()
    store.dispatch(
        fetch_current_collection(error_handler_id="h", username="some-user", slug="my-collection")
    )
    assert store.get_state()["collections"].current.loading is True

    store.dispatch(load_current_collection(addons=[], detail=collection_detail))
    collections = store.get_state()["collections"]
    assert collections.collection_by_slug("my-collection") == collection_detail
    assert collections.current.id == collection_detail["id"]

    store.dispatch(unload_collection_by_slug("my-collection"))
    collections = store.get_state()["collections"]
    assert collections.collection_by_slug("my-collection") is None
    assert collections.current.id is None


def test_collections_reducer_tracks_adding_addons() -> None:
    store = create_store()
    store.dispatch(
        add_addon_to_collection(
            error_handler_id="h", addon_id=3, collection_id=9, username="u", slug="s"
        )
    )
    assert store.get_state()["collections"].adding_addons["u"] == (3,)


def test_load_user_collections_indexes_by_id(collection_detail: dict[str, Any]) -> None:
    store = create_store()
    store.dispatch(load_user_collections(username="u", collections=[collection_detail]))

    collections = store.get_state()["collections"]
    assert collections.by_id[collection_detail["id"]] == collection_detail
    assert collections.user_collections["u"].collection_ids == (collection_detail["id"],)


def test_localize_collection_detail(collection_detail: dict[str, Any]) -> None:
    localized = localize_collection_detail(detail=collection_detail, lang="fr")

    assert localized["name"] == "Ma collection"
    assert localized["description"] is None
    assert localized["slug"] == collection_detail["slug"]


def test_users_reducer_current_user_and_unload(user_account: dict[str, Any]) -> None:
    store = create_store()
    store.dispatch(load_current_user_account(user=user_account))

    users = store.get_state()["users"]
    assert users.current_user == user_account
    assert users.user_by_username("SOME-USER") == user_account

    store.dispatch(unload_user_account(user_id=user_account["id"]))
    users = store.get_state()["users"]
    assert users.current_user is None
    assert users.by_id == {}


def test_slices_cannot_be_changed_outside_reducers(
    collection_detail: dict[str, Any],
    collection_addons: list[dict[str, Any]],
    user_account: dict[str, Any],
    notifications: list[dict[str, Any]],
) -> None:
    store = create_store()
    store.dispatch(set_error("handler", OperationFailure("boom")))
    store.dispatch(load_current_collection(addons=collection_addons, detail=collection_detail))
    store.dispatch(load_user_collections(username="u", collections=[collection_detail]))
    store.dispatch(addon_added_to_collection(addon_id=3, collection_id=9, username="u"))
    store.dispatch(load_current_user_account(user=user_account))
    store.dispatch(load_user_notifications(username="u", notifications=notifications))
    state = store.get_state()
    collections, users = state["collections"], state["users"]

    with pytest.raises(TypeError):
        state["errors"]["handler"] = None  # type: ignore[index]
    with pytest.raises(TypeError):
        collections.by_id[collection_detail["id"]]["slug"] = "other"  # type: ignore[index]
    with pytest.raises(TypeError):
        collections.current.addons[0]["notes"] = "changed"  # type: ignore[index]
    with pytest.raises(TypeError):
        collections.user_collections["someone"] = None  # type: ignore[index]
    with pytest.raises(TypeError):
        collections.addon_in_collections["u"][3] = ()  # type: ignore[index]
    with pytest.raises(TypeError):
        users.by_id[user_account["id"]]["username"] = "someone"  # type: ignore[index]
    with pytest.raises(TypeError):
        users.notifications["u"][0]["enabled"] = False  # type: ignore[index]

    # The caller's own dicts stay independent of the stored copies.
    collection_detail["slug"] = "edited"
    assert collections.by_id[collection_detail["id"]]["slug"] == "my-collection"


def test_slice_models_freeze_maps_given_at_construction() -> None:
    collections = CollectionsState(by_id={1: {"id": 1, "slug": "s"}}, adding_addons={"u": (3,)})
    users = UsersState(notifications={"u": ({"name": "reply", "enabled": True},)})

    with pytest.raises(TypeError):
        collections.by_id[1]["slug"] = "other"  # type: ignore[index]
    with pytest.raises(TypeError):
        collections.adding_addons["u"] = ()  # type: ignore[index]
    with pytest.raises(TypeError):
        users.notifications["u"][0]["enabled"] = False  # type: ignore[index]
    assert collections.collection_by_slug("s") == {"id": 1, "slug": "s"}


def test_router_reducer_keeps_navigation_history() -> None:
    store = create_store()
    store.dispatch(navigate("/en-US/firefox"))
    store.dispatch(navigate("/en-US/firefox/collections/u/s/"))

    router = store.get_state()["router"]
    assert router.location == "/en-US/firefox/collections/u/s/"
    assert router.history == ("/en-US/firefox", "/en-US/firefox/collections/u/s/")


def test_trigger_constructors_require_identity_fields() -> None:
    with pytest.raises(ValueError, match="username is required"):
        fetch_current_collection(error_handler_id="h", username="", slug="s")

    with pytest.raises(ValueError, match="page"):
        add_addon_to_collection(
            error_handler_id="h", addon_id=1, collection_id=2, username="u", slug="s", editing=True
        )


def test_fetch_current_collection_defaults_to_first_page() -> None:
    event = fetch_current_collection(error_handler_id="h", username="u", slug="s")
    assert event.payload["page"] == 1


def test_event_to_json_serializes_errors_and_models() -> None:
    event = set_error("h", OperationFailure("boom"))
    assert event.to_json() == {"type": event.type, "payload": {"id": "h", "error": "boom"}}
