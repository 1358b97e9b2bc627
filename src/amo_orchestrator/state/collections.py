"""Collections slice: event kinds, constructors and reducer.

Triggers (``FETCH_*``, ``ADD_*``, ``REMOVE_*``, ``CREATE_*``, ``UPDATE_*``,
``DELETE_*``) start workflows; the remaining kinds are emitted by those
workflows to record their outcome.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from amo_orchestrator.orchestrator.workflow.events import Event, require
from amo_orchestrator.state.store import readonly

FETCH_CURRENT_COLLECTION = "amo/collections/FETCH_CURRENT_COLLECTION"
FETCH_CURRENT_COLLECTION_PAGE = "amo/collections/FETCH_CURRENT_COLLECTION_PAGE"
FETCH_USER_COLLECTIONS = "amo/collections/FETCH_USER_COLLECTIONS"
ADD_ADDON_TO_COLLECTION = "amo/collections/ADD_ADDON_TO_COLLECTION"
REMOVE_ADDON_FROM_COLLECTION = "amo/collections/REMOVE_ADDON_FROM_COLLECTION"
CREATE_COLLECTION = "amo/collections/CREATE_COLLECTION"
UPDATE_COLLECTION = "amo/collections/UPDATE_COLLECTION"
DELETE_COLLECTION = "amo/collections/DELETE_COLLECTION"

LOAD_CURRENT_COLLECTION = "amo/collections/LOAD_CURRENT_COLLECTION"
LOAD_CURRENT_COLLECTION_PAGE = "amo/collections/LOAD_CURRENT_COLLECTION_PAGE"
LOAD_USER_COLLECTIONS = "amo/collections/LOAD_USER_COLLECTIONS"
ADDON_ADDED_TO_COLLECTION = "amo/collections/ADDON_ADDED_TO_COLLECTION"
ABORT_FETCH_CURRENT_COLLECTION = "amo/collections/ABORT_FETCH_CURRENT_COLLECTION"
ABORT_FETCH_USER_COLLECTIONS = "amo/collections/ABORT_FETCH_USER_COLLECTIONS"
ABORT_ADD_ADDON_TO_COLLECTION = "amo/collections/ABORT_ADD_ADDON_TO_COLLECTION"
UNLOAD_COLLECTION_BY_SLUG = "amo/collections/UNLOAD_COLLECTION_BY_SLUG"
BEGIN_COLLECTION_MODIFICATION = "amo/collections/BEGIN_COLLECTION_MODIFICATION"
FINISH_COLLECTION_MODIFICATION = "amo/collections/FINISH_COLLECTION_MODIFICATION"

CollectionDetail = Mapping[str, Any]
CollectionAddon = Mapping[str, Any]


def _readonly_items(values: Sequence[Mapping[str, Any]]) -> tuple[Mapping[str, Any], ...]:
    return tuple(readonly(value) for value in values)


class CurrentCollection(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int | None = None
    addons: tuple[CollectionAddon, ...] | None = None
    loading: bool = False

    @field_validator("addons")
    @classmethod
    def _read_only_addons(
        cls, value: tuple[CollectionAddon, ...] | None
    ) -> tuple[CollectionAddon, ...] | None:
        return _readonly_items(value) if value is not None else None


class UserCollections(BaseModel):
    model_config = ConfigDict(frozen=True)

    collection_ids: tuple[int, ...] | None = None
    loading: bool = False


class CollectionsState(BaseModel):
    """Collections slice. Its maps are read-only; reducers replace them whole."""

    model_config = ConfigDict(frozen=True)

    by_id: Mapping[int, CollectionDetail] = Field(default_factory=lambda: readonly({}))
    current: CurrentCollection = Field(default_factory=CurrentCollection)
    user_collections: Mapping[str, UserCollections] = Field(
        default_factory=lambda: readonly({})
    )
    # username -> add-on ids with an add request in flight
    adding_addons: Mapping[str, tuple[int, ...]] = Field(default_factory=lambda: readonly({}))
    # username -> add-on id -> ids of the collections it was added to
    addon_in_collections: Mapping[str, Mapping[int, tuple[int, ...]]] = Field(
        default_factory=lambda: readonly({})
    )
    is_collection_being_modified: bool = False

    @field_validator("by_id", "addon_in_collections")
    @classmethod
    def _read_only_nested(cls, value: Mapping[Any, Mapping[Any, Any]]) -> Mapping[Any, Any]:
        return readonly({key: readonly(inner) for key, inner in value.items()})

    @field_validator("user_collections", "adding_addons")
    @classmethod
    def _read_only(cls, value: Mapping[Any, Any]) -> Mapping[Any, Any]:
        return readonly(value)

    def collection_by_slug(self, slug: str) -> CollectionDetail | None:
        for detail in self.by_id.values():
            if detail.get("slug") == slug:
                return detail
        return None


def localize_collection_detail(*, detail: Mapping[str, Any], lang: str) -> dict[str, Any]:
    """Return ``detail`` with localized ``name``/``description`` maps resolved for ``lang``."""

    def _localized(value: Any) -> Any:
        if isinstance(value, Mapping):
            return value.get(lang)
        return value

    return {
        **detail,
        "name": _localized(detail.get("name")),
        "description": _localized(detail.get("description")),
    }


# Triggers


def fetch_current_collection(
    *, error_handler_id: str, username: str, slug: str, page: int = 1
) -> Event:
    require(error_handler_id=error_handler_id, username=username, slug=slug)
    return Event(
        type=FETCH_CURRENT_COLLECTION,
        payload={
            "error_handler_id": error_handler_id,
            "page": page,
            "slug": slug,
            "username": username,
        },
    )


def fetch_current_collection_page(
    *, error_handler_id: str, username: str, slug: str, page: int = 1
) -> Event:
    require(error_handler_id=error_handler_id, username=username, slug=slug)
    return Event(
        type=FETCH_CURRENT_COLLECTION_PAGE,
        payload={
            "error_handler_id": error_handler_id,
            "page": page,
            "slug": slug,
            "username": username,
        },
    )


def fetch_user_collections(*, error_handler_id: str, username: str) -> Event:
    require(error_handler_id=error_handler_id, username=username)
    return Event(
        type=FETCH_USER_COLLECTIONS,
        payload={"error_handler_id": error_handler_id, "username": username},
    )


def add_addon_to_collection(
    *,
    error_handler_id: str,
    addon_id: int,
    collection_id: int,
    username: str,
    slug: str,
    notes: str | None = None,
    editing: bool = False,
    page: int | None = None,
) -> Event:
    require(
        error_handler_id=error_handler_id,
        addon_id=addon_id,
        collection_id=collection_id,
        username=username,
        slug=slug,
    )
    if editing and page is None:
        raise ValueError("page is required when editing")
    return Event(
        type=ADD_ADDON_TO_COLLECTION,
        payload={
            "addon_id": addon_id,
            "collection_id": collection_id,
            "editing": editing,
            "error_handler_id": error_handler_id,
            "notes": notes,
            "page": page,
            "slug": slug,
            "username": username,
        },
    )


def remove_addon_from_collection(
    *, error_handler_id: str, addon_id: int, username: str, slug: str, page: int = 1
) -> Event:
    require(error_handler_id=error_handler_id, addon_id=addon_id, username=username, slug=slug)
    return Event(
        type=REMOVE_ADDON_FROM_COLLECTION,
        payload={
            "addon_id": addon_id,
            "error_handler_id": error_handler_id,
            "page": page,
            "slug": slug,
            "username": username,
        },
    )


def create_collection(
    *,
    error_handler_id: str,
    username: str,
    slug: str,
    name: Mapping[str, str] | None = None,
    description: Mapping[str, str] | None = None,
    default_locale: str | None = None,
) -> Event:
    require(error_handler_id=error_handler_id, username=username, slug=slug)
    return Event(
        type=CREATE_COLLECTION,
        payload={
            "default_locale": default_locale,
            "description": description,
            "error_handler_id": error_handler_id,
            "name": name,
            "slug": slug,
            "username": username,
        },
    )


def update_collection(
    *,
    error_handler_id: str,
    username: str,
    collection_slug: str,
    slug: str | None = None,
    name: Mapping[str, str] | None = None,
    description: Mapping[str, str] | None = None,
    default_locale: str | None = None,
) -> Event:
    require(
        error_handler_id=error_handler_id, username=username, collection_slug=collection_slug
    )
    return Event(
        type=UPDATE_COLLECTION,
        payload={
            "collection_slug": collection_slug,
            "default_locale": default_locale,
            "description": description,
            "error_handler_id": error_handler_id,
            "name": name,
            "slug": slug,
            "username": username,
        },
    )


def delete_collection(*, error_handler_id: str, username: str, slug: str) -> Event:
    require(error_handler_id=error_handler_id, username=username, slug=slug)
    return Event(
        type=DELETE_COLLECTION,
        payload={"error_handler_id": error_handler_id, "slug": slug, "username": username},
    )


# Outcomes


def load_current_collection(
    *, addons: Sequence[CollectionAddon], detail: Mapping[str, Any]
) -> Event:
    require(detail=detail)
    return Event(
        type=LOAD_CURRENT_COLLECTION, payload={"addons": list(addons), "detail": dict(detail)}
    )


def load_current_collection_page(*, addons: Sequence[CollectionAddon]) -> Event:
    return Event(type=LOAD_CURRENT_COLLECTION_PAGE, payload={"addons": list(addons)})


def load_user_collections(*, username: str, collections: Sequence[CollectionDetail]) -> Event:
    require(username=username)
    return Event(
        type=LOAD_USER_COLLECTIONS,
        payload={"collections": list(collections), "username": username},
    )


def addon_added_to_collection(*, addon_id: int, collection_id: int, username: str) -> Event:
    require(addon_id=addon_id, collection_id=collection_id, username=username)
    return Event(
        type=ADDON_ADDED_TO_COLLECTION,
        payload={"addon_id": addon_id, "collection_id": collection_id, "username": username},
    )


def abort_fetch_current_collection() -> Event:
    return Event(type=ABORT_FETCH_CURRENT_COLLECTION)


def abort_fetch_user_collections(*, username: str) -> Event:
    require(username=username)
    return Event(type=ABORT_FETCH_USER_COLLECTIONS, payload={"username": username})


def abort_add_addon_to_collection(*, addon_id: int, username: str) -> Event:
    require(addon_id=addon_id, username=username)
    return Event(
        type=ABORT_ADD_ADDON_TO_COLLECTION, payload={"addon_id": addon_id, "username": username}
    )


def unload_collection_by_slug(slug: str) -> Event:
    require(slug=slug)
    return Event(type=UNLOAD_COLLECTION_BY_SLUG, payload={"slug": slug})


def begin_collection_modification() -> Event:
    return Event(type=BEGIN_COLLECTION_MODIFICATION)


def finish_collection_modification() -> Event:
    return Event(type=FINISH_COLLECTION_MODIFICATION)


def _without(ids: tuple[int, ...], value: int) -> tuple[int, ...]:
    return tuple(i for i in ids if i != value)


def collections_reducer(state: CollectionsState | None, event: Event) -> CollectionsState:
    state = state or CollectionsState()
    payload = event.payload

    if event.type == FETCH_CURRENT_COLLECTION:
        return state.model_copy(update={"current": CurrentCollection(loading=True)})

    if event.type == FETCH_CURRENT_COLLECTION_PAGE:
        current = state.current.model_copy(update={"addons": None, "loading": True})
        return state.model_copy(update={"current": current})

    if event.type == LOAD_CURRENT_COLLECTION:
        detail = readonly(payload["detail"])
        return state.model_copy(
            update={
                "by_id": readonly({**state.by_id, detail["id"]: detail}),
                "current": CurrentCollection(
                    id=detail["id"], addons=tuple(payload["addons"]), loading=False
                ),
            }
        )

    if event.type == LOAD_CURRENT_COLLECTION_PAGE:
        current = state.current.model_copy(
            update={"addons": _readonly_items(payload["addons"]), "loading": False}
        )
        return state.model_copy(update={"current": current})

    if event.type == ABORT_FETCH_CURRENT_COLLECTION:
        return state.model_copy(update={"current": CurrentCollection()})

    if event.type == FETCH_USER_COLLECTIONS:
        return state.model_copy(
            update={
                "user_collections": readonly(
                    {**state.user_collections, payload["username"]: UserCollections(loading=True)}
                )
            }
        )

    if event.type == LOAD_USER_COLLECTIONS:
        collections = _readonly_items(payload["collections"])
        by_id = readonly({**state.by_id, **{c["id"]: c for c in collections}})
        loaded = UserCollections(collection_ids=tuple(c["id"] for c in collections))
        return state.model_copy(
            update={
                "by_id": by_id,
                "user_collections": readonly(
                    {**state.user_collections, payload["username"]: loaded}
                ),
            }
        )

    if event.type == ABORT_FETCH_USER_COLLECTIONS:
        return state.model_copy(
            update={
                "user_collections": readonly(
                    {**state.user_collections, payload["username"]: UserCollections()}
                )
            }
        )

    if event.type == ADD_ADDON_TO_COLLECTION:
        username, addon_id = payload["username"], payload["addon_id"]
        adding = _without(state.adding_addons.get(username, ()), addon_id) + (addon_id,)
        return state.model_copy(
            update={"adding_addons": readonly({**state.adding_addons, username: adding})}
        )

    if event.type == ADDON_ADDED_TO_COLLECTION:
        username, addon_id = payload["username"], payload["addon_id"]
        per_user = dict(state.addon_in_collections.get(username, {}))
        collection_ids = per_user.get(addon_id, ())
        if payload["collection_id"] not in collection_ids:
            collection_ids = (*collection_ids, payload["collection_id"])
        per_user[addon_id] = collection_ids
        return state.model_copy(
            update={
                "adding_addons": readonly(
                    {
                        **state.adding_addons,
                        username: _without(state.adding_addons.get(username, ()), addon_id),
                    }
                ),
                "addon_in_collections": readonly(
                    {**state.addon_in_collections, username: readonly(per_user)}
                ),
            }
        )

    if event.type == ABORT_ADD_ADDON_TO_COLLECTION:
        username, addon_id = payload["username"], payload["addon_id"]
        return state.model_copy(
            update={
                "adding_addons": readonly(
                    {
                        **state.adding_addons,
                        username: _without(state.adding_addons.get(username, ()), addon_id),
                    }
                )
            }
        )

    if event.type == UNLOAD_COLLECTION_BY_SLUG:
        slug = payload["slug"]
        by_id = readonly({cid: c for cid, c in state.by_id.items() if c.get("slug") != slug})
        current = state.current
        if current.id is not None and current.id not in by_id:
            current = CurrentCollection()
        return state.model_copy(update={"by_id": by_id, "current": current})

    if event.type == BEGIN_COLLECTION_MODIFICATION:
        return state.model_copy(update={"is_collection_being_modified": True})

    if event.type == FINISH_COLLECTION_MODIFICATION:
        return state.model_copy(update={"is_collection_being_modified": False})

    return state
