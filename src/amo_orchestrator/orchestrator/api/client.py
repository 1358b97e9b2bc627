"""Add-ons API client.

Wraps a ``requests.Session`` so HTTP concerns stay out of workflow procedures.
Every method takes the ``api`` session slice from the store (language, client
app, auth token) and returns decoded JSON. Transport errors, non-2xx responses
and undecodable bodies are raised as :class:`OperationFailure`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import requests

from amo_orchestrator.orchestrator.workflow.errors import OperationFailure
from amo_orchestrator.orchestrator.workflow.events import require
from amo_orchestrator.state.api import ApiState

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://addons.mozilla.org/api/v4"

# Upper bound on `next` links followed when listing every collection of a user.
MAX_PAGES = 50


def _segment(value: object) -> str:
    return quote(str(value), safe="")


class AmoApiClient:
    """Small wrapper around the add-ons REST API for the operations workflows need."""

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        if not base_url.strip():
            raise ValueError("base_url is required")
        self._base_url = base_url.strip().rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})

    @property
    def base_url(self) -> str:
        return self._base_url

    def close(self) -> None:
        self._session.close()

    def _url(self, path: str) -> str:
        path = path.strip("/")
        return f"{self._base_url}/{path}/"

    def _collection_path(self, username: str, slug: str = "") -> str:
        path = f"accounts/account/{_segment(username)}/collections"
        if slug:
            path += f"/{_segment(slug)}"
        return path

    def _request(
        self,
        method: str,
        path_or_url: str,
        *,
        api: ApiState,
        params: Mapping[str, Any] | None = None,
        json: object = None,
        data: Mapping[str, Any] | None = None,
        files: Mapping[str, Any] | None = None,
    ) -> Any:
        if path_or_url.startswith(("http://", "https://")):
            # Pagination links already carry their query string.
            url = path_or_url
            query: dict[str, Any] | None = None
        else:
            url = self._url(path_or_url)
            query = {"lang": api.lang, **(params or {})}

        headers: dict[str, str] = {}
        if api.token:
            headers["Authorization"] = f"Bearer {api.token}"
        if api.user_agent:
            headers["User-Agent"] = api.user_agent

        logger.debug("API request", extra={"method": method, "url": url})
        try:
            resp = self._session.request(
                method,
                url,
                params=query,
                json=json,
                data=data,
                files=files,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise OperationFailure(f"{method} {url} failed: {e}") from e

        if not resp.ok:
            raise OperationFailure.from_response(resp)
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise OperationFailure(
                f"{method} {url} returned invalid JSON", status_code=resp.status_code
            ) from e

    # Collections

    def get_collection_detail(self, *, api: ApiState, username: str, slug: str) -> dict[str, Any]:
        require(username=username, slug=slug)
        return self._request("GET", self._collection_path(username, slug), api=api)

    def get_collection_addons(
        self, *, api: ApiState, username: str, slug: str, page: int | None = 1
    ) -> dict[str, Any]:
        """Return one page: ``{"count", "next", "previous", "results"}``."""

        require(username=username, slug=slug)
        params = {"page": page} if page else None
        path = f"{self._collection_path(username, slug)}/addons"
        return _page(self._request("GET", path, api=api, params=params), path)

    def get_all_user_collections(self, *, api: ApiState, username: str) -> list[dict[str, Any]]:
        require(username=username)
        collections: list[dict[str, Any]] = []
        next_url: str | None = self._collection_path(username)
        for _ in range(MAX_PAGES):
            if not next_url:
                return collections
            page = _page(self._request("GET", next_url, api=api), next_url)
            collections.extend(page["results"])
            next_url = page.get("next")
        logger.warning(
            "Stopped following collection pages",
            extra={"username": username, "max_pages": MAX_PAGES},
        )
        return collections

    def create_collection_addon(
        self,
        *,
        api: ApiState,
        username: str,
        slug: str,
        addon_id: int,
        notes: str | None = None,
    ) -> None:
        require(username=username, slug=slug, addon_id=addon_id)
        body: dict[str, Any] = {"addon": addon_id}
        if notes is not None:
            body["notes"] = notes
        self._request(
            "POST", f"{self._collection_path(username, slug)}/addons", api=api, json=body
        )

    def remove_collection_addon(
        self, *, api: ApiState, username: str, slug: str, addon_id: int
    ) -> None:
        require(username=username, slug=slug, addon_id=addon_id)
        self._request(
            "DELETE",
            f"{self._collection_path(username, slug)}/addons/{_segment(addon_id)}",
            api=api,
        )

    def create_collection(
        self,
        *,
        api: ApiState,
        username: str,
        slug: str,
        name: Mapping[str, str] | None = None,
        description: Mapping[str, str] | None = None,
        default_locale: str | None = None,
    ) -> dict[str, Any]:
        require(username=username, slug=slug, name=name)
        body = _collection_fields(
            slug=slug, name=name, description=description, default_locale=default_locale
        )
        return self._request("POST", self._collection_path(username), api=api, json=body)

    def update_collection(
        self,
        *,
        api: ApiState,
        username: str,
        collection_slug: str,
        slug: str | None = None,
        name: Mapping[str, str] | None = None,
        description: Mapping[str, str] | None = None,
        default_locale: str | None = None,
    ) -> None:
        require(username=username, collection_slug=collection_slug)
        body = _collection_fields(
            slug=slug, name=name, description=description, default_locale=default_locale
        )
        self._request(
            "PATCH", self._collection_path(username, collection_slug), api=api, json=body
        )

    def delete_collection(self, *, api: ApiState, username: str, slug: str) -> None:
        require(username=username, slug=slug)
        self._request("DELETE", self._collection_path(username, slug), api=api)

    # Users

    def get_user_account(self, *, api: ApiState, username: str) -> dict[str, Any]:
        require(username=username)
        return self._request("GET", f"accounts/account/{_segment(username)}", api=api)

    def get_current_user_account(self, *, api: ApiState) -> dict[str, Any]:
        require(token=api.token)
        return self._request("GET", "accounts/profile", api=api)

    def edit_user_account(
        self,
        *,
        api: ApiState,
        user_id: int,
        picture: Any = None,
        **user_fields: Any,
    ) -> dict[str, Any]:
        require(user_id=user_id)
        path = f"accounts/account/{_segment(user_id)}"
        if picture is not None:
            data = {k: v for k, v in user_fields.items() if v is not None}
            return self._request(
                "PATCH", path, api=api, data=data, files={"picture_upload": picture}
            )
        return self._request("PATCH", path, api=api, json=user_fields)

    def get_user_notifications(self, *, api: ApiState, username: str) -> list[dict[str, Any]]:
        require(username=username)
        return self._request(
            "GET", f"accounts/account/{_segment(username)}/notifications", api=api
        )

    def update_user_notifications(
        self, *, api: ApiState, user_id: int, notifications: Mapping[str, bool]
    ) -> list[dict[str, Any]]:
        require(user_id=user_id)
        return self._request(
            "POST",
            f"accounts/account/{_segment(user_id)}/notifications",
            api=api,
            json=dict(notifications),
        )

    def delete_user_picture(self, *, api: ApiState, user_id: int) -> dict[str, Any]:
        """Delete the profile picture and return the updated account.

        The server answers with the account; an empty answer falls back to a read.
        """

        require(user_id=user_id)
        account = self._request(
            "DELETE", f"accounts/account/{_segment(user_id)}/picture", api=api
        )
        if account is None:
            account = self._request("GET", f"accounts/account/{_segment(user_id)}", api=api)
        return account

    def delete_user_account(self, *, api: ApiState, user_id: int) -> None:
        require(user_id=user_id)
        self._request("DELETE", f"accounts/account/{_segment(user_id)}", api=api)


def _collection_fields(
    *,
    slug: str | None,
    name: Mapping[str, str] | None,
    description: Mapping[str, str] | None,
    default_locale: str | None,
) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "default_locale": default_locale,
        "description": dict(description) if description is not None else None,
        "name": dict(name) if name is not None else None,
        "slug": slug,
    }
    return {k: v for k, v in fields.items() if v is not None}


def _page(data: Any, path: str) -> dict[str, Any]:
    if not isinstance(data, Mapping) or not isinstance(data.get("results"), list):
        raise OperationFailure(f"GET {path} returned a malformed page", response_data=data)
    return dict(data)
