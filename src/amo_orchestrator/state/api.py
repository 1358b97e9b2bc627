"""Session metadata passed to every API call."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from amo_orchestrator.orchestrator.workflow.events import Event, require

SET_AUTH_TOKEN = "core/api/SET_AUTH_TOKEN"
SET_CLIENT_APP = "core/api/SET_CLIENT_APP"
SET_LANG = "core/api/SET_LANG"
SET_USER_AGENT = "core/api/SET_USER_AGENT"
LOG_OUT_USER = "core/api/LOG_OUT_USER"


class ApiState(BaseModel):
    model_config = ConfigDict(frozen=True)

    lang: str = "en-US"
    client_app: str = "firefox"
    token: str | None = None
    user_agent: str | None = None


def set_auth_token(token: str) -> Event:
    """Session-token-set trigger; also starts the current-user workflow."""

    require(token=token)
    return Event(type=SET_AUTH_TOKEN, payload={"token": token})


def set_client_app(client_app: str) -> Event:
    require(client_app=client_app)
    return Event(type=SET_CLIENT_APP, payload={"client_app": client_app})


def set_lang(lang: str) -> Event:
    require(lang=lang)
    return Event(type=SET_LANG, payload={"lang": lang})


def set_user_agent(user_agent: str) -> Event:
    return Event(type=SET_USER_AGENT, payload={"user_agent": user_agent})


def log_out_user() -> Event:
    return Event(type=LOG_OUT_USER)


def api_reducer(state: ApiState | None, event: Event) -> ApiState:
    state = state or ApiState()

    if event.type == SET_AUTH_TOKEN:
        return state.model_copy(update={"token": event.payload["token"]})
    if event.type == SET_CLIENT_APP:
        return state.model_copy(update={"client_app": event.payload["client_app"]})
    if event.type == SET_LANG:
        return state.model_copy(update={"lang": event.payload["lang"]})
    if event.type == SET_USER_AGENT:
        return state.model_copy(update={"user_agent": event.payload["user_agent"] or None})
    if event.type == LOG_OUT_USER:
        return state.model_copy(update={"token": None})
    return state
