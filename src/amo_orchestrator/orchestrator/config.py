"""Configuration for the AMO workflow orchestrator.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Variables are prefixed with `AMO_` so they do not collide with other tools
sharing the same environment.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from amo_orchestrator.orchestrator.api.client import DEFAULT_BASE_URL
from amo_orchestrator.state.api import ApiState


class OrchestratorSettings(BaseSettings):
    """Settings for the orchestrator.

    Environment variables:
    - AMO_API_BASE_URL              (optional)
    - AMO_API_TOKEN                 (optional, enables the current-user workflow)
    - AMO_LANG                      (optional)
    - AMO_CLIENT_APP                (optional, firefox | android)
    - AMO_USER_AGENT                (optional)
    - AMO_REQUEST_TIMEOUT_SECONDS   (optional)
    - LOG_LEVEL                     (optional)
    - ORCHESTRATOR_HISTORY_LIMIT    (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `OrchestratorSettings(_env_file=path_to_env)`.
    """

    api_base_url: str = Field(
        default=DEFAULT_BASE_URL,
        validation_alias="AMO_API_BASE_URL",
        description="Add-ons API base URL",
    )
    api_token: str | None = Field(
        default=None,
        validation_alias="AMO_API_TOKEN",
        description="Session token sent as a bearer token",
    )
    lang: str = Field(
        default="en-US",
        validation_alias="AMO_LANG",
        description="Language for localized API responses and navigation paths",
    )
    client_app: Literal["firefox", "android"] = Field(
        default="firefox",
        validation_alias="AMO_CLIENT_APP",
        description="Client application used in navigation paths",
    )
    user_agent: str | None = Field(
        default=None,
        validation_alias="AMO_USER_AGENT",
        description="User-Agent header forwarded to the API",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        validation_alias="AMO_REQUEST_TIMEOUT_SECONDS",
        description="Timeout for each API request",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    history_limit: int = Field(
        default=1000,
        ge=1,
        validation_alias="ORCHESTRATOR_HISTORY_LIMIT",
        description="Number of dispatched events kept in the store history",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _check_values(self) -> OrchestratorSettings:
        if not self.api_base_url.strip().startswith(("http://", "https://")):
            raise ValueError("AMO_API_BASE_URL must be an http(s) URL")
        if not self.lang.strip():
            raise ValueError("AMO_LANG must not be empty")
        if self.api_token is not None and not self.api_token.strip():
            self.api_token = None
        return self

    def initial_api_state(self) -> ApiState:
        """The ``api`` slice a new store starts with.

        The token is left out: it is dispatched as a session-token-set event so
        the current-user workflow runs.
        """

        return ApiState(lang=self.lang, client_app=self.client_app, user_agent=self.user_agent)
