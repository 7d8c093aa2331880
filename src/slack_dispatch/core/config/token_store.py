"""In-memory token and credential stores for single-app deployments."""

from __future__ import annotations

from slack_dispatch.core.common.exceptions import ConfigurationError
from slack_dispatch.core.config.app_config import AppCredentials
from slack_dispatch.core.interfaces.credentials_store_interface import (
    IAppCredentialsStore,
)
from slack_dispatch.core.interfaces.token_store_interface import ITokenStore


class SingleTeamTokenStore(ITokenStore):
    """Token store for an app installed in exactly one workspace."""

    def __init__(self, token: str | None = None) -> None:
        self._token = token

    def get(self, team_id: str | None, enterprise_id: str | None) -> str:
        if self._token is None:
            raise ConfigurationError(
                "No bot token available: Bot token is null or is missing from environment",
                details={"team_id": team_id, "enterprise_id": enterprise_id},
            )
        return self._token

    def set(self, team_id: str | None, enterprise_id: str | None, token: str) -> None:
        raise ConfigurationError("Cannot change bot token in SingleTeamTokenStore")


class SingleAppCredentialsStore(IAppCredentialsStore):
    """Returns the same credentials for every app id."""

    def __init__(self, credentials: AppCredentials) -> None:
        if not credentials.supports_http_auth():
            raise ConfigurationError("Signing key not set for App")
        self._credentials = credentials

    @classmethod
    def from_env(cls, prefix: str | None = None, *, environ=None) -> SingleAppCredentialsStore:
        return cls(AppCredentials.from_env(prefix, environ=environ))

    def get_app_credentials(self, app_id: str) -> AppCredentials:
        return self._credentials


class InMemoryAppCredentialsStore(IAppCredentialsStore):
    """Credentials keyed by app id, for multi-tenant servers."""

    def __init__(self, credentials: dict[str, AppCredentials] | None = None) -> None:
        self._credentials: dict[str, AppCredentials] = dict(credentials or {})

    def add(self, app_id: str, credentials: AppCredentials) -> InMemoryAppCredentialsStore:
        self._credentials[app_id] = credentials
        return self

    def get_app_credentials(self, app_id: str) -> AppCredentials:
        try:
            return self._credentials[app_id]
        except KeyError:
            raise ConfigurationError(
                "No credentials registered for app", details={"app_id": app_id}
            ) from None
