from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ConfigDict, Field, PrivateAttr, field_validator

from slack_dispatch.core.common.exceptions import ConfigurationError
from slack_dispatch.core.constants import DEFAULT_MAX_CLOCK_SKEW_SECONDS
from slack_dispatch.core.interfaces.model_bases import DomainModel

logger = logging.getLogger(__name__)

DEFAULT_ENV_PREFIX = "SLACK"
# Framework-level knobs live under their own prefix so they are shared by all apps.
FRAMEWORK_ENV_PREFIX = "SLACK_DISPATCH"


def _env_to_bool(name: str, default: bool, env: Mapping[str, str]) -> bool:
    """Return an environment variable parsed as a boolean flag."""
    value = env.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_to_int(name: str, default: int, env: Mapping[str, str]) -> int:
    """Return an environment variable parsed as an integer."""
    value = env.get(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-integer value for %s; using %s", name, default)
        return default


def _get_env_value(
    env: Mapping[str, str],
    name: str,
    default: Any = None,
    *,
    transform: Callable[[str], Any] | None = None,
) -> Any:
    """Return a non-empty environment variable value, optionally transformed."""
    raw_value = env.get(name)
    if raw_value is None or raw_value == "":
        return default
    return transform(raw_value) if transform is not None else raw_value


def _split_csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LoggingConfig(DomainModel):
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    request_logging: bool = False
    log_file: str | None = None


class AppCredentials(DomainModel):
    """Secrets used to authenticate inbound requests and outbound API calls."""

    signing_key: str | None = None
    default_bot_token: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    state_secret: str | None = None
    app_token: str | None = None
    custom_secrets: dict[str, str] = Field(default_factory=dict)

    def __repr__(self) -> str:
        # Never include secret values in reprs.
        return f"<AppCredentials http={self.supports_http_auth()} api={self.supports_api_auth()}>"

    @classmethod
    def from_env(
        cls, prefix: str | None = None, *, environ: Mapping[str, str] | None = None
    ) -> AppCredentials:
        env: Mapping[str, str] = os.environ if environ is None else environ
        p = (prefix or DEFAULT_ENV_PREFIX).upper()
        return cls(
            signing_key=_get_env_value(env, f"{p}_SIGNING_KEY"),
            default_bot_token=_get_env_value(env, f"{p}_BOT_TOKEN"),
            client_id=_get_env_value(env, f"{p}_CLIENT_ID"),
            client_secret=_get_env_value(env, f"{p}_CLIENT_SECRET"),
            state_secret=_get_env_value(env, f"{p}_STATE_SECRET"),
            app_token=_get_env_value(env, f"{p}_APP_TOKEN"),
        )

    def supports_http_auth(self) -> bool:
        return self.signing_key is not None

    def supports_socket_auth(self) -> bool:
        return self.app_token is not None

    def supports_api_auth(self) -> bool:
        return self.default_bot_token is not None

    def supports_install_auth(self) -> bool:
        return self.client_id is not None and self.client_secret is not None

    def supports_any_auth(self) -> bool:
        return (
            self.supports_http_auth()
            or self.supports_api_auth()
            or self.supports_install_auth()
            or self.supports_socket_auth()
        )

    def secret_values(self) -> list[str]:
        """All configured secret values, for log redaction."""
        values = [
            self.signing_key,
            self.default_bot_token,
            self.client_secret,
            self.state_secret,
            self.app_token,
            *self.custom_secrets.values(),
        ]
        return [v for v in values if v]


class AppConfig(DomainModel):
    """Application configuration, constructed once and shared read-only by requests."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str | None = None
    alias: str | None = None

    signing_key: str | None = None
    bot_token: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    state_secret: str | None = None
    app_token: str | None = None
    scopes: list[str] = Field(default_factory=list)

    max_clock_skew: int = DEFAULT_MAX_CLOCK_SKEW_SECONDS
    skip_auth: bool = False

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    _credentials: AppCredentials | None = PrivateAttr(default=None)
    _listener_resolver: Any = PrivateAttr(default=None)
    _token_store: Any = PrivateAttr(default=None)
    _http_client: Any = PrivateAttr(default=None)

    @field_validator("max_clock_skew")
    @classmethod
    def _validate_skew(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("max_clock_skew must be a positive number of seconds")
        return value

    @classmethod
    def from_env(
        cls,
        prefix: str | None = None,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> AppConfig:
        """Create AppConfig from environment variables.

        App settings are read from ``<PREFIX>_*`` (default ``SLACK_*``);
        framework settings from ``SLACK_DISPATCH_*``.
        """
        env: Mapping[str, str] = os.environ if environ is None else environ
        p = (prefix or DEFAULT_ENV_PREFIX).upper()
        fw = FRAMEWORK_ENV_PREFIX

        config: dict[str, Any] = {
            "id": _get_env_value(env, f"{p}_APP_ID"),
            "signing_key": _get_env_value(env, f"{p}_SIGNING_KEY"),
            "bot_token": _get_env_value(env, f"{p}_BOT_TOKEN"),
            "client_id": _get_env_value(env, f"{p}_CLIENT_ID"),
            "client_secret": _get_env_value(env, f"{p}_CLIENT_SECRET"),
            "state_secret": _get_env_value(env, f"{p}_STATE_SECRET"),
            "app_token": _get_env_value(env, f"{p}_APP_TOKEN"),
            "scopes": _get_env_value(env, f"{p}_SCOPES", [], transform=_split_csv),
            "max_clock_skew": _env_to_int(
                f"{fw}_MAX_CLOCK_SKEW", DEFAULT_MAX_CLOCK_SKEW_SECONDS, env
            ),
            "skip_auth": _env_to_bool(f"{fw}_SKIP_AUTH", False, env),
            "logging": {
                "level": _get_env_value(
                    env, f"{fw}_LOG_LEVEL", LogLevel.INFO, transform=str.upper
                ),
                "log_file": _get_env_value(env, f"{fw}_LOG_FILE"),
            },
        }
        return cls(**config)

    # Fluent setters used by the App facade and by multi-tenant servers.

    def with_id(self, app_id: str) -> AppConfig:
        self.id = app_id
        return self

    def with_alias(self, alias: str) -> AppConfig:
        self.alias = alias
        return self

    def with_signing_key(self, signing_key: str) -> AppConfig:
        self.signing_key = signing_key
        self._credentials = None
        return self

    def with_bot_token(self, bot_token: str) -> AppConfig:
        self.bot_token = bot_token
        self._credentials = None
        return self

    def with_app_credentials(self, credentials: AppCredentials) -> AppConfig:
        self._credentials = credentials
        return self

    def with_listener_resolver(self, resolver: Any) -> AppConfig:
        self._listener_resolver = resolver
        return self

    def with_token_store(self, token_store: Any) -> AppConfig:
        self._token_store = token_store
        return self

    def get_app_credentials(self) -> AppCredentials:
        if self._credentials is None:
            self._credentials = AppCredentials(
                signing_key=self.signing_key,
                default_bot_token=self.bot_token,
                client_id=self.client_id,
                client_secret=self.client_secret,
                state_secret=self.state_secret,
                app_token=self.app_token,
            )
        return self._credentials

    def get_listener_resolver(self) -> Any:
        if self._listener_resolver is None:
            from slack_dispatch.core.services.listener_registry import ListenerRegistry

            self._listener_resolver = ListenerRegistry()
        return self._listener_resolver

    def get_token_store(self) -> Any:
        if self._token_store is None:
            from slack_dispatch.core.config.token_store import SingleTeamTokenStore

            credentials = self.get_app_credentials()
            bot_token = (
                credentials.default_bot_token
                if credentials.supports_api_auth()
                else self.bot_token
            )
            self._token_store = SingleTeamTokenStore(bot_token)
        return self._token_store

    def get_http_client(self) -> Any:
        """Connection pool shared by the outbound calls of every request."""
        if self._http_client is None:
            from slack_dispatch.core.clients.http_clients import build_http_client

            self._http_client = build_http_client()
        return self._http_client

    def close(self) -> None:
        """Release the shared connection pool; a later call opens a new one."""
        if self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def require_signing_key(self) -> str:
        """Return the signing key, failing at configuration time when it is missing."""
        signing_key = self.get_app_credentials().signing_key
        if not signing_key:
            raise ConfigurationError(
                "No signing key provided", details={"app_id": self.id}
            )
        return signing_key


def load_config(
    config_path: str | Path | None = None,
    *,
    env_prefix: str | None = None,
    environ: Mapping[str, str] | None = None,
    dotenv_path: str | Path | None = None,
) -> AppConfig:
    """
    Load configuration from an optional YAML file layered over the environment.

    A ``.env`` file is loaded into the process environment first (existing
    variables win). Values from the YAML file override environment values.

    Args:
        config_path: Optional path to a YAML configuration file
        env_prefix: Prefix for app environment variables (default ``SLACK``)
        environ: Environment mapping; defaults to ``os.environ``
        dotenv_path: Optional explicit ``.env`` location

    Returns:
        AppConfig instance
    """
    if environ is None:
        load_dotenv(dotenv_path=dotenv_path, override=False)

    config_data: dict[str, Any] = AppConfig.from_env(
        env_prefix, environ=environ
    ).model_dump()

    if config_path:
        import yaml

        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                details={"config_path": str(config_path)},
            )
        if path.suffix.lower() not in [".yaml", ".yml"]:
            raise ConfigurationError(
                f"Unsupported configuration file format: {path.suffix}. Use YAML (.yaml/.yml)."
            )

        with open(path, encoding="utf-8") as f:
            file_config: dict[str, Any] = yaml.safe_load(f) or {}

        if not isinstance(file_config, dict):
            raise ConfigurationError(
                "Configuration file must contain a mapping",
                details={"config_path": str(config_path)},
            )
        for key, value in file_config.items():
            if isinstance(value, dict) and isinstance(config_data.get(key), dict):
                config_data[key].update(value)
            else:
                config_data[key] = value
        if logger.isEnabledFor(logging.INFO):
            logger.info("Loaded configuration file %s", path)

    try:
        return AppConfig(**config_data)
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
