"""
Per-request dispatch context.

A :class:`Context` wraps the inbound :class:`Payload` together with a key/value
bag shared by interceptors and listeners, the acknowledgement state, and the
affordances listeners use to talk back to Slack.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from slack_dispatch.core.common.exceptions import ApiCallError, ContextError
from slack_dispatch.core.common.logging_utils import get_logger
from slack_dispatch.core.domain.messages import MessageLike, coerce_message
from slack_dispatch.core.domain.payload import Payload, PayloadType

if TYPE_CHECKING:
    import structlog

    from slack_dispatch.core.config.app_config import AppConfig
    from slack_dispatch.core.interfaces.api_client_interface import (
        IApiClient,
        IRespondClient,
    )

logger = logging.getLogger(__name__)

ACKNOWLEDGED_KEY = "_acknowledged"
APP_ID_KEY = "_app"
DEFERRED_KEY = "_deferred"
PAYLOAD_KEY = "_payload"
RESERVED_KEYS = (ACKNOWLEDGED_KEY, APP_ID_KEY, DEFERRED_KEY, PAYLOAD_KEY)


class Context:
    """All data and affordances for one incoming Slack request."""

    def __init__(self, payload: Payload, data: Mapping[str, Any] | None = None) -> None:
        data = dict(data or {})
        self._payload = payload
        self._is_acknowledged = bool(data.pop(ACKNOWLEDGED_KEY, False))
        self._is_deferred = bool(data.pop(DEFERRED_KEY, False))
        self._app_id: str | None = data.pop(APP_ID_KEY, None) or payload.app_id
        data.pop(PAYLOAD_KEY, None)

        self._data: dict[str, Any] = {k: v for k, v in data.items() if v is not None}
        self._ack: str | None = None
        self._ack_callback: Callable[[str | None], None] | None = None
        self._app_config: AppConfig | None = None
        self._api_client: IApiClient | None = None
        self._respond_client: IRespondClient | None = None
        self._logger: structlog.stdlib.BoundLogger | None = None

    @classmethod
    def from_flat_map(cls, data: Mapping[str, Any]) -> Context:
        """Rebuild a context serialized with :meth:`to_flat_map`."""
        payload = Payload(data.get(PAYLOAD_KEY) or {})
        return cls(payload, data)

    def to_flat_map(self) -> dict[str, Any]:
        flat = dict(self._data)
        flat[PAYLOAD_KEY] = self._payload.to_dict()
        flat[ACKNOWLEDGED_KEY] = self._is_acknowledged
        flat[DEFERRED_KEY] = self._is_deferred
        flat[APP_ID_KEY] = self._app_id
        return flat

    # Configuration

    def with_app_config(self, config: AppConfig) -> Context:
        """Bind the app configuration, reconciling the app id with the payload's.

        The configuration is shared by concurrent requests and is never
        modified here.
        """
        self._reconcile_app_id(config)
        self._app_config = config
        self._logger = None
        self.logger.debug("Incoming Slack request")
        return self

    def with_ack_callback(self, callback: Callable[[str | None], None]) -> Context:
        self._ack_callback = callback
        return self

    def with_api_client(self, api_client: IApiClient) -> Context:
        self._api_client = api_client
        return self

    def with_respond_client(self, respond_client: IRespondClient) -> Context:
        self._respond_client = respond_client
        return self

    def _reconcile_app_id(self, config: AppConfig) -> None:
        config_app_id = config.id
        if self._app_id is None:
            self._app_id = config_app_id

        if (
            self._app_id is not None
            and config_app_id is not None
            and self._app_id != config_app_id
        ):
            raise ContextError(
                f"App ID mismatch between Context ({self._app_id}) and AppConfig ({config_app_id})",
                details={"context_app_id": self._app_id, "config_app_id": config_app_id},
            )

    # Key/value bag

    def set(self, key: str, value: Any) -> Context:
        """Store *value* under *key*; ``None`` removes the key.

        Raises:
            ContextError: If *key* is one of the reserved internal keys.
        """
        if key in RESERVED_KEYS:
            raise ContextError(
                "Cannot modify the following internal keys in the context: "
                + ", ".join(RESERVED_KEYS),
                details={"key": key},
            )
        if value is None:
            self._data.pop(key, None)
        else:
            self._data[key] = value
        return self

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self._data.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: str) -> None:
        self.set(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    # State

    @property
    def payload(self) -> Payload:
        return self._payload

    @property
    def is_acknowledged(self) -> bool:
        return self._is_acknowledged

    @property
    def is_deferred(self) -> bool:
        return self._is_deferred

    @property
    def app_id(self) -> str | None:
        return self._app_id

    @property
    def ack_body(self) -> str | None:
        """JSON-encoded ack body, or ``None`` for an empty ack."""
        return self._ack

    @property
    def app_config(self) -> AppConfig:
        if self._app_config is None:
            from slack_dispatch.core.config.app_config import AppConfig

            self._app_config = AppConfig()
        return self._app_config

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        """Structured logger bound with the payload summary and app id."""
        if self._logger is None:
            self._logger = get_logger(
                "slack_dispatch.context", app_id=self._app_id, **self._payload.summary()
            )
        return self._logger

    @property
    def api_client(self) -> IApiClient:
        if self._api_client is None:
            from slack_dispatch.core.clients.http_clients import SimpleApiClient

            token = self.app_config.get_token_store().get(
                self._payload.team_id, self._payload.enterprise_id
            )
            self._api_client = SimpleApiClient(
                token, client=self.app_config.get_http_client()
            )
        return self._api_client

    # Two-phase lifecycle

    def ack(self, message: MessageLike | None = None) -> None:
        """Record the ack sent back to Slack; a context can be acked only once.

        Dicts and lists are encoded as-is (e.g. option lists); other values
        are coerced into a message first.

        Raises:
            ContextError: If the context was already acknowledged.
        """
        if self._is_acknowledged:
            raise ContextError(
                "Payload has already been acknowledged",
                details=self._payload.summary(),
            )

        ack: str | None = None
        if message is not None:
            if not isinstance(message, dict | list):
                message = coerce_message(message)
            ack = json.dumps(message)
            self.logger.debug("Provided non-empty ack back to Slack", ack=ack)

        self._is_acknowledged = True
        self._ack = ack
        if self._ack_callback is not None:
            self._ack_callback(ack)

    def defer(self, defer: bool = True) -> None:
        """Mark that more processing is needed after the ack."""
        self._is_deferred = defer

    # Affordances

    def api(self, api: str, params: dict[str, Any]) -> dict[str, Any]:
        """Call a Slack Web API method, e.g. ``chat.postMessage``."""
        return self.api_client.call(api, params)

    def respond(self, message: MessageLike, url: str | None = None) -> None:
        """Send a message to the payload's ``response_url`` (or *url*)."""
        url = url or self._payload.response_url
        if url is None:
            raise ContextError(
                "Cannot respond: Response URL must be available in the payload or explicitly provided",
                details=self._payload.summary(),
            )

        if self._respond_client is None:
            from slack_dispatch.core.clients.http_clients import SimpleRespondClient

            self._respond_client = SimpleRespondClient(
                client=self.app_config.get_http_client()
            )
        self._respond_client.respond(url, coerce_message(message))

    def say(
        self,
        message: MessageLike,
        channel: str | None = None,
        thread_ts: str | None = None,
    ) -> None:
        """Post a message to a channel (the payload's channel by default)."""
        data = coerce_message(message)
        params = {
            "channel": channel or self._payload.channel_id,
            "blocks": data.get("blocks"),
            "attachments": data.get("attachments"),
            "text": data.get("text"),
            "thread_ts": thread_ts,
        }
        try:
            self.api("chat.postMessage", {k: v for k, v in params.items() if v})
        except ApiCallError as e:
            raise ApiCallError(
                "API call to `chat.postMessage` failed", details=dict(e.details)
            ) from e

    def options(self, options: Mapping[str, str] | list[dict[str, Any]]) -> None:
        """Ack a ``block_suggestion`` request with a list of options.

        A mapping is read as ``{label: value}``; a list is sent as-is.
        """
        if not self._payload.is_type(PayloadType.BLOCK_SUGGESTION):
            raise ContextError(
                "Can only to use `options()` for block_suggestion requests",
                details=self._payload.summary(),
            )

        if isinstance(options, Mapping):
            option_list = [
                {"text": {"type": "plain_text", "text": label}, "value": value}
                for label, value in options.items()
            ]
        else:
            option_list = list(options)
        self.ack({"options": option_list})

    def __repr__(self) -> str:
        return (
            f"<Context type={self._payload.type.value} "
            f"acknowledged={self._is_acknowledged} deferred={self._is_deferred}>"
        )
